"""
Offline layer - cache projection.

Pure functions: given a table's current records and a write, return the
table's new records. Never mutate the inputs. A table keeps at most one
record per `id`.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Tuple

from gmb_offline.core.offline.models import CacheSnapshot, OperationKind, Record
from gmb_offline.core.utils.ids import is_local_id, new_local_record_id

MODIFIED_MARKER = "_modified"
PENDING_SYNC_MARKER = "_pending_sync"
LOCAL_MARKERS = (MODIFIED_MARKER, PENDING_SYNC_MARKER)


def _index_of(records: List[Record], record_id: Any) -> int:
    for i, item in enumerate(records):
        if item.get("id") == record_id:
            return i
    return -1


def with_local_id(payload: Record) -> Record:
    """Copy of `payload` guaranteed to carry an `id` (generated if missing)."""
    record = dict(payload)
    if record.get("id") in (None, ""):
        record["id"] = new_local_record_id()
    return record


def apply_write(
    records: Iterable[Record],
    kind: OperationKind,
    payload: Record,
    *,
    mark_pending: bool = True,
) -> List[Record]:
    """
    Project one write onto a table's records.

    insert: appends `payload` (which must already carry an id); an existing
        record with the same id is replaced in place.
    update: merges `payload` into the record with the same id; no-op if absent.
    delete: removes the record with the same id; no-op if absent.

    With `mark_pending`, written records carry the local markers until the
    next refresh from the remote source replaces them.
    """
    current = [dict(item) for item in records]
    record_id = payload.get("id")
    markers: Dict[str, bool] = {m: True for m in LOCAL_MARKERS} if mark_pending else {}
    index = _index_of(current, record_id)

    if kind == OperationKind.INSERT:
        new_record = {**payload, **markers}
        if index == -1:
            current.append(new_record)
        else:
            current[index] = new_record
    elif kind == OperationKind.UPDATE:
        if index != -1:
            current[index] = {**current[index], **payload, **markers}
    elif kind == OperationKind.DELETE:
        if index != -1:
            del current[index]
    return current


def project(snapshot: CacheSnapshot, table: str, kind: OperationKind, payload: Record, **kwargs: Any) -> CacheSnapshot:
    """Return a new snapshot with one table rewritten by `apply_write`."""
    updated = dict(snapshot)
    updated[table] = apply_write(snapshot.get(table, []), kind, payload, **kwargs)
    return updated


def replace_record_id(records: Iterable[Record], old_id: Any, new_id: Any) -> List[Record]:
    return [{**item, "id": new_id} if item.get("id") == old_id else dict(item) for item in records]


def remote_payload(kind: OperationKind, payload: Record) -> Tuple[Any, Record]:
    """
    Split a queued payload into (record id, body to send remotely).

    Local markers are always dropped. Updates and deletes address the record
    by id, so the id leaves the body. Inserts keep it unless it was generated
    on this device, in which case the remote source assigns its own.
    """
    body = {k: v for k, v in payload.items() if k not in LOCAL_MARKERS}
    record_id = body.get("id")
    if kind != OperationKind.INSERT or is_local_id(record_id):
        body.pop("id", None)
    return record_id, body
