from __future__ import annotations

import secrets
import string
import time

LOCAL_ID_PREFIX = "offline"
_ALPHABET = string.ascii_lowercase + string.digits


def new_id(prefix: str) -> str:
    """`<prefix>_<epoch-ms>_<9 random chars>`; sorts by creation time."""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def new_local_record_id() -> str:
    return new_id(LOCAL_ID_PREFIX)


def is_local_id(value: object) -> bool:
    """True for ids generated on this device and never confirmed remotely."""
    return isinstance(value, str) and value.startswith(f"{LOCAL_ID_PREFIX}_")
