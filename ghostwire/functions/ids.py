# Time-sortable identifiers (UUID version 7 layout)

import os
import threading
import time
import uuid
from datetime import datetime, timezone

_lock = threading.Lock()
_last_ms = 0
_seq = 0


def new_id():
    # 48-bit unix ms timestamp, 12-bit counter within the ms, 62 random bits.
    # Ids created by this process sort in creation order.
    global _last_ms, _seq
    with _lock:
        ms = time.time_ns() // 1_000_000
        if ms <= _last_ms:
            _seq += 1
            if _seq > 0xFFF:
                _last_ms += 1
                _seq = 0
            ms = _last_ms
        else:
            _seq = 0
        _last_ms = ms
        seq = _seq

    rand = int.from_bytes(os.urandom(8), 'big') & ((1 << 62) - 1)
    value = (ms & ((1 << 48) - 1)) << 80
    value |= 0x7 << 76
    value |= seq << 64
    value |= 0b10 << 62
    value |= rand
    return str(uuid.UUID(int=value))


def utcnow():
    # Naive UTC datetime, as stored in the database
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(dt):
    if dt is None:
        return None
    return dt.strftime('%Y-%m-%dT%H:%M:%S.') + f"{dt.microsecond // 1000:03d}Z"
