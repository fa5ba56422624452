from __future__ import annotations

import time


def now_ms() -> int:
    """Epoch milliseconds, the unit every event's ``time`` field uses."""
    return int(time.time() * 1000)
