from __future__ import annotations

import time
from typing import Callable


Clock = Callable[[], int]


def wall_ms() -> int:
    """Wall clock time in epoch milliseconds."""

    return int(time.time() * 1000)
