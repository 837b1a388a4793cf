from collections import deque
from typing import Deque, Optional

import numpy as np


class FrameRateWindow:
    def __init__(self, maxlen: int = 20):
        self._buffer: Deque[float] = deque(maxlen=maxlen)
        self._last_time_ms: Optional[float] = None

    def __len__(self) -> int:
        return len(self._buffer)

    def mark(self, now_ms: float) -> Optional[float]:
        # Returns the instantaneous rate, or None for the first frame.
        last = self._last_time_ms
        self._last_time_ms = now_ms
        if last is None:
            return None
        elapsed = now_ms - last
        if elapsed <= 0.0:
            return None
        fps = 1000.0 / elapsed
        self._buffer.append(fps)
        return fps

    def mean(self) -> float:
        if not self._buffer:
            return 0.0
        value = float(np.mean(self._buffer))
        return value if np.isfinite(value) else 0.0

    def reset(self) -> None:
        self._buffer.clear()
        self._last_time_ms = None
