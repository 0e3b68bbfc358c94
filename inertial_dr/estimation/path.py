"""Bounded position history for display."""

from collections import deque

import numpy as np


class PathBuffer:
    """
    Fixed-capacity FIFO of world-frame positions.

    Pushing past capacity evicts the oldest point. Readers only ever see
    snapshot() copies, so the owning estimator can keep appending while a
    renderer draws the previous snapshot.

    Args:
        capacity: Maximum number of retained points (>= 1).

    Example:
        >>> buf = PathBuffer(capacity=2)
        >>> for x in (1.0, 2.0, 3.0):
        ...     buf.push([x, 0.0, 0.0])
        >>> buf.snapshot()[:, 0]
        array([2., 3.])
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._points = deque(maxlen=int(capacity))

    @property
    def capacity(self) -> int:
        return self._points.maxlen

    def __len__(self) -> int:
        return len(self._points)

    def push(self, position) -> None:
        p = np.array(position, dtype=np.float64).ravel()
        if p.shape != (3,):
            raise ValueError(f"position must have shape (3,), got {p.shape}")
        self._points.append(p)

    def snapshot(self) -> np.ndarray:
        """Read-only copy of the retained points, oldest first. Shape: (N, 3)."""
        if self._points:
            arr = np.vstack(self._points)
        else:
            arr = np.empty((0, 3), dtype=np.float64)
        arr.setflags(write=False)
        return arr

    def clear(self) -> None:
        self._points.clear()
