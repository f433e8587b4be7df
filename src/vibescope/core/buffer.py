"""
Bounded sample buffer shared between the audio callback and the render loop.

The capture callback appends mono float32 blocks; the frame loop copies out
the trailing analysis window.  Both sides hold the lock only long enough to
swap or slice one small array, so the audio thread is never starved.
"""

from __future__ import annotations

import threading
from typing import Sequence, Union

import numpy as np

WINDOW_SIZE = 2048
HIGH_WATER_FACTOR = 4
TRIM_FACTOR = 2


class SampleBuffer:
    """
    Oldest-first queue of mono samples, capped at a high-water mark.

    Once the length exceeds ``high_water_factor * window_size`` the oldest
    samples are dropped in batches of ``trim_factor * window_size``.
    """

    def __init__(
        self,
        window_size: int = WINDOW_SIZE,
        high_water_factor: int = HIGH_WATER_FACTOR,
        trim_factor: int = TRIM_FACTOR,
    ):
        if window_size < 1:
            raise ValueError("window_size must be positive")
        if trim_factor < 1 or high_water_factor < trim_factor:
            raise ValueError("need 1 <= trim_factor <= high_water_factor")

        self.window_size = window_size
        self.high_water = window_size * high_water_factor
        self.trim_size = window_size * trim_factor

        self._lock = threading.Lock()
        self._samples: np.ndarray = np.zeros(0, dtype=np.float32)

    def __len__(self) -> int:
        return int(self._samples.size)

    def append(self, samples: Union[Sequence[float], np.ndarray]) -> None:
        """Append a block of samples; called from the capture context."""
        chunk = np.asarray(samples, dtype=np.float32).reshape(-1)
        if chunk.size == 0:
            return

        with self._lock:
            merged = np.concatenate((self._samples, chunk))
            excess = merged.size - self.high_water
            if excess > 0:
                # Whole batches only, so a huge chunk cannot leave us above the mark
                n_batches = -(-excess // self.trim_size)
                merged = merged[n_batches * self.trim_size:]
            self._samples = merged

    def latest(self, n: int) -> np.ndarray:
        """Return a copy of the most recent *n* samples (fewer if not yet available)."""
        if n <= 0:
            return np.zeros(0, dtype=np.float32)
        with self._lock:
            return self._samples[-n:].copy()

    def clear(self) -> None:
        with self._lock:
            self._samples = np.zeros(0, dtype=np.float32)
