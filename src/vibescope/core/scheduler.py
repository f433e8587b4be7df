"""
Fixed-cadence frame loop: buffer -> analyzer -> renderer.

This is the only component that looks at the clock.  A frame that runs over
its budget is followed immediately by the next one; there is no catch-up.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

import numpy as np

from vibescope.core.buffer import SampleBuffer
from vibescope.core.spectrum import SpectrumAnalyzer

_LOG = logging.getLogger(__name__)

TARGET_FPS = 60

Renderer = Callable[[np.ndarray], None]


class FrameScheduler:
    """
    Drives analysis and rendering at *fps* frames per second.

    Args:
        buffer: Source of samples.
        analyzer: Band-set producer.
        renderer: Called with a copy of the band set every frame.
        fps: Target frame rate.
        clock: Monotonic time source (seconds).
        sleep: Called with the remaining frame budget; defaults to an
            interruptible wait so ``stop()`` takes effect at once.
    """

    def __init__(
        self,
        buffer: SampleBuffer,
        analyzer: SpectrumAnalyzer,
        renderer: Renderer,
        fps: float = TARGET_FPS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], object]] = None,
    ):
        if fps <= 0:
            raise ValueError("fps must be positive")
        self.buffer = buffer
        self.analyzer = analyzer
        self.renderer = renderer
        self.fps = fps
        self.period = 1.0 / fps

        self._clock = clock
        self._stop_event = threading.Event()
        self._sleep = sleep or self._stop_event.wait

        self.frames = 0
        self.overruns = 0
        self.bands: np.ndarray = analyzer.smoothed

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Request the loop to end after the current frame (thread/signal safe)."""
        self._stop_event.set()

    def tick(self) -> np.ndarray:
        """Run one frame without any timing."""
        samples = self.buffer.latest(self.analyzer.window_size)
        self.bands = self.analyzer.process(samples)
        self.renderer(self.bands.copy())
        self.frames += 1
        return self.bands

    def run(self, max_frames: Optional[int] = None) -> int:
        """
        Loop until ``stop()`` is called or *max_frames* frames have run.

        Returns:
            Number of frames produced by this call.
        """
        produced = 0
        while not self._stop_event.is_set():
            started = self._clock()
            self.tick()
            produced += 1
            if max_frames is not None and produced >= max_frames:
                break

            remaining = self.period - (self._clock() - started)
            if remaining > 0:
                self._sleep(remaining)
            else:
                self.overruns += 1
                _LOG.debug("Frame %d over budget by %.1f ms", self.frames, -remaining * 1000.0)
        return produced
