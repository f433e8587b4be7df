"""
Live spectrum session: wires capture, buffer, analyzer and frame loop.

Architecture Overview
---------------------
::

    Audio Device
        │  (PortAudio callback thread)
        ▼
    CaptureSource ──append──► SampleBuffer (bounded, locked)
                                   │
                                   ▼  latest(2 048)   (render loop, 60 fps)
                              FrameScheduler
                                   │
                                   ├─► SpectrumAnalyzer.process()
                                   │        └─► 64 band intensities [0,1]
                                   │
                                   └─► renderer(bands)

Failure Policy
--------------
Capture failures are reported once at startup.  ``open_capture`` makes at
most one extra attempt; if capture still cannot start the session keeps
running and the renderer receives a steady all-zero band set, unless the
caller asked for ``require_capture``.

Teardown order matters: the capture stream is stopped before the buffer is
released so no callback can write into state that is going away.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import numpy as np

from vibescope.core.buffer import SampleBuffer
from vibescope.core.capture import CaptureError, CaptureSource
from vibescope.core.scheduler import TARGET_FPS, FrameScheduler, Renderer
from vibescope.core.spectrum import SAMPLE_RATE, SpectrumAnalyzer

_LOG = logging.getLogger(__name__)


def open_capture(
    buffer: SampleBuffer,
    retries: int = 1,
    **kwargs: Any,
) -> Optional[CaptureSource]:
    """
    Try to start capture, retrying up to *retries* extra times.

    Returns:
        The running CaptureSource, or None if every attempt failed.
    """
    attempts = 1 + max(0, retries)
    for attempt in range(1, attempts + 1):
        try:
            return CaptureSource(buffer, **kwargs)
        except CaptureError as e:
            _LOG.warning("Audio capture failed (attempt %d/%d): %s", attempt, attempts, e)
    return None


class LiveSpectrum:
    """
    One capture stream feeding one render loop.

    Parameters
    ----------
    renderer:
        Callable receiving each band set.
    fps:
        Target frame rate (default: 60).
    require_capture:
        Raise :class:`CaptureError` when no capture can be opened instead of
        running with an empty spectrum.
    retries:
        Extra capture attempts before giving up (default: 1).
    gain_decay:
        Optional rolling auto-gain factor passed to the analyzer.
    capture_options:
        Forwarded to :class:`CaptureSource` (device, dtype, samplerate, ...).
    """

    def __init__(
        self,
        renderer: Renderer,
        fps: float = TARGET_FPS,
        require_capture: bool = False,
        retries: int = 1,
        gain_decay: Optional[float] = None,
        **capture_options: Any,
    ):
        self.buffer = SampleBuffer()
        self.capture: Optional[CaptureSource] = open_capture(
            self.buffer, retries=retries, **capture_options
        )
        if self.capture is None:
            if require_capture:
                raise CaptureError("No audio capture device could be opened")
            _LOG.warning("Running without audio input; the spectrum will stay empty")

        sample_rate = self.capture.samplerate if self.capture is not None else SAMPLE_RATE
        self.analyzer = SpectrumAnalyzer(sample_rate=sample_rate, gain_decay=gain_decay)
        self.scheduler = FrameScheduler(self.buffer, self.analyzer, renderer, fps=fps)

    @property
    def has_capture(self) -> bool:
        return self.capture is not None

    @property
    def bands(self) -> np.ndarray:
        """Most recent band set."""
        return self.scheduler.bands.copy()

    def run(self, max_frames: Optional[int] = None) -> int:
        return self.scheduler.run(max_frames=max_frames)

    def stop(self) -> None:
        self.scheduler.stop()

    def close(self) -> None:
        """Stop the loop, then the hardware stream, then drop buffered audio."""
        self.scheduler.stop()
        if self.capture is not None:
            self.capture.close()
        self.buffer.clear()

    def __enter__(self) -> "LiveSpectrum":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
