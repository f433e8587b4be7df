"""Core audio-to-spectrum modules."""

from vibescope.core.buffer import SampleBuffer
from vibescope.core.capture import (
    CaptureError,
    CaptureSource,
    DeviceUnavailableError,
    UnsupportedFormatError,
)
from vibescope.core.scheduler import FrameScheduler
from vibescope.core.spectrum import SpectrumAnalyzer
from vibescope.core.stream import LiveSpectrum, open_capture

__all__ = [
    "SampleBuffer",
    "CaptureError",
    "CaptureSource",
    "DeviceUnavailableError",
    "UnsupportedFormatError",
    "FrameScheduler",
    "SpectrumAnalyzer",
    "LiveSpectrum",
    "open_capture",
]
