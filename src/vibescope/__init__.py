"""Live loopback audio spectrum with a radial display."""

from vibescope.core.buffer import SampleBuffer
from vibescope.core.capture import CaptureSource
from vibescope.core.scheduler import FrameScheduler
from vibescope.core.spectrum import SpectrumAnalyzer
from vibescope.core.stream import LiveSpectrum

__version__ = "0.1.0"
__all__ = [
    "SampleBuffer",
    "CaptureSource",
    "FrameScheduler",
    "SpectrumAnalyzer",
    "LiveSpectrum",
]
