"""
Live audio capture into a SampleBuffer.

Prefers a system loopback / monitor input (the audio the machine is playing)
and falls back to the default output device.  Every delivered block is
downmixed to mono float32 and appended to the shared buffer; no analysis
happens on the audio thread.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

try:
    import sounddevice as sd
except OSError as exc:  # PortAudio shared library not installed
    sd = None
    _SD_IMPORT_ERROR: Optional[BaseException] = exc
else:
    _SD_IMPORT_ERROR = None

from vibescope.core.buffer import SampleBuffer

_LOG = logging.getLogger(__name__)

LOOPBACK_HINTS = ("loopback", "monitor")

# dtype -> (offset, scale) such that float = (x - offset) / scale
SAMPLE_FORMATS: Dict[str, Tuple[float, float]] = {
    "float32": (0.0, 1.0),
    "float64": (0.0, 1.0),
    "int8": (0.0, 128.0),
    "int16": (0.0, 32768.0),
    "int32": (0.0, 2147483648.0),
    "uint8": (128.0, 128.0),
    "uint16": (32768.0, 32768.0),
}

# Formats PortAudio can deliver through sounddevice
STREAM_FORMATS = ("float32", "int32", "int16", "int8", "uint8")

ErrorCallback = Callable[[str], None]
DeviceSpec = Union[int, str, None]


class CaptureError(RuntimeError):
    """Capture could not be started."""


class DeviceUnavailableError(CaptureError):
    """No usable audio device."""


class UnsupportedFormatError(CaptureError):
    """The device delivers a sample format we cannot convert."""


def to_mono_float32(block: np.ndarray) -> np.ndarray:
    """
    Convert a ``(frames, channels)`` block to mono float32.

    Integer formats are scaled to nominal [-1.0, 1.0]; channels are averaged.
    """
    block = np.asarray(block)
    try:
        offset, scale = SAMPLE_FORMATS[block.dtype.name]
    except KeyError:
        raise UnsupportedFormatError(f"Unsupported sample format: {block.dtype.name}") from None

    samples = block.astype(np.float32)
    if offset:
        samples -= offset
    if scale != 1.0:
        samples /= scale
    if samples.ndim == 1:
        return samples
    return samples.mean(axis=1, dtype=np.float32)


def _require_backend() -> None:
    if sd is None:
        raise DeviceUnavailableError(f"PortAudio is not available: {_SD_IMPORT_ERROR}")


def is_loopback_name(name: str) -> bool:
    lowered = name.lower()
    return any(hint in lowered for hint in LOOPBACK_HINTS)


def select_device(
    devices: Sequence[Mapping[str, Any]],
    default_output: Optional[int],
) -> Tuple[int, Mapping[str, Any]]:
    """
    Pick the capture device.

    First input-capable device whose name marks it as loopback/monitor,
    otherwise the default output device.

    Raises:
        DeviceUnavailableError: nothing suitable is present.
    """
    for index, info in enumerate(devices):
        if info.get("max_input_channels", 0) > 0 and is_loopback_name(str(info.get("name", ""))):
            return index, info

    if default_output is None or not 0 <= default_output < len(devices):
        raise DeviceUnavailableError("No output device found")
    return default_output, devices[default_output]


def list_devices() -> List[Dict[str, Any]]:
    """Describe every PortAudio device."""
    _require_backend()
    out = []
    for index, info in enumerate(sd.query_devices()):
        name = str(info.get("name", ""))
        out.append({
            "index": index,
            "name": name,
            "max_input_channels": int(info.get("max_input_channels", 0)),
            "max_output_channels": int(info.get("max_output_channels", 0)),
            "default_samplerate": float(info.get("default_samplerate", 0.0)),
            "loopback": is_loopback_name(name),
        })
    return out


class CaptureSource:
    """
    Owns one PortAudio input stream feeding a SampleBuffer.

    The stream is running once the constructor returns.  ``close()`` stops
    and closes it; after that the callback never touches the buffer again.
    Errors reported by the running stream are logged and passed to
    *on_error*; the source does not try to reconnect.
    """

    def __init__(
        self,
        buffer: SampleBuffer,
        device: DeviceSpec = None,
        dtype: str = "float32",
        samplerate: Optional[float] = None,
        blocksize: int = 0,
        on_error: Optional[ErrorCallback] = None,
    ):
        _require_backend()
        if dtype not in STREAM_FORMATS:
            raise UnsupportedFormatError(f"Unsupported sample format: {dtype}")

        self.buffer = buffer
        self.dtype = dtype
        self._on_error = on_error
        self._closed = False
        self.last_error: Optional[str] = None
        self.overflows = 0

        self.device_index, info = self._resolve_device(device)
        self.device_name = str(info.get("name", self.device_index))
        self.channels = int(info.get("max_input_channels", 0)) or int(
            info.get("max_output_channels", 0)
        )
        if self.channels < 1:
            raise DeviceUnavailableError(f"Device has no channels: {self.device_name}")
        self.samplerate = float(samplerate or info.get("default_samplerate") or 44100)

        try:
            self._stream = sd.InputStream(
                device=self.device_index,
                channels=self.channels,
                samplerate=self.samplerate,
                blocksize=blocksize,
                dtype=dtype,
                callback=self._callback,
            )
        except sd.PortAudioError as e:
            raise DeviceUnavailableError(f"Audio device error: {e}") from e
        try:
            self._stream.start()
        except sd.PortAudioError as e:
            self._stream.close()
            raise DeviceUnavailableError(f"Audio device error: {e}") from e

        _LOG.info(
            "Capturing from %r (%d ch, %.0f Hz, %s)",
            self.device_name, self.channels, self.samplerate, dtype,
        )

    # ---------- Public API ----------

    @property
    def active(self) -> bool:
        return not self._closed and bool(self._stream.active)

    def close(self) -> None:
        """Stop the hardware stream; waits for an in-flight callback to finish."""
        if self._closed:
            return
        self._closed = True
        try:
            self._stream.stop()
        finally:
            self._stream.close()
        _LOG.debug("Capture stream closed")

    def __enter__(self) -> "CaptureSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------- Internal ----------

    @staticmethod
    def _resolve_device(device: DeviceSpec) -> Tuple[int, Mapping[str, Any]]:
        try:
            if device is not None:
                info = sd.query_devices(device)
                return int(info.get("index", device)), info
            devices = sd.query_devices()
            default_output = sd.default.device[1]
        except (sd.PortAudioError, ValueError) as e:
            raise DeviceUnavailableError(f"Audio device error: {e}") from e
        return select_device(devices, default_output)

    def _report(self, message: str) -> None:
        self.last_error = message
        _LOG.warning("Audio stream error: %s", message)
        if self._on_error is not None:
            self._on_error(message)

    def _callback(self, indata, frames, time_info, status) -> None:
        if self._closed:
            return
        if status:
            if getattr(status, "input_overflow", False):
                self.overflows += 1
            self._report(str(status))
        self.buffer.append(to_mono_float32(indata))
