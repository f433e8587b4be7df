"""
Per-frame spectrum analysis for the live radial display.

Turns the trailing window of mono samples into a fixed set of
logarithmically spaced band intensities in [0.0, 1.0]:

    window (Hann) -> FFT -> |X| (first N/2 bins) -> log bands (mean)
        -> per-frame max normalization -> fast-attack / slow-decay smoothing

The smoothed band set is the only state carried between calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import numpy as np
from scipy import signal as scipy_signal

from vibescope.core.buffer import WINDOW_SIZE

NUM_BANDS = 64
SAMPLE_RATE = 44100
MIN_FREQ = 20.0
MAX_FREQ = 16000.0


@dataclass(frozen=True)
class SmoothingParams:
    """Blend weight given to the new value when rising (attack) or falling (decay)."""

    attack: float = 0.7
    decay: float = 0.15


def hann_window(size: int) -> np.ndarray:
    """Periodic Hann window: 0.5 * (1 - cos(2*pi*i / size))."""
    return scipy_signal.get_window("hann", size, fftbins=True).astype(np.float32)


def band_edges(
    num_bands: int = NUM_BANDS,
    total_bins: int = WINDOW_SIZE // 2,
    sample_rate: float = SAMPLE_RATE,
    min_freq: float = MIN_FREQ,
    max_freq: float = MAX_FREQ,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute the [start, end) bin range of every band.

    Band boundaries are spaced evenly in log-frequency between *min_freq* and
    *max_freq*, then truncated to bin indices and capped at *total_bins*.

    Returns:
        (starts, ends) integer arrays of length *num_bands*.
    """
    freq_per_bin = sample_rate / (total_bins * 2.0)
    freqs = band_frequencies(num_bands, min_freq, max_freq)
    bins = np.minimum((freqs / freq_per_bin).astype(np.int64), total_bins)
    return bins[:-1], bins[1:]


def band_frequencies(
    num_bands: int = NUM_BANDS,
    min_freq: float = MIN_FREQ,
    max_freq: float = MAX_FREQ,
) -> np.ndarray:
    """Return the (num_bands + 1) band boundary frequencies in Hz."""
    log_min = np.log(min_freq)
    log_range = np.log(max_freq) - log_min
    positions = np.arange(num_bands + 1, dtype=np.float64) / num_bands
    return np.exp(log_min + positions * log_range)


class SpectrumAnalyzer:
    """
    Stateful window -> band-set transform.

    Only the render loop touches an analyzer, so there is no locking here.
    ``process`` never fails: short input returns the previous output unchanged.
    """

    def __init__(
        self,
        window_size: int = WINDOW_SIZE,
        num_bands: int = NUM_BANDS,
        sample_rate: float = SAMPLE_RATE,
        min_freq: float = MIN_FREQ,
        max_freq: float = MAX_FREQ,
        smoothing: Optional[SmoothingParams] = None,
        gain_decay: Optional[float] = None,
    ):
        """
        Initialize the analyzer.

        Args:
            window_size: Samples per analysis window (even).
            num_bands: Number of output bands.
            sample_rate: Rate of the incoming samples in Hz.
            min_freq: Lower edge of band 0 in Hz.
            max_freq: Upper edge of the last band in Hz.
            smoothing: Attack/decay weights (default: 0.7 / 0.15).
            gain_decay: If set, normalize against a rolling peak that decays
                by this factor per frame instead of the per-frame maximum.
        """
        if window_size < 2 or window_size % 2:
            raise ValueError("window_size must be a positive even number")
        if num_bands < 1:
            raise ValueError("num_bands must be at least 1")
        if not 0.0 < min_freq < max_freq:
            raise ValueError("need 0 < min_freq < max_freq")
        if gain_decay is not None and not 0.0 < gain_decay < 1.0:
            raise ValueError("gain_decay must be in (0, 1)")

        self.window_size = window_size
        self.num_bands = num_bands
        self.sample_rate = float(sample_rate)
        self.smoothing = smoothing or SmoothingParams()
        self.gain_decay = gain_decay

        self.window = hann_window(window_size)
        self.total_bins = window_size // 2
        self.band_starts, self.band_ends = band_edges(
            num_bands, self.total_bins, self.sample_rate, min_freq, max_freq
        )

        self._smoothed = np.zeros(num_bands, dtype=np.float32)
        self._peak = 0.0

    @property
    def smoothed(self) -> np.ndarray:
        """Copy of the carried-over band set."""
        return self._smoothed.copy()

    def reset(self) -> None:
        self._smoothed[:] = 0.0
        self._peak = 0.0

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    def magnitudes(self, window: np.ndarray) -> np.ndarray:
        """Magnitude spectrum of one windowed block, first N/2 bins only."""
        spectrum = np.fft.rfft(window * self.window)
        return np.abs(spectrum[: self.total_bins]).astype(np.float32)

    def group_bands(self, magnitudes: np.ndarray) -> np.ndarray:
        """Mean magnitude per band; empty bands are zero."""
        # Prefix sums make each band mean O(1)
        cumsum = np.concatenate(([0.0], np.cumsum(magnitudes, dtype=np.float64)))
        counts = self.band_ends - self.band_starts
        sums = cumsum[self.band_ends] - cumsum[self.band_starts]
        bands = np.zeros(self.num_bands, dtype=np.float32)
        filled = counts > 0
        bands[filled] = sums[filled] / counts[filled]
        return bands

    def normalize(self, bands: np.ndarray) -> np.ndarray:
        """Scale by the frame maximum (or the decaying peak when auto-gain is on)."""
        frame_max = float(bands.max()) if bands.size else 0.0
        divisor = frame_max
        if self.gain_decay is not None:
            self._peak = max(frame_max, self._peak * self.gain_decay)
            divisor = self._peak
        if divisor <= 0.0:
            return bands
        return bands / np.float32(divisor)

    def smooth(self, bands: np.ndarray) -> np.ndarray:
        """Blend *bands* into the carried state and return a copy of it."""
        bands = np.asarray(bands, dtype=np.float32)
        rising = bands > self._smoothed
        weight = np.where(rising, self.smoothing.attack, self.smoothing.decay).astype(np.float32)
        self._smoothed = np.clip(
            self._smoothed * (1.0 - weight) + bands * weight, 0.0, 1.0
        ).astype(np.float32)
        return self._smoothed.copy()

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def process(self, samples: Union[Sequence[float], np.ndarray]) -> np.ndarray:
        """
        Analyze the most recent window of *samples*.

        Args:
            samples: Mono samples, oldest first.

        Returns:
            Smoothed band set (copy), shape ``(num_bands,)``, values in [0, 1].
            If fewer than ``window_size`` samples are given, the previous
            band set is returned unchanged.
        """
        samples = np.asarray(samples, dtype=np.float32).reshape(-1)
        if samples.size < self.window_size:
            return self._smoothed.copy()

        window = samples[-self.window_size:]
        bands = self.group_bands(self.magnitudes(window))
        return self.smooth(self.normalize(bands))
