"""Tests for SpectrumAnalyzer and the band layout helpers."""

import numpy as np
import pytest

from vibescope.core.spectrum import (
    NUM_BANDS,
    SAMPLE_RATE,
    WINDOW_SIZE,
    SmoothingParams,
    SpectrumAnalyzer,
    band_edges,
    band_frequencies,
    hann_window,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _sine(freq, n=WINDOW_SIZE, amplitude=1.0, sr=SAMPLE_RATE):
    t = np.arange(n) / sr
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


def _band_containing(freq):
    edges = band_frequencies()
    return int(np.searchsorted(edges, freq, side="right") - 1)


@pytest.fixture
def analyzer():
    return SpectrumAnalyzer()


# ---------------------------------------------------------------------------
# Window and band layout
# ---------------------------------------------------------------------------

def test_hann_window_formula():
    n = WINDOW_SIZE
    i = np.arange(n)
    expected = 0.5 * (1.0 - np.cos(2.0 * np.pi * i / n))
    window = hann_window(n)
    assert window.shape == (n,)
    assert window.dtype == np.float32
    assert np.allclose(window, expected, atol=1e-6)


def test_band_edges_are_monotonic_and_contiguous():
    total_bins = WINDOW_SIZE // 2
    starts, ends = band_edges()
    assert starts.shape == ends.shape == (NUM_BANDS,)
    assert np.all(np.diff(starts) >= 0)
    assert np.all(starts <= ends)
    assert np.array_equal(starts[1:], ends[:-1])
    assert ends[-1] <= total_bins


def test_band_edges_cover_spectrum():
    starts, ends = band_edges()
    assert starts[0] < 10, "first band should start near bin 0"
    assert ends[-1] > 100, "last band should reach into the high bins"


def test_band_edges_capped_at_total_bins():
    # A tiny transform cannot reach 16 kHz; every edge must be clamped
    starts, ends = band_edges(total_bins=32)
    assert ends.max() <= 32
    assert starts.max() <= 32


def test_band_frequencies_span():
    freqs = band_frequencies()
    assert freqs.shape == (NUM_BANDS + 1,)
    assert freqs[0] == pytest.approx(20.0)
    assert freqs[-1] == pytest.approx(16000.0)
    # Equal ratios between neighbouring edges
    ratios = freqs[1:] / freqs[:-1]
    assert np.allclose(ratios, ratios[0])


def test_invalid_parameters():
    with pytest.raises(ValueError):
        SpectrumAnalyzer(window_size=2047)
    with pytest.raises(ValueError):
        SpectrumAnalyzer(num_bands=0)
    with pytest.raises(ValueError):
        SpectrumAnalyzer(min_freq=100.0, max_freq=50.0)
    with pytest.raises(ValueError):
        SpectrumAnalyzer(gain_decay=1.5)


# ---------------------------------------------------------------------------
# Range properties
# ---------------------------------------------------------------------------

def test_silence_stays_in_range(analyzer):
    bands = analyzer.process(np.zeros(WINDOW_SIZE, dtype=np.float32))
    assert bands.shape == (NUM_BANDS,)
    assert np.all((bands >= 0.0) & (bands <= 1.0))
    assert np.all(bands == 0.0)


def test_full_scale_noise_stays_in_range(analyzer):
    rng = np.random.default_rng(7)
    for _ in range(20):
        noise = rng.uniform(-1.0, 1.0, WINDOW_SIZE).astype(np.float32)
        bands = analyzer.process(noise)
        assert np.all((bands >= 0.0) & (bands <= 1.0))


def test_out_of_range_input_stays_in_range(analyzer):
    rng = np.random.default_rng(3)
    loud = rng.uniform(-50.0, 50.0, WINDOW_SIZE).astype(np.float32)
    bands = analyzer.process(loud)
    assert np.all((bands >= 0.0) & (bands <= 1.0))


# ---------------------------------------------------------------------------
# Frequency response
# ---------------------------------------------------------------------------

def test_sine_peaks_in_matching_band(analyzer):
    bands = analyzer.process(_sine(440.0))
    target = _band_containing(440.0)

    far = np.array([b for b in range(NUM_BANDS) if abs(b - target) >= 10])
    assert bands[target] > 0.3
    assert bands[far].max() < 0.05
    assert bands.argmax() in (target - 1, target, target + 1)


def test_higher_tone_lands_in_higher_band():
    low = SpectrumAnalyzer().process(_sine(200.0))
    high = SpectrumAnalyzer().process(_sine(5000.0))
    assert high.argmax() > low.argmax()


def test_normalization_ignores_loudness():
    quiet = SpectrumAnalyzer().process(_sine(1000.0, amplitude=0.01))
    loud = SpectrumAnalyzer().process(_sine(1000.0, amplitude=1.0))
    assert np.allclose(quiet, loud, atol=1e-4)


def test_uses_most_recent_window(analyzer):
    tone = _sine(440.0)
    samples = np.concatenate([np.zeros(WINDOW_SIZE, dtype=np.float32), tone])
    expected = SpectrumAnalyzer().process(tone)
    assert np.allclose(analyzer.process(samples), expected)


# ---------------------------------------------------------------------------
# Carried state
# ---------------------------------------------------------------------------

def test_short_input_returns_previous_state(analyzer):
    first = analyzer.process(_sine(440.0))
    again = analyzer.process(np.ones(100, dtype=np.float32))
    assert np.array_equal(first, again)


def test_empty_input_is_idempotent(analyzer):
    analyzer.process(_sine(440.0))
    results = [analyzer.process([]) for _ in range(5)]
    for r in results[1:]:
        assert np.array_equal(r, results[0])


def test_output_is_a_copy(analyzer):
    bands = analyzer.process(_sine(440.0))
    bands[:] = 0.0
    assert analyzer.smoothed.max() > 0.0


def test_silence_decays_monotonically(analyzer):
    rng = np.random.default_rng(1)
    prev = analyzer.process(rng.uniform(-1.0, 1.0, WINDOW_SIZE).astype(np.float32))
    silence = np.zeros(WINDOW_SIZE, dtype=np.float32)
    for _ in range(50):
        bands = analyzer.process(silence)
        assert np.all(bands <= prev)
        prev = bands
    assert prev.max() < 0.01


def test_smoothing_is_asymmetric():
    rising = SpectrumAnalyzer()
    up = rising.smooth(np.ones(NUM_BANDS))
    assert up[0] == pytest.approx(0.7)

    falling = SpectrumAnalyzer()
    for _ in range(40):
        falling.smooth(np.ones(NUM_BANDS))
    before = falling.smoothed
    after = falling.smooth(np.zeros(NUM_BANDS))
    drop = before[0] - after[0]
    assert drop == pytest.approx(0.15, abs=1e-3)
    assert up[0] > drop


def test_custom_smoothing_params():
    analyzer = SpectrumAnalyzer(smoothing=SmoothingParams(attack=1.0, decay=1.0))
    assert np.allclose(analyzer.smooth(np.full(NUM_BANDS, 0.4)), 0.4)
    assert np.allclose(analyzer.smooth(np.full(NUM_BANDS, 0.1)), 0.1)


def test_reset_clears_state(analyzer):
    analyzer.process(_sine(440.0))
    analyzer.reset()
    assert np.all(analyzer.smoothed == 0.0)


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def test_per_frame_normalization(analyzer):
    assert np.allclose(analyzer.normalize(np.array([2.0, 1.0], dtype=np.float32)), [1.0, 0.5])
    assert np.allclose(analyzer.normalize(np.array([1.0, 0.5], dtype=np.float32)), [1.0, 0.5])


def test_zero_max_skips_normalization(analyzer):
    zeros = np.zeros(4, dtype=np.float32)
    assert np.array_equal(analyzer.normalize(zeros), zeros)


def test_rolling_gain_remembers_peak():
    analyzer = SpectrumAnalyzer(gain_decay=0.99)
    analyzer.normalize(np.array([2.0, 1.0], dtype=np.float32))
    quieter = analyzer.normalize(np.array([1.0, 0.5], dtype=np.float32))
    assert quieter[0] == pytest.approx(1.0 / 1.98, rel=1e-4)
