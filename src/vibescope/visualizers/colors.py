"""
Band index -> rainbow color mapping.

Band 0 (bass) is red, the last band (treble) is violet; louder bands are
drawn lighter.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
from PIL import ImageColor

from vibescope.core.spectrum import NUM_BANDS

HUE_SPAN = 300.0  # degrees: red -> violet
SATURATION = 0.9
MIN_LIGHTNESS = 0.3
LIGHTNESS_RANGE = 0.4


def band_to_color(band: int, intensity: float, num_bands: int = NUM_BANDS) -> Tuple[int, int, int]:
    """
    Map a band index and its intensity to an RGB triple.

    Args:
        band: Band index in [0, num_bands).
        intensity: Band value; clamped to [0, 1].
        num_bands: Total number of bands.

    Returns:
        (r, g, b) in 0..255.
    """
    hue = (band / num_bands) * HUE_SPAN
    lightness = MIN_LIGHTNESS + float(np.clip(intensity, 0.0, 1.0)) * LIGHTNESS_RANGE
    return ImageColor.getrgb(
        f"hsl({hue:.3f}, {SATURATION * 100:.3f}%, {lightness * 100:.3f}%)"
    )[:3]


def band_palette(bands: np.ndarray) -> np.ndarray:
    """Colors for a whole band set, shape ``(len(bands), 3)`` uint8."""
    n = len(bands)
    return np.array(
        [band_to_color(i, float(v), n) for i, v in enumerate(bands)],
        dtype=np.uint8,
    ).reshape(n, 3)
