"""
Radial spoke renderer.

Each band is drawn as one spoke from the center of the frame, evenly spaced
around the circle, with length and lightness following the band intensity.
Output is an ``(H, W, 3)`` uint8 array, ready for a pygame surface or PIL.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from PIL import Image, ImageDraw

from vibescope.visualizers.colors import band_to_color

GLYPHS = ("░", "▒", "▓", "█")


@dataclass
class RadialConfig:
    """Geometry of the radial display."""

    width: int = 800
    height: int = 800
    background: Tuple[int, int, int] = (0, 0, 0)
    radius_scale: float = 0.9    # fraction of the half-extent actually used
    min_length: float = 0.2      # spoke length at zero intensity
    line_width: int = 4
    # Height/width ratio of one drawing cell; 2.0 for terminal characters
    cell_aspect: float = 1.0


def intensity_glyph(intensity: float) -> str:
    """Shade character for an intensity: ░ ▒ ▓ █."""
    level = int(max(0.0, intensity) * 4.0)
    return GLYPHS[min(level, len(GLYPHS) - 1)]


def render_text(bands: np.ndarray) -> str:
    """One glyph per band, lowest band first."""
    return "".join(intensity_glyph(float(v)) for v in bands)


class RadialRenderer:
    """Draws a band set as colored spokes around the frame center."""

    def __init__(self, config: RadialConfig = None):
        self.cfg = config or RadialConfig()
        if self.cfg.width < 1 or self.cfg.height < 1:
            raise ValueError("width and height must be positive")

    @property
    def center(self) -> Tuple[float, float]:
        return self.cfg.width / 2.0, self.cfg.height / 2.0

    @property
    def max_radius(self) -> float:
        half_w = self.cfg.width / 2.0
        half_h = self.cfg.height / 2.0 * self.cfg.cell_aspect
        return min(half_w, half_h) * self.cfg.radius_scale

    def spoke_end(self, band: int, intensity: float, num_bands: int) -> Tuple[float, float]:
        """Endpoint of one spoke; angle 0 points right, increasing counter-clockwise."""
        cx, cy = self.center
        angle = (band / num_bands) * 2.0 * math.pi
        clamped = min(max(intensity, 0.0), 1.0)
        length = self.max_radius * (self.cfg.min_length + clamped * (1.0 - self.cfg.min_length))
        x = cx + math.cos(angle) * length
        y = cy - math.sin(angle) * length / self.cfg.cell_aspect
        return x, y

    def render_frame(self, bands: np.ndarray) -> np.ndarray:
        """
        Render one frame.

        Args:
            bands: Band intensities in [0, 1], lowest band first.

        Returns:
            RGB image as ``(height, width, 3)`` uint8 array.
        """
        img = Image.new("RGB", (self.cfg.width, self.cfg.height), self.cfg.background)
        draw = ImageDraw.Draw(img)
        center = self.center
        n = len(bands)

        for band, value in enumerate(bands):
            intensity = float(value)
            draw.line(
                [center, self.spoke_end(band, intensity, n)],
                fill=band_to_color(band, intensity, n),
                width=self.cfg.line_width,
            )

        return np.asarray(img, dtype=np.uint8)
