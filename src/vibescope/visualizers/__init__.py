"""Drawing of band sets."""

from vibescope.visualizers.colors import band_palette, band_to_color
from vibescope.visualizers.radial import RadialConfig, RadialRenderer, render_text

__all__ = ["band_palette", "band_to_color", "RadialConfig", "RadialRenderer", "render_text"]
