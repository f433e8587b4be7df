"""
Live pygame window for the radial display.

The window is a context manager so the display is released on every exit
path (normal quit, Ctrl-C, or an exception in the frame loop).

Keyboard controls:
    ESC / Q      — quit
    SPACE        — pause / resume (freezes the picture; analysis keeps running)
"""

from __future__ import annotations

import os
from typing import Callable, Optional

import numpy as np

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
import pygame  # noqa: E402

from vibescope.visualizers.radial import RadialRenderer


class LiveWindow:
    """
    Renderer callable that shows each band set in a pygame window.

    Args:
        renderer: Produces the RGB frame for a band set.
        title: Window title string.
        on_quit: Called once when the user closes the window or presses ESC/Q.
    """

    def __init__(
        self,
        renderer: RadialRenderer,
        title: str = "vibescope",
        on_quit: Optional[Callable[[], None]] = None,
    ):
        self.renderer = renderer
        self.title = title
        self.on_quit = on_quit
        self.paused = False
        self.closed = False
        self._screen = None

    def __enter__(self) -> "LiveWindow":
        pygame.init()
        cfg = self.renderer.cfg
        self._screen = pygame.display.set_mode((cfg.width, cfg.height))
        pygame.display.set_caption(self.title)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._screen = None
        pygame.quit()

    def _quit(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.on_quit is not None:
            self.on_quit()

    def handle_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._quit()
            elif event.type == pygame.KEYDOWN:
                if event.key in (pygame.K_ESCAPE, pygame.K_q):
                    self._quit()
                elif event.key == pygame.K_SPACE:
                    self.paused = not self.paused

    def __call__(self, bands: np.ndarray) -> None:
        if self._screen is None:
            raise RuntimeError("LiveWindow must be used as a context manager")

        self.handle_events()
        if self.closed or self.paused:
            return

        arr = self.renderer.render_frame(bands)
        # pygame expects (W, H, 3) for surfarray, numpy gives (H, W, 3)
        surface = pygame.surfarray.make_surface(arr.swapaxes(0, 1))
        self._screen.blit(surface, (0, 0))
        pygame.display.flip()
