"""
Command-line entry point: live radial spectrum of the system audio.

Usage:
    vibescope                      # window, loopback capture
    vibescope --headless           # text strip once per second
    vibescope --list-devices
"""

import argparse
import logging
import sys
from typing import List, Optional, Union

import numpy as np

from vibescope.core.capture import STREAM_FORMATS, CaptureError, list_devices
from vibescope.core.scheduler import TARGET_FPS
from vibescope.core.stream import LiveSpectrum
from vibescope.visualizers.radial import RadialConfig, RadialRenderer, render_text


class TextStrip:
    """Headless renderer: prints one glyph strip every *every* frames."""

    def __init__(self, every: int):
        self.every = max(1, int(every))
        self._count = 0

    def __call__(self, bands: np.ndarray) -> None:
        if self._count % self.every == 0:
            peak = float(bands.max()) if bands.size else 0.0
            print(f"{render_text(bands)} peak={peak:.2f}", flush=True)
        self._count += 1


def _device_arg(value: str) -> Union[int, str]:
    return int(value) if value.isdigit() else value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vibescope",
        description="Radial spectrum visualizer for the audio your system is playing",
    )

    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="List audio devices and exit",
    )

    parser.add_argument(
        "-d", "--device",
        type=_device_arg,
        default=None,
        help="Capture device index or name (default: loopback, else default output)",
    )

    parser.add_argument(
        "--dtype",
        choices=STREAM_FORMATS,
        default="float32",
        help="Sample format requested from the device (default: float32)",
    )

    parser.add_argument(
        "-f", "--fps",
        type=float,
        default=TARGET_FPS,
        help=f"Frames per second (default: {TARGET_FPS})",
    )

    parser.add_argument(
        "--width",
        type=int,
        default=800,
        help="Window width (default: 800)",
    )

    parser.add_argument(
        "--height",
        type=int,
        default=800,
        help="Window height (default: 800)",
    )

    parser.add_argument(
        "--headless",
        action="store_true",
        help="Print a text strip instead of opening a window",
    )

    parser.add_argument(
        "-n", "--frames",
        type=int,
        default=None,
        help="Stop after this many frames",
    )

    parser.add_argument(
        "--require-device",
        action="store_true",
        help="Exit with an error when no capture device can be opened",
    )

    parser.add_argument(
        "--auto-gain",
        type=float,
        default=None,
        metavar="DECAY",
        help="Normalize against a rolling peak decaying by DECAY per frame, e.g. 0.995",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging",
    )

    return parser


def _print_devices() -> int:
    try:
        devices = list_devices()
    except CaptureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    for dev in devices:
        tag = " [loopback]" if dev["loopback"] else ""
        print(
            f"{dev['index']:3d}  {dev['name']}  "
            f"(in {dev['max_input_channels']}, out {dev['max_output_channels']}, "
            f"{dev['default_samplerate']:.0f} Hz){tag}"
        )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.fps <= 0:
        parser.error("--fps must be positive")
    if args.auto_gain is not None and not 0.0 < args.auto_gain < 1.0:
        parser.error("--auto-gain must be between 0 and 1")

    if args.list_devices:
        return _print_devices()

    capture_options = {"dtype": args.dtype}
    if args.device is not None:
        capture_options["device"] = args.device

    window = None
    if args.headless:
        renderer = TextStrip(every=round(args.fps))
    else:
        from vibescope.visualizers.preview import LiveWindow

        window = LiveWindow(RadialRenderer(RadialConfig(width=args.width, height=args.height)))
        renderer = window

    try:
        session = LiveSpectrum(
            renderer,
            fps=args.fps,
            require_capture=args.require_device,
            gain_decay=args.auto_gain,
            **capture_options,
        )
    except CaptureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    with session:
        try:
            if window is not None:
                window.on_quit = session.stop
                with window:
                    session.run(max_frames=args.frames)
            else:
                session.run(max_frames=args.frames)
        except KeyboardInterrupt:
            pass

    sched = session.scheduler
    print(f"{sched.frames} frames, {sched.overruns} over budget", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
