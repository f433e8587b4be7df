"""
Per-frame cost of the analysis and drawing stages.

Usage:
    python scripts/benchmark.py [--quick]

Modes:
    default  — 800×800 frame, 3 warm-up + 50 timed runs per function
    --quick  — 320×320 frame, 2 warm-up + 10 timed runs (CI-friendly)

Output: timing table compared against the 60 fps frame budget.
"""

import argparse
import os
import sys
import time
from typing import List

import numpy as np

# Make sure the installed package is on the path when run from repo root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from vibescope.core.buffer import SampleBuffer
from vibescope.core.scheduler import TARGET_FPS
from vibescope.core.spectrum import SAMPLE_RATE, WINDOW_SIZE, SpectrumAnalyzer
from vibescope.visualizers.radial import RadialConfig, RadialRenderer

_SEP = "─" * 72


def _hdr(title: str) -> None:
    print(f"\n{_SEP}")
    print(f"  {title}")
    print(_SEP)


def _timeit(fn, *args, warmup: int = 3, runs: int = 50, **kwargs) -> List[float]:
    """Run fn(*args, **kwargs), discard warmup iterations, return timed samples."""
    for _ in range(warmup):
        fn(*args, **kwargs)
    times = []
    for _ in range(runs):
        t0 = time.perf_counter()
        fn(*args, **kwargs)
        times.append(time.perf_counter() - t0)
    return times


def _stats(times: List[float], budget: float) -> str:
    arr = np.array(times)
    share = arr.mean() / budget * 100.0
    return (
        f"mean={arr.mean()*1000:.2f} ms  max={arr.max()*1000:.2f} ms  "
        f"({share:.1f}% of frame)"
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Time the per-frame pipeline")
    parser.add_argument("--quick", action="store_true", help="Smaller frame, fewer runs")
    args = parser.parse_args()

    size = 320 if args.quick else 800
    warmup, runs = (2, 10) if args.quick else (3, 50)
    budget = 1.0 / TARGET_FPS

    rng = np.random.default_rng(0)
    t = np.arange(WINDOW_SIZE * 4) / SAMPLE_RATE
    audio = (0.5 * np.sin(2 * np.pi * 440.0 * t) + 0.1 * rng.standard_normal(t.size)).astype(np.float32)

    buffer = SampleBuffer()
    analyzer = SpectrumAnalyzer()
    renderer = RadialRenderer(RadialConfig(width=size, height=size))
    bands = analyzer.process(audio[-WINDOW_SIZE:])

    _hdr(f"Frame budget {budget*1000:.2f} ms  ({TARGET_FPS} fps, window {WINDOW_SIZE})")
    block = audio[:512]
    print(f"  buffer.append(512)      {_stats(_timeit(buffer.append, block, warmup=warmup, runs=runs), budget)}")
    buffer.append(audio)
    print(f"  buffer.latest(2048)     {_stats(_timeit(buffer.latest, WINDOW_SIZE, warmup=warmup, runs=runs), budget)}")
    print(f"  analyzer.process        {_stats(_timeit(analyzer.process, audio, warmup=warmup, runs=runs), budget)}")
    print(f"  renderer.render_frame   {_stats(_timeit(renderer.render_frame, bands, warmup=warmup, runs=runs), budget)}")


if __name__ == "__main__":
    main()
