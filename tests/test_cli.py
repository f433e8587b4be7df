"""Tests for the vibescope command line."""

import numpy as np
import pytest

from vibescope import cli
from vibescope.core import stream as stream_mod
from vibescope.core.capture import DeviceUnavailableError


class NoCapture:
    def __init__(self, buffer, **kwargs):
        raise DeviceUnavailableError("No output device found")


@pytest.fixture
def no_capture(monkeypatch):
    monkeypatch.setattr(stream_mod, "CaptureSource", NoCapture)


def test_headless_runs_with_empty_spectrum(no_capture, capsys):
    assert cli.main(["--headless", "--frames", "3", "--fps", "500"]) == 0
    out = capsys.readouterr()
    first = out.out.splitlines()[0]
    assert first.startswith("░" * 64)
    assert "peak=0.00" in first
    assert "3 frames" in out.err


def test_require_device_fails(no_capture, capsys):
    assert cli.main(["--headless", "--require-device", "--frames", "1"]) == 1
    assert "Error:" in capsys.readouterr().err


def test_list_devices(monkeypatch, capsys):
    monkeypatch.setattr(cli, "list_devices", lambda: [
        {"index": 0, "name": "Speakers", "max_input_channels": 0,
         "max_output_channels": 2, "default_samplerate": 48000.0, "loopback": False},
        {"index": 1, "name": "Monitor of Speakers", "max_input_channels": 2,
         "max_output_channels": 0, "default_samplerate": 48000.0, "loopback": True},
    ])
    assert cli.main(["--list-devices"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert "Speakers" in lines[0]
    assert lines[1].endswith("[loopback]")


def test_list_devices_without_backend(monkeypatch, capsys):
    def broken():
        raise DeviceUnavailableError("PortAudio is not available")

    monkeypatch.setattr(cli, "list_devices", broken)
    assert cli.main(["--list-devices"]) == 1
    assert "PortAudio" in capsys.readouterr().err


def test_device_argument_parsing():
    parser = cli.build_parser()
    assert parser.parse_args(["-d", "3"]).device == 3
    assert parser.parse_args(["-d", "Monitor"]).device == "Monitor"
    assert parser.parse_args([]).device is None


@pytest.mark.parametrize("argv", [["--fps", "0"], ["--auto-gain", "1.5"], ["--dtype", "int24"]])
def test_invalid_arguments(argv):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)
    assert excinfo.value.code == 2


def test_text_strip_prints_every_n_frames(capsys):
    strip = cli.TextStrip(every=2)
    for _ in range(5):
        strip(np.full(64, 0.9, dtype=np.float32))
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 3
    assert lines[0].startswith("█" * 64)
