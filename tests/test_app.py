"""Tests for the loratelem command line entry point."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import REFERENCE_MESSAGE, make_record
from loratelem.app import main
from loratelem.telemetry.protocol import encode_frame

pytestmark = pytest.mark.usefixtures("qapp")


def _config(tmp_path: Path) -> Path:
    data_dir = tmp_path / "data"
    path = tmp_path / "loratelem.toml"
    path.write_text(
        f'[receiver]\ndata_dir = "{data_dir.as_posix()}"\nbackoff_s = 0.0\n',
        encoding="utf-8",
    )
    return path


def _capture(tmp_path: Path) -> Path:
    path = tmp_path / "capture.bin"
    bad = f"$Message: {REFERENCE_MESSAGE},99\r\n$RSSI: -1\r\n$Snr: 1.0\r\n".encode()
    path.write_bytes(
        b"LoRa receiver ready\r\n"
        + encode_frame(make_record(packet_number=1, signal_strength=-61))
        + bad
        + encode_frame(make_record(packet_number=2, signal_strength=-62))
        + b"$Message: [trunc"
    )
    return path


# ---------------------------------------- #


def test_monitor_records_from_replay(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Ensure a replayed capture prints one JSON object per decoded sample."""
    argv = ["--config", str(_config(tmp_path)), "--replay", str(_capture(tmp_path))]
    assert main([*argv, "monitor", "--records"]) == 0

    out = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert [o["packet_number"] for o in out] == [1, 2]
    assert [o["signal_strength"] for o in out] == [-61, -62]
    assert out[0]["timestamp"] == "00:00:00.000"


def test_debug_prints_lines(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Ensure debug mode prints every complete line and drops the partial tail."""
    argv = ["--config", str(_config(tmp_path)), "--replay", str(_capture(tmp_path))]
    assert main([*argv, "debug"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "LoRa receiver ready"
    assert lines[1].startswith("Message: [00:00:00.000] ")
    assert lines[-1] == "Snr: 8.5"
    assert len(lines) == 10


def test_log_writes_data_file(tmp_path: Path) -> None:
    """Ensure log mode appends the replayed lines to the data directory."""
    argv = ["--config", str(_config(tmp_path)), "--replay", str(_capture(tmp_path))]
    assert main([*argv, "log", "flight.txt"]) == 0

    lines = (tmp_path / "data" / "flight.txt").read_text(encoding="utf-8").splitlines()
    assert lines[0] == "LoRa receiver ready"
    assert len(lines) == 10


def test_touch_and_ls(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Ensure created data files show up in the listing."""
    config = str(_config(tmp_path))
    assert main(["--config", config, "ls"]) == 0
    assert capsys.readouterr().out == ""

    assert main(["--config", config, "touch", "b.txt"]) == 0
    assert main(["--config", config, "touch", "a.txt"]) == 0
    capsys.readouterr()

    assert main(["--config", config, "ls"]) == 0
    assert capsys.readouterr().out.splitlines() == ["a.txt", "b.txt"]


def test_unopenable_port_returns_error(tmp_path: Path) -> None:
    """Ensure a port that cannot be opened is reported with exit code 1."""
    argv = ["--config", str(_config(tmp_path)), "--port", str(tmp_path / "ttyNOPE")]
    assert main([*argv, "monitor"]) == 1


def test_missing_replay_file_returns_error(tmp_path: Path) -> None:
    """Ensure a missing capture file is reported with exit code 1."""
    argv = ["--config", str(_config(tmp_path)), "--replay", str(tmp_path / "none.bin")]
    assert main([*argv, "debug"]) == 1


@pytest.mark.parametrize("option", [["--window", "0"], ["--rate", "0"]])
def test_invalid_window_options_are_rejected(tmp_path: Path, option: list[str]) -> None:
    """Ensure zero window settings are a usage error, not silently replaced."""
    argv = ["--config", str(_config(tmp_path)), "--replay", str(_capture(tmp_path))]
    with pytest.raises(SystemExit) as excinfo:
        main([*argv, "monitor", *option])
    assert excinfo.value.code == 2
