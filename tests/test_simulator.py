"""Tests for the telemetry simulator."""

from __future__ import annotations

from conftest import FakeClock
from loratelem.telemetry.correlator import FrameCorrelator
from loratelem.telemetry.framing import LineReassembler
from loratelem.telemetry.protocol import encode_frame
from loratelem.telemetry.simulator import SimulatedSource, TelemetrySimulator


def test_simulated_frames_decode(clock: FakeClock) -> None:
    """Ensure simulator output survives the full decode path."""
    sim = TelemetrySimulator(clock=clock)
    reassembler = LineReassembler()
    correlator = FrameCorrelator()

    decoded = []
    for _ in range(300):
        clock.advance(0.1)
        expected = sim.sample()
        for line in reassembler.feed(encode_frame(expected)):
            rec = correlator.feed(line)
            if rec is not None:
                decoded.append((expected, rec))

    assert len(decoded) == 300
    assert correlator.dropped == 0
    for expected, rec in decoded:
        assert rec == expected
    assert decoded[-1][1].packet_number == 299 % 256


def test_simulated_source_chunks_frames(clock: FakeClock) -> None:
    """Ensure the source hands out a frame in read-sized pieces."""
    sim = TelemetrySimulator(clock=clock)
    source = SimulatedSource(rate_hz=1000.0, simulator=sim)
    reassembler = LineReassembler()

    lines: list[str] = []
    while len(lines) < 3:
        lines.extend(reassembler.feed(source.read(16)))

    assert lines[0].startswith("Message: [")
    assert lines[1].startswith("RSSI: ")
    assert lines[2].startswith("Snr: ")
