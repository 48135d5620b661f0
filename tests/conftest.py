from __future__ import annotations

from dataclasses import replace
from typing import Iterable

import pytest
from PySide6 import QtCore

from loratelem.telemetry.types import TelemetryRecord

REFERENCE_MESSAGE = (
    "[12:00:00.123] 0.1,0.2,9.8,0.01,0.02,0.03,25.0,100.0,45.0,5.0,"
    "1,8,1,37.7,-122.4,10.0,123.4,7"
)

BASE_RECORD = TelemetryRecord(
    timestamp="00:00:00.000",
    accel_x=0.0,
    accel_y=0.0,
    accel_z=9.8,
    gyro_x=0.0,
    gyro_y=0.0,
    gyro_z=0.0,
    temperature=20.0,
    pressure_altitude=0.0,
    heading=0.0,
    ground_speed=0.0,
    gps_fix=1,
    gps_num_sats=8,
    gps_3d_fix=1,
    latitude=37.7,
    longitude=-122.4,
    altitude=0.0,
    distance=0.0,
    packet_number=0,
    signal_strength=-60,
    signal_quality=8.5,
)


def make_record(**overrides) -> TelemetryRecord:
    return replace(BASE_RECORD, **overrides)


# ---------------------------------------- #


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------- #


class ScriptedSource:
    """ByteSource replaying a script of byte chunks and exceptions."""

    def __init__(self, script: Iterable[bytes | BaseException]) -> None:
        self._script = list(script)
        self.reads = 0
        self.closed = False

    def read(self, size: int) -> bytes:
        self.reads += 1
        if not self._script:
            raise EOFError("script exhausted")
        item = self._script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


# ---------------------------------------- #


@pytest.fixture(scope="session")
def qapp() -> QtCore.QCoreApplication:
    app = QtCore.QCoreApplication.instance()
    if app is None:
        app = QtCore.QCoreApplication([])
    return app


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
