from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Final


@dataclass(frozen=True)
class TelemetryRecord:
    """
    Canonical decoded telemetry sample.

    Units follow the flight computer: m/s^2 for acceleration, deg/s for
    angular rate, degrees C, metres and decimal degrees. The timestamp is
    the receiver's text, passed through untouched.
    """

    timestamp: str
    accel_x: float
    accel_y: float
    accel_z: float
    gyro_x: float
    gyro_y: float
    gyro_z: float
    temperature: float
    pressure_altitude: float
    heading: float
    ground_speed: float
    gps_fix: int  # 0-255
    gps_num_sats: int  # 0-255
    gps_3d_fix: int  # 0-255
    latitude: float
    longitude: float
    altitude: float
    distance: float
    packet_number: int  # 0-255
    signal_strength: int  # RSSI, dBm
    signal_quality: float  # SNR, dB

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


# Wire order of the comma separated payload after the "] " separator.
PAYLOAD_FIELDS: Final[tuple[str, ...]] = (
    "accel_x",
    "accel_y",
    "accel_z",
    "gyro_x",
    "gyro_y",
    "gyro_z",
    "temperature",
    "pressure_altitude",
    "heading",
    "ground_speed",
    "gps_fix",
    "gps_num_sats",
    "gps_3d_fix",
    "latitude",
    "longitude",
    "altitude",
    "distance",
    "packet_number",
)

BYTE_FIELDS: Final[frozenset[str]] = frozenset(
    {"gps_fix", "gps_num_sats", "gps_3d_fix", "packet_number"}
)

CONTINUOUS_FIELDS: Final[tuple[str, ...]] = (
    "accel_x",
    "accel_y",
    "accel_z",
    "gyro_x",
    "gyro_y",
    "gyro_z",
    "temperature",
    "pressure_altitude",
    "heading",
    "ground_speed",
    "latitude",
    "longitude",
    "altitude",
    "distance",
    "signal_strength",
    "signal_quality",
)

DISCRETE_FIELDS: Final[tuple[str, ...]] = ("gps_fix", "gps_num_sats", "gps_3d_fix")

PASSTHROUGH_FIELDS: Final[tuple[str, ...]] = ("timestamp", "packet_number")
