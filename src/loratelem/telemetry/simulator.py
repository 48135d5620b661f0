import math
import time

from loratelem.telemetry.protocol import encode_frame
from loratelem.telemetry.types import TelemetryRecord


class TelemetrySimulator:
    """
    Simple deterministic telemetry simulator for testing purposes.

    Intended for:
    - Sink/UI development without a receiver attached
    - Replay testing
    - Pipeline bring-up without hardware
    """

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._t0 = clock()
        self._packet = 0

    # ---------------------------------------- #

    def reset(self) -> None:
        self._t0 = self._clock()
        self._packet = 0

    # ---------------------------------------- #

    def sample(self) -> TelemetryRecord:
        t = self._clock() - self._t0

        # Fake ascent / descent curve
        alt = max(0.0, 5.0 * t - 0.02 * t * t) * 10.0
        vel = (5.0 - 0.04 * t) * 10.0

        # Slow roll around the long axis
        heading = (t * 12.0) % 360.0

        # Temperature oscillation
        temp = 22.0 + 2.0 * math.sin(t / 5.0)

        packet = self._packet
        self._packet = (self._packet + 1) % 256

        return TelemetryRecord(
            timestamp=f"{int(t // 3600):02d}:{int(t // 60) % 60:02d}:{t % 60:06.3f}",
            accel_x=round(0.1 * math.sin(t), 3),
            accel_y=round(0.1 * math.cos(t), 3),
            accel_z=round(9.81 + vel / 100.0, 3),
            gyro_x=0.0,
            gyro_y=0.0,
            gyro_z=12.0,
            temperature=round(temp, 2),
            pressure_altitude=round(alt, 2),
            heading=round(heading, 2),
            ground_speed=round(abs(vel) / 10.0, 2),
            gps_fix=1,
            gps_num_sats=8 + packet % 3,
            gps_3d_fix=1,
            latitude=37.7749,
            longitude=-122.4194,
            altitude=round(alt, 2),
            distance=round(t * 3.0, 2),
            packet_number=packet,
            signal_strength=-60 - int(t) % 20,
            signal_quality=round(9.5 - (t % 10) / 2.0, 2),
        )


# ---------------------------------------- #


class SimulatedSource:
    """ByteSource emitting one encoded simulator frame per period."""

    def __init__(self, rate_hz: float = 10.0, simulator: TelemetrySimulator | None = None) -> None:
        self._period_s = 1.0 / rate_hz
        self._simulator = simulator or TelemetrySimulator()
        self._buf = b""

    def read(self, size: int) -> bytes:
        if not self._buf:
            time.sleep(self._period_s)
            self._buf = encode_frame(self._simulator.sample())

        data, self._buf = self._buf[:size], self._buf[size:]
        return data

    def close(self) -> None:
        self._buf = b""
