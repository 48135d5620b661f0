from __future__ import annotations

import re
from typing import Final

from loratelem.telemetry.types import BYTE_FIELDS, PAYLOAD_FIELDS, TelemetryRecord

LINE_TERMINATOR: Final[bytes] = b"\r\n"
FRAME_MARKER: Final[str] = "$"

MESSAGE_PREFIX: Final[str] = "Message: "
RSSI_PREFIX: Final[str] = "RSSI: "
SNR_PREFIX: Final[str] = "Snr: "

TIMESTAMP_SEPARATOR: Final[str] = "] "
TIMESTAMP_OPEN: Final[str] = "["
PAYLOAD_FIELD_COUNT: Final[int] = len(PAYLOAD_FIELDS)

# The receiver prints plain numbers: no padding, no digit separators.
_INT_RE: Final[re.Pattern[str]] = re.compile(r"[+-]?[0-9]+")
_REAL_RE: Final[re.Pattern[str]] = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)


# ---------------------------------------- #


def _parse_int(text: str) -> int:
    if _INT_RE.fullmatch(text) is None:
        raise ValueError(f"not an integer: {text!r}")
    return int(text)


def _parse_real(text: str) -> float:
    if _REAL_RE.fullmatch(text) is None:
        raise ValueError(f"not a number: {text!r}")
    return float(text)


# ---------------------------------------- #


def _parse_byte(text: str) -> int:
    value = _parse_int(text)
    if not 0 <= value <= 0xFF:
        raise ValueError(f"byte field out of range: {value}")
    return value


# ---------------------------------------- #


def parse_signal_strength(text: str) -> int:
    return _parse_int(text)


def parse_signal_quality(text: str) -> float:
    return _parse_real(text)


# ---------------------------------------- #


def decode_message(
    message: str, signal_strength: int, signal_quality: float
) -> TelemetryRecord:
    """
    Decode a ``[timestamp] v0,...,v17`` message into a TelemetryRecord.

    Raises ValueError if the timestamp separator is missing, the payload does
    not hold exactly 18 fields, or any field fails to parse. No partial
    record is ever produced.
    """
    parts = message.split(TIMESTAMP_SEPARATOR, 1)
    if len(parts) != 2:
        raise ValueError("missing timestamp separator")

    head, payload = parts
    timestamp = head[len(TIMESTAMP_OPEN) :] if head.startswith(TIMESTAMP_OPEN) else head

    values = payload.split(",")
    if len(values) != PAYLOAD_FIELD_COUNT:
        raise ValueError(
            f"expected {PAYLOAD_FIELD_COUNT} payload fields, got {len(values)}"
        )

    decoded: dict[str, int | float] = {}
    for name, text in zip(PAYLOAD_FIELDS, values):
        try:
            decoded[name] = _parse_byte(text) if name in BYTE_FIELDS else _parse_real(text)
        except ValueError as exc:
            raise ValueError(f"bad {name} field {text!r}") from exc

    return TelemetryRecord(
        timestamp=timestamp,
        signal_strength=signal_strength,
        signal_quality=signal_quality,
        **decoded,  # type: ignore[arg-type]
    )


# ---------------------------------------- #


def encode_frame(record: TelemetryRecord, marker: str = FRAME_MARKER) -> bytes:
    """Render the three-line group a receiver emits for one sample."""
    payload = ",".join(str(getattr(record, name)) for name in PAYLOAD_FIELDS)
    lines = (
        f"{MESSAGE_PREFIX}{TIMESTAMP_OPEN}{record.timestamp}{TIMESTAMP_SEPARATOR}{payload}",
        f"{RSSI_PREFIX}{record.signal_strength}",
        f"{SNR_PREFIX}{record.signal_quality}",
    )
    terminator = LINE_TERMINATOR.decode("ascii")
    return "".join(f"{marker}{line}{terminator}" for line in lines).encode("utf-8")
