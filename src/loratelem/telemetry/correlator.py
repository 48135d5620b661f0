from __future__ import annotations

import enum
import logging

from loratelem.telemetry import protocol
from loratelem.telemetry.types import TelemetryRecord

_log = logging.getLogger(__name__)


class CorrelatorState(enum.Enum):
    WAITING_MESSAGE = "waiting_message"
    WAITING_SIGNAL_STRENGTH = "waiting_signal_strength"
    WAITING_SIGNAL_QUALITY = "waiting_signal_quality"


# ---------------------------------------- #


class FrameCorrelator:
    """
    Groups the receiver's Message / RSSI / Snr lines into one sample.

    The receiver prints the three lines in that order for every packet. Lines
    that are not the expected one are skipped, so stray receiver log output
    never wedges the machine. A repeat of a line already captured in the
    current cycle overwrites that slot.

    Every parsed Snr line completes the cycle, whatever the state. When the
    message or strength slot is empty at that point the attempt is abandoned
    and the message text is kept, so it can pair with the next RSSI/Snr
    lines. ``strict=True`` clears every slot on each parsed Snr line instead.
    """

    def __init__(self, strict: bool = False) -> None:
        self._strict = strict
        self._state = CorrelatorState.WAITING_MESSAGE
        self._message: str | None = None
        self._signal_strength: int | None = None

        self.decoded = 0
        self.dropped = 0
        self.abandoned = 0

    # ---------------------------------------- #

    @property
    def state(self) -> CorrelatorState:
        return self._state

    @property
    def message(self) -> str | None:
        return self._message

    @property
    def signal_strength(self) -> int | None:
        return self._signal_strength

    # ---------------------------------------- #

    def reset(self) -> None:
        self._state = CorrelatorState.WAITING_MESSAGE
        self._message = None
        self._signal_strength = None

    # ---------------------------------------- #

    def feed(self, line: str) -> TelemetryRecord | None:
        if line.startswith(protocol.MESSAGE_PREFIX):
            self._message = line[len(protocol.MESSAGE_PREFIX) :]
            if self._state is CorrelatorState.WAITING_MESSAGE:
                self._state = CorrelatorState.WAITING_SIGNAL_STRENGTH
            return None

        if line.startswith(protocol.RSSI_PREFIX):
            if self._state is CorrelatorState.WAITING_MESSAGE:
                return None
            self._signal_strength = self._parse_signal_strength(
                line[len(protocol.RSSI_PREFIX) :]
            )
            self._state = CorrelatorState.WAITING_SIGNAL_QUALITY
            return None

        if line.startswith(protocol.SNR_PREFIX):
            try:
                signal_quality = protocol.parse_signal_quality(
                    line[len(protocol.SNR_PREFIX) :]
                )
            except ValueError:
                _log.debug("Ignoring unparsable Snr line: %r", line)
                return None
            return self._complete(signal_quality)

        # Anything else is receiver chatter.
        return None

    # ---------------------------------------- #

    def _parse_signal_strength(self, text: str) -> int | None:
        try:
            return protocol.parse_signal_strength(text)
        except ValueError:
            _log.debug("Unparsable RSSI value: %r", text)
            return None

    # ---------------------------------------- #

    def _complete(self, signal_quality: float) -> TelemetryRecord | None:
        message = self._message
        signal_strength = self._signal_strength

        if message is None or signal_strength is None:
            self.abandoned += 1
            if self._strict or message is None:
                self.reset()
            else:
                self._state = CorrelatorState.WAITING_SIGNAL_STRENGTH
            return None

        self.reset()
        try:
            record = protocol.decode_message(message, signal_strength, signal_quality)
        except ValueError as exc:
            self.dropped += 1
            _log.debug("Dropped malformed telemetry frame (%s): %r", exc, message)
            return None

        self.decoded += 1
        return record
