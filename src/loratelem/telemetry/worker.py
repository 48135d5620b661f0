from __future__ import annotations

import logging
import threading
import time

from PySide6 import QtCore

from loratelem.record.logger import VerbatimLogger
from loratelem.telemetry.correlator import FrameCorrelator
from loratelem.telemetry.framing import LineReassembler
from loratelem.telemetry.source import ByteSource
from loratelem.telemetry.window import AggregationWindow

_log = logging.getLogger(__name__)

STATE_CONNECTED = "connected"
STATE_STOPPED = "stopped"
STATE_CLOSED = "closed"
STATE_DEAD = "dead"
STATE_SINK_FAILED = "sink_failed"


class LinkWorker(QtCore.QObject):
    """
    Blocking read loop for one link, meant to run on its own QThread.

    Read timeouts are retried after ``backoff_s``. Any other OSError ends the
    worker for good; the link has to be reopened by whoever owns it. ``stop``
    may be called from any thread and is checked once per read.
    """

    line = QtCore.Signal(str)
    state = QtCore.Signal(str)
    error = QtCore.Signal(str)
    info = QtCore.Signal(str)
    finished = QtCore.Signal()

    def __init__(
        self,
        source: ByteSource,
        read_size: int = 1024,
        backoff_s: float = 0.1,
        parent=None,
    ):
        super().__init__(parent)
        self._source = source
        self._read_size = read_size
        self._backoff_s = backoff_s
        self._reassembler = LineReassembler()
        self._stop_event = threading.Event()
        self._running = False
        self.exit_reason: str | None = None

    # ---------------------------------------- #

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        _log.debug("Link worker received stop signal")
        self._stop_event.set()

    def should_stop(self) -> bool:
        return self._stop_event.is_set()

    # ---------------------------------------- #

    @QtCore.Slot()
    def run(self) -> None:
        self._running = True
        self.exit_reason = None
        self.state.emit(STATE_CONNECTED)
        try:
            self._loop()
        finally:
            self._running = False
            if self._reassembler.pending:
                _log.debug("Discarding partial line: %r", self._reassembler.pending)
            self._reassembler.reset()
            try:
                self._source.close()
            except OSError as exc:
                _log.warning("Error closing link: %s", exc)
            self._close_sink()
            self.state.emit(self.exit_reason or STATE_STOPPED)
            self.finished.emit()

    # ---------------------------------------- #

    def _loop(self) -> None:
        while not self.should_stop():
            try:
                chunk = self._source.read(self._read_size)
            except TimeoutError:
                time.sleep(self._backoff_s)
                continue
            except EOFError:
                self.info.emit("Link closed: end of stream")
                self.exit_reason = STATE_CLOSED
                return
            except OSError as exc:
                self._fail(STATE_DEAD, f"Critical error reading from link: {exc}")
                return

            try:
                for line in self._reassembler.feed(chunk):
                    self.line.emit(line)
                    self._handle_line(line)
            except OSError as exc:
                self._fail(STATE_SINK_FAILED, f"Sink write error: {exc}")
                return

        self.exit_reason = STATE_STOPPED

    # ---------------------------------------- #

    def _fail(self, reason: str, message: str) -> None:
        _log.error(message)
        self.exit_reason = reason
        self.error.emit(message)

    # ---------------------------------------- #

    def _handle_line(self, line: str) -> None:
        pass

    def _close_sink(self) -> None:
        pass


# ---------------------------------------- #


class TelemetryWorker(LinkWorker):
    """
    Decodes correlated telemetry frames into the aggregation window.

    ``record`` fires for every decoded sample, ``snapshot`` whenever the
    window's emission interval has elapsed, ``dropped`` with the running count
    of malformed frames.
    """

    record = QtCore.Signal(object)
    snapshot = QtCore.Signal(object)
    dropped = QtCore.Signal(int)

    def __init__(
        self,
        source: ByteSource,
        window: AggregationWindow | None = None,
        correlator: FrameCorrelator | None = None,
        read_size: int = 1024,
        backoff_s: float = 0.1,
        parent=None,
    ):
        super().__init__(source, read_size=read_size, backoff_s=backoff_s, parent=parent)
        self._window = window if window is not None else AggregationWindow()
        self._correlator = correlator if correlator is not None else FrameCorrelator()

    # ---------------------------------------- #

    @property
    def window(self) -> AggregationWindow:
        return self._window

    @property
    def correlator(self) -> FrameCorrelator:
        return self._correlator

    # ---------------------------------------- #

    def _handle_line(self, line: str) -> None:
        dropped_before = self._correlator.dropped
        rec = self._correlator.feed(line)

        if self._correlator.dropped != dropped_before:
            self.dropped.emit(self._correlator.dropped)
            return
        if rec is None:
            return

        self.record.emit(rec)
        snap = self._window.insert(rec)
        if snap is not None:
            self.snapshot.emit(snap)


# ---------------------------------------- #


class RawLogWorker(LinkWorker):
    """Appends every reassembled line verbatim to a log file."""

    def __init__(
        self,
        source: ByteSource,
        logger: VerbatimLogger,
        read_size: int = 1024,
        backoff_s: float = 0.1,
        parent=None,
    ):
        super().__init__(source, read_size=read_size, backoff_s=backoff_s, parent=parent)
        self._logger = logger

    # ---------------------------------------- #

    def _handle_line(self, line: str) -> None:
        self._logger.write_line(line)

    def _close_sink(self) -> None:
        try:
            self._logger.close()
        except OSError as exc:
            _log.warning("Error closing log file: %s", exc)
