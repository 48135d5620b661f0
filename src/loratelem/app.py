# loratelem/app.py

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
from pathlib import Path

from PySide6 import QtCore

from loratelem.record.logger import VerbatimLogger, create_text_file, list_data_files
from loratelem.telemetry.correlator import FrameCorrelator
from loratelem.telemetry.simulator import SimulatedSource
from loratelem.telemetry.source import ByteSource, SerialSource, StreamSource
from loratelem.telemetry.types import TelemetryRecord
from loratelem.telemetry.window import AggregationWindow
from loratelem.telemetry.worker import (
    STATE_DEAD,
    STATE_SINK_FAILED,
    LinkWorker,
    RawLogWorker,
    TelemetryWorker,
)
from loratelem.util.config import LinkConfig, load_link_config

_log = logging.getLogger("loratelem")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loratelem", description="LoRa ground-station telemetry link tools"
    )
    parser.add_argument("--config", type=Path, help="Path to loratelem.toml")
    parser.add_argument("--port", help="Serial port of the receiver")
    parser.add_argument("--baud", type=int, help="Serial baud rate")
    parser.add_argument("--replay", type=Path, help="Read a raw capture file instead of a port")
    parser.add_argument("--simulate", action="store_true", help="Use the built-in simulator")
    parser.add_argument("--log-level", default="INFO")

    sub = parser.add_subparsers(dest="command", required=True)

    monitor = sub.add_parser("monitor", help="Print aggregated snapshots as JSON lines")
    monitor.add_argument("--records", action="store_true", help="Print every decoded sample instead")
    monitor.add_argument("--window", type=int, help="Window capacity (samples)")
    monitor.add_argument("--rate", type=float, help="Snapshot rate (Hz)")

    log = sub.add_parser("log", help="Append raw link lines to a file in the data directory")
    log.add_argument("file_name")

    sub.add_parser("debug", help="Print every reassembled line")

    touch = sub.add_parser("touch", help="Create an empty file in the data directory")
    touch.add_argument("file_name")

    sub.add_parser("ls", help="List the files in the data directory")

    return parser


# ---------------------------------------- #


def _open_source(args: argparse.Namespace, cfg: LinkConfig) -> ByteSource:
    if args.simulate:
        return SimulatedSource(rate_hz=cfg.emit_rate_hz)
    if args.replay is not None:
        return StreamSource.open(str(args.replay))

    port = args.port or cfg.port
    if not port:
        raise SystemExit("No serial port given (use --port or set [receiver].port)")
    return SerialSource(port, args.baud or cfg.baud, timeout_s=cfg.read_timeout_s)


# ---------------------------------------- #


def _print_record(rec: TelemetryRecord) -> None:
    print(json.dumps(rec.as_dict(), separators=(",", ":")), flush=True)


# ---------------------------------------- #


def _build_window(args: argparse.Namespace, cfg: LinkConfig) -> AggregationWindow:
    capacity = args.window if args.window is not None else cfg.window_capacity
    rate_hz = args.rate if args.rate is not None else cfg.emit_rate_hz
    return AggregationWindow(capacity=capacity, rate_hz=rate_hz)


# ---------------------------------------- #


def _build_worker(
    args: argparse.Namespace,
    cfg: LinkConfig,
    source: ByteSource,
    window: AggregationWindow | None,
) -> LinkWorker:
    if args.command == "monitor":
        worker = TelemetryWorker(
            source,
            window=window,
            correlator=FrameCorrelator(strict=cfg.strict_correlation),
            read_size=cfg.read_size,
            backoff_s=cfg.backoff_s,
        )
        if args.records:
            worker.record.connect(_print_record)
        else:
            worker.snapshot.connect(_print_record)
        worker.dropped.connect(lambda n: _log.debug("Dropped frames: %d", n))
        return worker

    if args.command == "log":
        path = Path(cfg.data_dir) / args.file_name
        path.parent.mkdir(parents=True, exist_ok=True)
        logger = VerbatimLogger.open(path)
        _log.info("Logging link to %s", path)
        return RawLogWorker(source, logger, read_size=cfg.read_size, backoff_s=cfg.backoff_s)

    worker = LinkWorker(source, read_size=cfg.read_size, backoff_s=cfg.backoff_s)
    worker.line.connect(lambda line: print(line, flush=True))
    return worker


# ---------------------------------------- #


def _run_worker(worker: LinkWorker, argv: list[str] | None) -> None:
    app = QtCore.QCoreApplication.instance()
    if app is None:
        app = QtCore.QCoreApplication(sys.argv if argv is None else ["loratelem", *argv])
    app.setApplicationName("loratelem")

    thread = QtCore.QThread()
    worker.moveToThread(thread)
    thread.started.connect(worker.run)
    worker.finished.connect(thread.quit)
    thread.finished.connect(app.quit)

    previous_handler = signal.signal(signal.SIGINT, lambda *_: worker.stop())
    # Give the interpreter a chance to run the SIGINT handler.
    keepalive = QtCore.QTimer()
    keepalive.timeout.connect(lambda: None)
    keepalive.start(200)

    try:
        thread.start()
        app.exec()
        thread.wait()
    finally:
        keepalive.stop()
        signal.signal(signal.SIGINT, previous_handler)


# ---------------------------------------- #


def main(argv: list[str] | None = None) -> int:
    """
    Command line entry point.

    Responsibilities:
    - Load the link configuration
    - Open the byte source and build the worker for the command
    - Run the worker on a QThread under a Qt event loop
    - Stop cleanly on SIGINT
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s.%(msecs)03d [%(levelname)s] %(threadName)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    cfg = load_link_config("receiver", args.config)
    data_dir = Path(cfg.data_dir)

    if args.command == "touch":
        print(create_text_file(args.file_name, data_dir))
        return 0

    if args.command == "ls":
        for name in list_data_files(data_dir):
            print(name)
        return 0

    window = None
    if args.command == "monitor":
        try:
            window = _build_window(args, cfg)
        except ValueError as exc:
            parser.error(str(exc))

    try:
        source = _open_source(args, cfg)
    except OSError as exc:
        _log.error("Telemetry connect failed: %s", exc)
        return 1

    try:
        worker = _build_worker(args, cfg, source, window)
    except OSError as exc:
        source.close()
        _log.error("Cannot open log file: %s", exc)
        return 1

    worker.info.connect(_log.info)
    worker.state.connect(lambda s: _log.debug("Link state: %s", s))
    _run_worker(worker, argv)

    if worker.exit_reason in (STATE_DEAD, STATE_SINK_FAILED):
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
