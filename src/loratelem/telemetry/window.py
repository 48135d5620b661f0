from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable

import numpy as np

from loratelem.telemetry.types import (
    CONTINUOUS_FIELDS,
    DISCRETE_FIELDS,
    PASSTHROUGH_FIELDS,
    TelemetryRecord,
)

DEFAULT_CAPACITY = 10
DEFAULT_RATE_HZ = 10.0

# Discrete fields are unsigned bytes.
_DISCRETE_DOMAIN = 256


def _mode(values: np.ndarray) -> int:
    # argmax returns the first maximum, so ties go to the lowest value.
    return int(np.bincount(values, minlength=_DISCRETE_DOMAIN).argmax())


# ---------------------------------------- #


def aggregate(records: list[TelemetryRecord]) -> TelemetryRecord:
    """
    Summarise a non-empty list of records into one snapshot record.

    Continuous fields are averaged; signal_strength is averaged as a real and
    truncated toward zero. Discrete fields take their mode. Timestamp and
    packet number come from the last record.
    """
    if not records:
        raise ValueError("cannot aggregate an empty window")

    continuous = np.array(
        [[getattr(r, name) for name in CONTINUOUS_FIELDS] for r in records],
        dtype=np.float64,
    )
    means = continuous.mean(axis=0)
    values: dict[str, object] = {
        name: float(mean) for name, mean in zip(CONTINUOUS_FIELDS, means)
    }
    values["signal_strength"] = int(np.trunc(values["signal_strength"]))

    for name in DISCRETE_FIELDS:
        column = np.fromiter((getattr(r, name) for r in records), dtype=np.int64)
        values[name] = _mode(column)

    tail = records[-1]
    for name in PASSTHROUGH_FIELDS:
        values[name] = getattr(tail, name)

    return TelemetryRecord(**values)  # type: ignore[arg-type]


# ---------------------------------------- #


class AggregationWindow:
    """
    Fixed-capacity buffer of the most recent samples with a gated snapshot.

    ``insert`` evicts the oldest sample once full and returns a snapshot only
    when at least ``1 / rate_hz`` seconds have passed since the previous one.
    There is no timer: without inserts nothing is emitted.

    One worker thread writes; other threads may read. Every access takes the
    internal lock.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        rate_hz: float = DEFAULT_RATE_HZ,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("window capacity must be at least 1")
        if rate_hz <= 0:
            raise ValueError("emission rate must be positive")

        self._capacity = capacity
        self._interval_s = 1.0 / rate_hz
        self._clock = clock
        self._lock = threading.Lock()
        self._records: deque[TelemetryRecord] = deque(maxlen=capacity)
        self._last_emit = clock()

    # ---------------------------------------- #

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def interval_s(self) -> float:
        return self._interval_s

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def records(self) -> list[TelemetryRecord]:
        with self._lock:
            return list(self._records)

    # ---------------------------------------- #

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    # ---------------------------------------- #

    def insert(self, record: TelemetryRecord) -> TelemetryRecord | None:
        with self._lock:
            self._records.append(record)

            now = self._clock()
            if now - self._last_emit < self._interval_s:
                return None

            self._last_emit = now
            return aggregate(list(self._records))

    # ---------------------------------------- #

    def snapshot(self) -> TelemetryRecord | None:
        """Aggregate the current contents without touching the emission clock."""
        with self._lock:
            if not self._records:
                return None
            return aggregate(list(self._records))
