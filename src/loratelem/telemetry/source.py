from __future__ import annotations

from typing import BinaryIO, Protocol

import serial


class ByteSource(Protocol):
    """
    Minimal capability a link worker needs.

    ``read`` raises TimeoutError when the link timeout elapsed without data,
    EOFError when a finite source is exhausted and any other OSError when the
    link is gone.
    """

    def read(self, size: int) -> bytes: ...

    def close(self) -> None: ...


# ---------------------------------------- #


class SerialSource:
    """
    Serial port link (the LoRa receiver's USB UART).

    ``port`` may also be a pyserial URL such as ``socket://host:port`` or
    ``loop://``.
    """

    def __init__(self, port: str, baud: int, timeout_s: float = 0.1) -> None:
        self.port = port
        self.baud = baud
        self._ser = serial.serial_for_url(self.port, self.baud, timeout=timeout_s)

        # Drain any partial data at startup
        self._ser.reset_input_buffer()

    # ---------------------------------------- #

    def read(self, size: int) -> bytes:
        # pyserial signals a timeout with an empty read; SerialException is an OSError.
        data = self._ser.read(size)
        if not data:
            raise TimeoutError(f"no data from {self.port}")
        return data

    # ---------------------------------------- #

    def close(self) -> None:
        self._ser.close()


# ---------------------------------------- #


class StreamSource:
    """Replays a binary stream, e.g. a raw capture file or an in-memory fixture."""

    def __init__(self, stream: BinaryIO, chunk_size: int | None = None) -> None:
        self._stream = stream
        self._chunk_size = chunk_size

    @classmethod
    def open(cls, path: str, chunk_size: int | None = None) -> StreamSource:
        return cls(open(path, "rb"), chunk_size=chunk_size)

    # ---------------------------------------- #

    def read(self, size: int) -> bytes:
        if self._chunk_size is not None:
            size = min(size, self._chunk_size)
        data = self._stream.read(size)
        if not data:
            raise EOFError("end of stream")
        return data

    # ---------------------------------------- #

    def close(self) -> None:
        self._stream.close()
