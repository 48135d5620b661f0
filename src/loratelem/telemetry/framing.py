from __future__ import annotations

import codecs

from loratelem.telemetry.protocol import FRAME_MARKER, LINE_TERMINATOR


class LineReassembler:
    """
    Turns arbitrarily chunked link bytes into complete text lines.

    Bytes are decoded permissively (invalid UTF-8 becomes U+FFFD) with an
    incremental decoder, so a multi-byte character or a "\\r\\n" split across
    two reads still produces the same lines as a single read would.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._terminator = LINE_TERMINATOR.decode("ascii")
        self._buf = ""

    # ---------------------------------------- #

    @property
    def pending(self) -> str:
        """Text received after the last terminator."""
        return self._buf

    # ---------------------------------------- #

    def reset(self) -> None:
        self._decoder.reset()
        self._buf = ""

    # ---------------------------------------- #

    def feed(self, chunk: bytes) -> list[str]:
        if chunk:
            self._buf += self._decoder.decode(chunk)

        lines: list[str] = []
        while True:
            idx = self._buf.find(self._terminator)
            if idx < 0:
                return lines

            line = self._buf[:idx]
            self._buf = self._buf[idx + len(self._terminator) :]

            if line.startswith(FRAME_MARKER):
                line = line[len(FRAME_MARKER) :]
            if not line:
                continue

            lines.append(line)
