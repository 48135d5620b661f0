from pathlib import Path
from typing import TextIO

DEFAULT_DATA_DIR = Path("./data")


def create_text_file(file_name: str, data_dir: Path = DEFAULT_DATA_DIR) -> Path:
    """Create (or truncate) ``data_dir/file_name``, making the directory if needed."""
    data_dir.mkdir(parents=True, exist_ok=True)
    path = data_dir / file_name
    path.write_text("", encoding="utf-8")
    return path


def list_data_files(data_dir: Path = DEFAULT_DATA_DIR) -> list[str]:
    """Names of the regular files in ``data_dir``, sorted; empty if it does not exist."""
    if not data_dir.is_dir():
        return []
    return sorted(p.name for p in data_dir.iterdir() if p.is_file())


# ---------------------------------------- #


class VerbatimLogger:
    """
    Appends reassembled link lines to a text file, one per line.

    The handle is opened in text mode, so "\\n" becomes the platform newline.
    Write errors propagate as OSError.
    """

    def __init__(self, fp: TextIO):
        self._fp = fp
        self.lines_written = 0

    @classmethod
    def open(cls, path: Path) -> "VerbatimLogger":
        return cls(open(path, "a", encoding="utf-8"))

    # ---------------------------------------- #

    def write_line(self, line: str) -> None:
        self._fp.write(line + "\n")
        self._fp.flush()
        self.lines_written += 1

    # ---------------------------------------- #

    def close(self) -> None:
        self._fp.close()
