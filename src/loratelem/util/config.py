from __future__ import annotations

import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

CONFIG_FILENAME = "loratelem.toml"


@dataclass(frozen=True)
class LinkConfig:
    port: str | None = None
    baud: int = 115200
    read_timeout_s: float = 0.1
    backoff_s: float = 0.1
    read_size: int = 1024
    window_capacity: int = 10
    emit_rate_hz: float = 10.0
    data_dir: str = "./data"
    strict_correlation: bool = False


# ---------------------------------------- #


def _accepts(expected: type, value: Any) -> bool:
    # bool is an int subclass; only accept it where a bool is wanted.
    if isinstance(value, bool):
        return expected is bool
    if expected is float:
        return isinstance(value, (int, float))
    return isinstance(value, expected)


_FIELD_TYPES: dict[str, type] = {
    "port": str,
    "baud": int,
    "read_timeout_s": float,
    "backoff_s": float,
    "read_size": int,
    "window_capacity": int,
    "emit_rate_hz": float,
    "data_dir": str,
    "strict_correlation": bool,
}


# ---------------------------------------- #


def load_link_config(project: str = "receiver", path: Path | None = None) -> LinkConfig:
    """
    Read the ``[project]`` table of ``loratelem.toml``.

    A missing file or table gives the defaults. Keys with the wrong type are
    ignored.
    """
    if path is None:
        path = Path.cwd() / CONFIG_FILENAME

    try:
        data: Any = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return LinkConfig()

    table = data.get(project)
    if not isinstance(table, dict):
        return LinkConfig()

    values: dict[str, Any] = {}
    for f in fields(LinkConfig):
        value = table.get(f.name)
        if value is None or not _accepts(_FIELD_TYPES[f.name], value):
            continue
        values[f.name] = float(value) if _FIELD_TYPES[f.name] is float else value

    return LinkConfig(**values)
