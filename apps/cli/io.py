"""CLI I/O helpers for input loading and atomic output writing."""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import IO, Any

import yaml  # type: ignore[import-untyped]


def read_json_file(path: Path, *, label: str) -> Any:
    """Load a JSON input file, raising ValueError with the input's role on failure."""

    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"{label} file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {label} file: {path}") from exc


def read_json_object(path: Path, *, label: str) -> dict[str, Any]:
    raw = read_json_file(path, label=label)
    if not isinstance(raw, dict):
        raise ValueError(f"{label} JSON must be an object: {path}")
    return raw


def read_json_list(path: Path, *, label: str) -> list[Any]:
    raw = read_json_file(path, label=label)
    if not isinstance(raw, list):
        raise ValueError(f"{label} JSON must be a list: {path}")
    return raw


def read_form_data(path: Path) -> dict[str, str]:
    """Load flat form values; non-string values are stringified, nulls become empty."""

    raw = read_json_object(path, label="Form data")
    return {str(key): "" if value is None else str(value) for key, value in raw.items()}


def write_json_atomic(path: Path, payload: Any) -> None:
    """Write JSON output atomically using a temporary file + replace."""

    path.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write(
        path,
        lambda handle: json.dump(payload, handle, ensure_ascii=False, sort_keys=True, indent=2),
    )


def write_text_atomic(path: Path, text: str) -> None:
    """Write rendered HTML (or any text) atomically."""

    path.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write(path, lambda handle: handle.write(text))


def write_yaml_atomic(path: Path, payload: dict[str, Any]) -> None:
    """Write settings YAML atomically."""

    path.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write(
        path,
        lambda handle: yaml.safe_dump(payload, handle, allow_unicode=True, sort_keys=False),
    )


def dump_json(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2)


def _atomic_write(path: Path, write: Callable[[IO[str]], object]) -> None:
    fd, raw_tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f"{path.name}.",
        suffix=".tmp",
    )
    os.close(fd)
    tmp_path = Path(raw_tmp_path)

    try:
        with tmp_path.open("w", encoding="utf-8") as handle:
            write(handle)
        tmp_path.replace(path)
    except Exception:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)
        raise
