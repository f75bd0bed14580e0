"""Utility helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np


def ensure_directory(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def ensure_parent(path: Path) -> Path:
    """Create the parent directory of an output file."""
    ensure_directory(Path(path).parent)
    return Path(path)


def as_json_ready(data: Any) -> Any:
    """Recursively convert paths and numpy scalars to JSON-serializable values."""
    if isinstance(data, dict):
        return {key: as_json_ready(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [as_json_ready(item) for item in data]
    if isinstance(data, Path):
        return str(data)
    if isinstance(data, np.integer):
        return int(data)
    if isinstance(data, np.floating):
        return float(data)
    return data


def to_json(payload: Any) -> str:
    return json.dumps(as_json_ready(payload), indent=2, sort_keys=True)


def write_json(payload: Any, path: Path) -> Path:
    path = ensure_parent(path)
    path.write_text(to_json(payload), encoding="utf-8")
    return path
