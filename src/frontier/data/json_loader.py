"""Low-level JSON file helpers shared by repositories and the save store."""
from __future__ import annotations

import json
import os
from pathlib import Path

from .errors import DataLoadError


def load_json(path: Path, *, label: str = "definition file") -> object:
    """Load JSON from disk and raise DataLoadError on failure."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise DataLoadError(f"{label.capitalize()} not found: {path}") from exc
    except OSError as exc:
        raise DataLoadError(f"Unable to read {label}: {path}") from exc

    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise DataLoadError(f"Invalid JSON in {path}: {exc}") from exc


def write_json(path: Path, payload: object) -> None:
    """Write JSON through a temporary sibling file so readers never see a partial write.

    OSError propagates to the caller.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(f"{path.name}.tmp")
    temp_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    os.replace(temp_path, path)
