"""File-system storage for the current run, NG+ progress and themed catalogs."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from frontier.core.config import get_save_dir
from frontier.data.errors import DataLoadError
from frontier.data.json_loader import load_json, write_json

logger = logging.getLogger(__name__)

GAME_STATE_FILE = "game_state.json"
PROGRESS_FILE = "progress.json"
THEMES_DIR = "themes"


class SaveStore:
    """Last-write-wins JSON files under one directory.

    Reads return ``None`` when a file is missing or unreadable. Write failures are logged and
    swallowed so a full or read-only disk never interrupts play.
    """

    def __init__(self, base_dir: Path | str | None = None) -> None:
        self._base_dir = Path(base_dir) if base_dir is not None else get_save_dir()

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def read_game_state(self) -> Any | None:
        return self._read(self._base_dir / GAME_STATE_FILE)

    def write_game_state(self, payload: Any) -> bool:
        return self._write(self._base_dir / GAME_STATE_FILE, payload)

    def delete_game_state(self) -> None:
        self._delete(self._base_dir / GAME_STATE_FILE)

    def read_progress(self) -> Any | None:
        return self._read(self._base_dir / PROGRESS_FILE)

    def write_progress(self, payload: Any) -> bool:
        return self._write(self._base_dir / PROGRESS_FILE, payload)

    def delete_progress(self) -> None:
        self._delete(self._base_dir / PROGRESS_FILE)

    def read_theme(self, milestone: int) -> Any | None:
        return self._read(self._theme_path(milestone))

    def write_theme(self, milestone: int, payload: Any) -> bool:
        return self._write(self._theme_path(milestone), payload)

    def clear_themes(self) -> None:
        themes_dir = self._base_dir / THEMES_DIR
        if not themes_dir.exists():
            return
        for path in themes_dir.glob("ng_plus_*.json"):
            self._delete(path)

    def _theme_path(self, milestone: int) -> Path:
        return self._base_dir / THEMES_DIR / f"ng_plus_{milestone}.json"

    def _read(self, path: Path) -> Any | None:
        if not path.exists():
            return None
        try:
            return load_json(path, label="save file")
        except DataLoadError as exc:
            logger.warning("Ignoring unreadable save data: %s", exc)
            return None

    def _write(self, path: Path, payload: Any) -> bool:
        try:
            write_json(path, payload)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to write %s: %s", path, exc)
            return False
        return True

    def _delete(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.error("Failed to delete %s: %s", path, exc)
