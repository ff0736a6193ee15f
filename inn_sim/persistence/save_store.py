"""JSON save file: save, load, delete, export and import."""

from __future__ import annotations

import json
import os
import shutil
from datetime import datetime, timezone
from typing import Optional

from inn_sim.core.config import DEFAULT_SAVE_PATH
from inn_sim.core.errors import FailureReason
from inn_sim.viz.logger import SimLogger

TIMESTAMP_KEY = "save_timestamp"
LEGACY_TIMESTAMP_KEY = "saveTimestamp"


def _timestamp_of(data: dict) -> Optional[str]:
    return data.get(TIMESTAMP_KEY) or data.get(LEGACY_TIMESTAMP_KEY)


class SaveStore:
    """A single save slot backed by a JSON file."""

    def __init__(self, path: str = DEFAULT_SAVE_PATH, logger: Optional[SimLogger] = None) -> None:
        self.path = path
        self._logger = logger or SimLogger.silent()

    def has_save(self) -> bool:
        return os.path.isfile(self.path)

    def save_game(self, game_data: dict) -> bool:
        """Write the snapshot with a UTC timestamp. Returns False on failure."""
        save_data = dict(game_data)
        save_data[TIMESTAMP_KEY] = datetime.now(timezone.utc).isoformat()
        try:
            # Serialize first so a bad snapshot never truncates the old save
            payload = json.dumps(save_data, indent=2)
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                f.write(payload)
        except (OSError, TypeError, ValueError) as exc:
            self._logger.log(
                SimLogger.ERROR,
                f"Failed to save game: {exc}",
                reason=FailureReason.PERSISTENCE_WRITE_ERROR.value,
            )
            return False

        self._logger.log(SimLogger.PERSISTENCE, f"Game saved to {self.path}")
        return True

    def load_game(self) -> Optional[dict]:
        """Read the snapshot, or None when missing or unreadable."""
        if not self.has_save():
            self._logger.log(SimLogger.PERSISTENCE, "No saved game found")
            return None
        data = self._read(self.path)
        if data is None:
            return None
        self._logger.log(SimLogger.PERSISTENCE, f"Loaded save from {_timestamp_of(data)}")
        return data

    def delete_save(self) -> bool:
        try:
            if self.has_save():
                os.remove(self.path)
        except OSError as exc:
            self._logger.log(SimLogger.ERROR, f"Failed to delete save: {exc}")
            return False
        self._logger.log(SimLogger.PERSISTENCE, "Save data deleted")
        return True

    def export_save(self, destination: Optional[str] = None) -> Optional[str]:
        """Copy the save to a backup file. Returns the backup path."""
        if not self.has_save():
            self._logger.log(SimLogger.PERSISTENCE, "No save data to export")
            return None
        if destination is None:
            stamp = datetime.now(timezone.utc).isoformat().replace(":", "-")
            directory = os.path.dirname(self.path) or "."
            destination = os.path.join(directory, f"hearth_save_{stamp}.json")
        try:
            parent = os.path.dirname(destination)
            if parent:
                os.makedirs(parent, exist_ok=True)
            shutil.copyfile(self.path, destination)
        except OSError as exc:
            self._logger.log(
                SimLogger.ERROR,
                f"Failed to export save: {exc}",
                reason=FailureReason.PERSISTENCE_WRITE_ERROR.value,
            )
            return None
        self._logger.log(SimLogger.PERSISTENCE, f"Save data exported to {destination}")
        return destination

    def import_save(self, source: str) -> bool:
        """Replace the current save with a backup that carries a timestamp."""
        data = self._read(source)
        if data is None:
            return False
        if not isinstance(data, dict) or not _timestamp_of(data):
            self._logger.log(
                SimLogger.ERROR,
                f"Invalid save file {source}",
                reason=FailureReason.PERSISTENCE_READ_ERROR.value,
            )
            return False
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            shutil.copyfile(source, self.path)
        except OSError as exc:
            self._logger.log(
                SimLogger.ERROR,
                f"Failed to import save: {exc}",
                reason=FailureReason.PERSISTENCE_WRITE_ERROR.value,
            )
            return False
        self._logger.log(SimLogger.PERSISTENCE, f"Imported save from {_timestamp_of(data)}")
        return True

    def _read(self, path: str) -> Optional[dict]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            self._logger.log(
                SimLogger.ERROR,
                f"Failed to load save {path}: {exc}",
                reason=FailureReason.PERSISTENCE_READ_ERROR.value,
            )
            return None
        if not isinstance(data, dict):
            self._logger.log(
                SimLogger.ERROR,
                f"Save {path} is not a JSON object",
                reason=FailureReason.PERSISTENCE_READ_ERROR.value,
            )
            return None
        return data
