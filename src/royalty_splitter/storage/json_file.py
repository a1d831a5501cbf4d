"""
JSON file storage backend.

Default backend; persists splitter state to a local JSON file, replacing it
atomically on every save.
"""

import json
import os
import shutil
import threading
from datetime import datetime
from typing import Any

from .base import StorageBackend, StorageError, StorageReadError, StorageWriteError


class JSONFileStorage(StorageBackend):
    """
    JSON file storage backend.

    Thread-safe operations using a file lock.
    """

    def __init__(self, file_path: str = "splitter_state.json"):
        """
        Initialize JSON file storage.

        Args:
            file_path: Path to the JSON file
        """
        self.file_path = file_path
        self._lock = threading.Lock()

    def load_state(self) -> dict[str, Any] | None:
        """
        Load splitter state from the JSON file.

        Returns:
            Dictionary containing state, or None if the file doesn't exist or is empty.

        Raises:
            StorageReadError: If reading fails
        """
        with self._lock:
            try:
                with open(self.file_path, encoding="utf-8") as f:
                    raw_data = f.read()
            except FileNotFoundError:
                return None
            except PermissionError as e:
                raise StorageReadError(f"Permission denied: {self.file_path}") from e
            except OSError as e:
                raise StorageReadError(f"Failed to load state: {e}") from e

            if not raw_data.strip():
                return None

            try:
                return json.loads(raw_data)
            except json.JSONDecodeError as e:
                raise StorageReadError(f"Invalid JSON format: {e}") from e

    def save_state(self, state: dict[str, Any]) -> None:
        """
        Save splitter state to the JSON file.

        Raises:
            StorageWriteError: If writing fails
        """
        with self._lock:
            try:
                data = json.dumps(state, indent=2, ensure_ascii=False)

                # Write to temp file, then rename over the target
                temp_path = f"{self.file_path}.tmp"
                with open(temp_path, "w", encoding="utf-8") as f:
                    f.write(data)
                os.replace(temp_path, self.file_path)

            except PermissionError as e:
                raise StorageWriteError(f"Permission denied: {self.file_path}") from e
            except (OSError, TypeError, ValueError) as e:
                raise StorageWriteError(f"Failed to save state: {e}") from e

    def is_available(self) -> bool:
        """True if the directory of the file exists and is writable."""
        directory = os.path.dirname(self.file_path) or "."
        return os.path.isdir(directory) and os.access(directory, os.W_OK)

    def get_info(self) -> dict[str, Any]:
        """Get storage backend information."""
        info = super().get_info()
        info.update({
            "file_path": self.file_path,
            "file_exists": os.path.exists(self.file_path),
        })

        if os.path.exists(self.file_path):
            try:
                stat = os.stat(self.file_path)
                info["file_size_bytes"] = stat.st_size
                info["last_modified"] = stat.st_mtime
            except OSError:
                pass

        return info

    def delete(self) -> bool:
        """
        Delete the storage file.

        Returns:
            True if deleted, False if file didn't exist
        """
        with self._lock:
            try:
                os.remove(self.file_path)
                return True
            except FileNotFoundError:
                return False

    def backup(self, backup_path: str | None = None) -> str:
        """
        Create a backup of the storage file.

        Args:
            backup_path: Path for backup file (default: adds timestamp and .backup suffix)

        Returns:
            Path to the backup file

        Raises:
            StorageError: If there is nothing to back up or the copy fails
        """
        if backup_path is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            backup_path = f"{self.file_path}.{timestamp}.backup"

        with self._lock:
            if not os.path.exists(self.file_path):
                raise StorageError("No file to backup")
            try:
                shutil.copy2(self.file_path, backup_path)
            except OSError as e:
                raise StorageError(f"Backup failed: {e}") from e
        return backup_path
