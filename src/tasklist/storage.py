"""Local key-value storage and the task list persistence bridge."""

import errno
import json
import logging
import os
import shutil
import tempfile
from pathlib import Path

from tasklist.store import Tasks, TaskStore
from tasklist.todo import Task

logger = logging.getLogger(__name__)

DEFAULT_PATH = "~/.tasklist/storage.json"
DEFAULT_KEY = "todos"

# Values a browser-style store hands back when nothing useful was written.
EMPTY_TOKENS = frozenset({"undefined", "null"})


class LocalStorage:
    """File-backed string key-value store.

    The whole mapping lives in one JSON object. Every write rewrites the
    file atomically.
    """

    def __init__(self, path: str = DEFAULT_PATH):
        self.path = Path(path).expanduser()
        self._items: dict[str, str] = self._read()

    def _create_backup(self, error_message: str) -> str | None:
        """Copy the backing file aside before it gets overwritten.

        Args:
            error_message: Description of the error that triggered the backup.

        Returns:
            Path to the backup file, or None if the copy failed.
        """
        backup_path = str(self.path) + ".backup"
        try:
            shutil.copy2(self.path, backup_path)
        except OSError as backup_error:
            logger.error(f"{error_message}. Failed to create backup: {backup_error}")
            return None
        logger.error(f"{error_message}. Backup created at {backup_path}")
        return backup_path

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw_data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, RecursionError):
            self._create_backup(f"Invalid JSON in {self.path}")
            return {}
        except OSError as e:
            logger.error(f"Failed to read {self.path}: {e}")
            return {}

        if not isinstance(raw_data, dict):
            self._create_backup(
                f"Invalid schema in {self.path}: expected object, got {type(raw_data).__name__}"
            )
            return {}

        items = {}
        for key, value in raw_data.items():
            if isinstance(value, str):
                items[key] = value
            else:
                logger.warning(f"Skipping non-string value for key {key!r} in {self.path}")
        return items

    def _write(self) -> None:
        """Save the mapping using an atomic write."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data_bytes = json.dumps(self._items, indent=2).encode("utf-8")

        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=self.path.name + ".",
            suffix=".tmp",
        )
        try:
            try:
                os.fchmod(fd, 0o600)
            except AttributeError:
                # os.fchmod is not available on Windows
                os.chmod(temp_path, 0o600)

            total_written = 0
            while total_written < len(data_bytes):
                try:
                    written = os.write(fd, data_bytes[total_written:])
                except OSError as e:
                    if e.errno == errno.EINTR:
                        continue
                    raise
                if written == 0:
                    raise OSError("Write returned 0 bytes - disk full?")
                total_written += written
            os.fsync(fd)

            # Close before replace; Windows refuses to replace an open file
            os.close(fd)
            fd = -1
            Path(temp_path).replace(self.path)
        except Exception:
            try:
                Path(temp_path).unlink()
            except OSError:
                pass
            raise
        finally:
            if fd != -1:
                try:
                    os.close(fd)
                except OSError:
                    pass

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value
        self._write()

    def remove_item(self, key: str) -> None:
        if self._items.pop(key, None) is not None:
            self._write()

    def keys(self) -> list[str]:
        return list(self._items)


def serialize(tasks: Tasks) -> str:
    """Encode the full task list as a JSON array."""
    return json.dumps([t.to_dict() for t in tasks])


def deserialize(raw: str) -> Tasks:
    """Decode a JSON array of task records.

    Raises:
        ValueError: If the payload is not a JSON array of valid, uniquely
            identified task records.
        TypeError: If a record has fields of the wrong type.
        RecursionError: If the payload is nested too deeply to decode.
    """
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError(f"expected a JSON array, got {type(data).__name__}")
    tasks = tuple(Task.from_dict(item) for item in data)
    if len({t.id for t in tasks}) != len(tasks):
        raise ValueError("duplicate task ids")
    return tasks


class PersistenceBridge:
    """Loads the task list at startup and writes it back after each change."""

    def __init__(self, storage: LocalStorage, key: str = DEFAULT_KEY):
        self.storage = storage
        self.key = key

    def load(self) -> Tasks:
        """Read the stored task list.

        Missing or unusable entries are removed and an empty list is
        returned; this never raises.
        """
        raw = self.storage.get_item(self.key)
        if raw is None or raw.strip() in EMPTY_TOKENS:
            logger.debug("No stored tasks under %r", self.key)
            self._clear()
            return ()
        try:
            tasks = deserialize(raw)
        except (ValueError, TypeError, RecursionError) as e:
            logger.warning(f"Failed to parse tasks from local storage: {e}")
            self._clear()
            return ()
        logger.debug("Loaded %d tasks from %s", len(tasks), self.storage.path)
        return tasks

    def _clear(self) -> None:
        try:
            self.storage.remove_item(self.key)
        except OSError as e:
            logger.error(f"Failed to clear stored tasks: {e}")

    def save(self, tasks: Tasks) -> None:
        """Overwrite the stored list with ``tasks``, including an empty list."""
        try:
            self.storage.set_item(self.key, serialize(tasks))
        except OSError as e:
            logger.error(f"Failed to save tasks to {self.storage.path}: {e}")

    def attach(self, store: TaskStore) -> None:
        store.subscribe(self.save)
