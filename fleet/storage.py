"""Key-value storage backends for the entity store.

Each key holds one string value. ``FileStorage`` keeps one ``<key>.json``
file per key in a directory; ``MemoryStorage`` keeps everything in a dict.
"""

import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union


class MemoryStorage:
    """Dict-backed storage, lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return sorted(self._data)


class FileStorage:
    """Directory of JSON files, one per key."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        """Get full path for a storage key."""
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as fp:
            return fp.read()

    def set(self, key: str, value: str) -> None:
        """
        Write a value for a key.

        The value goes to a temporary file in the same directory first and
        is moved into place, so a failed write leaves the old value intact.
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                fp.write(value)
            os.replace(tmp_name, self.path_for(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)

    def keys(self):
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))
