"""Key-value storage backends: get/set/remove of raw bytes."""
import os
import re
import tempfile
from pathlib import Path
from threading import Lock
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r'[^A-Za-z0-9._-]')


class KeyValueStorage:
    def get(self, key: str) -> Optional[bytes]:
        raise NotImplementedError

    def set(self, key: str, value: bytes) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class InMemoryStorage(KeyValueStorage):
    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})
        self._lock = Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(value)

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class JsonFileStorage(KeyValueStorage):
    """One file per key under a directory, written atomically."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / (_SAFE_KEY.sub('_', key) + '.json')

    def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def set(self, key: str, value: bytes) -> None:
        path = self._path(key)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.directory), prefix='.' + path.stem + '_', suffix='.json')
        try:
            with os.fdopen(fd, 'wb') as tmp:
                tmp.write(value)
            os.replace(tmp_path, path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
