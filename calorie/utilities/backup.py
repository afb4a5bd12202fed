"""
Backup utility for the engine state blob.
Keeps timestamped copies in the same key-value storage and restores the
newest one that still decodes.
"""
import json
from datetime import datetime
from typing import Callable, List, Optional
import logging

from calorie.infra.Storage import KeyValueStorage
from calorie.utilities.config import BACKUP_KEEP

logger = logging.getLogger(__name__)


class BackupManager:
    """Manages backups of one storage key."""

    def __init__(self, storage: KeyValueStorage, key: str, keep: int = BACKUP_KEEP, clock=None):
        self.storage = storage
        self.key = key
        self.keep = keep
        self.clock = clock
        self.index_key = f"{key}.backups"

    def _now(self) -> datetime:
        return self.clock.now() if self.clock is not None else datetime.now()

    def _read_index(self) -> List[str]:
        raw = self.storage.get(self.index_key)
        if not raw:
            return []
        try:
            names = json.loads(raw.decode('utf-8'))
            return [n for n in names if isinstance(n, str)]
        except Exception as e:
            logger.error(f"Backup index unreadable, starting fresh: {e}")
            return []

    def _write_index(self, names: List[str]):
        self.storage.set(self.index_key, json.dumps(names).encode('utf-8'))

    def create_backup(self, blob: Optional[bytes] = None) -> Optional[str]:
        """Store a timestamped copy of blob (default: the current value of the key)."""
        try:
            data = blob if blob is not None else self.storage.get(self.key)
            if data is None:
                logger.warning(f"Nothing to back up for {self.key}")
                return None

            names = self._read_index()
            timestamp = self._now().strftime("%Y%m%d_%H%M%S_%f")
            name = f"{self.key}.backup.{timestamp}"
            if name in names:
                name = f"{name}_{len(names)}"
            self.storage.set(name, data)
            names.append(name)
            logger.info(f"Backup created: {name}")

            self._write_index(self._cleanup_old_backups(names))
            return name

        except Exception as e:
            logger.error(f"Backup failed for {self.key}: {e}")
            return None

    def _cleanup_old_backups(self, names: List[str]) -> List[str]:
        """Remove old backups, keeping only the most recent ones."""
        for name in names[:-self.keep]:
            try:
                self.storage.remove(name)
                logger.info(f"Removed old backup: {name}")
            except Exception as e:
                logger.error(f"Failed to remove old backup {name}: {e}")
        return names[-self.keep:]

    def list_backups(self) -> List[str]:
        """Backup names, newest first."""
        return list(reversed(self._read_index()))

    def restore_backup(self, name: str) -> Optional[bytes]:
        """Copy a specific backup over the primary key."""
        try:
            data = self.storage.get(name)
            if data is None:
                logger.error(f"Backup not found: {name}")
                return None
            self.storage.set(self.key, data)
            logger.info(f"Restored backup: {name} -> {self.key}")
            return data

        except Exception as e:
            logger.error(f"Restore failed for {name}: {e}")
            return None

    def restore_latest(self, validate: Callable[[bytes], object]) -> Optional[bytes]:
        """Restore the newest backup for which validate(blob) does not raise."""
        for name in self.list_backups():
            data = self.storage.get(name)
            if data is None:
                continue
            try:
                validate(data)
            except Exception as e:
                logger.warning(f"Skipping unusable backup {name}: {e}")
                continue
            return self.restore_backup(name)
        logger.warning(f"No usable backup found for {self.key}")
        return None
