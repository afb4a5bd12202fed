import json
import logging
from typing import Optional

from calorie.domain.EngineState import EngineState
from calorie.infra.Storage import KeyValueStorage
from calorie.utilities.backup import BackupManager
from calorie.utilities.config import STATE_KEY

logger = logging.getLogger(__name__)


def decode_state(raw: bytes) -> EngineState:
    data = json.loads(raw.decode("utf-8"))
    if not isinstance(data, dict):
        raise ValueError("state blob is not a JSON object")
    return EngineState.from_dict(data)


def encode_state(state: EngineState) -> bytes:
    return json.dumps(state.to_dict(), indent=2, ensure_ascii=False).encode("utf-8")


class StateRepository:
    """Loads and saves the engine state as one JSON blob.

    A missing blob means a fresh install. A blob that does not decode is
    replaced by the newest usable backup, or by an empty state when there
    is none; loading never raises.
    """

    def __init__(self, storage: KeyValueStorage, key: str = STATE_KEY,
                 backups: Optional[BackupManager] = None):
        self.storage = storage
        self.key = key
        self.backups = backups if backups is not None else BackupManager(storage, key)

    def load(self) -> EngineState:
        try:
            raw = self.storage.get(self.key)
        except Exception:
            logger.exception("Failed to read state from storage")
            raw = None
        if raw is None:
            logger.info("No stored state under %s, starting empty", self.key)
            return EngineState.empty()
        try:
            return decode_state(raw)
        except Exception as e:
            logger.error("Stored state is corrupted (%s), trying backups", e)
        restored = self.restore_from_backup()
        return restored if restored is not None else EngineState.empty()

    def restore_from_backup(self) -> Optional[EngineState]:
        raw = self.backups.restore_latest(decode_state)
        return decode_state(raw) if raw is not None else None

    def save(self, state: EngineState) -> bool:
        try:
            self.storage.set(self.key, encode_state(state))
            return True
        except Exception:
            logger.exception("Failed to persist state")
            return False

    def backup(self, state: EngineState) -> Optional[str]:
        return self.backups.create_backup(encode_state(state))
