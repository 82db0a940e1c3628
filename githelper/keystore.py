"""User secret storage and API key resolution."""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional

from .config import Config, PACKAGED_API_KEY
from .errors import MissingCredentialError

API_KEY_NAME = "ai_api_key"


class SecretStore:
    """
    Small key/value store kept in a JSON file readable only by its owner.

    Writes go to a temporary file in the same directory and replace the
    original, so a crash never leaves a half-written file behind.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.logger = logging.getLogger('githelper.keystore')
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except ValueError:
            self.logger.warning(f"Ignoring unreadable secrets file {self.path}")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)} if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(self.path.parent), prefix=".secrets-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)
        self.logger.info(f"Stored secret '{key}'")

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if data.pop(key, None) is None:
                return
            self._save(data)
        self.logger.info(f"Deleted secret '{key}'")


def _usable(value: Optional[str]) -> bool:
    return bool(value and value.strip() and value.strip() != PACKAGED_API_KEY)


def resolve_api_key(store: SecretStore, config: Config) -> str:
    """
    The user's stored key wins, then the packaged default.

    Raises:
        MissingCredentialError: if neither holds a real key
    """
    user_key = store.get(API_KEY_NAME)
    if _usable(user_key):
        return user_key.strip()
    if _usable(config.default_api_key):
        return config.default_api_key.strip()
    raise MissingCredentialError()
