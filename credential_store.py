# credential_store.py
# ------------------------------------------------------------
# This module keeps the end user's Google AI API key.
# It:
#   - saves the key to a small local JSON file
#   - caches it in memory so each analysis does not re-read disk
#   - checks a key's format and whether Google accepts it
#
# The key is stored as-is: no encryption, expiry or rotation.
# ------------------------------------------------------------

import json
import logging
from pathlib import Path
from typing import Optional

from config import Settings
from errors import AnalysisError, ConfigurationError
from gemini_client import GeminiClient

logger = logging.getLogger(__name__)

# Name of the single entry in the credential file
STORAGE_KEY = "google_ai_api_key"

# Every Google API key starts with this prefix
API_KEY_PREFIX = "AIza"


class CredentialStore:
    """
    In-memory + on-disk holder for one API key.

    Create one per process and pass it to whoever needs the key.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._api_key: Optional[str] = None  # cached after first set/load

    def set_credential(self, key: str) -> None:
        """Remember the key in memory and write it to the credential file."""
        self._api_key = key

        data = self._read_file()
        data[STORAGE_KEY] = key

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        logger.info("Saved API key to %s", self.path)

    def get_credential(self) -> Optional[str]:
        """
        Return the cached key, else the one on disk, else None.
        """
        if self._api_key:
            return self._api_key

        value = self._read_file().get(STORAGE_KEY)
        self._api_key = value if isinstance(value, str) and value else None
        return self._api_key

    def clear(self) -> None:
        """Forget the key in memory and on disk."""
        self._api_key = None

        data = self._read_file()
        if STORAGE_KEY not in data:
            return
        del data[STORAGE_KEY]
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        logger.info("Removed API key from %s", self.path)

    def _read_file(self) -> dict:
        # No file yet means nothing stored
        if not self.path.exists():
            return {}

        with self.path.open(encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError:
                logger.warning("Ignoring unreadable credential file %s", self.path)
                return {}

        return data if isinstance(data, dict) else {}


def validate_api_key_format(key: Optional[str]) -> str:
    """
    Check that a key looks like a Google AI API key.

    Returns:
        The key with surrounding whitespace removed.

    Raises:
        ConfigurationError: if the key is empty or has the wrong prefix.
    """
    key = (key or "").strip()
    if not key:
        raise ConfigurationError("Please enter your Google AI API key")
    if not key.startswith(API_KEY_PREFIX):
        raise ConfigurationError(f"Google AI API keys should start with '{API_KEY_PREFIX}'")
    return key


def check_api_key(key: str, settings: Settings, client: Optional[GeminiClient] = None) -> bool:
    """
    Ask Google to list models with this key.
    Any failure (bad status, network error) counts as an invalid key.
    """
    try:
        client = client or GeminiClient(key, settings)
        client.list_models()
    except (AnalysisError, ValueError) as e:
        logger.info("API key rejected: %s", e)
        return False
    return True


class FixedCredential:
    """
    A key that comes from configuration rather than the user,
    e.g. the relay server's GOOGLE_AI_API_KEY.
    """

    def __init__(self, api_key: Optional[str]):
        self._api_key = api_key or None

    def get_credential(self) -> Optional[str]:
        return self._api_key
