"""
Persistent storage for the Gemini API key
"""
import logging
import os
import time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import config

logger = logging.getLogger(__name__)


class CredentialRecord(BaseModel):
    """On-disk credential: {"apiKey": ..., "timestamp": ...}"""

    model_config = ConfigDict(populate_by_name=True)

    api_key: str = Field(alias="apiKey")
    # Milliseconds since the epoch
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))


class CredentialStore:
    """Reads and writes the single per-user credential file"""

    def __init__(self, path: Optional[str] = None):
        """
        Initialize the store

        Args:
            path: Location of the JSON file, defaults to ~/.npmload/config.json
        """
        self.path = path or config.config_path

    def _ensure_dir(self):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

    def save(self, api_key: str) -> CredentialRecord:
        """
        Persist an API key, replacing any previous one

        Args:
            api_key: The validated key to store

        Returns:
            The record that was written
        """
        self._ensure_dir()
        record = CredentialRecord(api_key=api_key)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(record.model_dump_json(by_alias=True, indent=2))
        logger.info("Saved API key to %s", self.path)
        return record

    def load(self) -> Optional[str]:
        """
        Load the stored API key

        Returns:
            The key, or None if nothing usable is stored
        """
        if not os.path.exists(self.path):
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                record = CredentialRecord.model_validate_json(f.read())
        except (OSError, ValidationError) as e:
            logger.warning("Ignoring unreadable credential file %s: %s", self.path, e)
            return None

        return record.api_key or None

    def clear(self) -> bool:
        """Remove the stored key. Returns True if a file was deleted."""
        if not os.path.exists(self.path):
            return False
        os.remove(self.path)
        logger.info("Removed stored API key at %s", self.path)
        return True
