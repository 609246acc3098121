"""
Key-value persistence for music-vault.

The token store needs a small durable object store: load the whole object,
save the whole object. This module defines that contract (KeyValueStore)
and the JSON file implementation used by the CLI.

File Format:
    {
        "token": {
            "access_token": "...",
            "refresh_token": "...",
            "expires_in": 3600,
            "token_type": "Bearer",
            "scope": "user-read-currently-playing"
        },
        "has_notified_public_availability": true
    }

Atomicity:
    save() writes to a temporary file in the same directory and moves it
    over the target with os.replace(), so a reader sees either the old or
    the new content, never a half-written file.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from music_vault.core.exceptions import TokenStoreError


class KeyValueStore(Protocol):
    """Durable storage for a single JSON-compatible object."""

    def load(self) -> dict[str, Any]:
        ...

    def save(self, data: dict[str, Any]) -> None:
        ...


class JsonFileStore:
    """
    KeyValueStore backed by a JSON file on disk.

    Attributes:
        path: Location of the JSON file. Parent directories are created on
              the first save.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> dict[str, Any]:
        """
        Read the stored object.

        Returns:
            The stored dictionary, or {} if the file does not exist yet.

        Raises:
            TokenStoreError: If the file cannot be read, is not valid JSON,
                             or does not contain a JSON object.
        """
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise TokenStoreError(
                f"Failed to read data file: {e}",
                details={"path": str(self.path), "original_error": str(e)}
            ) from e
        except json.JSONDecodeError as e:
            raise TokenStoreError(
                f"Data file corrupted: invalid JSON at line {e.lineno}",
                details={"path": str(self.path), "line": e.lineno}
            ) from e

        if not isinstance(data, dict):
            raise TokenStoreError(
                "Data file must contain a JSON object",
                details={"path": str(self.path)}
            )
        return data

    def save(self, data: dict[str, Any]) -> None:
        """
        Atomically replace the stored object.

        Raises:
            TokenStoreError: If the data cannot be serialized or written.
        """
        try:
            payload = json.dumps(data, indent=2)
        except (TypeError, ValueError) as e:
            raise TokenStoreError(
                f"Failed to serialize data: {e}",
                details={"path": str(self.path)}
            ) from e

        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())

            # Owner read/write only: the file holds credentials
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise TokenStoreError(
                f"Failed to write data file: {e}",
                details={"path": str(self.path), "original_error": str(e)}
            ) from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
