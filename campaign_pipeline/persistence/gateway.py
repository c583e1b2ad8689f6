"""Persistence gateway - read/write documents by key.

Provides file-based and in-memory gateways for development/testing.
The SQL-backed gateway lives in ``sql_gateway``.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from campaign_pipeline.domain.errors import PersistenceError

logger = logging.getLogger(__name__)


class DocumentGateway(Protocol):
    """Protocol for document persistence."""

    async def put(self, key: str, document: bytes) -> None:
        """Store a document, replacing any existing one."""
        ...

    async def get(self, key: str) -> Optional[bytes]:
        """Return the document, or None if not found."""
        ...

    async def delete(self, key: str) -> None:
        """Remove a document; missing keys are ignored."""
        ...

    async def exists(self, key: str) -> bool:
        """Check if a document exists."""
        ...


def encode_document(data: Dict[str, Any]) -> bytes:
    """Serialize a JSON-compatible dict to document bytes."""
    return json.dumps(data, ensure_ascii=False, sort_keys=True).encode("utf-8")


def decode_document(document: bytes, key: str) -> Dict[str, Any]:
    """Parse document bytes into a dict.

    Raises:
        PersistenceError: the stored bytes are not a JSON object.
    """
    try:
        data = json.loads(document.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise PersistenceError(f"Corrupt document at {key}: {e}", key, "decode") from e
    if not isinstance(data, dict):
        raise PersistenceError(f"Document at {key} is not an object", key, "decode")
    return data


class FileDocumentGateway:
    """File-based document storage: each key segment becomes a directory."""

    SUFFIX = ".json"

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _get_path(self, key: str) -> Path:
        """Get path for a key."""
        parts = key.split("/")
        if any(part in ("", ".", "..") for part in parts):
            raise PersistenceError(f"Invalid document key: {key!r}", key, "resolve")
        return self.base_dir.joinpath(*parts).with_name(parts[-1] + self.SUFFIX)

    async def put(self, key: str, document: bytes) -> None:
        """Write a document; readers never observe a half-written file."""
        path = self._get_path(key)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "wb") as f:
                f.write(document)
            os.replace(tmp_path, path)
        except OSError as e:
            raise PersistenceError(f"Failed to write {key}: {e}", key, "put") from e
        logger.debug(f"Wrote document {key} ({len(document)} bytes)")

    async def get(self, key: str) -> Optional[bytes]:
        path = self._get_path(key)
        if not path.exists():
            return None
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            raise PersistenceError(f"Failed to read {key}: {e}", key, "get") from e

    async def delete(self, key: str) -> None:
        path = self._get_path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Failed to delete {key}: {e}", key, "delete") from e
        logger.debug(f"Deleted document {key}")

    async def exists(self, key: str) -> bool:
        return self._get_path(key).exists()

    async def list_keys(self, prefix: str = "") -> list:
        """List stored keys under a prefix."""
        results = []
        for path in self.base_dir.rglob(f"*{self.SUFFIX}"):
            relative = path.relative_to(self.base_dir).as_posix()
            key = relative[: -len(self.SUFFIX)]
            if key.startswith(prefix):
                results.append(key)
        return sorted(results)


class InMemoryDocumentGateway:
    """In-memory document storage for testing."""

    def __init__(self):
        self._documents: Dict[str, bytes] = {}

    async def put(self, key: str, document: bytes) -> None:
        self._documents[key] = bytes(document)

    async def get(self, key: str) -> Optional[bytes]:
        return self._documents.get(key)

    async def delete(self, key: str) -> None:
        self._documents.pop(key, None)

    async def exists(self, key: str) -> bool:
        return key in self._documents

    async def list_keys(self, prefix: str = "") -> list:
        return sorted(k for k in self._documents if k.startswith(prefix))
