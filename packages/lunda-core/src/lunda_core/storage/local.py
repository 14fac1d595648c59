"""Document store on the local filesystem, for dry runs and checkouts."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from lunda_core.storage.base import DocumentStore
from lunda_core.storage.models import DocumentFound, DocumentNotFound, DocumentStoreError, ReadResult

logger = logging.getLogger(__name__)


def compute_version(content: bytes) -> str:
    """SHA-256 hash, truncated to the first 12 hex characters."""
    return hashlib.sha256(content).hexdigest()[:12]


class LocalDocumentStore(DocumentStore):
    """Documents are files under *root*; the version token is a content hash."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        # Guard against path traversal escaping root
        if not target.is_relative_to(self.root):
            raise DocumentStoreError("resolve", path, ValueError("path escapes store root"))
        return target

    async def read(self, path: str) -> ReadResult:
        target = self._resolve(path)
        try:
            content = target.read_bytes()
        except FileNotFoundError:
            return DocumentNotFound(path=path)
        except OSError as e:
            raise DocumentStoreError("read", path, e) from e
        return DocumentFound(path=path, content=content, version=compute_version(content))

    async def write(
        self,
        path: str,
        content: bytes,
        *,
        expected_version: str | None = None,
        message: str = "",
    ) -> str:
        target = self._resolve(path)
        current = await self.read(path)
        current_version = current.version if isinstance(current, DocumentFound) else None
        if current_version != expected_version:
            raise DocumentStoreError(
                "write",
                path,
                ValueError(
                    f"version conflict: expected {expected_version}, found {current_version}"
                ),
            )
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            raise DocumentStoreError("write", path, e) from e
        if message:
            logger.debug("%s: %s", path, message)
        return compute_version(content)
