"""Result types for document store reads."""

from __future__ import annotations

from dataclasses import dataclass


class DocumentStoreError(Exception):
    """Transport, auth, or version-conflict failure talking to a document store."""

    def __init__(self, operation: str, target: str, cause: Exception | None = None) -> None:
        self.operation = operation
        self.target = target
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} failed for {target!r}{detail}")
        if cause is not None:
            self.__cause__ = cause


@dataclass(frozen=True)
class DocumentFound:
    """A document that exists, with the token needed to overwrite it safely."""

    path: str
    content: bytes
    version: str

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")


@dataclass(frozen=True)
class DocumentNotFound:
    path: str


ReadResult = DocumentFound | DocumentNotFound
