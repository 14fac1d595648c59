"""Abstract document store interface."""

from abc import ABC, abstractmethod

from lunda_core.storage.models import ReadResult


class DocumentStore(ABC):
    """Versioned read/write access to small text documents.

    Used for the tracking snapshot and for the workflow file whose cron
    expression is rewritten after each run.
    """

    @abstractmethod
    async def read(self, path: str) -> ReadResult:
        """Return DocumentFound or DocumentNotFound; raise DocumentStoreError otherwise."""
        ...

    @abstractmethod
    async def write(
        self,
        path: str,
        content: bytes,
        *,
        expected_version: str | None = None,
        message: str = "",
    ) -> str:
        """Create or replace *path* and return the new version token.

        Args:
            expected_version: Version from the preceding read, or None when the
                document did not exist.
            message: Commit message, for stores backed by version control.
        """
        ...
