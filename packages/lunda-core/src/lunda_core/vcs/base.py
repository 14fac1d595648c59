"""Abstract branch source interface for Lunda."""

from abc import ABC, abstractmethod

from lunda_core.vcs.models import BranchChange


class VCSBranchSource(ABC):
    """Abstract base class for branch fingerprint sources.

    The only way Lunda observes a repository. Everything it knows about a
    branch comes from polling these two calls.
    """

    @abstractmethod
    async def list_branch_names(self) -> list[str]:
        """List every branch name in the repository, across all pages."""
        ...

    @abstractmethod
    async def latest_change(self, branch: str) -> BranchChange | None:
        """Return the branch's head commit SHA and time.

        Returns None if the branch does not exist or has no commits. Raises
        FingerprintError on transport or auth failures.
        """
        ...
