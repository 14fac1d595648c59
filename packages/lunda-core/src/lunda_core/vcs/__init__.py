"""Branch sources for Lunda."""

import os

from lunda_core.config.models import VCSConfig
from lunda_core.vcs.base import VCSBranchSource
from lunda_core.vcs.github import GitHubBranchSource
from lunda_core.vcs.models import BranchChange, FingerprintError, RepoRef


def create_branch_source(config: VCSConfig, repository: str) -> VCSBranchSource:
    """Create a branch source from config.

    Resolves the token from the environment variable named in config.token_env.
    """
    if config.provider != "github":
        raise ValueError(
            f"Unsupported VCS provider: {config.provider!r}. "
            "Currently only 'github' is supported."
        )
    repo = RepoRef.parse(repository)
    token = os.environ.get(config.token_env, "")
    if not token:
        raise ValueError(
            f"VCS token not found. Set the {config.token_env} environment variable."
        )
    return GitHubBranchSource(repo, token=token)


__all__ = [
    "BranchChange",
    "FingerprintError",
    "GitHubBranchSource",
    "RepoRef",
    "VCSBranchSource",
    "create_branch_source",
]
