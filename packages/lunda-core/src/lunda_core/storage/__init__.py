"""Document stores for the tracking snapshot and the workflow file."""

import os
from pathlib import Path

from lunda_core.config.models import VCSConfig
from lunda_core.storage.base import DocumentStore
from lunda_core.storage.github import GitHubDocumentStore
from lunda_core.storage.local import LocalDocumentStore
from lunda_core.storage.models import (
    DocumentFound,
    DocumentNotFound,
    DocumentStoreError,
    ReadResult,
)
from lunda_core.vcs.models import RepoRef


def create_document_store(
    config: VCSConfig, repository: str, local_root: str | Path | None = None
) -> DocumentStore:
    """Create the store for tracking data and the workflow file.

    With *local_root* the documents are files in a checkout; otherwise they
    are read and committed through the GitHub contents API.
    """
    if local_root is not None:
        return LocalDocumentStore(local_root)
    repo = RepoRef.parse(repository)
    token = os.environ.get(config.token_env, "")
    if not token:
        raise ValueError(
            f"VCS token not found. Set the {config.token_env} environment variable."
        )
    return GitHubDocumentStore(repo, token=token)


__all__ = [
    "DocumentFound",
    "DocumentNotFound",
    "DocumentStore",
    "DocumentStoreError",
    "GitHubDocumentStore",
    "LocalDocumentStore",
    "ReadResult",
    "create_document_store",
]
