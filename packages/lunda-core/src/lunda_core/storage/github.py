"""Document store backed by the GitHub contents API."""

from __future__ import annotations

import asyncio
import logging
from functools import cached_property

import requests
from github import Github, GithubException, UnknownObjectException
from github.Repository import Repository

from lunda_core.storage.base import DocumentStore
from lunda_core.storage.models import DocumentFound, DocumentNotFound, DocumentStoreError, ReadResult
from lunda_core.vcs.github import github_client
from lunda_core.vcs.models import RepoRef

logger = logging.getLogger(__name__)

DEFAULT_COMMIT_MESSAGE = "chore(lunda): update tracked document"


class GitHubDocumentStore(DocumentStore):
    """Reads and commits files on the repository's default branch.

    The blob SHA of the file serves as the version token, so a write based
    on a stale read is rejected by GitHub instead of overwriting.
    """

    def __init__(self, repo: RepoRef, token: str = "", client: Github | None = None):
        if client is None and not token:
            raise ValueError("GitHub token required for the contents API store.")
        self._repo_ref = repo
        self._token = token
        self._injected_client = client

    @cached_property
    def _repo(self) -> Repository:
        client = self._injected_client or github_client(self._token)
        return client.get_repo(self._repo_ref.full_name)

    def _resolve_repo(self) -> Repository:
        # A 404 here means a wrong or hidden repository, never a missing document
        try:
            return self._repo
        except (GithubException, requests.RequestException) as e:
            raise DocumentStoreError("get repo", self._repo_ref.full_name, e) from e

    async def read(self, path: str) -> ReadResult:
        def _sync() -> ReadResult:
            repo = self._resolve_repo()
            try:
                content = repo.get_contents(path)
            except UnknownObjectException:
                return DocumentNotFound(path=path)
            except GithubException as e:
                if e.status == 404:
                    return DocumentNotFound(path=path)
                raise DocumentStoreError("read", path, e) from e
            except requests.RequestException as e:
                raise DocumentStoreError("read", path, e) from e
            # get_contents returns a list for directories
            if isinstance(content, list):
                raise DocumentStoreError("read", path, ValueError("path is a directory"))
            return DocumentFound(path=path, content=content.decoded_content, version=content.sha)

        return await asyncio.to_thread(_sync)

    async def write(
        self,
        path: str,
        content: bytes,
        *,
        expected_version: str | None = None,
        message: str = "",
    ) -> str:
        message = message or DEFAULT_COMMIT_MESSAGE

        def _sync() -> str:
            repo = self._resolve_repo()
            try:
                if expected_version is None:
                    result = repo.create_file(path, message, content)
                else:
                    result = repo.update_file(path, message, content, expected_version)
            except (GithubException, requests.RequestException) as e:
                raise DocumentStoreError("write", path, e) from e
            return result["content"].sha

        new_version = await asyncio.to_thread(_sync)
        logger.debug("Committed %s (%s)", path, new_version)
        return new_version
