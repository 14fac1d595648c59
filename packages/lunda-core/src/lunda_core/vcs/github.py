"""GitHub branch source using PyGithub."""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import timezone
from functools import cached_property

import requests
from github import Auth, Github, GithubException, UnknownObjectException
from github.Repository import Repository

from lunda_core.vcs.base import VCSBranchSource
from lunda_core.vcs.models import BranchChange, FingerprintError, RepoRef

logger = logging.getLogger(__name__)


def github_client(token: str) -> Github:
    return Github(auth=Auth.Token(token))


class GitHubBranchSource(VCSBranchSource):
    """GitHub implementation of VCSBranchSource using PyGithub.

    PyGithub is synchronous, so all blocking calls are wrapped
    with asyncio.to_thread() to avoid blocking the event loop.
    """

    def __init__(self, repo: RepoRef, token: str | None = None, client: Github | None = None):
        self._repo_ref = repo
        self._token = token or os.environ.get("GITHUB_TOKEN", "")
        if client is None and not self._token:
            raise ValueError(
                "GitHub token required. Pass token= or set GITHUB_TOKEN env var."
            )
        self._injected_client = client

    @cached_property
    def _client(self) -> Github:
        if self._injected_client is not None:
            return self._injected_client
        return github_client(self._token)

    @cached_property
    def _repo(self) -> Repository:
        return self._client.get_repo(self._repo_ref.full_name)

    def _resolve_repo(self) -> Repository:
        # A 404 here means a wrong or hidden repository, never a deleted branch
        try:
            return self._repo
        except (GithubException, requests.RequestException) as e:
            raise FingerprintError("get repo", self._repo_ref.full_name, e) from e

    async def list_branch_names(self) -> list[str]:
        """List all branch names; PyGithub follows the pagination links."""

        def _sync() -> list[str]:
            repo = self._resolve_repo()
            try:
                return [branch.name for branch in repo.get_branches()]
            except (GithubException, requests.RequestException) as e:
                raise FingerprintError("list branches", self._repo_ref.full_name, e) from e

        return await asyncio.to_thread(_sync)

    async def latest_change(self, branch: str) -> BranchChange | None:
        """Fetch the head commit of *branch*, or None if the branch is gone."""

        def _sync() -> BranchChange | None:
            repo = self._resolve_repo()
            try:
                head = repo.get_branch(branch).commit
            except UnknownObjectException:
                logger.debug("Branch %s not found in %s", branch, self._repo_ref.full_name)
                return None
            except GithubException as e:
                if e.status == 404:
                    return None
                raise FingerprintError("latest change", branch, e) from e
            except requests.RequestException as e:
                raise FingerprintError("latest change", branch, e) from e

            committer = head.commit.committer
            if committer is None or committer.date is None:
                return None
            committed = committer.date
            if committed.tzinfo is None:
                # Older PyGithub releases return naive UTC datetimes
                committed = committed.replace(tzinfo=timezone.utc)
            return BranchChange(fingerprint=head.sha, timestamp=committed)

        return await asyncio.to_thread(_sync)
