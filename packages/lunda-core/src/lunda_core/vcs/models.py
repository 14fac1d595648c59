"""Pydantic models for VCS data."""

from __future__ import annotations

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator


class FingerprintError(Exception):
    """Wraps provider-specific lookup failures with context.

    Raised for transport and auth problems. A branch that legitimately does
    not exist is not an error: lookups return ``None`` for it instead.
    """

    def __init__(self, operation: str, target: str, cause: Exception) -> None:
        self.operation = operation
        self.target = target
        super().__init__(f"{operation} failed for {target!r}: {cause}")
        self.__cause__ = cause


class BranchChange(BaseModel):
    """The latest change on a branch, as reported by the VCS."""

    model_config = ConfigDict(frozen=True)

    fingerprint: str = Field(min_length=1, description="Commit SHA of the branch head")
    timestamp: AwareDatetime

    @field_validator("fingerprint")
    @classmethod
    def validate_fingerprint(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("fingerprint cannot be empty or whitespace")
        return v


class RepoRef(BaseModel):
    """An ``owner/repo`` repository reference."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(min_length=1)
    name: str = Field(min_length=1)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, repo_id: str) -> RepoRef:
        """Split ``owner/repo``; raises ValueError if the format is invalid."""
        parts = (repo_id or "").strip().split("/")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise ValueError(f"Invalid repo identifier '{repo_id}': expected 'owner/repo'")
        return cls(owner=parts[0], name=parts[1])
