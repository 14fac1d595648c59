"""Data models for the persisted tracking snapshot."""

from __future__ import annotations

from pydantic import AliasChoices, AwareDatetime, BaseModel, ConfigDict, Field, field_validator


class SnapshotFormatError(ValueError):
    """The stored tracking document cannot be used as a snapshot."""


class BranchRecord(BaseModel):
    """One tracked branch and its cached time-to-stale estimate.

    ``remaining_days`` is only valid as of ``computed_at``; it keeps shrinking
    in real time until something recomputes it.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    fingerprint: str = Field(
        min_length=1,
        validation_alias=AliasChoices("fingerprint", "lastCommitSha"),
        serialization_alias="fingerprint",
    )
    last_change_time: AwareDatetime = Field(
        validation_alias=AliasChoices("lastChangeTime", "lastCommitDate"),
        serialization_alias="lastChangeTime",
    )
    remaining_days: int = Field(
        validation_alias=AliasChoices("remainingDays", "mValue"),
        serialization_alias="remainingDays",
    )
    computed_at: AwareDatetime = Field(
        validation_alias=AliasChoices("computedAt", "calculatedAt"),
        serialization_alias="computedAt",
    )

    @property
    def sort_key(self) -> tuple[int, str]:
        return (self.remaining_days, self.name)


class Snapshot(BaseModel):
    """Every tracked branch of one repository, soonest-to-stale first."""

    model_config = ConfigDict(populate_by_name=True)

    threshold: int = Field(gt=0)
    last_full_scan_time: AwareDatetime = Field(
        validation_alias=AliasChoices("lastFullScanTime", "lastFullScan"),
        serialization_alias="lastFullScanTime",
    )
    records: list[BranchRecord] = Field(
        default_factory=list,
        validation_alias=AliasChoices("branches", "records"),
        serialization_alias="branches",
    )

    @field_validator("records")
    @classmethod
    def validate_unique_names(cls, v: list[BranchRecord]) -> list[BranchRecord]:
        seen: set[str] = set()
        for record in v:
            if record.name in seen:
                raise ValueError(f"duplicate branch record: {record.name!r}")
            seen.add(record.name)
        return v

    @property
    def head(self) -> BranchRecord | None:
        return self.records[0] if self.records else None

    def names(self) -> set[str]:
        return {r.name for r in self.records}

    def sort_records(self) -> None:
        """Sort in place by remaining days, ties broken by name."""
        self.records.sort(key=lambda r: r.sort_key)

    def is_sorted(self) -> bool:
        keys = [r.sort_key for r in self.records]
        return all(a < b for a, b in zip(keys, keys[1:]))


class ForgottenBranch(BaseModel):
    """A branch reported as having crossed the inactivity threshold."""

    name: str
    last_change_time: AwareDatetime
    days_elapsed: int
