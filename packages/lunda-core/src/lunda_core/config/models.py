from typing import Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_THRESHOLD_DAYS = 90
DEFAULT_WORKFLOW_PATH = ".github/workflows/lunda.yml"
DEFAULT_TRACKING_PATH = "lunda-tracking.json"


class VCSConfig(BaseModel):
    provider: Literal["github"] = "github"
    token_env: str = "GITHUB_TOKEN"


class TrackingConfig(BaseModel):
    path: str = DEFAULT_TRACKING_PATH
    track_new_branches: bool = False


class ScheduleConfig(BaseModel):
    enabled: bool = True
    workflow_path: str = DEFAULT_WORKFLOW_PATH


class LundaConfig(BaseModel):
    threshold_days: int = Field(default=DEFAULT_THRESHOLD_DAYS, gt=0)
    repository: str = ""
    protected_branches: list[str] = Field(default_factory=lambda: ["main", "master"])
    vcs: VCSConfig = Field(default_factory=VCSConfig)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"

    @field_validator("repository")
    @classmethod
    def validate_repository(cls, v: str) -> str:
        v = v.strip()
        if v and (v.count("/") != 1 or v.startswith("/") or v.endswith("/")):
            raise ValueError(f"repository must look like 'owner/repo', got {v!r}")
        return v
