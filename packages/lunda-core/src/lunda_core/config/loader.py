"""YAML config loading with env var expansion and GitHub Action inputs."""

import os
import re
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import LundaConfig

# GitHub Actions exposes `with:` inputs as INPUT_<NAME> variables
ACTION_THRESHOLD_ENV = "INPUT_DAYS_THRESHOLD"
ACTION_WORKFLOW_PATH_ENV = "INPUT_WORKFLOW_PATH"
ACTION_REPOSITORY_ENV = "GITHUB_REPOSITORY"


def load_config(
    cli_path: str | None = None,
    env: Mapping[str, str] | None = None,
) -> LundaConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults.

    GitHub Action inputs found in *env* (default ``os.environ``) override
    whatever the file says.
    """
    env = os.environ if env is None else env
    config_paths = [
        Path(cli_path) if cli_path else None,
        Path("./lunda.yaml"),
        Path.home() / ".lunda" / "config.yaml",
    ]

    raw: dict = {}
    source = "defaults"
    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            if loaded is None:
                continue
            if not isinstance(loaded, dict):
                raise ValueError(f"Invalid config in {path}: expected a mapping")
            raw = _expand_env_vars(loaded, env)
            source = str(path)
            break

    raw = apply_action_inputs(raw, env)
    try:
        return LundaConfig(**raw)
    except ValidationError as e:
        raise ValueError(f"Invalid config in {source}: {e}") from e


def apply_action_inputs(raw: dict, env: Mapping[str, str]) -> dict:
    """Overlay INPUT_* and GITHUB_REPOSITORY values onto a raw config mapping."""
    merged = dict(raw)

    threshold = env.get(ACTION_THRESHOLD_ENV, "").strip()
    if threshold:
        try:
            merged["threshold_days"] = int(threshold)
        except ValueError as e:
            raise ValueError(
                f"{ACTION_THRESHOLD_ENV} must be a positive integer, got {threshold!r}"
            ) from e

    workflow_path = env.get(ACTION_WORKFLOW_PATH_ENV, "").strip()
    if workflow_path:
        schedule = dict(merged.get("schedule") or {})
        schedule["workflow_path"] = workflow_path
        merged["schedule"] = schedule

    repository = env.get(ACTION_REPOSITORY_ENV, "").strip()
    if repository and not merged.get("repository"):
        merged["repository"] = repository

    return merged


def _expand_env_vars(obj: object, env: Mapping[str, str]) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: env.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v, env) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v, env) for v in obj]
    return obj


# Default YAML template for `lunda config init`
DEFAULT_CONFIG_TEMPLATE = """\
# lunda.yaml

# Days without a commit before a branch counts as forgotten
threshold_days: 90

# Repository to watch (defaults to $GITHUB_REPOSITORY inside Actions)
# repository: "owner/repo"

# Never reported, never tracked
protected_branches:
  - main
  - master

# VCS Provider
vcs:
  provider: "github"
  token_env: "GITHUB_TOKEN"

# Tracking document, stored in the repository itself
tracking:
  path: "lunda-tracking.json"
  track_new_branches: false    # list branches on every run to pick up new ones

# Workflow whose cron gets rewritten to the next wake-up
schedule:
  enabled: true
  workflow_path: ".github/workflows/lunda.yml"

# Logging
log_level: "info"              # debug | info | warn | error
"""
