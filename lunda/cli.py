"""CLI entry point for Lunda."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

from lunda_core.config import LundaConfig, load_config
from lunda_core.config.loader import DEFAULT_CONFIG_TEMPLATE
from lunda_core.freshness import days_since, remaining_days
from lunda_core.runner import BranchMonitor, RunResult
from lunda_core.storage import DocumentStoreError, create_document_store
from lunda_core.tracking import ForgottenBranch, load_snapshot
from lunda_core.vcs import FingerprintError, create_branch_source

app = typer.Typer(
    name="lunda",
    help="Find forgotten branches without re-scanning the whole repo on every run.",
)

config_app = typer.Typer(help="Manage Lunda configuration.")
app.add_typer(config_app, name="config")

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

# Global state
_config: LundaConfig | None = None


def _get_config() -> LundaConfig:
    if _config is None:
        return load_config()
    return _config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=_LOG_LEVELS.get(level, logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False, rich_tracebacks=False)],
        force=True,
    )


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to lunda.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _display_forgotten(forgotten: list[ForgottenBranch]) -> None:
    if not forgotten:
        rprint("[green]No forgotten branches found. Your repo is clean![/green]")
        return
    table = Table(title=f"Forgotten branches ({len(forgotten)})")
    table.add_column("Branch", style="cyan")
    table.add_column("Days idle", justify="right", style="red")
    table.add_column("Last commit", style="dim")
    for branch in forgotten:
        table.add_row(
            branch.name,
            str(branch.days_elapsed),
            branch.last_change_time.isoformat(),
        )
    rprint(table)


def _display_run_summary(result: RunResult) -> None:
    rprint(
        f"[dim]Mode:[/dim] {result.mode.value} ({result.reason}), "
        f"{result.lookups} lookup(s), {len(result.snapshot.records)} branch(es) tracked"
    )
    if result.next_wakeup_days is None:
        rprint("[dim]No branches to track; no wake-up scheduled.[/dim]")
    else:
        rprint(
            f"[dim]Next check in[/dim] {result.next_wakeup_days} day(s) "
            f"[dim]cron:[/dim] {result.next_cron}"
        )
    if result.cron_update is not None:
        rprint(f"[dim]Workflow schedule:[/dim] {result.cron_update.value}")


def _apply_overrides(
    cfg: LundaConfig,
    threshold: int | None,
    repo: str | None,
    workflow_path: str | None,
    tracking_path: str | None,
    no_schedule: bool,
) -> LundaConfig:
    data = cfg.model_dump()
    if threshold is not None:
        data["threshold_days"] = threshold
    if repo is not None:
        data["repository"] = repo
    if workflow_path is not None:
        data["schedule"]["workflow_path"] = workflow_path
    if tracking_path is not None:
        data["tracking"]["path"] = tracking_path
    if no_schedule:
        data["schedule"]["enabled"] = False
    return LundaConfig(**data)


@app.command()
def check(
    threshold: Annotated[
        int | None, typer.Option("--threshold", "-t", min=1, help="Days without commits before a branch is forgotten")
    ] = None,
    repo: Annotated[str | None, typer.Option("--repo", help="Repository as owner/repo")] = None,
    workflow_path: Annotated[
        str | None, typer.Option("--workflow-path", help="Workflow file whose cron gets rewritten")
    ] = None,
    tracking_path: Annotated[
        str | None, typer.Option("--tracking-path", help="Where the tracking data is stored")
    ] = None,
    local: Annotated[
        Path | None, typer.Option("--local", help="Read/write documents in this checkout instead of via the API")
    ] = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Report without writing anything")] = False,
    no_schedule: Annotated[bool, typer.Option("--no-schedule", help="Do not rewrite the workflow cron")] = False,
) -> None:
    """Report forgotten branches and schedule the next check."""
    try:
        cfg = _apply_overrides(
            _get_config(), threshold, repo, workflow_path, tracking_path, no_schedule
        )
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    _setup_logging(cfg.log_level)

    if not cfg.repository:
        rprint("[red]Error:[/red] No repository set. Use --repo or set GITHUB_REPOSITORY.")
        raise typer.Exit(1)

    rprint(f"[bold]Scanning[/bold] {cfg.repository} for forgotten branches (threshold: {cfg.threshold_days} days)...")
    try:
        source = create_branch_source(cfg.vcs, cfg.repository)
        store = create_document_store(cfg.vcs, cfg.repository, local)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    monitor = BranchMonitor.from_config(cfg, source, store)
    try:
        result = asyncio.run(monitor.run(dry_run=dry_run))
    except (FingerprintError, DocumentStoreError) as e:
        rprint(f"[red]Lunda encountered an error:[/red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        rprint(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)

    _display_forgotten(result.forgotten)
    _display_run_summary(result)


@app.command()
def status(
    repo: Annotated[str | None, typer.Option("--repo", help="Repository as owner/repo")] = None,
    local: Annotated[
        Path | None, typer.Option("--local", help="Read the tracking data from this checkout")
    ] = None,
) -> None:
    """Show the tracked branches, soonest-to-stale first."""
    cfg = _get_config()
    repository = repo or cfg.repository
    if local is None and not repository:
        rprint("[red]Error:[/red] No repository set. Use --repo, --local, or set GITHUB_REPOSITORY.")
        raise typer.Exit(1)

    try:
        store = create_document_store(cfg.vcs, repository, local)
        loaded = asyncio.run(load_snapshot(store, cfg.tracking.path))
    except (ValueError, DocumentStoreError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        rprint(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)

    snapshot = loaded.snapshot
    if snapshot is None:
        reason = loaded.error or f"nothing at {cfg.tracking.path}"
        rprint(f"[yellow]No tracking data ({reason}). Run `lunda check` first.[/yellow]")
        return

    now = datetime.now(timezone.utc)
    table = Table(title=f"Tracked branches ({len(snapshot.records)})")
    table.add_column("Branch", style="cyan")
    table.add_column("Remaining", justify="right")
    table.add_column("Idle (days)", justify="right")
    table.add_column("Last commit", style="dim")
    table.add_column("SHA", style="dim")
    for record in snapshot.records:
        left = remaining_days(record.last_change_time, snapshot.threshold, now)
        style = "red" if left <= 0 else "green"
        table.add_row(
            record.name,
            f"[{style}]{left}[/{style}]",
            str(days_since(record.last_change_time, now)),
            record.last_change_time.isoformat(),
            record.fingerprint[:7],
        )
    rprint(table)
    rprint(
        f"[dim]Threshold:[/dim] {snapshot.threshold} days  "
        f"[dim]Last full scan:[/dim] {snapshot.last_full_scan_time.isoformat()}"
    )
    if snapshot.threshold != cfg.threshold_days:
        rprint(
            f"[yellow]Configured threshold is {cfg.threshold_days}; "
            "the next check will do a full scan.[/yellow]"
        )


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Write a default lunda.yaml in the current directory."""
    dest = Path("lunda.yaml")
    if dest.exists() and not force:
        rprint(f"[yellow]{dest} already exists. Use --force to overwrite.[/yellow]")
        raise typer.Exit(1)
    dest.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created {dest}[/green]")


@config_app.command("show")
def config_show() -> None:
    """Print the effective configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False, sort_keys=False), "yaml"))


if __name__ == "__main__":
    app()
