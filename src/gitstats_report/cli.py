"""CLI entry point for gitstats-report.

Thin wrapper over ReportAssembler: every command loads the configuration,
runs one operation and writes its result as JSON.
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

import click
from pydantic import BaseModel
from rich.console import Console

from gitstats_report import __version__
from gitstats_report.collect.batch import BatchQueryError
from gitstats_report.collect.polling import PollingExhausted
from gitstats_report.config import Config, load_config
from gitstats_report.github.auth import AuthenticationError, GitHubAuth
from gitstats_report.github.graphql import GraphQLClient, GraphQLError
from gitstats_report.github.http import GitHubClient, GitHubHTTPError
from gitstats_report.logging import setup_logging
from gitstats_report.metrics.contributors import summarize_weekly_commits
from gitstats_report.models import Period
from gitstats_report.report.assembler import ReportAssembler

logger = logging.getLogger(__name__)

console = Console(stderr=True)

T = TypeVar("T")


def to_jsonable(value: Any) -> Any:
    """Convert models (or lists/dicts of them) into JSON-compatible data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    return value


def _emit(value: Any, output: Path | None) -> None:
    text = json.dumps(to_jsonable(value), indent=2)
    if output is None:
        click.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n")
    console.print(f"[green]Wrote {output}[/green]")


def _resolve(config_path: Path, owner: str | None, week: datetime | None) -> tuple[Config, str, Period]:
    cfg = load_config(config_path)
    period = Period.for_week(week.date()) if week else cfg.period.resolve()
    return cfg, owner or cfg.github.owner, period


async def _with_assembler(cfg: Config, operation: Callable[[ReportAssembler], Awaitable[T]]) -> T:
    auth = GitHubAuth(token_env=cfg.github.auth.token_env)
    async with GitHubClient(auth=auth, timeout=cfg.github.timeout, base_url=cfg.github.base_url) as http:
        assembler = ReportAssembler.from_config(cfg, http, GraphQLClient(http))
        result = await operation(assembler)
        usage = http.rate_limit_state
        logger.info(
            "%d API requests, %d rate limit exhaustions", usage.requests_made, usage.rate_limit_hits
        )
        if usage.last_rate_limit is not None:
            logger.debug(
                "Rate limit remaining: %d/%d (%s)",
                usage.last_rate_limit.remaining,
                usage.last_rate_limit.limit,
                usage.last_rate_limit.resource,
            )
        return result


def _run(cfg: Config, operation: Callable[[ReportAssembler], Awaitable[T]]) -> T:
    """Run an assembler operation to completion, aborting on API errors."""
    try:
        return asyncio.run(_with_assembler(cfg, operation))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        raise click.Abort() from None
    except (
        AuthenticationError,
        BatchQueryError,
        GitHubHTTPError,
        GraphQLError,
        PollingExhausted,
    ) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise click.Abort() from e


def common_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every report command."""
    func = click.option(
        "--output",
        "-o",
        type=click.Path(dir_okay=False, path_type=Path),
        default=None,
        help="Write JSON here instead of stdout",
    )(func)
    func = click.option(
        "--week",
        type=click.DateTime(formats=["%Y-%m-%d"]),
        default=None,
        help="Start of the 'next' week (YYYY-MM-DD); overrides the configured period",
    )(func)
    func = click.option("--owner", default=None, help="Override the configured organization")(func)
    func = click.option(
        "--config",
        "-c",
        "config_path",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        required=True,
        help="Path to config.yaml file",
    )(func)
    return func


@click.group()
@click.version_option(version=__version__, prog_name="gitstats-report")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable verbose output")
@click.option("--log-json", is_flag=True, default=False, help="Emit log lines as JSON objects")
@click.pass_context
def main(ctx: click.Context, verbose: bool, log_json: bool) -> None:
    """Weekly contribution reports for GitHub organizations.

    Compares the last two weeks (or any configured pair of windows) across
    repository statistics, pull requests, commits, issues and stars.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose=verbose, json_format=log_json)


@main.command()
@common_options
@click.option("--wait/--no-wait", default=False, help="Poll until every repository's stats are ready")
def report(config_path: Path, owner: str | None, week: datetime | None, output: Path | None, wait: bool) -> None:
    """Build the full contribution report."""
    cfg, owner, period = _resolve(config_path, owner, week)
    console.print(f"[bold]Building report for {owner}[/bold] ({period.previous:%Y-%m-%d} vs {period.next:%Y-%m-%d})")

    result = _run(cfg, lambda assembler: assembler.build_report(owner, period, wait_for_stats=wait))

    if result.pending_repos:
        console.print(f"[yellow]Statistics still pending for: {', '.join(result.pending_repos)}[/yellow]")
    for failure in result.errors:
        console.print(f"[red]{failure.phase} failed for {failure.repo}: {failure.message}[/red]")
    _emit(result, output)


@main.command()
@common_options
def email(config_path: Path, owner: str | None, week: datetime | None, output: Path | None) -> None:
    """Build the email report with fully resolved statistics."""
    cfg, owner, period = _resolve(config_path, owner, week)
    result = _run(cfg, lambda assembler: assembler.build_email_report(owner, period))
    summary = summarize_weekly_commits(result.repos)
    if summary.summary_text:
        console.print(f"Weekly commits {summary.summary_text}")
    _emit({"report": result, "summary": summary}, output)


@main.command()
@common_options
@click.argument("repo")
def stats(config_path: Path, owner: str | None, week: datetime | None, output: Path | None, repo: str) -> None:
    """Probe one repository's contributor statistics once."""
    cfg, owner, period = _resolve(config_path, owner, week)
    _emit(_run(cfg, lambda assembler: assembler.get_repository_stats(owner, repo, period)), output)


@main.command()
@common_options
def activity(config_path: Path, owner: str | None, week: datetime | None, output: Path | None) -> None:
    """Recent pull request activity with comments and commits."""
    cfg, owner, period = _resolve(config_path, owner, week)
    _emit(_run(cfg, lambda assembler: assembler.get_pull_request_activity(owner, period)), output)


@main.command()
@common_options
def commits(config_path: Path, owner: str | None, week: datetime | None, output: Path | None) -> None:
    """Per-author commit history of public repositories."""
    cfg, owner, period = _resolve(config_path, owner, week)
    _emit(_run(cfg, lambda assembler: assembler.get_all_commits(owner, period)), output)


@main.command()
@common_options
@click.argument("repo")
def trends(config_path: Path, owner: str | None, week: datetime | None, output: Path | None, repo: str) -> None:
    """Issue and star trends of one repository."""
    cfg, owner, period = _resolve(config_path, owner, week)
    _emit(_run(cfg, lambda assembler: assembler.get_repository_trends(owner, repo, period)), output)


if __name__ == "__main__":
    main()
