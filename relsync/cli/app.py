from __future__ import annotations

import json
import os
from pathlib import Path

import typer

from relsync import __version__
from relsync.cli.context import (
    CLIOptions,
    build_collaborators,
    exit_with,
    load_config_or_exit,
    reconcile_context,
)
from relsync.cli.report import exit_code_for, print_report, release_error_code
from relsync.core.config import DEFAULT_CONFIG_FILE
from relsync.core.errors import ErrorCode
from relsync.core.result import Err
from relsync.core.structured import as_str_dict
from relsync.output.console import RichConsole
from relsync.release.events import PublishedEvent, PushEvent, ReleaseEvent, event_from_github
from relsync.release.reconciler import reconcile

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Keep Jira fix versions and GitHub releases in sync.",
)


def _options(ctx: typer.Context) -> CLIOptions:
    options = ctx.obj
    if not isinstance(options, CLIOptions):
        exit_with("missing CLI options", code=ErrorCode.INTERNAL_ERROR)
    return options


def _run(options: CLIOptions, event: ReleaseEvent) -> None:
    console = RichConsole()
    config = load_config_or_exit(options.config_path)
    collab = build_collaborators(config, options.workspace, console)
    report = reconcile(event, reconcile_context(config, options.workspace), collab)
    print_report(report, console)
    code = exit_code_for(report)
    if not code.is_success:
        raise typer.Exit(code=int(code))


@app.command()
def push(
    ctx: typer.Context,
    ref: str = typer.Option(..., "--ref", envvar="GITHUB_REF", help="Pushed ref, e.g. refs/heads/release/10.0"),
) -> None:
    """Apply the pending fix version after a push to a release branch."""
    _run(_options(ctx), PushEvent(ref=ref))


@app.command()
def published(
    ctx: typer.Context,
    tag: str = typer.Option(..., "--tag", help="Published tag, e.g. v10.0.1"),
    target: str = typer.Option(..., "--target", help="Release target branch"),
    prerelease: bool = typer.Option(False, "--prerelease"),
    draft: bool = typer.Option(False, "--draft"),
    release_id: int | None = typer.Option(None, "--release-id"),
    revision: str | None = typer.Option(None, "--revision", envvar="GITHUB_SHA"),
) -> None:
    """Reconcile a published release and prepare the next patch version."""
    _run(
        _options(ctx),
        PublishedEvent(
            tag_name=tag,
            target_branch=target,
            prerelease=prerelease,
            draft=draft,
            release_id=release_id,
            revision=revision,
        ),
    )


@app.command()
def event(
    ctx: typer.Context,
    event_name: str = typer.Option(..., "--event-name", envvar="GITHUB_EVENT_NAME"),
    event_path: Path = typer.Option(..., "--event-path", envvar="GITHUB_EVENT_PATH"),
) -> None:
    """Dispatch a GitHub Actions event payload (push or release published)."""
    try:
        payload_obj: object = json.loads(event_path.read_text(encoding="utf-8"))
    except OSError as e:
        exit_with(f"cannot read event payload: {e}", code=ErrorCode.USER_ERROR)
    except json.JSONDecodeError as e:
        exit_with(f"invalid event payload: {e}", code=ErrorCode.USER_ERROR)

    payload = as_str_dict(payload_obj)
    if payload is None:
        exit_with("event payload must be a JSON object", code=ErrorCode.USER_ERROR)

    revision = os.environ.get("GITHUB_SHA") or None
    parsed = event_from_github(event_name, payload, revision=revision)
    if isinstance(parsed, Err):
        exit_with(parsed.error.pretty(), code=release_error_code(parsed.error.kind))
    if parsed.value is None:
        typer.echo(f"ignoring {event_name} event")
        return

    _run(_options(ctx), parsed.value)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_print_version,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path = typer.Option(
        Path(DEFAULT_CONFIG_FILE),
        "--config",
        envvar="RELSYNC_CONFIG",
        help="Path to relsync.toml",
    ),
    workspace: Path = typer.Option(
        Path("."),
        "--workspace",
        help="Git checkout the miner script runs in",
    ),
) -> None:
    try:
        root = workspace.expanduser().resolve()
    except OSError as e:
        exit_with(f"invalid --workspace: {e}", code=ErrorCode.USER_ERROR)
    if not root.is_dir():
        exit_with(f"--workspace '{root}' is not a directory", code=ErrorCode.USER_ERROR)

    config_path = config.expanduser()
    if not config_path.is_absolute():
        config_path = root / config_path
    ctx.obj = CLIOptions(config_path=config_path, workspace=root)


def main() -> None:
    app()
