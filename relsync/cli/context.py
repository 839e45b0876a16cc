from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

import typer

from relsync.core.config import Config, load_config
from relsync.core.errors import ErrorCode
from relsync.core.result import Err
from relsync.infra.github import GhClient, ensure_gh_available
from relsync.infra.http import RealHttpClient
from relsync.infra.jira import JiraClient
from relsync.infra.miner import ScriptIssueKeyMiner
from relsync.infra.timeouts import JIRA_TIMEOUT_SECONDS
from relsync.output.console import ConsoleProtocol
from relsync.release.context import Collaborators, MasterProject, ReconcileContext
from relsync.release.model import TrackerProject


@dataclass(frozen=True, slots=True)
class CLIOptions:
    config_path: Path
    workspace: Path


def exit_with(message: str, *, code: ErrorCode) -> NoReturn:
    typer.echo(f"error: {message}", err=True)
    raise typer.Exit(code=int(code))


def load_config_or_exit(path: Path, env: Mapping[str, str] | None = None) -> Config:
    result = load_config(path, env)
    if isinstance(result, Err):
        exit_with(result.error.message, code=ErrorCode.CONFIG_ERROR)
    return result.value


def reconcile_context(config: Config, workspace: Path) -> ReconcileContext:
    master = config.jira.master
    return ReconcileContext(
        tag_prefix=config.tag_prefix,
        projects=tuple(TrackerProject(id=p.id, key=p.key) for p in config.jira.projects),
        master=MasterProject(
            project=TrackerProject(id=master.id, key=master.key),
            issue_type=master.issue_type,
            extra_fields=master.extra_fields,
        ),
        workspace=workspace,
        repo_url=f"{config.github.server_url.rstrip('/')}/{config.github.repo}",
        branch_token=config.branch_token,
        batch_size=config.jira.batch_size,
        fix_version_field=config.jira.fix_version_field,
        fix_version_jql=config.jira.fix_version_jql,
        link_type=config.jira.link_type,
        update_release_notes=config.reconcile.update_release_notes,
        update_master_ticket=config.reconcile.update_master_ticket,
    )


def build_collaborators(
    config: Config,
    workspace: Path,
    console: ConsoleProtocol,
    env: Mapping[str, str] | None = None,
) -> Collaborators:
    env = os.environ if env is None else env
    user = env.get("JIRA_USER", "").strip()
    token = env.get("JIRA_TOKEN", "").strip()
    if not user or not token:
        exit_with("JIRA_USER and JIRA_TOKEN must be set", code=ErrorCode.CONFIG_ERROR)

    gh = ensure_gh_available()
    if isinstance(gh, Err):
        exit_with(gh.error.pretty(), code=ErrorCode.CONFIG_ERROR)

    http = RealHttpClient(timeout=JIRA_TIMEOUT_SECONDS, basic_auth=(user, token))
    return Collaborators(
        tracker=JiraClient(base_url=config.jira.base_url, http=http),
        source_control=GhClient(repo=config.github.repo, workspace=workspace),
        miner=ScriptIssueKeyMiner(config.miner.script),
        console=console,
    )
