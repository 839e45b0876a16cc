from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from relsync.output.console import ConsoleProtocol
from relsync.release.batching import DEFAULT_ISSUE_BATCH_SIZE
from relsync.release.contracts import IssueKeyMiner, SourceControlClient, TrackerClient
from relsync.release.model import TrackerProject


@dataclass(frozen=True, slots=True)
class MasterProject:
    project: TrackerProject
    issue_type: str
    extra_fields: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ReconcileContext:
    """Everything a run needs to know, passed explicitly to each step.

    ``projects`` is ordered: an issue belongs to the first project whose key
    prefixes the issue key.
    """

    tag_prefix: str
    projects: tuple[TrackerProject, ...]
    master: MasterProject
    workspace: Path
    repo_url: str
    branch_token: str = "release"
    batch_size: int = DEFAULT_ISSUE_BATCH_SIZE
    fix_version_field: str = "fixVersions"
    fix_version_jql: str = "fixVersion"
    link_type: str = "Drives"
    update_release_notes: bool = True
    update_master_ticket: bool = True

    @property
    def project_keys(self) -> tuple[str, ...]:
        return tuple(p.key for p in self.projects)


@dataclass(frozen=True, slots=True)
class Collaborators:
    tracker: TrackerClient
    source_control: SourceControlClient
    miner: IssueKeyMiner
    console: ConsoleProtocol
