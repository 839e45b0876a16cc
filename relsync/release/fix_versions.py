from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from relsync.core.result import Err, Result
from relsync.output.console import Style
from relsync.release.context import Collaborators, ReconcileContext
from relsync.release.errors import ReleaseError
from relsync.release.keys import project_for_issue
from relsync.release.model import FixVersionUpdate, ItemFailure, TrackerIssue, TrackerVersion
from relsync.release.registry import VersionRegistry


@dataclass(frozen=True, slots=True)
class FixVersionOutcome:
    updated: tuple[str, ...]
    failures: tuple[ItemFailure, ...]


def apply_fix_version(
    ctx: ReconcileContext,
    collab: Collaborators,
    registry: VersionRegistry,
    issues: Sequence[TrackerIssue],
    fix_version: str,
) -> FixVersionOutcome:
    """Tag every issue with its project's ``fix_version``.

    Each update is independent: a failure is recorded and the next issue is
    processed. Versions are ensured lazily, once per project.
    """
    updated: list[str] = []
    failures: list[ItemFailure] = []
    versions: dict[str, Result[TrackerVersion, ReleaseError]] = {}

    for issue in issues:
        project = project_for_issue(issue.key, ctx.projects)
        if project is None:
            failures.append(ItemFailure(issue.key, "no configured project matches this key"))
            continue

        if project.key not in versions:
            versions[project.key] = registry.ensure_version(project, fix_version)
        version = versions[project.key]
        if isinstance(version, Err):
            failures.append(
                ItemFailure(issue.key, f"version {fix_version} unavailable: {version.error.pretty()}")
            )
            continue

        update = FixVersionUpdate(
            issue_key=issue.key,
            version_id=version.value.id,
            field=ctx.fix_version_field,
        )
        collab.console.print(f"update {issue.key}: fix version {fix_version}", Style.DIM)
        result = collab.tracker.update_issue(issue.key, update.payload())
        if isinstance(result, Err):
            failures.append(ItemFailure(issue.key, result.error.pretty()))
            continue
        updated.append(issue.key)

    return FixVersionOutcome(updated=tuple(updated), failures=tuple(failures))
