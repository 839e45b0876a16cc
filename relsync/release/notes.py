from __future__ import annotations

from collections.abc import Sequence

from relsync.core.result import Err, Ok, Result
from relsync.release.context import Collaborators, ReconcileContext
from relsync.release.errors import ReleaseError
from relsync.release.model import TrackerIssue
from relsync.release.query import with_fix_version


def render_release_note(issues: Sequence[TrackerIssue]) -> str:
    """One ``- <key> <summary>`` line per issue, in input order."""
    return "\n".join(_note_line(issue) for issue in issues)


def _note_line(issue: TrackerIssue) -> str:
    if issue.summary:
        return f"- {issue.key} {issue.summary}"
    return f"- {issue.key}"


def build_release_note(
    ctx: ReconcileContext, collab: Collaborators, fix_version: str
) -> Result[str, ReleaseError]:
    query = with_fix_version(
        projects=ctx.project_keys, fix_version=fix_version, field=ctx.fix_version_jql
    )
    issues = collab.tracker.search_issues(query, ["summary"])
    if isinstance(issues, Err):
        return issues
    return Ok(render_release_note(issues.value))
