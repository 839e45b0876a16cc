from __future__ import annotations

from collections.abc import Sequence

from relsync.core.result import Result
from relsync.output.console import Style
from relsync.release.batching import search_in_batches
from relsync.release.context import Collaborators, ReconcileContext
from relsync.release.errors import ReleaseError
from relsync.release.model import TrackerIssue
from relsync.release.query import without_fix_version

# Summary feeds the report, issuelinks the "already linked" check.
FILTER_FIELDS = ("summary", "issuelinks")


def filter_issues_without_fix_version(
    ctx: ReconcileContext,
    collab: Collaborators,
    issue_keys: Sequence[str],
    fix_version: str,
) -> Result[list[TrackerIssue], ReleaseError]:
    """Keep the issues of configured projects that do not carry ``fix_version`` yet."""

    def search(batch: tuple[str, ...]) -> Result[list[TrackerIssue], ReleaseError]:
        query = without_fix_version(
            projects=ctx.project_keys,
            issue_keys=batch,
            fix_version=fix_version,
            field=ctx.fix_version_jql,
        )
        collab.console.print(f"search: {query.to_jql()}", Style.DIM)
        return collab.tracker.search_issues(query, FILTER_FIELDS)

    return search_in_batches(issue_keys, batch_size=ctx.batch_size, search=search)
