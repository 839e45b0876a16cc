from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from relsync.core.result import Err, Ok, Result
from relsync.output.console import Style
from relsync.release.context import Collaborators, ReconcileContext
from relsync.release.errors import ReleaseError
from relsync.release.model import IssueLinkRequest, ItemFailure, TrackerIssue
from relsync.release.query import IssueQuery


@dataclass(frozen=True, slots=True)
class LinkOutcome:
    master_key: str | None
    linked: tuple[str, ...]
    failures: tuple[ItemFailure, ...] = ()


def find_master_ticket_key(
    ctx: ReconcileContext, collab: Collaborators, fix_version: str
) -> Result[str | None, ReleaseError]:
    """Return the master ticket key for ``fix_version``.

    Only an unambiguous match counts: zero or several hits give None.
    """
    query = IssueQuery(
        projects=(ctx.master.project.key,),
        fix_version_in=fix_version,
        fix_version_field=ctx.fix_version_jql,
    )
    collab.console.print(f"master ticket query: {query.to_jql()}", Style.DIM)
    issues = collab.tracker.search_issues(query, ["summary"])
    if isinstance(issues, Err):
        return issues
    if len(issues.value) != 1:
        collab.console.print(
            f"master ticket for {fix_version}: {len(issues.value)} match(es), none used", Style.DIM
        )
        return Ok(None)
    return Ok(issues.value[0].key)


def link_issues(
    ctx: ReconcileContext,
    collab: Collaborators,
    issues: Sequence[TrackerIssue],
    fix_version: str,
    *,
    is_major: bool,
) -> LinkOutcome:
    """Link each issue to the release master ticket, at most once.

    Major releases have no master ticket links. Issues already carrying an
    outward link to the master ticket are left alone.
    """
    if is_major or not issues:
        return LinkOutcome(master_key=None, linked=())

    master = find_master_ticket_key(ctx, collab, fix_version)
    if isinstance(master, Err):
        return LinkOutcome(
            master_key=None,
            linked=(),
            failures=(ItemFailure(fix_version, f"master ticket lookup failed: {master.error.pretty()}"),),
        )
    master_key = master.value
    if master_key is None:
        return LinkOutcome(master_key=None, linked=())

    linked: list[str] = []
    failures: list[ItemFailure] = []
    for issue in issues:
        if issue.links_outward_to(master_key):
            continue
        collab.console.print(f"link {issue.key} -> {master_key}", Style.DIM)
        result = collab.tracker.create_issue_link(
            IssueLinkRequest(link_type=ctx.link_type, inward_key=issue.key, outward_key=master_key)
        )
        if isinstance(result, Err):
            failures.append(ItemFailure(issue.key, result.error.pretty()))
            continue
        linked.append(issue.key)

    return LinkOutcome(master_key=master_key, linked=tuple(linked), failures=tuple(failures))
