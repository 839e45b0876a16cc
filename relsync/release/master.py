"""Master ticket creation and release summary."""

from __future__ import annotations

from dataclasses import dataclass

from relsync.core.result import Err, Ok, Result
from relsync.output.console import Style
from relsync.release.context import Collaborators, ReconcileContext
from relsync.release.errors import ReleaseError
from relsync.release.linking import find_master_ticket_key


@dataclass(frozen=True, slots=True)
class ReleaseSummary:
    tag: str
    branch: str
    revision: str | None
    previous_tag: str | None
    commit_count: int
    file_count: int


def _text_doc(lines: list[str]) -> dict[str, object]:
    # Jira Cloud descriptions are Atlassian documents; one paragraph per line.
    return {
        "type": "doc",
        "version": 1,
        "content": [
            {"type": "paragraph", "content": [{"type": "text", "text": line}]} for line in lines
        ],
    }


def master_ticket_fields(ctx: ReconcileContext, version: str, version_id: str) -> dict[str, object]:
    fields: dict[str, object] = {
        "summary": f"{version} Master Ticket",
        "issuetype": {"id": ctx.master.issue_type},
        "project": {"id": ctx.master.project.id},
        "description": _text_doc(["Not released yet."]),
        ctx.fix_version_field: [{"id": version_id}],
    }
    fields.update(ctx.master.extra_fields)
    return fields


def ensure_master_ticket(
    ctx: ReconcileContext, collab: Collaborators, version: str, version_id: str
) -> Result[str | None, ReleaseError]:
    """Create the master ticket for ``version`` unless one is already found.

    Returns the key of the created ticket, or None when nothing was created.
    """
    existing = find_master_ticket_key(ctx, collab, version)
    if isinstance(existing, Err):
        return existing
    if existing.value is not None:
        collab.console.print(f"master ticket exists: {existing.value}", Style.DIM)
        return Ok(None)

    collab.console.print(f"creating master ticket for {version}", Style.DIM)
    created = collab.tracker.create_issue(master_ticket_fields(ctx, version, version_id))
    if isinstance(created, Err):
        return created
    return Ok(created.value.key)


def summary_lines(ctx: ReconcileContext, summary: ReleaseSummary) -> list[str]:
    lines = [
        f"GitHub tag: {summary.tag}",
        f"Branch: {ctx.repo_url}/tree/{summary.branch}",
        f"Commit: {summary.revision or 'unknown'}",
    ]
    if summary.previous_tag:
        lines.append(f"GitHub diff: {ctx.repo_url}/compare/{summary.previous_tag}...{summary.tag}")
    lines.append(f"Commits: {summary.commit_count}, files changed: {summary.file_count}")
    return lines


def update_master_ticket(
    ctx: ReconcileContext, collab: Collaborators, summary: ReleaseSummary
) -> Result[str | None, ReleaseError]:
    """Write the release summary into the master ticket description.

    Returns the updated ticket key, or None when there is no unambiguous
    master ticket for the tag.
    """
    master = find_master_ticket_key(ctx, collab, summary.tag)
    if isinstance(master, Err):
        return master
    if master.value is None:
        return Ok(None)

    payload: dict[str, object] = {"fields": {"description": _text_doc(summary_lines(ctx, summary))}}
    updated = collab.tracker.update_issue(master.value, payload)
    if isinstance(updated, Err):
        return updated
    return Ok(master.value)
