"""Structured issue queries.

The reconciler describes what it wants as an ``IssueQuery``; only the
tracker adapter turns it into the tracker's query language (``to_jql`` for
Jira). Values are always quoted, never spliced in raw.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class IssueQuery:
    """Conjunction of the supported clauses; empty clauses are omitted.

    Attributes:
        projects: ``project in (...)``.
        issue_keys: ``issuekey in (...)``.
        fix_version_in: issues that carry this fix version.
        fix_version_absent: issues that do not carry this fix version,
            including issues without any fix version.
        fix_version_field: JQL name of the fix-version field.
    """

    projects: tuple[str, ...] = ()
    issue_keys: tuple[str, ...] = ()
    fix_version_in: str | None = None
    fix_version_absent: str | None = None
    fix_version_field: str = "fixVersion"

    def to_jql(self) -> str:
        clauses: list[str] = []
        if self.projects:
            clauses.append(f"project in ({_quote_all(self.projects)})")
        if self.fix_version_absent is not None:
            field = self.fix_version_field
            version = _quote(self.fix_version_absent)
            clauses.append(f"({field} not in ({version}) OR {field} is EMPTY)")
        if self.fix_version_in is not None:
            clauses.append(f"{self.fix_version_field} in ({_quote(self.fix_version_in)})")
        if self.issue_keys:
            clauses.append(f"issuekey in ({_quote_all(self.issue_keys)})")
        return " AND ".join(clauses)


def without_fix_version(
    *, projects: tuple[str, ...], issue_keys: tuple[str, ...], fix_version: str, field: str
) -> IssueQuery:
    return IssueQuery(
        projects=projects,
        issue_keys=issue_keys,
        fix_version_absent=fix_version,
        fix_version_field=field,
    )


def with_fix_version(*, projects: tuple[str, ...], fix_version: str, field: str) -> IssueQuery:
    return IssueQuery(projects=projects, fix_version_in=fix_version, fix_version_field=field)


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _quote_all(values: tuple[str, ...]) -> str:
    return ", ".join(_quote(v) for v in values)
