from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TrackerProject:
    """A Jira project taking part in the release.

    ``id`` is used when creating versions and issues, ``key`` for queries and
    for routing issue keys to their project.
    """

    id: str
    key: str


@dataclass(frozen=True, slots=True)
class TrackerVersion:
    id: str
    name: str
    project_id: str | None
    archived: bool = False
    released: bool = False


@dataclass(frozen=True, slots=True)
class NewTrackerVersion:
    name: str
    project_id: str
    archived: bool = False
    released: bool = False


@dataclass(frozen=True, slots=True)
class IssueLink:
    """One entry of an issue's ``issuelinks`` field.

    Exactly one side is set, depending on the link direction as seen from the
    issue that carries it.
    """

    outward_key: str | None = None
    inward_key: str | None = None


@dataclass(frozen=True, slots=True)
class TrackerIssue:
    key: str
    summary: str | None = None
    links: tuple[IssueLink, ...] = ()

    def links_outward_to(self, key: str) -> bool:
        return any(link.outward_key == key for link in self.links)


@dataclass(frozen=True, slots=True)
class CreatedIssue:
    id: str
    key: str


@dataclass(frozen=True, slots=True)
class FixVersionUpdate:
    """Binds one issue to one tracker version id."""

    issue_key: str
    version_id: str
    field: str = "fixVersions"

    def payload(self) -> dict[str, object]:
        return {"update": {self.field: [{"add": {"id": self.version_id}}]}}


@dataclass(frozen=True, slots=True)
class IssueLinkRequest:
    link_type: str
    inward_key: str
    outward_key: str


@dataclass(frozen=True, slots=True)
class SourceRelease:
    id: int | None
    tag_name: str
    is_draft: bool
    is_prerelease: bool = False


@dataclass(frozen=True, slots=True)
class TagPage:
    names: tuple[str, ...]
    next_cursor: str | None = None


@dataclass(frozen=True, slots=True)
class RefComparison:
    commit_count: int
    file_count: int


@dataclass(frozen=True, slots=True)
class ReleaseUpdate:
    release_id: int
    body: str
    tag_name: str
    target_branch: str
    draft: bool


@dataclass(frozen=True, slots=True)
class ReleaseTarget:
    """Outcome of version resolution for one event."""

    fix_version: str
    is_major: bool
    draft: bool = True
    release_id: int | None = None


@dataclass(frozen=True, slots=True)
class ItemFailure:
    """A per-issue or per-project mutation that failed without aborting the run."""

    subject: str
    message: str
