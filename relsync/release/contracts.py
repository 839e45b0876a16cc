"""Collaborator contracts consumed by the reconciler.

Adapters in ``relsync.infra`` implement these; tests use in-memory fakes.
Every call blocks until the remote side answers, and the reconciler never
issues two of them at once.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol

from relsync.core.result import Result
from relsync.release.errors import ReleaseError
from relsync.release.model import (
    CreatedIssue,
    IssueLinkRequest,
    NewTrackerVersion,
    RefComparison,
    ReleaseUpdate,
    SourceRelease,
    TagPage,
    TrackerIssue,
    TrackerVersion,
)
from relsync.release.query import IssueQuery


class TrackerClient(Protocol):
    def search_issues(
        self, query: IssueQuery, fields: Sequence[str]
    ) -> Result[list[TrackerIssue], ReleaseError]:
        """Return every issue matching ``query`` (all pages)."""
        ...

    def list_versions(self, project_key: str) -> Result[list[TrackerVersion], ReleaseError]: ...

    def create_version(self, version: NewTrackerVersion) -> Result[TrackerVersion, ReleaseError]: ...

    def update_issue(
        self, issue_key: str, payload: Mapping[str, object]
    ) -> Result[None, ReleaseError]: ...

    def create_issue_link(self, link: IssueLinkRequest) -> Result[None, ReleaseError]: ...

    def create_issue(self, fields: Mapping[str, object]) -> Result[CreatedIssue, ReleaseError]: ...


class SourceControlClient(Protocol):
    def find_tags(self, query: str, cursor: str | None) -> Result[TagPage, ReleaseError]:
        """Return one page of tag names matching ``query``, newest first."""
        ...

    def get_release(self, tag_name: str) -> Result[SourceRelease | None, ReleaseError]:
        """Return the release (draft or published) for ``tag_name``, or None."""
        ...

    def create_release(self, tag_name: str, branch: str) -> Result[None, ReleaseError]:
        """Create a draft release for ``tag_name`` targeting ``branch``."""
        ...

    def update_release(self, update: ReleaseUpdate) -> Result[None, ReleaseError]: ...

    def compare_refs(self, base: str, head: str) -> Result[RefComparison, ReleaseError]: ...


class IssueKeyMiner(Protocol):
    def mine(
        self,
        *,
        release_line: str,
        project_keys: Sequence[str],
        workspace: Path,
        tag_prefix: str,
    ) -> Result[str, ReleaseError]:
        """Return the raw comma-separated issue keys found in commit history."""
        ...
