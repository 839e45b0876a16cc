from __future__ import annotations

from relsync.release.keys import parse_issue_keys, project_for_issue
from relsync.release.model import TrackerProject


def test_parse_issue_keys() -> None:
    assert parse_issue_keys("XX-123,XX-456") == ["XX-123", "XX-456"]
    assert parse_issue_keys("XX-1, YY-2\n") == ["XX-1", "YY-2"]
    assert parse_issue_keys("XX-1,,XX-2,") == ["XX-1", "XX-2"]


def test_parse_blank_output() -> None:
    assert parse_issue_keys("") == []
    assert parse_issue_keys(" \n\t") == []


def test_project_routing_takes_first_prefix_match() -> None:
    projects = (TrackerProject(id="1", key="XXL"), TrackerProject(id="2", key="XX"))
    project = project_for_issue("XXL-5", projects)
    assert project is not None
    assert project.id == "1"
    routed = project_for_issue("XX-5", projects)
    assert routed is not None
    assert routed.id == "2"


def test_project_routing_without_match() -> None:
    assert project_for_issue("ZZ-1", (TrackerProject(id="1", key="XX"),)) is None
