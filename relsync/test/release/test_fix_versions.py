from __future__ import annotations

from pathlib import Path

from relsync.output.console import MockConsole
from relsync.release.fix_versions import apply_fix_version
from relsync.release.model import TrackerIssue
from relsync.release.registry import VersionRegistry
from relsync.test.fakes import make_context, make_world


def test_issues_are_routed_to_their_project_version(tmp_path: Path) -> None:
    world = make_world()
    for key in ("XX-1", "YY-1"):
        world.tracker.add_issue(key)
    registry = VersionRegistry(world.tracker, MockConsole())

    outcome = apply_fix_version(
        make_context(tmp_path),
        world.collab,
        registry,
        [TrackerIssue(key="XX-1"), TrackerIssue(key="YY-1")],
        "v10.0.1",
    )

    assert outcome.updated == ("XX-1", "YY-1")
    assert outcome.failures == ()
    assert world.tracker.version_names("XX") == ["v10.0.1"]
    assert world.tracker.version_names("YY") == ["v10.0.1"]
    assert world.tracker.issues["YY-1"].fix_versions == {"v10.0.1"}


def test_unroutable_issue_is_a_failure(tmp_path: Path) -> None:
    world = make_world()
    world.tracker.add_issue("XX-1")
    registry = VersionRegistry(world.tracker, MockConsole())

    outcome = apply_fix_version(
        make_context(tmp_path),
        world.collab,
        registry,
        [TrackerIssue(key="ZZ-1"), TrackerIssue(key="XX-1")],
        "v10.0.1",
    )

    assert outcome.updated == ("XX-1",)
    assert [f.subject for f in outcome.failures] == ["ZZ-1"]


def test_version_failure_is_cached_per_project(tmp_path: Path) -> None:
    world = make_world()
    world.tracker.fail_versions.add("XX")
    for key in ("XX-1", "XX-2", "YY-1"):
        world.tracker.add_issue(key)
    registry = VersionRegistry(world.tracker, MockConsole())

    outcome = apply_fix_version(
        make_context(tmp_path),
        world.collab,
        registry,
        [TrackerIssue(key="XX-1"), TrackerIssue(key="XX-2"), TrackerIssue(key="YY-1")],
        "v10.0.1",
    )

    assert outcome.updated == ("YY-1",)
    assert [f.subject for f in outcome.failures] == ["XX-1", "XX-2"]
    assert world.tracker.calls.count("list_versions") == 2


def test_custom_fix_version_field(tmp_path: Path) -> None:
    world = make_world()
    world.tracker.add_issue("XX-1")
    registry = VersionRegistry(world.tracker, MockConsole())

    apply_fix_version(
        make_context(tmp_path, fix_version_field="customfield_24144"),
        world.collab,
        registry,
        [TrackerIssue(key="XX-1")],
        "v10.0.1",
    )

    [(_, payload)] = world.tracker.updates
    assert list(payload["update"]) == ["customfield_24144"]  # type: ignore[call-overload]
