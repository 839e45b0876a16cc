from __future__ import annotations

from pathlib import Path

from relsync.core.result import Ok
from relsync.release.context import MasterProject
from relsync.release.master import (
    ReleaseSummary,
    ensure_master_ticket,
    master_ticket_fields,
    summary_lines,
    update_master_ticket,
)
from relsync.release.model import TrackerProject
from relsync.test.fakes import make_context, make_world


def _summary(**overrides: object) -> ReleaseSummary:
    values: dict[str, object] = {
        "tag": "v10.0.1",
        "branch": "release/10.0",
        "revision": "abc123",
        "previous_tag": "v10.0.0",
        "commit_count": 4,
        "file_count": 9,
    }
    values.update(overrides)
    return ReleaseSummary(**values)  # type: ignore[arg-type]


def test_master_ticket_fields_merge_extra_fields(tmp_path: Path) -> None:
    master = MasterProject(
        project=TrackerProject(id="10100", key="RM"),
        issue_type="10200",
        extra_fields={"customfield_1": {"value": "Product"}},
    )
    fields = master_ticket_fields(make_context(tmp_path, master=master), "v10.0.2", "55")

    assert fields["summary"] == "v10.0.2 Master Ticket"
    assert fields["fixVersions"] == [{"id": "55"}]
    assert fields["customfield_1"] == {"value": "Product"}


def test_ensure_master_ticket_creates_once(tmp_path: Path) -> None:
    world = make_world()
    ctx = make_context(tmp_path)
    version = world.tracker.add_version("RM", "v10.0.2")

    first = ensure_master_ticket(ctx, world.collab, "v10.0.2", version.id)
    second = ensure_master_ticket(ctx, world.collab, "v10.0.2", version.id)

    assert isinstance(first, Ok)
    assert first.value is not None
    assert first.value.startswith("RM-")
    assert second == Ok(None)
    assert len(world.tracker.created_issues) == 1


def test_summary_lines(tmp_path: Path) -> None:
    lines = summary_lines(make_context(tmp_path), _summary())
    assert lines == [
        "GitHub tag: v10.0.1",
        "Branch: https://github.com/acme/product/tree/release/10.0",
        "Commit: abc123",
        "GitHub diff: https://github.com/acme/product/compare/v10.0.0...v10.0.1",
        "Commits: 4, files changed: 9",
    ]


def test_summary_lines_for_major_have_no_diff(tmp_path: Path) -> None:
    lines = summary_lines(make_context(tmp_path), _summary(tag="v10.0.0", previous_tag=None, revision=None))
    assert "Commit: unknown" in lines
    assert not any(line.startswith("GitHub diff") for line in lines)


def test_update_master_ticket_without_master(tmp_path: Path) -> None:
    world = make_world()
    assert update_master_ticket(make_context(tmp_path), world.collab, _summary()) == Ok(None)
    assert world.tracker.updates == []


def test_update_master_ticket_writes_description(tmp_path: Path) -> None:
    world = make_world()
    world.tracker.add_issue("RM-1", None, "v10.0.1")

    result = update_master_ticket(make_context(tmp_path), world.collab, _summary())

    assert result == Ok("RM-1")
    [(key, payload)] = world.tracker.updates
    assert key == "RM-1"
    assert payload["fields"]["description"]["type"] == "doc"  # type: ignore[index]
