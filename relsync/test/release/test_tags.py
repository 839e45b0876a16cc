from __future__ import annotations

import pytest

from relsync.release.tags import is_major_version, matches_numbering, matches_release_line


@pytest.mark.parametrize("tag", ["v1.0.0", "v10.20.1234", "v0.1.9"])
def test_matches_numbering_accepts(tag: str) -> None:
    assert matches_numbering(tag, "v")


@pytest.mark.parametrize("tag", ["v100.0.0", "v1.0.12345", "v1.0", "1.0.0", "v1.0.0-rc1", "xv1.0.0"])
def test_matches_numbering_rejects(tag: str) -> None:
    assert not matches_numbering(tag, "v")


def test_prefix_is_matched_literally() -> None:
    assert matches_numbering("r.1.0.0", "r.")
    assert not matches_numbering("rx1.0.0", "r.")
    assert matches_numbering("1.0.0", "")


def test_matches_release_line() -> None:
    assert matches_release_line("v10.0.3", "v", "10.0")
    assert not matches_release_line("v10.1.3", "v", "10.0")
    assert not matches_release_line("v100.3", "v", "10.0")
    assert not matches_release_line("v10.0.3", "v", "next")


def test_matches_numbering_with_release_line() -> None:
    assert matches_numbering("v2.1.0", "v", release_line="2.1")
    assert not matches_numbering("v2.2.0", "v", release_line="2.1")


def test_is_major_version() -> None:
    assert is_major_version("v10.0.0")
    assert is_major_version("v10.1.0")
    assert not is_major_version("v10.0.1")
    assert not is_major_version("v10.0.10")
    assert not is_major_version("v10")
