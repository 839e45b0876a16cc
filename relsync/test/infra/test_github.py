from __future__ import annotations

import json
from pathlib import Path

import pytest

from relsync.core.result import Err, Ok, Result
from relsync.infra import github as gh_mod
from relsync.platform.process import ProcessError
from relsync.release.model import RefComparison, ReleaseUpdate, SourceRelease, TagPage


def _err(*, stderr: str, returncode: int = 1) -> Err[ProcessError]:
    return Err(
        ProcessError(
            command=("gh", "api", "graphql"),
            returncode=returncode,
            stdout="",
            stderr=stderr,
        )
    )


def _no_sleep(seconds: float) -> None:
    del seconds


def _install(
    monkeypatch: pytest.MonkeyPatch, responses: list[Result[str, ProcessError]]
) -> list[list[str]]:
    calls: list[list[str]] = []

    def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
        del cwd
        del timeout
        calls.append(cmd)
        return responses.pop(0)

    monkeypatch.setattr(gh_mod, "run_process", fake_run)
    monkeypatch.setattr(gh_mod, "sleep", _no_sleep)
    return calls


def _repo(payload: dict[str, object]) -> Ok[str]:
    return Ok(json.dumps({"data": {"repository": payload}}))


def test_find_tags_parses_page(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls = _install(
        monkeypatch,
        [
            _repo(
                {
                    "refs": {
                        "nodes": [{"name": "v10.0.3"}, {"name": "v10.0.2"}],
                        "pageInfo": {"hasNextPage": True, "endCursor": "Y3Vyc29y"},
                    }
                }
            )
        ],
    )
    client = gh_mod.GhClient(repo="acme/product", workspace=tmp_path)

    result = client.find_tags("v10.0", None)

    assert result == Ok(TagPage(names=("v10.0.3", "v10.0.2"), next_cursor="Y3Vyc29y"))
    [cmd] = calls
    assert cmd[:3] == ["gh", "api", "graphql"]
    assert "owner=acme" in cmd
    assert "name=product" in cmd
    assert "q=v10.0" in cmd
    assert not any(arg.startswith("cursor=") for arg in cmd)


def test_find_tags_passes_cursor_and_stops_on_last_page(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls = _install(
        monkeypatch,
        [_repo({"refs": {"nodes": [], "pageInfo": {"hasNextPage": False, "endCursor": "abc"}}})],
    )
    client = gh_mod.GhClient(repo="acme/product", workspace=tmp_path)

    result = client.find_tags("v10.0", "prev")

    assert result == Ok(TagPage(names=(), next_cursor=None))
    assert "cursor=prev" in calls[0]


def test_reads_retry_transient_errors(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls = _install(
        monkeypatch,
        [
            _err(stderr="HTTP 502 Bad Gateway"),
            _repo({"release": None}),
        ],
    )
    client = gh_mod.GhClient(repo="acme/product", workspace=tmp_path)

    assert client.get_release("v10.0.4") == Ok(None)
    assert len(calls) == 2


def test_reads_do_not_retry_other_errors(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls = _install(monkeypatch, [_err(stderr="HTTP 401: Bad credentials")])
    client = gh_mod.GhClient(repo="acme/product", workspace=tmp_path)

    result = client.get_release("v10.0.4")

    assert isinstance(result, Err)
    assert result.error.kind == "collaborator_error"
    assert result.error.hint == "HTTP 401: Bad credentials"
    assert len(calls) == 1


def test_get_release(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _install(
        monkeypatch,
        [
            _repo(
                {
                    "release": {
                        "databaseId": 123,
                        "tagName": "v10.0.4",
                        "isDraft": True,
                        "isPrerelease": False,
                    }
                }
            )
        ],
    )
    client = gh_mod.GhClient(repo="acme/product", workspace=tmp_path)

    assert client.get_release("v10.0.4") == Ok(
        SourceRelease(id=123, tag_name="v10.0.4", is_draft=True, is_prerelease=False)
    )


def test_create_release_is_a_draft(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls = _install(monkeypatch, [Ok("{}")])
    client = gh_mod.GhClient(repo="acme/product", workspace=tmp_path)

    assert client.create_release("v10.0.2", "release/10.0") == Ok(None)
    [cmd] = calls
    assert "repos/acme/product/releases" in cmd
    assert "tag_name=v10.0.2" in cmd
    assert "target_commitish=release/10.0" in cmd
    assert "draft=true" in cmd


def test_mutations_are_not_retried(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls = _install(monkeypatch, [_err(stderr="HTTP 503 Service Unavailable")])
    client = gh_mod.GhClient(repo="acme/product", workspace=tmp_path)

    result = client.create_release("v10.0.2", "release/10.0")

    assert isinstance(result, Err)
    assert len(calls) == 1


def test_update_release(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls = _install(monkeypatch, [Ok("{}")])
    client = gh_mod.GhClient(repo="acme/product", workspace=tmp_path)

    result = client.update_release(
        ReleaseUpdate(
            release_id=7,
            body="- XX-1 Fix login",
            tag_name="v10.0.4",
            target_branch="release/10.0",
            draft=False,
        )
    )

    assert result == Ok(None)
    [cmd] = calls
    assert "repos/acme/product/releases/7" in cmd
    assert "body=- XX-1 Fix login" in cmd
    assert "draft=false" in cmd


def test_compare_refs(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls = _install(
        monkeypatch,
        [Ok(json.dumps({"total_commits": 4, "files": [{"filename": "a"}, {"filename": "b"}]}))],
    )
    client = gh_mod.GhClient(repo="acme/product", workspace=tmp_path)

    assert client.compare_refs("v10.0.0", "v10.0.1") == Ok(RefComparison(commit_count=4, file_count=2))
    assert calls[0] == ["gh", "api", "repos/acme/product/compare/v10.0.0...v10.0.1"]


def test_invalid_json_is_an_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _install(monkeypatch, [Ok("not json")])
    client = gh_mod.GhClient(repo="acme/product", workspace=tmp_path)

    result = client.compare_refs("v10.0.0", "v10.0.1")

    assert isinstance(result, Err)
    assert "invalid JSON" in result.error.message
