"""Tests for relsync.core.config module."""

from __future__ import annotations

from pathlib import Path

from relsync.core.config import Config, ConfigError, load_config
from relsync.core.result import Err, Ok

MINIMAL = """
[github]
repo = "acme/product"

[jira]
base_url = "https://acme.atlassian.net/"

[[jira.projects]]
id = "10001"
key = "XX"

[[jira.projects]]
id = 10002
key = "YY"

[jira.master]
id = "10100"
key = "RM"
issue_type = "10200"

[miner]
script = "scripts/extract-issues"
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "relsync.toml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_minimal_config_uses_defaults(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, MINIMAL), env={})
        assert isinstance(result, Ok)
        config = result.value
        assert config.tag_prefix == "v"
        assert config.branch_token == "release"
        assert config.github.repo == "acme/product"
        assert config.github.server_url == "https://github.com"
        assert config.jira.base_url == "https://acme.atlassian.net"
        assert config.jira.batch_size == 100
        assert config.jira.fix_version_field == "fixVersions"
        assert config.jira.fix_version_jql == "fixVersion"
        assert config.jira.link_type == "Drives"
        assert config.reconcile.update_release_notes
        assert config.reconcile.update_master_ticket

    def test_projects_keep_order_and_accept_numeric_ids(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, MINIMAL), env={})
        assert isinstance(result, Ok)
        projects = result.value.jira.projects
        assert [(p.id, p.key) for p in projects] == [("10001", "XX"), ("10002", "YY")]

    def test_master_extra_fields(self, tmp_path: Path) -> None:
        text = MINIMAL.replace(
            'issue_type = "10200"',
            'issue_type = "10200"\nextra_fields = { customfield_1 = "x" }',
        )
        result = load_config(_write(tmp_path, text), env={})
        assert isinstance(result, Ok)
        assert result.value.jira.master.extra_fields == {"customfield_1": "x"}

    def test_empty_tag_prefix_is_kept(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, 'tag_prefix = ""\n' + MINIMAL), env={})
        assert isinstance(result, Ok)
        assert result.value.tag_prefix == ""

    def test_repo_falls_back_to_environment(self, tmp_path: Path) -> None:
        text = MINIMAL.replace('repo = "acme/product"', "")
        result = load_config(
            _write(tmp_path, text),
            env={"GITHUB_REPOSITORY": "acme/other", "GITHUB_SERVER_URL": "https://ghe.acme.io"},
        )
        assert isinstance(result, Ok)
        assert result.value.github.repo == "acme/other"
        assert result.value.github.server_url == "https://ghe.acme.io"

    def test_missing_repo_is_an_error(self, tmp_path: Path) -> None:
        text = MINIMAL.replace('repo = "acme/product"', "")
        result = load_config(_write(tmp_path, text), env={})
        assert isinstance(result, Err)
        assert "github.repo" in result.error.message

    def test_missing_projects_is_an_error(self, tmp_path: Path) -> None:
        text = MINIMAL.replace("[[jira.projects]]", "[[jira.other]]")
        result = load_config(_write(tmp_path, text), env={})
        assert isinstance(result, Err)
        assert "jira.projects" in result.error.message

    def test_missing_master_is_an_error(self, tmp_path: Path) -> None:
        text = MINIMAL.replace("[jira.master]", "[jira.boss]")
        result = load_config(_write(tmp_path, text), env={})
        assert isinstance(result, Err)
        assert "jira.master" in result.error.message

    def test_missing_miner_script_is_an_error(self, tmp_path: Path) -> None:
        text = MINIMAL.replace('script = "scripts/extract-issues"', "")
        result = load_config(_write(tmp_path, text), env={})
        assert isinstance(result, Err)
        assert "miner.script" in result.error.message

    def test_invalid_batch_size(self, tmp_path: Path) -> None:
        text = MINIMAL.replace('base_url = "https://acme.atlassian.net/"', 'base_url = "x"\nbatch_size = -1')
        result = load_config(_write(tmp_path, text), env={})
        assert isinstance(result, Err)

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "nope.toml", env={})
        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigError)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, "[github\n"), env={})
        assert isinstance(result, Err)
        assert "TOML" in result.error.message


class TestFromDict:
    def test_reconcile_options(self) -> None:
        data: dict[str, object] = {
            "github": {"repo": "acme/product"},
            "jira": {
                "base_url": "https://jira",
                "projects": [{"id": "1", "key": "XX"}],
                "master": {"id": "2", "key": "RM", "issue_type": "3"},
            },
            "miner": {"script": "extract"},
            "reconcile": {"update_release_notes": False},
        }
        config = Config.from_dict(data, env={})
        assert not config.reconcile.update_release_notes
        assert config.reconcile.update_master_ticket
