"""Typed loading of relsync.toml.

The file is parsed once into frozen dataclasses; nothing downstream reads
the TOML tables or the environment directly.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_id, get_int, get_list, get_str, get_table

__all__ = [
    "Config",
    "ConfigError",
    "GithubConfig",
    "JiraConfig",
    "JiraProjectConfig",
    "MasterProjectConfig",
    "MinerConfig",
    "ReconcileOptions",
    "DEFAULT_CONFIG_FILE",
    "load_config",
]

DEFAULT_CONFIG_FILE = "relsync.toml"

DEFAULT_TAG_PREFIX = "v"
DEFAULT_BRANCH_TOKEN = "release"
DEFAULT_GITHUB_SERVER_URL = "https://github.com"
DEFAULT_BATCH_SIZE = 100
DEFAULT_FIX_VERSION_FIELD = "fixVersions"
DEFAULT_FIX_VERSION_JQL = "fixVersion"
DEFAULT_LINK_TYPE = "Drives"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class GithubConfig:
    repo: str  # owner/name
    server_url: str = DEFAULT_GITHUB_SERVER_URL


@dataclass(frozen=True, slots=True)
class JiraProjectConfig:
    id: str
    key: str


@dataclass(frozen=True, slots=True)
class MasterProjectConfig:
    id: str
    key: str
    issue_type: str
    # Merged verbatim into the fields of created master tickets.
    extra_fields: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class JiraConfig:
    base_url: str
    projects: tuple[JiraProjectConfig, ...]
    master: MasterProjectConfig
    batch_size: int = DEFAULT_BATCH_SIZE
    fix_version_field: str = DEFAULT_FIX_VERSION_FIELD
    fix_version_jql: str = DEFAULT_FIX_VERSION_JQL
    link_type: str = DEFAULT_LINK_TYPE


@dataclass(frozen=True, slots=True)
class MinerConfig:
    script: str


@dataclass(frozen=True, slots=True)
class ReconcileOptions:
    update_release_notes: bool = True
    update_master_ticket: bool = True


@dataclass(frozen=True, slots=True)
class Config:
    github: GithubConfig
    jira: JiraConfig
    miner: MinerConfig
    tag_prefix: str = DEFAULT_TAG_PREFIX
    branch_token: str = DEFAULT_BRANCH_TOKEN
    reconcile: ReconcileOptions = field(default_factory=ReconcileOptions)

    @classmethod
    def from_dict(cls, data: Mapping[str, object], env: Mapping[str, str]) -> Config:
        """Create Config from parsed TOML.

        Raises:
            ValueError: A required key is missing or has the wrong type.
        """
        github: StrDict = get_table(data, "github") or {}
        jira: StrDict = get_table(data, "jira") or {}
        miner: StrDict = get_table(data, "miner") or {}
        reconcile: StrDict = get_table(data, "reconcile") or {}

        repo = get_str(github, "repo") or env.get("GITHUB_REPOSITORY", "").strip()
        if not repo:
            raise ValueError("github.repo is required (or set GITHUB_REPOSITORY)")

        batch_size = get_int(jira, "batch_size") or DEFAULT_BATCH_SIZE
        if batch_size < 1:
            raise ValueError("jira.batch_size must be >= 1")

        return cls(
            github=GithubConfig(
                repo=repo,
                server_url=get_str(github, "server_url")
                or env.get("GITHUB_SERVER_URL", "").strip()
                or DEFAULT_GITHUB_SERVER_URL,
            ),
            jira=JiraConfig(
                base_url=_require_str(jira, "base_url", "jira").rstrip("/"),
                projects=_parse_projects(jira),
                master=_parse_master(jira),
                batch_size=batch_size,
                fix_version_field=get_str(jira, "fix_version_field") or DEFAULT_FIX_VERSION_FIELD,
                fix_version_jql=get_str(jira, "fix_version_jql") or DEFAULT_FIX_VERSION_JQL,
                link_type=get_str(jira, "link_type") or DEFAULT_LINK_TYPE,
            ),
            miner=MinerConfig(script=_require_str(miner, "script", "miner")),
            # The prefix is taken verbatim: an empty prefix is a valid choice.
            tag_prefix=_optional_raw_str(data, "tag_prefix", DEFAULT_TAG_PREFIX),
            branch_token=get_str(data, "branch_token") or DEFAULT_BRANCH_TOKEN,
            reconcile=ReconcileOptions(
                update_release_notes=_bool_or(reconcile, "update_release_notes", True),
                update_master_ticket=_bool_or(reconcile, "update_master_ticket", True),
            ),
        )


def _require_str(table: Mapping[str, object], key: str, section: str) -> str:
    value = get_str(table, key)
    if value is None:
        raise ValueError(f"{section}.{key} is required")
    return value


def _optional_raw_str(table: Mapping[str, object], key: str, default: str) -> str:
    value = table.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _bool_or(table: Mapping[str, object], key: str, default: bool) -> bool:
    value = get_bool(table, key)
    return default if value is None else value


def _parse_projects(jira: Mapping[str, object]) -> tuple[JiraProjectConfig, ...]:
    raw = get_list(jira, "projects") or []
    projects: list[JiraProjectConfig] = []
    for index, item in enumerate(raw):
        entry = as_str_dict(item)
        if entry is None:
            raise ValueError(f"jira.projects[{index}] must be a table")
        project_id = get_id(entry, "id")
        key = get_str(entry, "key")
        if project_id is None or key is None:
            raise ValueError(f"jira.projects[{index}] needs both id and key")
        projects.append(JiraProjectConfig(id=project_id, key=key))

    if not projects:
        raise ValueError("jira.projects must list at least one project")
    # Order is significant: issue routing takes the first matching key prefix.
    return tuple(projects)


def _parse_master(jira: Mapping[str, object]) -> MasterProjectConfig:
    master = get_table(jira, "master")
    if master is None:
        raise ValueError("jira.master is required")

    project_id = get_id(master, "id")
    key = get_str(master, "key")
    issue_type = get_id(master, "issue_type")
    if project_id is None or key is None or issue_type is None:
        raise ValueError("jira.master needs id, key and issue_type")

    return MasterProjectConfig(
        id=project_id,
        key=key,
        issue_type=issue_type,
        extra_fields=get_table(master, "extra_fields") or {},
    )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path, env: Mapping[str, str] | None = None) -> Result[Config, ConfigError]:
    """Load and validate relsync.toml.

    Args:
        path: Path to the TOML file.
        env: Environment used for GitHub fallbacks (defaults to os.environ).

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure.
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value, os.environ if env is None else env))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))
