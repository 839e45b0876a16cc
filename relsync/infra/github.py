"""GitHub adapter implementing ``SourceControlClient`` on top of the ``gh`` CLI.

Reads go through ``gh api graphql`` / ``gh api`` and are retried on transient
failures; mutations run once.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from time import sleep

from relsync.core.result import Err, Ok, Result
from relsync.core.structured import as_obj_list, as_str_dict, get_bool, get_int, get_str, get_table
from relsync.infra.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
)
from relsync.platform.process import ProcessError
from relsync.platform.process import run as run_process
from relsync.release.errors import ReleaseError
from relsync.release.model import RefComparison, ReleaseUpdate, SourceRelease, TagPage

TAG_PAGE_SIZE = 100

_TAGS_QUERY = """
query($owner: String!, $name: String!, $q: String!, $cursor: String) {
  repository(owner: $owner, name: $name) {
    refs(refPrefix: "refs/tags/", query: $q, first: %d, after: $cursor,
         orderBy: {field: TAG_COMMIT_DATE, direction: DESC}) {
      nodes { name }
      pageInfo { hasNextPage endCursor }
    }
  }
}
""" % TAG_PAGE_SIZE

_RELEASE_QUERY = """
query($owner: String!, $name: String!, $tag: String!) {
  repository(owner: $owner, name: $name) {
    release(tagName: $tag) { databaseId tagName isDraft isPrerelease }
  }
}
"""


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    if error.returncode == -1 and "timed out" in text:
        return True
    return any(marker in text for marker in markers)


def _gh_error(message: str, error: ProcessError, hint: str | None = None) -> ReleaseError:
    return ReleaseError(
        kind="collaborator_error",
        message=message,
        hint=error.stderr.strip() or hint,
    )


def run_gh_read(
    *,
    workspace: Path,
    cmd: list[str],
    message: str,
    hint: str | None = None,
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> Result[str, ReleaseError]:
    attempts = max(1, retry_attempts)
    for attempt in range(attempts):
        result = run_process(cmd, cwd=workspace, timeout=timeout)
        if isinstance(result, Ok):
            return result

        error = result.error
        if attempt < attempts - 1 and _is_transient_gh_error(error):
            sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
            continue

        return Err(_gh_error(message, error, hint))

    return Err(ReleaseError(kind="collaborator_error", message=message, hint=hint))


def run_gh_write(*, workspace: Path, cmd: list[str], message: str) -> Result[str, ReleaseError]:
    result = run_process(cmd, cwd=workspace, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(_gh_error(message, result.error))
    return result


def _parse_json(raw: str, what: str) -> Result[object, ReleaseError]:
    try:
        obj: object = json.loads(raw)
    except json.JSONDecodeError as e:
        return Err(
            ReleaseError(kind="collaborator_error", message=f"gh returned invalid JSON for {what}: {e}")
        )
    return Ok(obj)


def ensure_gh_available() -> Result[None, ReleaseError]:
    if shutil.which("gh") is None:
        return Err(
            ReleaseError(
                kind="collaborator_error",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


class GhClient:
    def __init__(self, *, repo: str, workspace: Path) -> None:
        owner, _, name = repo.partition("/")
        self._repo = repo
        self._owner = owner
        self._name = name
        self._workspace = workspace

    def _graphql(self, query: str, variables: dict[str, str], what: str) -> Result[object, ReleaseError]:
        cmd = ["gh", "api", "graphql", "-f", f"query={query}"]
        for key, value in variables.items():
            cmd += ["-f", f"{key}={value}"]
        raw = run_gh_read(
            workspace=self._workspace,
            cmd=cmd,
            message=f"gh graphql failed: {what}",
            hint=self._repo,
        )
        if isinstance(raw, Err):
            return raw
        return _parse_json(raw.value, what)

    def _repository(self, obj: object, what: str) -> Result[dict[str, object], ReleaseError]:
        data = as_str_dict(obj)
        payload = get_table(data, "data") if data is not None else None
        repository = get_table(payload, "repository") if payload is not None else None
        if repository is None:
            return Err(
                ReleaseError(
                    kind="collaborator_error",
                    message=f"unexpected graphql payload: {what}",
                    hint=self._repo,
                )
            )
        return Ok(repository)

    def find_tags(self, query: str, cursor: str | None) -> Result[TagPage, ReleaseError]:
        variables = {"owner": self._owner, "name": self._name, "q": query}
        if cursor is not None:
            variables["cursor"] = cursor

        obj = self._graphql(_TAGS_QUERY, variables, f"tags {query}")
        if isinstance(obj, Err):
            return obj
        repository = self._repository(obj.value, f"tags {query}")
        if isinstance(repository, Err):
            return repository

        refs = get_table(repository.value, "refs") or {}
        names: list[str] = []
        for node in as_obj_list(refs.get("nodes")) or []:
            d = as_str_dict(node)
            name = get_str(d, "name") if d is not None else None
            if name is not None:
                names.append(name)

        page_info = get_table(refs, "pageInfo") or {}
        next_cursor = get_str(page_info, "endCursor") if get_bool(page_info, "hasNextPage") else None
        return Ok(TagPage(names=tuple(names), next_cursor=next_cursor))

    def get_release(self, tag_name: str) -> Result[SourceRelease | None, ReleaseError]:
        obj = self._graphql(
            _RELEASE_QUERY,
            {"owner": self._owner, "name": self._name, "tag": tag_name},
            f"release {tag_name}",
        )
        if isinstance(obj, Err):
            return obj
        repository = self._repository(obj.value, f"release {tag_name}")
        if isinstance(repository, Err):
            return repository

        release = get_table(repository.value, "release")
        if release is None:
            return Ok(None)
        return Ok(
            SourceRelease(
                id=get_int(release, "databaseId"),
                tag_name=get_str(release, "tagName") or tag_name,
                is_draft=get_bool(release, "isDraft") or False,
                is_prerelease=get_bool(release, "isPrerelease") or False,
            )
        )

    def create_release(self, tag_name: str, branch: str) -> Result[None, ReleaseError]:
        result = run_gh_write(
            workspace=self._workspace,
            cmd=[
                "gh",
                "api",
                "-X",
                "POST",
                f"repos/{self._repo}/releases",
                "-f",
                f"tag_name={tag_name}",
                "-f",
                f"target_commitish={branch}",
                "-f",
                f"name={tag_name}",
                "-F",
                "draft=true",
                "-F",
                "prerelease=false",
            ],
            message=f"failed to create release {tag_name}",
        )
        if isinstance(result, Err):
            return result
        return Ok(None)

    def update_release(self, update: ReleaseUpdate) -> Result[None, ReleaseError]:
        result = run_gh_write(
            workspace=self._workspace,
            cmd=[
                "gh",
                "api",
                "-X",
                "PATCH",
                f"repos/{self._repo}/releases/{update.release_id}",
                "-f",
                f"body={update.body}",
                "-f",
                f"tag_name={update.tag_name}",
                "-f",
                f"target_commitish={update.target_branch}",
                "-f",
                f"name={update.tag_name}",
                "-F",
                f"draft={'true' if update.draft else 'false'}",
                "-F",
                "prerelease=false",
            ],
            message=f"failed to update release {update.tag_name}",
        )
        if isinstance(result, Err):
            return result
        return Ok(None)

    def compare_refs(self, base: str, head: str) -> Result[RefComparison, ReleaseError]:
        endpoint = f"repos/{self._repo}/compare/{base}...{head}"
        raw = run_gh_read(
            workspace=self._workspace,
            cmd=["gh", "api", endpoint],
            message=f"gh api failed: {endpoint}",
            hint=endpoint,
        )
        if isinstance(raw, Err):
            return raw
        obj = _parse_json(raw.value, endpoint)
        if isinstance(obj, Err):
            return obj

        data = as_str_dict(obj.value)
        commits = get_int(data, "total_commits") if data is not None else None
        if data is None or commits is None:
            return Err(
                ReleaseError(
                    kind="collaborator_error",
                    message=f"unexpected compare payload: {base}...{head}",
                    hint=self._repo,
                )
            )
        files = as_obj_list(data.get("files")) or []
        return Ok(RefComparison(commit_count=commits, file_count=len(files)))
