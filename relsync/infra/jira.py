"""Jira Cloud REST v3 adapter implementing ``TrackerClient``."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from urllib.parse import quote

from relsync.core.result import Err, Ok, Result
from relsync.core.structured import StrDict, as_obj_list, as_str_dict, get_bool, get_id, get_str, get_table
from relsync.infra.http import HttpClient, HttpError, HttpMethod
from relsync.release.errors import ReleaseError
from relsync.release.model import (
    CreatedIssue,
    IssueLink,
    IssueLinkRequest,
    NewTrackerVersion,
    TrackerIssue,
    TrackerVersion,
)
from relsync.release.query import IssueQuery

SEARCH_PAGE_SIZE = 100


class JiraClient:
    def __init__(self, *, base_url: str, http: HttpClient) -> None:
        self._base = base_url.rstrip("/")
        self._http = http

    def _url(self, path: str) -> str:
        return f"{self._base}/rest/api/3/{path}"

    def _call(
        self, method: HttpMethod, path: str, body: object | None, *, what: str
    ) -> Result[object | None, ReleaseError]:
        result = self._http.request_json(method, self._url(path), body)
        if isinstance(result, Err):
            return Err(_collaborator_error(what, result.error))
        return result

    def search_issues(
        self, query: IssueQuery, fields: Sequence[str]
    ) -> Result[list[TrackerIssue], ReleaseError]:
        jql = query.to_jql()
        issues: list[TrackerIssue] = []
        token: str | None = None
        while True:
            body: dict[str, object] = {
                "jql": jql,
                "fields": list(fields),
                "maxResults": SEARCH_PAGE_SIZE,
            }
            if token is not None:
                body["nextPageToken"] = token

            page = self._call("POST", "search/jql", body, what="issue search")
            if isinstance(page, Err):
                return page
            data = as_str_dict(page.value)
            if data is None:
                return Err(_payload_error("issue search"))

            for raw in as_obj_list(data.get("issues")) or []:
                issue = _parse_issue(raw)
                if issue is not None:
                    issues.append(issue)

            token = get_str(data, "nextPageToken")
            if token is None or get_bool(data, "isLast") is True:
                return Ok(issues)

    def list_versions(self, project_key: str) -> Result[list[TrackerVersion], ReleaseError]:
        path = f"project/{quote(project_key, safe='')}/versions"
        result = self._call("GET", path, None, what=f"versions of {project_key}")
        if isinstance(result, Err):
            return result

        raw = as_obj_list(result.value)
        if raw is None:
            return Err(_payload_error(f"versions of {project_key}"))

        out: list[TrackerVersion] = []
        for item in raw:
            version = _parse_version(item)
            if version is not None:
                out.append(version)
        return Ok(out)

    def create_version(self, version: NewTrackerVersion) -> Result[TrackerVersion, ReleaseError]:
        body: dict[str, object] = {
            "name": version.name,
            "projectId": int(version.project_id) if version.project_id.isdigit() else version.project_id,
            "archived": version.archived,
            "released": version.released,
        }
        result = self._call("POST", "version", body, what=f"create version {version.name}")
        if isinstance(result, Err):
            return result

        created = _parse_version(result.value)
        if created is None:
            return Err(_payload_error(f"create version {version.name}"))
        return Ok(created)

    def update_issue(
        self, issue_key: str, payload: Mapping[str, object]
    ) -> Result[None, ReleaseError]:
        path = f"issue/{quote(issue_key, safe='')}"
        result = self._call("PUT", path, dict(payload), what=f"update {issue_key}")
        if isinstance(result, Err):
            return result
        return Ok(None)

    def create_issue_link(self, link: IssueLinkRequest) -> Result[None, ReleaseError]:
        body = {
            "type": {"name": link.link_type},
            "inwardIssue": {"key": link.inward_key},
            "outwardIssue": {"key": link.outward_key},
        }
        result = self._call(
            "POST", "issueLink", body, what=f"link {link.inward_key} -> {link.outward_key}"
        )
        if isinstance(result, Err):
            return result
        return Ok(None)

    def create_issue(self, fields: Mapping[str, object]) -> Result[CreatedIssue, ReleaseError]:
        result = self._call("POST", "issue", {"update": {}, "fields": dict(fields)}, what="create issue")
        if isinstance(result, Err):
            return result

        data = as_str_dict(result.value)
        issue_id = get_id(data, "id") if data is not None else None
        key = get_str(data, "key") if data is not None else None
        if issue_id is None or key is None:
            return Err(_payload_error("create issue"))
        return Ok(CreatedIssue(id=issue_id, key=key))


def _collaborator_error(what: str, error: HttpError) -> ReleaseError:
    return ReleaseError(kind="collaborator_error", message=f"jira: {what} failed", hint=str(error))


def _payload_error(what: str) -> ReleaseError:
    return ReleaseError(kind="collaborator_error", message=f"jira: unexpected payload for {what}")


def _parse_version(obj: object) -> TrackerVersion | None:
    data = as_str_dict(obj)
    if data is None:
        return None
    version_id = get_id(data, "id")
    name = get_str(data, "name")
    if version_id is None or name is None:
        return None
    return TrackerVersion(
        id=version_id,
        name=name,
        project_id=get_id(data, "projectId"),
        archived=get_bool(data, "archived") or False,
        released=get_bool(data, "released") or False,
    )


def _linked_key(link: StrDict, side: str) -> str | None:
    issue = get_table(link, side)
    return get_str(issue, "key") if issue is not None else None


def _parse_issue(obj: object) -> TrackerIssue | None:
    data = as_str_dict(obj)
    if data is None:
        return None
    key = get_str(data, "key")
    if key is None:
        return None

    fields = get_table(data, "fields") or {}
    links: list[IssueLink] = []
    for raw in as_obj_list(fields.get("issuelinks")) or []:
        link = as_str_dict(raw)
        if link is None:
            continue
        links.append(
            IssueLink(
                outward_key=_linked_key(link, "outwardIssue"),
                inward_key=_linked_key(link, "inwardIssue"),
            )
        )

    return TrackerIssue(key=key, summary=get_str(fields, "summary"), links=tuple(links))
