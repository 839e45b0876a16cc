from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from relsync.core.result import Err, Ok, Result
from relsync.core.structured import get_bool, get_int, get_str, get_table
from relsync.release.errors import ReleaseError


@dataclass(frozen=True, slots=True)
class PushEvent:
    """A push to a branch, e.g. ``refs/heads/release/10.0``."""

    ref: str


@dataclass(frozen=True, slots=True)
class PublishedEvent:
    """A GitHub release that was just published."""

    tag_name: str
    target_branch: str
    prerelease: bool = False
    draft: bool = False
    release_id: int | None = None
    revision: str | None = None


type ReleaseEvent = PushEvent | PublishedEvent


def event_from_github(
    event_name: str,
    payload: Mapping[str, object],
    *,
    revision: str | None = None,
) -> Result[ReleaseEvent | None, ReleaseError]:
    """Map a GitHub Actions event payload to a release event.

    Returns Ok(None) for events that do not concern releases (other event
    names, or release actions other than ``published``).
    """
    if event_name == "push":
        ref = get_str(payload, "ref")
        if ref is None:
            return Err(ReleaseError(kind="invalid_input", message="push payload without ref"))
        return Ok(PushEvent(ref=ref))

    if event_name != "release" or get_str(payload, "action") != "published":
        return Ok(None)

    release = get_table(payload, "release")
    if release is None:
        return Err(ReleaseError(kind="invalid_input", message="release payload without release"))

    tag_name = get_str(release, "tag_name")
    target = get_str(release, "target_commitish")
    if tag_name is None or target is None:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message="release payload without tag_name or target_commitish",
            )
        )

    return Ok(
        PublishedEvent(
            tag_name=tag_name,
            target_branch=target,
            prerelease=get_bool(release, "prerelease") or False,
            draft=get_bool(release, "draft") or False,
            release_id=get_int(release, "id"),
            revision=revision,
        )
    )
