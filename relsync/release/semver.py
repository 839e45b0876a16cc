from __future__ import annotations

import re
from dataclasses import dataclass, replace

from relsync.core.result import Err, Ok, Result
from relsync.release.errors import ReleaseError, invalid_version

# Prefix is any run of non-digits ("v", "vrs", ""), components are ASCII digits.
_HEAD_RE = re.compile(r"(?P<prefix>\D*)(?P<major>[0-9]+)")
_NUMBER_RE = re.compile(r"[0-9]+")


@dataclass(frozen=True, slots=True)
class VersionString:
    prefix: str
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.prefix}{self.major}.{self.minor}.{self.patch}"

    @property
    def release_line(self) -> str:
        return f"{self.major}.{self.minor}"


def parse_version(text: str) -> Result[VersionString, ReleaseError]:
    parts = text.split(".")
    if len(parts) != 3:
        return Err(invalid_version(text, "expected three dot-separated components"))

    head = _HEAD_RE.fullmatch(parts[0])
    if head is None:
        return Err(invalid_version(text, "major component is not numeric"))
    if _NUMBER_RE.fullmatch(parts[1]) is None:
        return Err(invalid_version(text, "minor component is not numeric"))
    if _NUMBER_RE.fullmatch(parts[2]) is None:
        return Err(invalid_version(text, "patch component is not numeric"))

    return Ok(
        VersionString(
            prefix=head.group("prefix"),
            major=int(head.group("major")),
            minor=int(parts[1]),
            patch=int(parts[2]),
        )
    )


def next_patch(version: str) -> Result[str, ReleaseError]:
    parsed = parse_version(version)
    if isinstance(parsed, Err):
        return parsed
    v = parsed.value
    return Ok(str(replace(v, patch=v.patch + 1)))


def next_minor(version: str) -> Result[str, ReleaseError]:
    """Increment the minor component.

    The patch component is kept as is: ``v1.0.3`` becomes ``v1.1.3``. Release
    tooling looks up the draft release for exactly that tag.
    """
    parsed = parse_version(version)
    if isinstance(parsed, Err):
        return parsed
    v = parsed.value
    return Ok(str(replace(v, minor=v.minor + 1)))


def previous_patch(version: str) -> Result[str, ReleaseError]:
    parsed = parse_version(version)
    if isinstance(parsed, Err):
        return parsed
    v = parsed.value
    if v.patch == 0:
        return Err(invalid_version(version, "there is no patch before 0"))
    return Ok(str(replace(v, patch=v.patch - 1)))


def version_from_branch(ref: str, branch_token: str) -> str:
    """Extract the release line from a branch reference.

    ``refs/heads/release/10.0`` gives ``10.0``; a ref without the token (or an
    already bare version) is returned unchanged.
    """
    if branch_token in ref:
        return ref.split("/")[-1]
    return ref


def previous_release_line(line: str) -> Result[str | None, ReleaseError]:
    """The release line before ``line``: ``10.1`` gives ``10.0``.

    A ``.0`` line has no predecessor on the same major and gives ``None``.
    """
    parts = line.split(".")
    if len(parts) != 2 or not all(_NUMBER_RE.fullmatch(p) for p in parts):
        return Err(invalid_version(line, "expected MAJOR.MINOR"))
    major, minor = int(parts[0]), int(parts[1])
    if minor == 0:
        return Ok(None)
    return Ok(f"{major}.{minor - 1}")
