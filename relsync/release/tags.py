"""Strict validation of release tags.

Tags are typed by humans and other automation, so only exact
``<prefix>MAJOR.MINOR.PATCH`` shapes count as release points.
"""

from __future__ import annotations

import re

_RELEASE_LINE_RE = re.compile(r"[0-9]{1,2}\.[0-9]{1,2}")


def matches_numbering(tag: str, prefix: str, release_line: str | None = None) -> bool:
    """Return True if ``tag`` is ``<prefix>M.N.P`` (1-2, 1-2 and 1-4 digits).

    With ``release_line`` the check is narrowed to that major.minor line.
    """
    if release_line is not None:
        return matches_release_line(tag, prefix, release_line)
    pattern = re.escape(prefix) + r"[0-9]{1,2}\.[0-9]{1,2}\.[0-9]{1,4}"
    return re.fullmatch(pattern, tag) is not None


def matches_release_line(tag: str, prefix: str, release_line: str) -> bool:
    if _RELEASE_LINE_RE.fullmatch(release_line) is None:
        return False
    pattern = re.escape(prefix) + re.escape(release_line) + r"\.[0-9]{1,4}"
    return re.fullmatch(pattern, tag) is not None


def is_major_version(tag: str) -> bool:
    """A major version is any tag whose patch component is literally ``0``."""
    return "." in tag and tag.rsplit(".", 1)[1] == "0"
