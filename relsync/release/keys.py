from __future__ import annotations

import re
from collections.abc import Sequence

from relsync.release.model import TrackerProject

_SEPARATOR_RE = re.compile(r"[,\s]+")


def parse_issue_keys(raw: str) -> list[str]:
    """Normalize the miner's comma-separated output into issue keys.

    ``"XX-123, XX-456\\n"`` gives ``["XX-123", "XX-456"]``; blank or
    whitespace-only output gives ``[]``.
    """
    return [token for token in _SEPARATOR_RE.split(raw) if token]


def project_for_issue(
    issue_key: str, projects: Sequence[TrackerProject]
) -> TrackerProject | None:
    # First configured key that prefixes the issue key wins; order matters
    # when one project key is a prefix of another.
    for project in projects:
        if issue_key.startswith(project.key):
            return project
    return None
