from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "invalid_version",
    "tag_mismatch",
    "wrong_branch",
    "prerelease",
    "collaborator_error",
    "invalid_input",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical error payload for a reconciliation run.

    ``tag_mismatch``, ``wrong_branch`` and ``prerelease`` abort a run before
    any side effect; ``collaborator_error`` wraps GitHub, Jira and miner
    failures.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


def invalid_version(version: str, reason: str) -> ReleaseError:
    return ReleaseError(
        kind="invalid_version",
        message=f"invalid version {version!r}: {reason}",
        hint="Expected: <prefix>MAJOR.MINOR.PATCH",
    )
