"""Process exit codes for the relsync CLI.

The numeric values are part of the CLI contract (CI pipelines branch on
them) and must stay stable:
- 0: Success
- 1: User error (event not on a release branch, prerelease, bad tag)
- 2: Configuration error (missing or invalid relsync.toml)
- 3: Partial failure (run finished, some issues could not be updated)
- 4: Network error (GitHub, Jira or the miner script failed)
- 5: Internal error
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    OK = 0
    USER_ERROR = 1
    CONFIG_ERROR = 2
    PARTIAL_FAILURE = 3
    NETWORK_ERROR = 4
    INTERNAL_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
