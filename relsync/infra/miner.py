from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from relsync.core.result import Err, Ok, Result
from relsync.infra.timeouts import MINER_TIMEOUT_SECONDS
from relsync.platform.process import run as run_process
from relsync.release.errors import ReleaseError


class ScriptIssueKeyMiner:
    """Runs the commit-mining script and returns its raw stdout.

    The script is called as ``<script> -r <line> -p <KEY1,KEY2> -t <prefix>``
    from the workspace and prints the comma-separated issue keys it found.
    A relative script path is resolved against the workspace.
    """

    def __init__(self, script: str) -> None:
        self._script = script

    def command(
        self, *, release_line: str, project_keys: Sequence[str], workspace: Path, tag_prefix: str
    ) -> list[str]:
        script = Path(self._script)
        if not script.is_absolute():
            script = workspace / script
        return [
            str(script),
            "-r",
            release_line,
            "-p",
            ",".join(project_keys),
            "-t",
            tag_prefix,
        ]

    def mine(
        self,
        *,
        release_line: str,
        project_keys: Sequence[str],
        workspace: Path,
        tag_prefix: str,
    ) -> Result[str, ReleaseError]:
        cmd = self.command(
            release_line=release_line,
            project_keys=project_keys,
            workspace=workspace,
            tag_prefix=tag_prefix,
        )
        result = run_process(cmd, cwd=workspace, timeout=MINER_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="collaborator_error",
                    message=f"issue key extraction failed for {release_line}",
                    hint=result.error.stderr.strip() or str(result.error),
                )
            )
        return Ok(result.value.strip())
