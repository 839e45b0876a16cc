"""Tests for relsync.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from relsync.core.result import Err, Ok
from relsync.platform.process import ProcessError, run


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(
            command=("gh", "auth"),
            returncode=1,
            stdout="",
            stderr="not logged in",
        )
        assert str(error) == "gh auth failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("gh", "api", "graphql", "-f", "query=..."),
            returncode=1,
            stdout="",
            stderr="error",
        )
        assert str(error) == "gh api graphql ... failed (exit 1)"

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('XX-1,XX-2')"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert result.value.strip() == "XX-1,XX-2"

    def test_runs_in_cwd(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "import os; print(os.getcwd())"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert Path(result.value.strip()).resolve() == tmp_path.resolve()

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "import sys; sys.exit(42)"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == 42

    def test_command_not_found(self, tmp_path: Path) -> None:
        result = run(["nonexistent_command_12345"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_timeout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2)

        assert isinstance(result, Err)
        assert result.error.returncode == -1
        assert "timed out" in result.error.stderr
