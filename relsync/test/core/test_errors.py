"""Tests for relsync.core.errors module."""

from __future__ import annotations

from relsync.core.errors import ErrorCode


class TestErrorCode:
    def test_values_are_stable(self) -> None:
        assert ErrorCode.OK == 0
        assert ErrorCode.USER_ERROR == 1
        assert ErrorCode.CONFIG_ERROR == 2
        assert ErrorCode.PARTIAL_FAILURE == 3
        assert ErrorCode.NETWORK_ERROR == 4
        assert ErrorCode.INTERNAL_ERROR == 5

    def test_str(self) -> None:
        assert str(ErrorCode.PARTIAL_FAILURE) == "partial failure"

    def test_is_success(self) -> None:
        assert ErrorCode.OK.is_success
        assert not ErrorCode.NETWORK_ERROR.is_success
