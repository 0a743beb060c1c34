"""Tests for the bounded blocking-call helper."""

import time

import pytest

from squadzone.core.concurrency import check_deadline, run_blocking
from squadzone.core.exceptions import OperationTimeoutException
from squadzone.database import _build_engine_kwargs


@pytest.mark.asyncio
async def test_returns_result():
    assert await run_blocking(lambda a, b=0: a + b, 2, b=3) == 5


@pytest.mark.asyncio
async def test_propagates_exceptions():
    def _boom() -> None:
        raise ValueError("boom")

    with pytest.raises(ValueError):
        await run_blocking(_boom)


@pytest.mark.asyncio
async def test_timeout_raises_operation_timeout():
    def _slow_then_check() -> None:
        time.sleep(0.3)
        check_deadline()

    with pytest.raises(OperationTimeoutException) as exc_info:
        await run_blocking(_slow_then_check, timeout=0.05)

    assert exc_info.value.status_code == 503
    assert exc_info.value.code == "TIMEOUT"
    assert exc_info.value.details["timeout_seconds"] == 0.05


@pytest.mark.asyncio
async def test_worker_is_finished_before_timeout_is_reported():
    progress = []

    def _slow_then_check() -> None:
        time.sleep(0.3)
        progress.append("checked")
        check_deadline()
        progress.append("unreachable")

    with pytest.raises(OperationTimeoutException):
        await run_blocking(_slow_then_check, timeout=0.05)

    # No worker is left running behind the error
    assert progress == ["checked"]


@pytest.mark.asyncio
async def test_worker_that_completes_late_returns_its_result():
    def _slow() -> str:
        time.sleep(0.2)
        return "done"

    assert await run_blocking(_slow, timeout=0.05) == "done"


@pytest.mark.asyncio
async def test_deadline_not_reached_passes():
    def _quick() -> str:
        check_deadline()
        return "ok"

    assert await run_blocking(_quick, timeout=5) == "ok"


def test_check_deadline_outside_run_blocking_is_noop():
    check_deadline()


def test_engine_kwargs_cap_statements():
    sqlite_kwargs = _build_engine_kwargs("sqlite:///./sz.db")
    assert sqlite_kwargs["connect_args"]["check_same_thread"] is False
    assert sqlite_kwargs["connect_args"]["timeout"] > 0

    pg_kwargs = _build_engine_kwargs("postgresql://db/sz")
    assert pg_kwargs["connect_args"]["options"].startswith("-c statement_timeout=")
