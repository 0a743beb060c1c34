# squadzone/core/concurrency.py
"""
Helpers for calling blocking service code from async handlers.

A worker thread cannot be interrupted, so the time budget is enforced where
the work can actually stop: ``check_deadline`` is called by the service layer
before it commits, and the database driver caps each statement. The async
side never abandons a worker; it waits for it so the request's Session is
not closed while still in use.
"""

import asyncio
from contextvars import ContextVar, copy_context
import functools
import logging
import time
from typing import Any, Callable, Optional, TypeVar

from .config import settings
from .exceptions import OperationTimeoutException

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (monotonic deadline, operation name) for the call running on this thread
_operation_deadline: ContextVar[Optional[tuple[float, str]]] = ContextVar(
    "squadzone_operation_deadline", default=None
)


def check_deadline() -> None:
    """
    Raise if the current run_blocking call is past its budget.

    No-op outside run_blocking.

    Raises:
        OperationTimeoutException: the budget has elapsed
    """
    current = _operation_deadline.get()
    if current is None:
        return
    deadline, name = current
    if time.monotonic() > deadline:
        raise OperationTimeoutException(
            "Operation timed out", details={"operation": name}
        )


async def run_blocking(
    func: Callable[..., T],
    *args: Any,
    timeout: Optional[float] = None,
    **kwargs: Any,
) -> T:
    """
    Run a sync (SQLAlchemy-backed) call on a worker thread with a time budget.

    The budget (``timeout``, defaulting to ``settings.operation_timeout_seconds``)
    is visible to the worker through check_deadline. When it elapses this
    waits for the worker to finish: a worker that stopped at a deadline check
    surfaces OperationTimeoutException, one that completed returns its result.

    Raises:
        OperationTimeoutException: the worker gave up at a deadline check
    """
    budget = settings.operation_timeout_seconds if timeout is None else timeout
    name = getattr(func, "__qualname__", repr(func))

    ctx = copy_context()
    ctx.run(_operation_deadline.set, (time.monotonic() + budget, name))
    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(None, functools.partial(ctx.run, func, *args, **kwargs))

    try:
        return await asyncio.wait_for(asyncio.shield(future), timeout=budget)
    except asyncio.TimeoutError:
        logger.error(f"Operation {name} exceeded {budget:.1f}s, waiting for worker to stop")

    try:
        result = await future
    except OperationTimeoutException as exc:
        exc.details.setdefault("timeout_seconds", budget)
        raise
    logger.warning(f"Operation {name} completed after its {budget:.1f}s budget")
    return result
