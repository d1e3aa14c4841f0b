"""Timed-retry helpers: job polling and waiting for staged files."""

from __future__ import annotations

import asyncio
import os
import time
from typing import Awaitable, Callable, TypeVar

import structlog

from shared.errors import FileWaitTimeoutError

logger = structlog.get_logger()

T = TypeVar("T")


class PollExhaustedError(TimeoutError):
    """Raised when a bounded poll runs out of attempts or time."""


async def poll_until(
    refresh: Callable[[T], Awaitable[T]],
    initial: T,
    is_done: Callable[[T], bool],
    *,
    interval: float,
    max_attempts: int | None = None,
    deadline: float | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Sleep ``interval`` seconds and refresh ``initial`` until ``is_done``.

    With neither ``max_attempts`` nor ``deadline`` (seconds from now) the loop
    is unbounded and ends only on completion, an exception from ``refresh``,
    or cancellation of the calling task.
    """
    state = initial
    attempts = 0
    stop_at = time.monotonic() + deadline if deadline is not None else None

    while not is_done(state):
        if max_attempts is not None and attempts >= max_attempts:
            raise PollExhaustedError(f"Still not done after {attempts} polls")
        if stop_at is not None and time.monotonic() >= stop_at:
            raise PollExhaustedError(f"Still not done after {deadline}s")

        logger.debug("poll_waiting", attempt=attempts + 1, interval=interval)
        await sleep(interval)
        state = await refresh(state)
        attempts += 1

    return state


async def wait_for_file(path: str, timeout: float = 15.0, interval: float = 0.2) -> None:
    """Block until ``path`` exists, raising FileWaitTimeoutError after ``timeout``."""
    started = time.monotonic()
    while not os.path.exists(path):
        if time.monotonic() - started > timeout:
            raise FileWaitTimeoutError(
                f"File not found after {int(timeout * 1000)}ms: {path}"
            )
        await asyncio.sleep(interval)
