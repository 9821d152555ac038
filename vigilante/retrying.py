"""Retrying a call with a fixed delay plus random jitter, optionally forever."""

from __future__ import annotations

import random
import threading
from collections.abc import Callable
from datetime import timedelta
from typing import TypeVar

T = TypeVar("T")

DEFAULT_ATTEMPTS = 10
DEFAULT_DELAY = 0.1
DEFAULT_MAX_JITTER = 0.1


class RetryAborted(Exception):
    """The stop event was set before the call succeeded."""

    def __init__(self, errors: list[BaseException] | None = None) -> None:
        self.errors = list(errors or [])
        super().__init__("retrying aborted")


def _seconds(value: float | timedelta | None) -> float:
    if value is None:
        return 0.0
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


def _next_delay(delay: float, max_delay: float, max_jitter: float) -> float:
    wait = delay + (random.uniform(0, max_jitter) if max_jitter > 0 else 0.0)
    if max_delay > 0 and wait > max_delay:
        wait = max_delay
    return max(wait, 0.0)


def _chain(errors: list[Exception]) -> None:
    seen: set[int] = set()
    for prev, cur in zip(errors, errors[1:]):
        seen.add(id(prev))
        if id(cur) not in seen and cur.__context__ is None:
            cur.__context__ = prev


def retry(
    fn: Callable[[], T],
    attempts: int = DEFAULT_ATTEMPTS,
    delay: float | timedelta = DEFAULT_DELAY,
    max_delay: float | timedelta | None = None,
    max_jitter: float | timedelta = DEFAULT_MAX_JITTER,
    stop_event: threading.Event | None = None,
    on_retry: Callable[[int, Exception], None] | None = None,
    last_error_only: bool = False,
) -> T:
    """Call ``fn`` until it returns, and return its result.

    ``attempts`` of 0 retries forever. Between attempts the wait is ``delay``
    plus a random jitter up to ``max_jitter``, capped at ``max_delay``.
    ``on_retry(n, err)`` is called after each failed attempt, counting from 0.
    When the attempts run out the last error is raised; unless
    ``last_error_only`` is set the earlier errors are chained as its context.
    Setting ``stop_event`` aborts with RetryAborted.
    """
    delay_s = _seconds(delay)
    max_delay_s = _seconds(max_delay)
    jitter_s = _seconds(max_jitter)
    stop = stop_event or threading.Event()
    errors: list[Exception] = []

    if stop.is_set():
        raise RetryAborted()

    n = 0
    while True:
        try:
            return fn()
        except Exception as exc:  # noqa: BLE001 - every failure is retried
            if last_error_only:
                errors = [exc]
            else:
                errors.append(exc)
            if on_retry is not None:
                on_retry(n, exc)
            if attempts > 0 and n >= attempts - 1:
                break
        if stop.wait(_next_delay(delay_s, max_delay_s, jitter_s)):
            raise RetryAborted(errors) from errors[-1]
        n += 1

    if not last_error_only:
        _chain(errors)
    raise errors[-1]