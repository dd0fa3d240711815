"""Bounded retries for one-shot mutations that are not followed by a poll."""

from __future__ import annotations

import time
from logging import getLogger
from typing import TYPE_CHECKING

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception,
    wait_exponential,
)

from .errors import MutationError
from .outcomes import NO_RETRYABLE_CONFLICTS, ConflictPolicy, classify, is_retryable

if TYPE_CHECKING:
    from collections.abc import Callable

    from .waiting import ClockFunc, SleepFunc

log = getLogger(__name__)

BACKOFF_INITIAL_SECONDS = 0.5
BACKOFF_MAX_SECONDS = 10.0


def call_with_retry[T](
    func: Callable[[], T],
    *,
    timeout: float,
    object_id: str,
    operation: str,
    conflicts: ConflictPolicy = NO_RETRYABLE_CONFLICTS,
    sleep: SleepFunc = time.sleep,
    clock: ClockFunc = time.monotonic,
) -> T:
    """Call ``func`` until it succeeds, retrying transient and retryable-conflict errors.

    Fatal outcomes raise ``MutationError`` on the first attempt. Once ``timeout``
    seconds have passed on ``clock`` the last retryable error is raised as
    ``MutationError``. Pass ``clock`` together with a replacement ``sleep``.
    """

    started = clock()

    def _should_retry(exc: BaseException) -> bool:
        return is_retryable(classify(exc, conflicts=conflicts))

    def _out_of_time(state: RetryCallState) -> bool:
        return clock() - started >= timeout

    def _log_retry(state: RetryCallState) -> None:
        outcome = state.outcome
        exc = outcome.exception() if outcome is not None else None
        log.warning(
            "Retrying %s on %s (attempt %s): %s",
            operation,
            object_id,
            state.attempt_number,
            exc,
        )

    retrying = Retrying(
        stop=_out_of_time,
        wait=wait_exponential(
            multiplier=BACKOFF_INITIAL_SECONDS,
            min=BACKOFF_INITIAL_SECONDS,
            max=BACKOFF_MAX_SECONDS,
        ),
        retry=retry_if_exception(_should_retry),
        before_sleep=_log_retry,
        sleep=sleep,
    )
    try:
        return retrying(func)
    except RetryError as exc:
        cause = exc.last_attempt.exception() or exc
        raise MutationError(object_id=object_id, operation=operation, cause=cause) from cause
    except Exception as exc:
        raise MutationError(object_id=object_id, operation=operation, cause=exc) from exc


__all__ = ["BACKOFF_INITIAL_SECONDS", "BACKOFF_MAX_SECONDS", "call_with_retry"]
