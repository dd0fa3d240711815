"""Poll a remote object until it settles in a target state.

``wait_for_state`` is the primitive every mutating operation reuses after it has
issued an asynchronous API call. It only ever suspends in the injected ``sleep``
function, once for the initial delay and once between polls.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final, cast

from .errors import RemoteObjectNotFound, UnexpectedStateError, WaitAborted, WaitTimeoutError
from .outcomes import NO_RETRYABLE_CONFLICTS, ConflictPolicy, Outcome, classify

if TYPE_CHECKING:
    from .ports.remote import RemoteObjectAccessor

log = getLogger(__name__)

DELETED_LABEL: Final = "deleted"

type SleepFunc = Callable[[float], None]
type ClockFunc = Callable[[], float]


@dataclass(slots=True, frozen=True)
class Refreshed[S, L: Hashable]:
    """One observation of a remote object: its snapshot and lifecycle label."""

    snapshot: S | None
    label: L


@dataclass(slots=True, frozen=True)
class WaitSpec[S, L: Hashable]:
    """Parameters for a single wait.

    An empty ``pending`` set means any label that is not a target counts as
    still in progress. Durations are in seconds; ``timeout`` is measured from
    the moment the wait starts and includes ``initial_delay``.
    """

    refresh: RemoteObjectAccessor[S, L]
    target: frozenset[L]
    timeout: float
    pending: frozenset[L] = field(default_factory=frozenset)
    initial_delay: float = 0.0
    poll_interval: float = 10.0
    object_id: str = "object"
    operation: str = "settle"
    continuous_target_occurrence: int = 1
    conflicts: ConflictPolicy = NO_RETRYABLE_CONFLICTS

    def __post_init__(self) -> None:
        if not self.target:
            raise ValueError("WaitSpec requires at least one target label")
        overlap = self.target & self.pending
        if overlap:
            labels = ", ".join(sorted(str(label) for label in overlap))
            raise ValueError(f"labels cannot be both pending and target: {labels}")
        if self.timeout < 0 or self.initial_delay < 0:
            raise ValueError("timeout and initial_delay must be non-negative")
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if self.continuous_target_occurrence < 1:
            raise ValueError("continuous_target_occurrence must be at least 1")

    @property
    def awaits_deletion(self) -> bool:
        return any(label == DELETED_LABEL for label in self.target)

    def is_pending(self, label: L) -> bool:
        return not self.pending or label in self.pending


class StateWaiter:
    """Runs waits with a fixed pair of sleep/clock functions."""

    def __init__(
        self,
        *,
        sleep: SleepFunc = time.sleep,
        clock: ClockFunc = time.monotonic,
    ) -> None:
        self._sleep = sleep
        self._clock = clock

    def wait[S, L: Hashable](self, spec: WaitSpec[S, L]) -> S | None:
        """Block until ``spec`` reaches a target label and return its snapshot.

        Returns ``None`` when deletion was awaited and the object is gone.
        """

        deadline = self._clock() + spec.timeout
        if spec.initial_delay > 0:
            self._sleep(min(spec.initial_delay, spec.timeout))

        last_label: L | None = None
        target_hits = 0
        while True:
            try:
                refreshed = spec.refresh()
            except Exception as exc:
                outcome = classify(exc, conflicts=spec.conflicts)
                if outcome is Outcome.NOT_FOUND:
                    if spec.awaits_deletion:
                        log.debug("%s is gone; %s complete", spec.object_id, spec.operation)
                        return None
                    raise RemoteObjectNotFound(
                        object_id=spec.object_id, operation=spec.operation, cause=exc
                    ) from exc
                if outcome is Outcome.FATAL:
                    raise WaitAborted(
                        object_id=spec.object_id, operation=spec.operation, cause=exc
                    ) from exc
                log.warning(
                    "Retryable error refreshing %s (%s): %s", spec.object_id, outcome, exc
                )
                target_hits = 0
            else:
                label = refreshed.label
                last_label = label
                log.debug("%s is %s (waiting to %s)", spec.object_id, label, spec.operation)
                if label in spec.target:
                    target_hits += 1
                    if target_hits >= spec.continuous_target_occurrence:
                        return refreshed.snapshot
                elif spec.is_pending(label):
                    target_hits = 0
                else:
                    raise UnexpectedStateError(
                        object_id=spec.object_id,
                        operation=spec.operation,
                        label=label,
                        expected=frozenset(spec.target | spec.pending),
                    )

            remaining = deadline - self._clock()
            if remaining <= 0:
                raise WaitTimeoutError(
                    object_id=spec.object_id,
                    operation=spec.operation,
                    timeout=spec.timeout,
                    last_label=last_label,
                )
            self._sleep(min(spec.poll_interval, remaining))

    def wait_present[S, L: Hashable](self, spec: WaitSpec[S, L]) -> S:
        """Like ``wait`` for a spec without a deletion target, so a snapshot is returned."""

        if spec.awaits_deletion:
            raise ValueError(f"{spec.operation}: a deletion wait has no snapshot to return")
        return cast("S", self.wait(spec))


def wait_for_state[S, L: Hashable](
    spec: WaitSpec[S, L],
    *,
    sleep: SleepFunc = time.sleep,
    clock: ClockFunc = time.monotonic,
) -> S | None:
    return StateWaiter(sleep=sleep, clock=clock).wait(spec)


__all__ = [
    "DELETED_LABEL",
    "ClockFunc",
    "Refreshed",
    "SleepFunc",
    "StateWaiter",
    "WaitSpec",
    "wait_for_state",
]
