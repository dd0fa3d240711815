"""Classification of remote API failures into a stable four-way taxonomy.

Both the poll loop and the one-shot retry wrapper ask ``classify`` what an
exception means instead of inspecting transport errors themselves, so swapping
the transport only touches the adapter that raises ``RemoteAPIError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final

from .errors import RemoteAPIError


class Outcome(StrEnum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TRANSIENT = "transient"
    FATAL = "fatal"


TRANSIENT_STATUS_CODES: Final[frozenset[int]] = frozenset({500, 502, 503, 504})


@dataclass(slots=True, frozen=True)
class ConflictPolicy:
    """409 subtypes a resource family knows to resolve on their own."""

    retryable_subtypes: frozenset[str] = field(default_factory=frozenset)

    def is_retryable(self, subtype: str | None) -> bool:
        return subtype is not None and subtype in self.retryable_subtypes

    def __or__(self, other: ConflictPolicy) -> ConflictPolicy:
        return ConflictPolicy(self.retryable_subtypes | other.retryable_subtypes)


NO_RETRYABLE_CONFLICTS: Final = ConflictPolicy()
NETWORKING_CONFLICTS: Final = ConflictPolicy(
    frozenset({"IpAddressGenerationFailure", "ExternalIpAddressExhausted"})
)
BLOCKSTORAGE_CONFLICTS: Final = ConflictPolicy(frozenset({"VolumeStillAttached"}))


def classify(exc: BaseException, *, conflicts: ConflictPolicy = NO_RETRYABLE_CONFLICTS) -> Outcome:
    """Return the outcome class for ``exc``.

    Anything that is not a ``RemoteAPIError`` is fatal: refresh functions signal
    cancellation or a remote error state by raising their own exceptions.
    """

    if not isinstance(exc, RemoteAPIError):
        return Outcome.FATAL

    status = exc.status_code
    if status == 404:
        return Outcome.NOT_FOUND
    if status == 409:
        return Outcome.CONFLICT if conflicts.is_retryable(exc.subtype) else Outcome.FATAL
    if status in TRANSIENT_STATUS_CODES:
        return Outcome.TRANSIENT
    return Outcome.FATAL


def is_retryable(outcome: Outcome) -> bool:
    return outcome in (Outcome.TRANSIENT, Outcome.CONFLICT)


def is_not_found(exc: BaseException) -> bool:
    return classify(exc) is Outcome.NOT_FOUND


__all__ = [
    "BLOCKSTORAGE_CONFLICTS",
    "NETWORKING_CONFLICTS",
    "NO_RETRYABLE_CONFLICTS",
    "TRANSIENT_STATUS_CODES",
    "ConflictPolicy",
    "Outcome",
    "classify",
    "is_not_found",
    "is_retryable",
]
