"""Error taxonomy shared by the reconciliation core."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Hashable


class RemoteAPIError(RuntimeError):
    """Raised by accessors and invokers when the remote API rejects a call.

    ``status_code`` is ``None`` when no HTTP response was received at all.
    ``subtype`` is the machine-readable error kind embedded in the response body,
    when the API provides one.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        subtype: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.subtype = subtype

    def __str__(self) -> str:
        parts = [self.message]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.subtype:
            parts.append(f"type={self.subtype}")
        return " ".join(parts)


class ReconcileError(RuntimeError):
    """Base class for failures surfaced by the reconciliation core."""

    def __init__(self, message: str, *, object_id: str, operation: str) -> None:
        super().__init__(message)
        self.object_id = object_id
        self.operation = operation


class WaitTimeoutError(ReconcileError):
    def __init__(
        self, *, object_id: str, operation: str, timeout: float, last_label: Hashable | None
    ) -> None:
        super().__init__(
            f"timeout while waiting for {object_id} to {operation} after {timeout:g}s; "
            f"last state: {last_label if last_label is not None else 'unknown'}",
            object_id=object_id,
            operation=operation,
        )
        self.timeout = timeout
        self.last_label = last_label


class UnexpectedStateError(ReconcileError):
    def __init__(
        self,
        *,
        object_id: str,
        operation: str,
        label: Hashable,
        expected: frozenset[Hashable],
    ) -> None:
        expected_list = ", ".join(sorted(str(item) for item in expected))
        super().__init__(
            f"unexpected state '{label}' for {object_id} while waiting to {operation}; "
            f"wanted one of: {expected_list}",
            object_id=object_id,
            operation=operation,
        )
        self.label = label
        self.expected = expected


class RemoteObjectNotFound(ReconcileError):
    """The object disappeared while a non-deletion state was awaited."""

    def __init__(self, *, object_id: str, operation: str, cause: BaseException) -> None:
        super().__init__(
            f"{object_id} no longer exists while waiting to {operation}: {cause}",
            object_id=object_id,
            operation=operation,
        )


class WaitAborted(ReconcileError):
    """A refresh raised an error classified as fatal."""

    def __init__(self, *, object_id: str, operation: str, cause: BaseException) -> None:
        super().__init__(
            f"error refreshing {object_id} while waiting to {operation}: {cause}",
            object_id=object_id,
            operation=operation,
        )


class RemoteErrorState(ReconcileError):
    """The remote side reports the object in an error state, with its reason if given."""

    def __init__(
        self, *, object_id: str, operation: str, label: Hashable, reason: str | None
    ) -> None:
        super().__init__(
            f"{object_id} is in state '{label}' during {operation}: "
            f"{reason or 'no reason reported'}",
            object_id=object_id,
            operation=operation,
        )
        self.label = label
        self.reason = reason


class ProhibitedStateError(ReconcileError):
    def __init__(self, *, object_id: str, operation: str, label: Hashable) -> None:
        super().__init__(
            f"{operation} on {object_id} is prohibited while its status is {label}",
            object_id=object_id,
            operation=operation,
        )
        self.label = label


class MutationError(ReconcileError):
    def __init__(self, *, object_id: str, operation: str, cause: BaseException) -> None:
        super().__init__(
            f"error during {operation} on {object_id}: {cause}",
            object_id=object_id,
            operation=operation,
        )


class RemoteReadError(ReconcileError):
    def __init__(self, *, object_id: str, operation: str, cause: BaseException) -> None:
        super().__init__(
            f"error retrieving {object_id} for {operation}: {cause}",
            object_id=object_id,
            operation=operation,
        )


class RouteNotFoundError(ReconcileError):
    """Raised when asked to remove a route the router does not carry."""


__all__ = [
    "MutationError",
    "ProhibitedStateError",
    "ReconcileError",
    "RemoteAPIError",
    "RemoteErrorState",
    "RemoteObjectNotFound",
    "RemoteReadError",
    "RouteNotFoundError",
    "UnexpectedStateError",
    "WaitAborted",
    "WaitTimeoutError",
]
