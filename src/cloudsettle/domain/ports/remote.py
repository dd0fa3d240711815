"""Callable contracts the reconciliation core consumes."""

from __future__ import annotations

from collections.abc import Hashable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from cloudsettle.domain.waiting import Refreshed


@runtime_checkable
class RemoteObjectAccessor[S, L: Hashable](Protocol):
    """Fetch the current snapshot and label of one remote object.

    Must be idempotent and side-effect free. Failures are raised, typically as
    ``RemoteAPIError``; raising anything else stops a wait immediately.
    """

    def __call__(self) -> Refreshed[S, L]: ...


@runtime_checkable
class MutationInvoker(Protocol):
    """Issue one state-changing call whose completion is awaited separately."""

    def __call__(self) -> object: ...


__all__ = ["MutationInvoker", "RemoteObjectAccessor"]
