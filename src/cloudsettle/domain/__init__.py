"""Reconciliation core: classification, keyed locks, polling and phases."""

from __future__ import annotations

from .errors import (
    MutationError,
    ProhibitedStateError,
    ReconcileError,
    RemoteAPIError,
    RemoteErrorState,
    RemoteObjectNotFound,
    RemoteReadError,
    RouteNotFoundError,
    UnexpectedStateError,
    WaitAborted,
    WaitTimeoutError,
)
from .locking import LockHandle, LockRegistry
from .outcomes import ConflictPolicy, Outcome, classify, is_retryable
from .phases import Phase, PhaseOrchestrator
from .retrying import call_with_retry
from .waiting import DELETED_LABEL, Refreshed, StateWaiter, WaitSpec, wait_for_state

__all__ = [
    "DELETED_LABEL",
    "ConflictPolicy",
    "LockHandle",
    "LockRegistry",
    "MutationError",
    "Outcome",
    "Phase",
    "PhaseOrchestrator",
    "ProhibitedStateError",
    "ReconcileError",
    "Refreshed",
    "RemoteAPIError",
    "RemoteErrorState",
    "RemoteObjectNotFound",
    "RemoteReadError",
    "RouteNotFoundError",
    "StateWaiter",
    "UnexpectedStateError",
    "WaitAborted",
    "WaitSpec",
    "WaitTimeoutError",
    "call_with_retry",
    "classify",
    "is_retryable",
    "wait_for_state",
]
