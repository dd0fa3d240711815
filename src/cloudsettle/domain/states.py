"""Lifecycle label vocabularies (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ClusterStatus(StrEnum):
    PROVISIONING = "provisioning"
    RUNNING = "running"
    SHUTOFF = "shutoff"
    RECONCILING = "reconciling"
    ERROR = "error"
    DELETING = "deleting"
    DELETED = "deleted"


class PowerAction(StrEnum):
    """Switch-state actions understood by the container-infra API."""

    TURN_ON = "turn_on_cluster"
    TURN_OFF = "turn_off_cluster"


class FloatingIPStatus(StrEnum):
    ACTIVE = "active"
    DOWN = "down"
    PENDING_CREATE = "pending_create"
    ERROR = "error"
    DELETED = "deleted"


def parse_status[E: StrEnum](enum_type: type[E], raw: str) -> E:
    """Map a raw API status (any case) onto ``enum_type``."""

    try:
        return enum_type(raw.strip().lower())
    except ValueError:
        raise ValueError(f"unknown {enum_type.__name__} value: {raw!r}") from None
