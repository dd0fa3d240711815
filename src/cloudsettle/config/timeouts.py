"""Default deadlines and polling cadence for long-running operations."""

from __future__ import annotations

from dataclasses import dataclass, fields

from .env import optional_float_env

ENV_PREFIX = "CLOUDSETTLE_"


@dataclass(frozen=True, slots=True)
class OperationTimeouts:
    """All values are seconds."""

    create: float = 60 * 60
    update: float = 60 * 60
    delete: float = 30 * 60
    create_update_delay: float = 60
    create_update_poll_interval: float = 20
    delete_delay: float = 30
    delete_poll_interval: float = 10
    mutation_retry: float = 5 * 60


def get_operation_timeouts() -> OperationTimeouts:
    """Read overrides such as ``CLOUDSETTLE_UPDATE_SECONDS`` from the environment."""

    defaults = OperationTimeouts()
    overrides = {
        item.name: optional_float_env(
            f"{ENV_PREFIX}{item.name.upper()}_SECONDS", getattr(defaults, item.name)
        )
        for item in fields(OperationTimeouts)
    }
    return OperationTimeouts(**overrides)
