"""Floating IP allocation across a list of candidate external subnets."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from .errors import MutationError, RemoteAPIError
from .outcomes import NETWORKING_CONFLICTS, ConflictPolicy, Outcome, classify
from .states import FloatingIPStatus
from .waiting import Refreshed, StateWaiter, WaitSpec

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .model import FloatingIP
    from .ports.cloud import FloatingIPAPI

log = getLogger(__name__)

ALLOCATE_DELAY_SECONDS: Final = 5.0
ALLOCATE_POLL_SECONDS: Final = 3.0
ALLOCATE_TIMEOUT_SECONDS: Final = 10 * 60.0


def allocate_floating_ip(
    api: FloatingIPAPI,
    *,
    pool_id: str,
    subnet_ids: Sequence[str] = (),
    port_id: str | None = None,
    description: str | None = None,
    timeout: float = ALLOCATE_TIMEOUT_SECONDS,
    waiter: StateWaiter | None = None,
    conflicts: ConflictPolicy = NETWORKING_CONFLICTS,
) -> FloatingIP:
    """Allocate a floating IP from ``pool_id`` and wait until it is usable.

    With ``subnet_ids`` the subnets are tried in order; a conflict the policy
    marks as retryable (an exhausted address pool) moves on to the next one.
    """

    operation = "allocate floating ip"
    fip = _create_floating_ip(
        api,
        pool_id=pool_id,
        subnet_ids=subnet_ids,
        port_id=port_id,
        description=description,
        conflicts=conflicts,
        operation=operation,
    )
    floating_ip_id = fip.id

    def _refresh() -> Refreshed[FloatingIP, FloatingIPStatus]:
        current = api.get_floating_ip(floating_ip_id)
        return Refreshed(current, current.status)

    spec = WaitSpec(
        refresh=_refresh,
        pending=frozenset({FloatingIPStatus.PENDING_CREATE}),
        target=frozenset({FloatingIPStatus.ACTIVE, FloatingIPStatus.DOWN}),
        timeout=timeout,
        initial_delay=ALLOCATE_DELAY_SECONDS,
        poll_interval=ALLOCATE_POLL_SECONDS,
        object_id=floating_ip_id,
        operation="become available",
        conflicts=conflicts,
    )
    return (waiter or StateWaiter()).wait_present(spec)


def _create_floating_ip(
    api: FloatingIPAPI,
    *,
    pool_id: str,
    subnet_ids: Sequence[str],
    port_id: str | None,
    description: str | None,
    conflicts: ConflictPolicy,
    operation: str,
) -> FloatingIP:
    if not subnet_ids:
        try:
            return api.create_floating_ip(
                pool_id=pool_id, port_id=port_id, description=description
            )
        except RemoteAPIError as exc:
            raise MutationError(object_id=pool_id, operation=operation, cause=exc) from exc

    exhausted: list[RemoteAPIError] = []
    for attempt, subnet_id in enumerate(subnet_ids, start=1):
        log.debug("Allocating floating ip in subnet %s (try %d)", subnet_id, attempt)
        try:
            return api.create_floating_ip(
                pool_id=pool_id,
                subnet_id=subnet_id,
                port_id=port_id,
                description=description,
            )
        except RemoteAPIError as exc:
            if classify(exc, conflicts=conflicts) is not Outcome.CONFLICT:
                raise MutationError(object_id=pool_id, operation=operation, cause=exc) from exc
            log.info("Subnet %s exhausted: %s", subnet_id, exc)
            exhausted.append(exc)

    raise MutationError(
        object_id=pool_id,
        operation=f"{operation} ({len(exhausted)} subnets exhausted)",
        cause=exhausted[-1],
    ) from exhausted[-1]


__all__ = ["allocate_floating_ip"]
