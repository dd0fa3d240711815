"""Static routes on a shared router.

The router's route table is a single list-valued field, so adding or removing
one route is a read-modify-write of the whole list. Every such update runs under
the router's key in the ``LockRegistry``.
"""

from __future__ import annotations

import time
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import RemoteAPIError, RemoteReadError, RouteNotFoundError
from .outcomes import NETWORKING_CONFLICTS
from .retrying import call_with_retry

if TYPE_CHECKING:
    from .locking import LockRegistry
    from .model import Route, Router
    from .ports.cloud import RouterAPI
    from .waiting import ClockFunc, SleepFunc

log = getLogger(__name__)

DEFAULT_UPDATE_TIMEOUT = 5 * 60.0


def router_lock_key(router_id: str) -> str:
    return f"router:{router_id}"


def add_router_route(
    api: RouterAPI,
    locks: LockRegistry,
    router_id: str,
    route: Route,
    *,
    timeout: float = DEFAULT_UPDATE_TIMEOUT,
    sleep: SleepFunc = time.sleep,
    clock: ClockFunc = time.monotonic,
) -> Router:
    """Append ``route`` to the router unless it is already present."""

    operation = f"add route {route}"
    with locks.held(router_lock_key(router_id)):
        router = _read_router(api, router_id, operation=operation)
        if route in router.routes:
            log.debug("Router %s already has route %s", router_id, route)
            return router

        routes = (*router.routes, route)
        log.info("Adding route %s to router %s", route, router_id)
        return call_with_retry(
            lambda: api.set_routes(router_id, routes),
            timeout=timeout,
            object_id=router_id,
            operation=operation,
            conflicts=NETWORKING_CONFLICTS,
            sleep=sleep,
            clock=clock,
        )


def remove_router_route(
    api: RouterAPI,
    locks: LockRegistry,
    router_id: str,
    route: Route,
    *,
    timeout: float = DEFAULT_UPDATE_TIMEOUT,
    sleep: SleepFunc = time.sleep,
    clock: ClockFunc = time.monotonic,
) -> Router:
    operation = f"remove route {route}"
    with locks.held(router_lock_key(router_id)):
        router = _read_router(api, router_id, operation=operation)
        remaining = tuple(existing for existing in router.routes if existing != route)
        if len(remaining) == len(router.routes):
            raise RouteNotFoundError(
                f"can't find route to {route.destination_cidr} via {route.next_hop} "
                f"on router {router_id}",
                object_id=router_id,
                operation=operation,
            )

        log.info("Removing route %s from router %s", route, router_id)
        return call_with_retry(
            lambda: api.set_routes(router_id, remaining),
            timeout=timeout,
            object_id=router_id,
            operation=operation,
            conflicts=NETWORKING_CONFLICTS,
            sleep=sleep,
            clock=clock,
        )


def _read_router(api: RouterAPI, router_id: str, *, operation: str) -> Router:
    try:
        return api.get_router(router_id)
    except RemoteAPIError as exc:
        raise RemoteReadError(object_id=router_id, operation=operation, cause=exc) from exc


__all__ = ["add_router_route", "remove_router_route", "router_lock_key"]
