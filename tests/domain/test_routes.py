from __future__ import annotations

import threading

import pytest

from cloudsettle.domain.errors import (
    MutationError,
    RemoteAPIError,
    RemoteReadError,
    RouteNotFoundError,
)
from cloudsettle.domain.locking import LockRegistry
from cloudsettle.domain.model import Route, Router
from cloudsettle.domain.routes import add_router_route, remove_router_route, router_lock_key
from tests.support.cloud import FakeClock, FakeRouterAPI

EXISTING = Route(destination_cidr="10.0.0.0/24", next_hop="192.168.0.1")
NEW = Route(destination_cidr="10.1.0.0/24", next_hop="192.168.0.2")


def test_add_route_appends_to_existing_routes(clock: FakeClock) -> None:
    api = FakeRouterAPI(routes=[EXISTING])
    locks = LockRegistry()

    router = add_router_route(api, locks, "router-1", NEW, sleep=clock.sleep)

    assert router.routes == (EXISTING, NEW)
    assert api.writes == [(EXISTING, NEW)]
    assert router_lock_key("router-1") in locks


def test_add_existing_route_is_a_no_op(clock: FakeClock) -> None:
    api = FakeRouterAPI(routes=[EXISTING])

    router = add_router_route(api, LockRegistry(), "router-1", EXISTING, sleep=clock.sleep)

    assert router.routes == (EXISTING,)
    assert api.writes == []


def test_remove_route_keeps_the_others(clock: FakeClock) -> None:
    api = FakeRouterAPI(routes=[EXISTING, NEW])

    router = remove_router_route(api, LockRegistry(), "router-1", EXISTING, sleep=clock.sleep)

    assert router.routes == (NEW,)


def test_remove_missing_route_raises(clock: FakeClock) -> None:
    api = FakeRouterAPI(routes=[EXISTING])

    with pytest.raises(RouteNotFoundError, match="can't find route to 10.1.0.0/24"):
        remove_router_route(api, LockRegistry(), "router-1", NEW, sleep=clock.sleep)

    assert api.writes == []


def test_transient_write_errors_are_retried(clock: FakeClock) -> None:
    api = FakeRouterAPI(routes=[EXISTING])
    api.write_errors = [RemoteAPIError("busy", status_code=503)]

    router = add_router_route(
        api, LockRegistry(), "router-1", NEW, timeout=60, sleep=clock.sleep, clock=clock
    )

    assert router.routes == (EXISTING, NEW)
    assert len(clock.sleeps) == 1


def test_route_write_retries_stop_at_the_timeout(clock: FakeClock) -> None:
    api = FakeRouterAPI(routes=[EXISTING])
    api.write_errors = [RemoteAPIError("busy", status_code=503)] * 10

    with pytest.raises(MutationError, match="busy"):
        add_router_route(
            api, LockRegistry(), "router-1", NEW, timeout=3, sleep=clock.sleep, clock=clock
        )

    assert clock.sleeps == [0.5, 1, 2]
    assert api.writes == []


def test_fatal_write_errors_raise_mutation_error(clock: FakeClock) -> None:
    api = FakeRouterAPI(routes=[EXISTING])
    api.write_errors = [RemoteAPIError("invalid nexthop", status_code=400)]

    with pytest.raises(MutationError, match="invalid nexthop"):
        add_router_route(api, LockRegistry(), "router-1", NEW, sleep=clock.sleep)


def test_read_errors_are_reported(clock: FakeClock) -> None:
    api = FakeRouterAPI()
    api.read_error = RemoteAPIError("router gone", status_code=404)

    with pytest.raises(RemoteReadError):
        add_router_route(api, LockRegistry(), "router-1", NEW, sleep=clock.sleep)


class SlowRouterAPI(FakeRouterAPI):
    """Yields between read and write so unserialised updates would lose routes."""

    def __init__(self) -> None:
        super().__init__()
        self._barrier = threading.Event()

    def get_router(self, router_id: str) -> Router:
        router = super().get_router(router_id)
        self._barrier.wait(timeout=0.02)
        return router


def test_concurrent_adds_on_one_router_keep_every_route() -> None:
    api = SlowRouterAPI()
    locks = LockRegistry()
    routes = [Route(destination_cidr=f"10.{i}.0.0/24", next_hop="192.168.0.1") for i in range(6)]

    threads = [
        threading.Thread(target=add_router_route, args=(api, locks, "router-1", route))
        for route in routes
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert set(api.router.routes) == set(routes)
    assert len(api.writes) == len(routes)
