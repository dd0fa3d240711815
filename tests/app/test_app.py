from __future__ import annotations

import pytest

from cloudsettle.adapters.cloud import CloudClient
from cloudsettle.app import (
    ControlPlane,
    add_route,
    allocate_floating_ip_from_pool,
    build_control_plane,
    delete_cluster,
    remove_route,
    update_cluster,
    wait_cluster_running,
)
from cloudsettle.config import OperationTimeouts
from cloudsettle.domain.cluster import ClusterChange
from cloudsettle.domain.model import Cluster, Route
from cloudsettle.domain.routes import router_lock_key
from cloudsettle.domain.states import ClusterStatus, FloatingIPStatus
from tests.support.cloud import FAST_TIMEOUTS, FakeClock, FakeCloudAPI


def _plane(api: FakeCloudAPI, clock: FakeClock) -> ControlPlane:
    return ControlPlane(api=api, timeouts=FAST_TIMEOUTS, waiter=clock.waiter())


def _cluster(status: ClusterStatus = ClusterStatus.RUNNING) -> Cluster:
    return Cluster(id="k8s-1", status=status, cluster_template_id="tmpl-1")


def test_build_control_plane_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLOUDSETTLE_API_URL", "https://cloud.test/v1")
    monkeypatch.setenv("CLOUDSETTLE_API_TOKEN", "secret-token")

    plane = build_control_plane()

    assert isinstance(plane.api, CloudClient)
    assert plane.timeouts == OperationTimeouts()
    assert len(plane.locks) == 0


def test_update_cluster_through_control_plane(clock: FakeClock) -> None:
    api = FakeCloudAPI(_cluster())

    cluster = update_cluster(
        "k8s-1",
        ClusterChange(cluster_template_id="tmpl-2", status=ClusterStatus.SHUTOFF),
        control_plane=_plane(api, clock),
    )

    assert api.call_names == ["upgrade", "switch"]
    assert cluster.status is ClusterStatus.SHUTOFF


def test_wait_and_delete_cluster(clock: FakeClock) -> None:
    api = FakeCloudAPI(_cluster(ClusterStatus.PROVISIONING))
    plane = _plane(api, clock)
    api.transitions = [ClusterStatus.PROVISIONING, ClusterStatus.RUNNING]

    cluster = wait_cluster_running("k8s-1", control_plane=plane)
    delete_cluster("k8s-1", control_plane=plane)

    assert cluster.status is ClusterStatus.RUNNING
    assert api.call_names == ["delete"]
    assert api.gone


def test_route_commands_share_the_plane_lock_registry(clock: FakeClock) -> None:
    api = FakeCloudAPI(_cluster())
    plane = _plane(api, clock)

    added = add_route("router-1", "10.0.0.0/24", "192.168.0.1", control_plane=plane)
    removed = remove_route("router-1", "10.0.0.0/24", "192.168.0.1", control_plane=plane)

    assert added.routes == (Route(destination_cidr="10.0.0.0/24", next_hop="192.168.0.1"),)
    assert removed.routes == ()
    assert router_lock_key("router-1") in plane.locks


def test_allocate_floating_ip_uses_plane_waiter(clock: FakeClock) -> None:
    api = FakeCloudAPI(_cluster())
    api.statuses = [FloatingIPStatus.PENDING_CREATE, FloatingIPStatus.ACTIVE]

    fip = allocate_floating_ip_from_pool(
        "ext-net", subnet_ids=["subnet-a"], control_plane=_plane(api, clock)
    )

    assert fip.status is FloatingIPStatus.ACTIVE
    assert clock.sleeps == [5, 3]
