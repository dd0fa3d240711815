"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from cloudsettle.adapters.cloud import CloudClient
from cloudsettle.config import get_cloud_config, get_operation_timeouts
from cloudsettle.domain.cluster import ClusterOperations
from cloudsettle.domain.floating_ips import allocate_floating_ip
from cloudsettle.domain.locking import LockRegistry
from cloudsettle.domain.model import Route
from cloudsettle.domain.routes import add_router_route, remove_router_route
from cloudsettle.domain.waiting import StateWaiter

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cloudsettle.config import CloudConfig, OperationTimeouts
    from cloudsettle.domain.cluster import ClusterChange
    from cloudsettle.domain.model import Cluster, FloatingIP, Router
    from cloudsettle.domain.ports.cloud import CloudAPI


log = getLogger(__name__)


@dataclass(slots=True)
class ControlPlane:
    """Wired collaborators shared by every operation of one process.

    ``locks`` is the single registry all route updates go through, so one
    ``ControlPlane`` must be shared by every thread touching the same routers.
    """

    api: CloudAPI
    timeouts: OperationTimeouts
    waiter: StateWaiter = field(default_factory=StateWaiter)
    locks: LockRegistry = field(default_factory=LockRegistry)

    @property
    def clusters(self) -> ClusterOperations:
        return ClusterOperations(api=self.api, timeouts=self.timeouts, waiter=self.waiter)


def build_control_plane(*, config: CloudConfig | None = None) -> ControlPlane:
    effective_config = config or get_cloud_config()
    log.debug("Using cloud API at %s", effective_config.base_url)
    return ControlPlane(
        api=CloudClient(config=effective_config),
        timeouts=get_operation_timeouts(),
    )


def wait_cluster_running(
    cluster_id: str, *, control_plane: ControlPlane | None = None
) -> Cluster:
    """Block until a freshly created cluster leaves ``provisioning``."""

    plane = control_plane or build_control_plane()
    log.info("Waiting for cluster %s to become running", cluster_id)
    cluster = plane.clusters.wait_created(cluster_id)
    log.info(f"Cluster {cluster.id} is {cluster.status}")
    return cluster


def update_cluster(
    cluster_id: str,
    change: ClusterChange,
    *,
    control_plane: ControlPlane | None = None,
) -> Cluster:
    plane = control_plane or build_control_plane()
    log.info("Starting cluster update: cluster=%s, change=%s", cluster_id, change)
    cluster = plane.clusters.update(cluster_id, change)
    log.info(
        f"Finished cluster update: cluster={cluster.id}, status={cluster.status}, "
        f"template={cluster.cluster_template_id}, master_flavor={cluster.master_flavor}"
    )
    return cluster


def delete_cluster(cluster_id: str, *, control_plane: ControlPlane | None = None) -> None:
    plane = control_plane or build_control_plane()
    log.info("Deleting cluster %s", cluster_id)
    plane.clusters.delete(cluster_id)
    log.info("Cluster %s deleted", cluster_id)


def add_route(
    router_id: str,
    destination_cidr: str,
    next_hop: str,
    *,
    control_plane: ControlPlane | None = None,
) -> Router:
    plane = control_plane or build_control_plane()
    return add_router_route(
        plane.api,
        plane.locks,
        router_id,
        Route(destination_cidr=destination_cidr, next_hop=next_hop),
        timeout=plane.timeouts.mutation_retry,
    )


def remove_route(
    router_id: str,
    destination_cidr: str,
    next_hop: str,
    *,
    control_plane: ControlPlane | None = None,
) -> Router:
    plane = control_plane or build_control_plane()
    return remove_router_route(
        plane.api,
        plane.locks,
        router_id,
        Route(destination_cidr=destination_cidr, next_hop=next_hop),
        timeout=plane.timeouts.mutation_retry,
    )


def allocate_floating_ip_from_pool(
    pool_id: str,
    *,
    subnet_ids: Sequence[str] = (),
    port_id: str | None = None,
    description: str | None = None,
    control_plane: ControlPlane | None = None,
) -> FloatingIP:
    plane = control_plane or build_control_plane()
    fip = allocate_floating_ip(
        plane.api,
        pool_id=pool_id,
        subnet_ids=subnet_ids,
        port_id=port_id,
        description=description,
        waiter=plane.waiter,
    )
    log.info(f"Allocated floating ip {fip.address} ({fip.id}), status={fip.status}")
    return fip


__all__ = [
    "ControlPlane",
    "add_route",
    "allocate_floating_ip_from_pool",
    "build_control_plane",
    "delete_cluster",
    "remove_route",
    "update_cluster",
    "wait_cluster_running",
]
