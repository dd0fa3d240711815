"""Ports for the cloud API families used by the domain flows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Protocol

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from cloudsettle.domain.model import Cluster, FloatingIP, Route, Router
    from cloudsettle.domain.states import PowerAction


@dataclass(slots=True, frozen=True)
class ClusterPatch:
    """JSON-patch style attribute replacement on a cluster."""

    path: str
    value: object
    op: Literal["replace", "add", "remove"] = "replace"


class ClusterAPI(Protocol):
    def get_cluster(self, cluster_id: str) -> Cluster: ...

    def create_cluster(self, payload: Mapping[str, object]) -> str: ...

    def upgrade_cluster(self, cluster_id: str, *, template_id: str) -> None: ...

    def resize_masters(self, cluster_id: str, *, flavor: str) -> None: ...

    def switch_state(self, cluster_id: str, *, action: PowerAction) -> None: ...

    def patch_cluster(self, cluster_id: str, patches: Sequence[ClusterPatch]) -> None: ...

    def delete_cluster(self, cluster_id: str) -> None: ...


class RouterAPI(Protocol):
    def get_router(self, router_id: str) -> Router: ...

    def set_routes(self, router_id: str, routes: Sequence[Route]) -> Router: ...


class FloatingIPAPI(Protocol):
    def create_floating_ip(
        self,
        *,
        pool_id: str,
        subnet_id: str | None = None,
        port_id: str | None = None,
        description: str | None = None,
    ) -> FloatingIP: ...

    def get_floating_ip(self, floating_ip_id: str) -> FloatingIP: ...


class CloudAPI(ClusterAPI, RouterAPI, FloatingIPAPI, Protocol):
    """Everything a full control plane talks to."""


__all__ = ["CloudAPI", "ClusterAPI", "ClusterPatch", "FloatingIPAPI", "RouterAPI"]
