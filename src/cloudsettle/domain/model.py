"""Snapshots of remote objects as seen by the domain flows."""

from __future__ import annotations

from dataclasses import dataclass, field

from .states import ClusterStatus, FloatingIPStatus


@dataclass(slots=True, frozen=True)
class Cluster:
    id: str
    status: ClusterStatus
    cluster_template_id: str | None = None
    master_flavor: str | None = None
    labels: dict[str, str] = field(default_factory=dict)
    security_policy_sync: bool = False
    status_reason: str | None = None


@dataclass(slots=True, frozen=True)
class Route:
    destination_cidr: str
    next_hop: str

    def __str__(self) -> str:
        return f"{self.destination_cidr} via {self.next_hop}"


@dataclass(slots=True, frozen=True)
class Router:
    id: str
    routes: tuple[Route, ...] = ()


@dataclass(slots=True, frozen=True)
class FloatingIP:
    id: str
    status: FloatingIPStatus
    address: str | None = None
    subnet_id: str | None = None
