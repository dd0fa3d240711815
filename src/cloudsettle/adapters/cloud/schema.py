"""Pydantic models describing the cloud API payloads."""

from __future__ import annotations

from collections.abc import Mapping
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cloudsettle.domain.model import Cluster, FloatingIP, Route, Router
from cloudsettle.domain.states import ClusterStatus, FloatingIPStatus, parse_status


def _none_to_empty(value: object) -> object:
    return {} if value is None else value


class CloudBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ClusterPayload(CloudBaseModel):
    uuid: str
    name: str | None = None
    new_status: str
    status_reason: str | None = None
    cluster_template_id: str | None = None
    master_flavor_id: str | None = None
    labels: dict[str, str] = Field(default_factory=dict)
    security_policy_sync_enabled: bool = False

    _normalize_labels = field_validator("labels", mode="before")(_none_to_empty)

    def to_domain(self) -> Cluster:
        return Cluster(
            id=self.uuid,
            status=parse_status(ClusterStatus, self.new_status),
            cluster_template_id=self.cluster_template_id,
            master_flavor=self.master_flavor_id,
            labels=dict(self.labels),
            security_policy_sync=self.security_policy_sync_enabled,
            status_reason=self.status_reason,
        )


class ClusterCreated(CloudBaseModel):
    uuid: str


class RoutePayload(CloudBaseModel):
    destination: str
    nexthop: str

    @classmethod
    def from_domain(cls, route: Route) -> RoutePayload:
        return cls(destination=route.destination_cidr, nexthop=route.next_hop)

    def to_domain(self) -> Route:
        return Route(destination_cidr=self.destination, next_hop=self.nexthop)


class RouterPayload(CloudBaseModel):
    id: str
    routes: list[RoutePayload] = Field(default_factory=list)

    def to_domain(self) -> Router:
        return Router(id=self.id, routes=tuple(route.to_domain() for route in self.routes))


class RouterEnvelope(CloudBaseModel):
    router: RouterPayload


class FloatingIPPayload(CloudBaseModel):
    id: str
    status: str
    floating_ip_address: str | None = None
    subnet_id: str | None = None

    def to_domain(self) -> FloatingIP:
        return FloatingIP(
            id=self.id,
            status=parse_status(FloatingIPStatus, self.status),
            address=self.floating_ip_address,
            subnet_id=self.subnet_id,
        )


class FloatingIPEnvelope(CloudBaseModel):
    floatingip: FloatingIPPayload


class ErrorDetail(CloudBaseModel):
    """Normalised view over the error body shapes the API families return."""

    subtype: str | None = None
    message: str | None = None


def parse_error_body(payload: object) -> ErrorDetail:
    """Extract the machine-readable subtype and message from an error payload.

    Networking returns ``{"NeutronError": {"type", "message"}}``, container-infra
    returns ``{"errors": [{"code", "detail"}]}`` and the rest use
    ``{"error": {"type" | "code", "message"}}``.
    """

    if not isinstance(payload, Mapping):
        return ErrorDetail()
    body = cast(Mapping[str, object], payload)

    candidate: object = body.get("NeutronError") or body.get("error")
    errors = body.get("errors")
    if candidate is None and isinstance(errors, list) and errors:
        candidate = cast(list[object], errors)[0]
    if not isinstance(candidate, Mapping):
        message = body.get("message")
        return ErrorDetail(message=message if isinstance(message, str) else None)

    fields = cast(Mapping[str, object], candidate)
    subtype = fields.get("type") or fields.get("code")
    message = fields.get("message") or fields.get("detail") or fields.get("title")
    return ErrorDetail(
        subtype=str(subtype) if subtype is not None else None,
        message=str(message) if message is not None else None,
    )


__all__ = [
    "ClusterCreated",
    "ClusterPayload",
    "ErrorDetail",
    "FloatingIPEnvelope",
    "FloatingIPPayload",
    "RoutePayload",
    "RouterEnvelope",
    "RouterPayload",
    "parse_error_body",
]
