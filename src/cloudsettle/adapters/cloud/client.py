"""HTTP client for the cloud API families the domain flows drive."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, ValidationError

from cloudsettle.adapters.http_resilience import ResilientClient, SharedRateLimiter
from cloudsettle.domain.errors import RemoteAPIError

from .schema import (
    ClusterCreated,
    ClusterPayload,
    FloatingIPEnvelope,
    RoutePayload,
    RouterEnvelope,
    parse_error_body,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from cloudsettle.config.cloud import CloudConfig
    from cloudsettle.config.http_resilience import ResilienceConfig
    from cloudsettle.domain.model import Cluster, FloatingIP, Route, Router
    from cloudsettle.domain.ports.cloud import ClusterPatch
    from cloudsettle.domain.states import PowerAction

log = getLogger(__name__)

type ClientFactory = Callable[[ResilienceConfig, SharedRateLimiter | None], ResilientClient]


def api_error_from_response(response: httpx.Response) -> RemoteAPIError:
    """Translate a non-2xx response into the error the outcome classifier reads."""

    try:
        payload: object = response.json()
    except ValueError:
        payload = None
    detail = parse_error_body(payload)
    request = response.request
    message = detail.message or response.reason_phrase or "request failed"
    return RemoteAPIError(
        f"{request.method} {request.url.path}: {message}",
        status_code=response.status_code,
        subtype=detail.subtype,
    )


class CloudClient:
    """Synchronous facade over the container-infra and networking endpoints.

    Each call runs one request on a fresh ``ResilientClient`` inside
    ``asyncio.run``, so the client is safe to share between worker threads.
    The configured rate limit is one budget for the lifetime of this object,
    shared by every request and every thread.
    """

    def __init__(
        self,
        *,
        config: CloudConfig,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        ratelimit = self._resilience.ratelimit
        self._limiter = SharedRateLimiter(ratelimit) if ratelimit is not None else None

    # clusters

    def get_cluster(self, cluster_id: str) -> Cluster:
        payload = self._call("GET", f"clusters/{cluster_id}")
        return self._validate(ClusterPayload, payload).to_domain()

    def create_cluster(self, payload: Mapping[str, object]) -> str:
        body = self._call("POST", "clusters", json=dict(payload))
        return self._validate(ClusterCreated, body).uuid

    def upgrade_cluster(self, cluster_id: str, *, template_id: str) -> None:
        self._call(
            "PATCH",
            f"clusters/{cluster_id}/actions/upgrade",
            json={"cluster_template_id": template_id, "rolling_enabled": True},
        )

    def resize_masters(self, cluster_id: str, *, flavor: str) -> None:
        self._call(
            "POST",
            f"clusters/{cluster_id}/actions",
            json={"action": "resize_masters", "payload": {"flavor": flavor}},
        )

    def switch_state(self, cluster_id: str, *, action: PowerAction) -> None:
        self._call("POST", f"clusters/{cluster_id}/actions", json={"action": str(action)})

    def patch_cluster(self, cluster_id: str, patches: Sequence[ClusterPatch]) -> None:
        body = [{"op": patch.op, "path": patch.path, "value": patch.value} for patch in patches]
        log.debug("Updating cluster %s with %s", cluster_id, body)
        self._call("PATCH", f"clusters/{cluster_id}", json=body)

    def delete_cluster(self, cluster_id: str) -> None:
        self._call("DELETE", f"clusters/{cluster_id}")

    # routers

    def get_router(self, router_id: str) -> Router:
        payload = self._call("GET", f"routers/{router_id}")
        return self._validate(RouterEnvelope, payload).router.to_domain()

    def set_routes(self, router_id: str, routes: Sequence[Route]) -> Router:
        body = {
            "router": {
                "routes": [RoutePayload.from_domain(route).model_dump() for route in routes]
            }
        }
        payload = self._call("PUT", f"routers/{router_id}", json=body)
        return self._validate(RouterEnvelope, payload).router.to_domain()

    # floating ips

    def create_floating_ip(
        self,
        *,
        pool_id: str,
        subnet_id: str | None = None,
        port_id: str | None = None,
        description: str | None = None,
    ) -> FloatingIP:
        fields: dict[str, object] = {"floating_network_id": pool_id}
        if subnet_id is not None:
            fields["subnet_id"] = subnet_id
        if port_id is not None:
            fields["port_id"] = port_id
        if description is not None:
            fields["description"] = description
        payload = self._call("POST", "floatingips", json={"floatingip": fields})
        return self._validate(FloatingIPEnvelope, payload).floatingip.to_domain()

    def get_floating_ip(self, floating_ip_id: str) -> FloatingIP:
        payload = self._call("GET", f"floatingips/{floating_ip_id}")
        return self._validate(FloatingIPEnvelope, payload).floatingip.to_domain()

    # plumbing

    def _call(self, method: str, path: str, *, json: object = None) -> object:
        return asyncio.run(self._perform_request(method=method, path=path, json=json))

    async def _perform_request(self, *, method: str, path: str, json: object) -> object:
        async with self._client_factory(self._resilience, self._limiter) as client:
            try:
                if json is None:
                    response = await client.request(
                        method, path, headers=self._config.auth_headers
                    )
                else:
                    response = await client.request(
                        method, path, json=json, headers=self._config.auth_headers
                    )
            except httpx.HTTPError as exc:
                raise RemoteAPIError(f"{method} {path}: {exc}") from exc

        if response.is_error:
            error = api_error_from_response(response)
            log.debug(f"Cloud API error on {method} {path}: {error}")
            raise error

        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteAPIError(
                f"{method} {path}: response is not JSON", status_code=response.status_code
            ) from exc

    @staticmethod
    def _validate[M: BaseModel](model: type[M], payload: object) -> M:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise RemoteAPIError(f"unexpected {model.__name__} payload: {exc}") from exc

