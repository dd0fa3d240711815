"""Public interface for the cloud API adapter."""

from __future__ import annotations

from .client import CloudClient, api_error_from_response
from .schema import (
    ClusterPayload,
    ErrorDetail,
    FloatingIPPayload,
    RoutePayload,
    RouterPayload,
    parse_error_body,
)

__all__ = [
    "CloudClient",
    "ClusterPayload",
    "ErrorDetail",
    "FloatingIPPayload",
    "RoutePayload",
    "RouterPayload",
    "api_error_from_response",
    "parse_error_body",
]
