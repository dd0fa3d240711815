"""Cloud API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_float_env, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

CLOUD_API_URL_ENV = "CLOUDSETTLE_API_URL"
CLOUD_API_TOKEN_ENV = "CLOUDSETTLE_API_TOKEN"  # noqa: S105
CLOUD_TIMEOUT_ENV = "CLOUDSETTLE_HTTP_TIMEOUT_SECONDS"
CLOUD_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class CloudConfig:
    """Holds the remote API endpoint and credentials."""

    base_url: str
    token: str
    resilience: ResilienceConfig

    @property
    def auth_headers(self) -> dict[str, str]:
        return {"X-Auth-Token": self.token}


def get_cloud_config(*, resilience: ResilienceConfig | None = None) -> CloudConfig:
    values = require_env_vars((CLOUD_API_URL_ENV, CLOUD_API_TOKEN_ENV))
    base_url = values[CLOUD_API_URL_ENV].rstrip("/") + "/"
    return CloudConfig(
        base_url=base_url,
        token=values[CLOUD_API_TOKEN_ENV],
        resilience=resilience
        or ResilienceConfig(
            name="cloud",
            base_url=base_url,
            timeout_seconds=optional_float_env(CLOUD_TIMEOUT_ENV, CLOUD_TIMEOUT_SECONDS),
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        ),
    )
