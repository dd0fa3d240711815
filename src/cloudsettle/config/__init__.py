"""Application configuration helpers."""

from __future__ import annotations

from .cloud import CloudConfig, get_cloud_config
from .env import optional_float_env, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .timeouts import OperationTimeouts, get_operation_timeouts

__all__ = [
    "CloudConfig",
    "ConfigurationError",
    "MissingConfigurationError",
    "OperationTimeouts",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "configure_logging",
    "get_cloud_config",
    "get_operation_timeouts",
    "optional_float_env",
    "require_env_var",
    "require_env_vars",
]
