"""Application configuration helpers."""

from __future__ import annotations

from .azure_devops import AzureDevOpsConfig, basic_auth_headers, get_azure_devops_config
from .env import env_flag, env_int, optional_env_var, require_env_vars
from .errors import ConfigurationError, InvalidConfigurationValueError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .reflect import (
    CHANGESET_LINK_TYPE,
    MAX_LINKS_PER_ITEM,
    ReflectConfig,
    get_reflect_config,
)
from .storage import StorageConfig, get_storage_config

__all__ = [
    "CHANGESET_LINK_TYPE",
    "MAX_LINKS_PER_ITEM",
    "AzureDevOpsConfig",
    "CacheConfig",
    "ConfigurationError",
    "InvalidConfigurationValueError",
    "MissingConfigurationError",
    "RateLimit",
    "ReflectConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "basic_auth_headers",
    "configure_logging",
    "env_flag",
    "env_int",
    "get_azure_devops_config",
    "get_reflect_config",
    "get_storage_config",
    "optional_env_var",
    "require_env_vars",
]
