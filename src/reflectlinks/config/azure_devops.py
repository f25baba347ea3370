"""Azure DevOps connection configuration values."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Literal

from .env import optional_env_var, require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .storage import get_storage_config

API_VERSION = "7.1"
AZURE_DEVOPS_TIMEOUT_SECONDS = 60.0

type Side = Literal["SOURCE", "TARGET"]


@dataclass(frozen=True, slots=True)
class AzureDevOpsConfig:
    """Connection settings for one Azure DevOps organization/collection."""

    organization_url: str
    project: str
    personal_access_token: str = field(repr=False)
    resilience: ResilienceConfig
    metadata_resilience: ResilienceConfig
    checkin_note_fields: tuple[str, ...] | None = None
    api_version: str = API_VERSION


def basic_auth_headers(personal_access_token: str) -> dict[str, str]:
    # PATs go in the password slot of Basic auth; the user name stays empty.
    token = base64.b64encode(f":{personal_access_token}".encode()).decode()
    return {"Authorization": f"Basic {token}", "Accept": "application/json"}


def _split_names(value: str | None) -> tuple[str, ...] | None:
    if value is None:
        return None
    names = tuple(name.strip() for name in value.split(",") if name.strip())
    return names or None


def get_azure_devops_config(side: Side) -> AzureDevOpsConfig:
    """Build the configuration for the ``SOURCE`` or ``TARGET`` side from the environment."""

    names = (f"{side}_ORGANIZATION", f"{side}_PROJECT", f"{side}_PAT")
    values = require_env_vars(names)
    organization_url = values[f"{side}_ORGANIZATION"].rstrip("/")
    token = values[f"{side}_PAT"]
    headers = basic_auth_headers(token)
    name = f"azure-devops-{side.lower()}"

    resilience = ResilienceConfig(
        name=name,
        base_url=organization_url,
        timeout_seconds=AZURE_DEVOPS_TIMEOUT_SECONDS,
        retry=RetryPolicy(total=5),
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        cache=None,
        default_headers=headers,
    )
    cache_path = get_storage_config().http_cache_path()
    metadata_resilience = ResilienceConfig(
        name=f"{name}-metadata",
        base_url=organization_url,
        timeout_seconds=AZURE_DEVOPS_TIMEOUT_SECONDS,
        retry=RetryPolicy(total=5),
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        cache=CacheConfig(backend="sqlite", sqlite_path=str(cache_path)),
        default_headers=headers,
    )
    return AzureDevOpsConfig(
        organization_url=organization_url,
        project=values[f"{side}_PROJECT"],
        personal_access_token=token,
        resilience=resilience,
        metadata_resilience=metadata_resilience,
        checkin_note_fields=_split_names(optional_env_var(f"{side}_CHECKIN_NOTE_FIELDS")),
    )
