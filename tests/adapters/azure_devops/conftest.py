from __future__ import annotations

import pytest

from reflectlinks.adapters.http_resilience import ResilienceConfig
from reflectlinks.config import AzureDevOpsConfig
from tests.helpers.azure_devops import ORGANIZATION_URL, RecordingTransport


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def azure_devops_config() -> AzureDevOpsConfig:
    headers = {"Authorization": "Basic OnRva2Vu", "Accept": "application/json"}
    return AzureDevOpsConfig(
        organization_url=ORGANIZATION_URL,
        project="Target Project",
        personal_access_token="token",
        resilience=ResilienceConfig(
            name="azure-devops-target",
            base_url=ORGANIZATION_URL,
            default_headers=headers,
        ),
        metadata_resilience=ResilienceConfig(
            name="azure-devops-target-metadata",
            base_url=ORGANIZATION_URL,
            default_headers=headers,
        ),
    )
