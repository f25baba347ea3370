"""Azure DevOps adapter for work items, saved queries and TFVC history."""

from __future__ import annotations

from .client import AzureDevOpsAPIError, AzureDevOpsClient, AzureDevOpsNotFoundError
from .version_control import AzureDevOpsVersionControl
from .work_items import AzureDevOpsWorkItemStore

__all__ = [
    "AzureDevOpsAPIError",
    "AzureDevOpsClient",
    "AzureDevOpsNotFoundError",
    "AzureDevOpsVersionControl",
    "AzureDevOpsWorkItemStore",
]
