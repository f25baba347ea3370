"""Domain port definitions for adapters."""

from __future__ import annotations

from .errors import (
    ArtifactNotFoundError,
    ConnectionCheckError,
    PersistenceError,
    RepositoryError,
    WorkItemNotFoundError,
)
from .version_control import ROOT_PATH, VersionControl
from .work_items import QueryCatalog, WorkItemStore

__all__ = [
    "ROOT_PATH",
    "ArtifactNotFoundError",
    "ConnectionCheckError",
    "PersistenceError",
    "QueryCatalog",
    "RepositoryError",
    "VersionControl",
    "WorkItemNotFoundError",
    "WorkItemStore",
]
