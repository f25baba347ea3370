"""Domain model for mirrored work items and their links."""

from __future__ import annotations

from .changeset import Changeset
from .links import (
    ArtifactLinkType,
    ExternalLink,
    Hyperlink,
    Link,
    LinkTypeEnd,
    RelatedLink,
    is_changeset_link,
)
from .queries import PROJECT_PLACEHOLDER, QueryDefinition, QueryFolder, QueryItem
from .work_item import WorkItem

__all__ = [
    "PROJECT_PLACEHOLDER",
    "ArtifactLinkType",
    "Changeset",
    "ExternalLink",
    "Hyperlink",
    "Link",
    "LinkTypeEnd",
    "QueryDefinition",
    "QueryFolder",
    "QueryItem",
    "RelatedLink",
    "WorkItem",
    "is_changeset_link",
]
