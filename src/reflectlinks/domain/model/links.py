"""Link variants attached to work items.

Equality follows how links are judged as duplicates on a work item:

- ``Hyperlink`` by exact location
- ``RelatedLink`` by (link type end immutable name, related work item id)
- ``ExternalLink`` by (artifact link type name, artifact URI)

``comment`` and ``is_locked`` never take part in equality.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True)
class LinkTypeEnd:
    """One end of a work item link type, e.g. ``System.LinkTypes.Hierarchy-Forward``."""

    immutable_name: str
    name: str = field(default="", compare=False)


@dataclass(slots=True, frozen=True)
class ArtifactLinkType:
    """Kind of external artifact link, e.g. ``Fixed in Changeset``."""

    name: str


@dataclass(slots=True, frozen=True, kw_only=True)
class Hyperlink:
    location: str
    comment: str | None = field(default=None, compare=False)
    is_locked: bool = field(default=False, compare=False)


@dataclass(slots=True, frozen=True, kw_only=True)
class RelatedLink:
    link_type_end: LinkTypeEnd
    related_work_item_id: int
    comment: str | None = field(default=None, compare=False)
    is_locked: bool = field(default=False, compare=False)


@dataclass(slots=True, frozen=True, kw_only=True)
class ExternalLink:
    artifact_link_type: ArtifactLinkType
    linked_artifact_uri: str
    comment: str | None = field(default=None, compare=False)
    is_locked: bool = field(default=False, compare=False)


type Link = Hyperlink | RelatedLink | ExternalLink


def is_changeset_link(link: ExternalLink, *, changeset_link_type: str) -> bool:
    return link.artifact_link_type.name == changeset_link_type
