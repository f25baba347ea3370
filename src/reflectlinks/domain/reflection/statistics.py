"""Counters collected while reflecting links."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reflectlinks.domain.model import Link


class LinkCategory(StrEnum):
    RELATED = "related"
    CHANGESET = "changeset"
    EXTERNAL = "external"
    HYPERLINK = "hyperlink"


@dataclass(slots=True)
class LinkStatistics:
    """Links found on source and target items, plus the reasons links were not restored."""

    source_related_links: int = 0
    source_changeset_links: int = 0
    source_external_links: int = 0
    target_related_links: int = 0
    target_changeset_links: int = 0
    target_external_links: int = 0
    cross_related_links: int = 0
    missing_related_work_items: int = 0
    unknown_link_type_ends: int = 0

    def merge(self, other: LinkStatistics) -> None:
        for item in fields(self):
            setattr(self, item.name, getattr(self, item.name) + getattr(other, item.name))


@dataclass(slots=True)
class AddedLinks:
    """Links staged for one target work item, in the order they were found."""

    links: list[Link] = field(default_factory=list["Link"])
    counts: dict[LinkCategory, int] = field(default_factory=dict[LinkCategory, int])
    capped: bool = False
    statistics: LinkStatistics = field(default_factory=LinkStatistics)

    def __len__(self) -> int:
        return len(self.links)

    def __contains__(self, link: object) -> bool:
        return link in self.links

    def stage(self, link: Link, category: LinkCategory) -> None:
        self.links.append(link)
        self.counts[category] = self.counts.get(category, 0) + 1

    def count(self, category: LinkCategory) -> int:
        return self.counts.get(category, 0)


@dataclass(slots=True)
class ReflectionStatistics:
    """Totals for one reflection run."""

    processed_work_items: int = 0
    saved_work_items: int = 0
    save_errors: int = 0
    fetch_errors: int = 0
    missing_provenance: int = 0
    invalid_provenance: int = 0
    capped_work_items: int = 0
    related_links_added: int = 0
    changeset_links_added: int = 0
    external_links_added: int = 0
    hyperlinks_added: int = 0
    links: LinkStatistics = field(default_factory=LinkStatistics)

    def record_saved(self, added: AddedLinks) -> None:
        self.saved_work_items += 1
        self.related_links_added += added.count(LinkCategory.RELATED)
        self.changeset_links_added += added.count(LinkCategory.CHANGESET)
        self.external_links_added += added.count(LinkCategory.EXTERNAL)
        self.hyperlinks_added += added.count(LinkCategory.HYPERLINK)

    def as_dict(self) -> dict[str, int]:
        values = asdict(self)
        link_values = values.pop("links")
        return {**values, **link_values}
