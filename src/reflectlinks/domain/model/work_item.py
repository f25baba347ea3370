from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .links import ExternalLink, Hyperlink, RelatedLink

if TYPE_CHECKING:
    from .links import Link


@dataclass(eq=False, kw_only=True)
class WorkItem:
    """A tracked work item as fetched from one repository.

    ``links`` holds the links present when the item was fetched; links added
    afterwards through :meth:`add_link` are kept apart as pending until the store
    saves them.
    """

    id: int
    links: list[Link] = field(default_factory=list["Link"])
    fields: dict[str, object] = field(default_factory=dict[str, object])
    revision: int | None = None
    _pending_links: list[Link] = field(default_factory=list["Link"], init=False, repr=False)

    @property
    def hyperlinks(self) -> tuple[Hyperlink, ...]:
        return tuple(link for link in self.links if isinstance(link, Hyperlink))

    @property
    def related_links(self) -> tuple[RelatedLink, ...]:
        return tuple(link for link in self.links if isinstance(link, RelatedLink))

    @property
    def external_links(self) -> tuple[ExternalLink, ...]:
        return tuple(link for link in self.links if isinstance(link, ExternalLink))

    @property
    def pending_links(self) -> tuple[Link, ...]:
        return tuple(self._pending_links)

    def field_value(self, name: str) -> object | None:
        return self.fields.get(name)

    def add_link(self, link: Link) -> None:
        self._pending_links.append(link)

    def mark_saved(self, *, revision: int | None = None) -> None:
        self.links.extend(self._pending_links)
        self._pending_links.clear()
        if revision is not None:
            self.revision = revision
