"""Link reflection policy.

The policy decides which link categories the engine may add to a target work
item. Disabled categories are still counted on both sides so a dry comparison
of source and target stays possible.
"""

from __future__ import annotations

from dataclasses import dataclass

MAX_LINKS_PER_ITEM = 30
CHANGESET_LINK_TYPE = "Fixed in Changeset"


@dataclass(slots=True, frozen=True, kw_only=True)
class LinkPolicy:
    add_missing_related: bool = True
    add_missing_changesets: bool = True
    add_missing_external: bool = True
    max_links_per_item: int = MAX_LINKS_PER_ITEM
    changeset_link_type: str = CHANGESET_LINK_TYPE

    def __post_init__(self) -> None:
        if self.max_links_per_item < 1:
            raise ValueError("max_links_per_item must be at least 1")
