"""Decide which source links are missing on a migrated target work item.

``reconcile_links`` walks the links of a source work item in order and stages
the ones that are absent on its target counterpart:

- hyperlinks are copied verbatim
- related links are rewritten to point at the target counterpart of the
  related source item, using the identifier index
- changeset links are rewritten through the changeset remapper
- other external links are copied verbatim

Nothing is persisted here; the caller decides whether to save what was staged.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from reflectlinks.domain.model import (
    ExternalLink,
    Hyperlink,
    RelatedLink,
    is_changeset_link,
)

from .statistics import AddedLinks, LinkCategory, LinkStatistics

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Set

    from reflectlinks.domain.model import Link, LinkTypeEnd, WorkItem

    from .changesets import RemapChangeset
    from .index import IdentifierIndex
    from .policy import LinkPolicy

log = getLogger(__name__)


def index_link_type_ends(ends: Iterable[LinkTypeEnd]) -> dict[str, LinkTypeEnd]:
    """Key link type ends by immutable name."""

    return {end.immutable_name: end for end in ends}


def count_target_links(target: WorkItem, *, policy: LinkPolicy) -> LinkStatistics:
    statistics = LinkStatistics()
    statistics.target_related_links = len(target.related_links)
    for link in target.external_links:
        if is_changeset_link(link, changeset_link_type=policy.changeset_link_type):
            statistics.target_changeset_links += 1
        else:
            statistics.target_external_links += 1
    return statistics


def reconcile_links(
    source: WorkItem,
    target: WorkItem,
    *,
    policy: LinkPolicy,
    index: IdentifierIndex,
    remapper: RemapChangeset,
    processed: Set[int],
    link_type_ends: Mapping[str, LinkTypeEnd],
) -> AddedLinks:
    """Stage the links of ``source`` that are missing on ``target``.

    ``processed`` holds the target ids already saved during this run. A related
    link pointing at one of them is left alone because saving that item already
    created the reverse link on ``target``.

    Staging stops once ``policy.max_links_per_item`` links are staged.
    """

    added = AddedLinks(statistics=count_target_links(target, policy=policy))
    for link in source.links:
        staged = _reflect_link(
            link,
            source=source,
            target=target,
            added=added,
            policy=policy,
            index=index,
            remapper=remapper,
            processed=processed,
            link_type_ends=link_type_ends,
        )
        if staged is None:
            continue
        candidate, category = staged
        added.stage(candidate, category)
        if len(added) >= policy.max_links_per_item:
            log.warning(
                "Work item %s reached the maximum of %d links restored in one run",
                target.id,
                policy.max_links_per_item,
            )
            added.capped = True
            break
    return added


def _reflect_link(
    link: Link,
    *,
    source: WorkItem,
    target: WorkItem,
    added: AddedLinks,
    policy: LinkPolicy,
    index: IdentifierIndex,
    remapper: RemapChangeset,
    processed: Set[int],
    link_type_ends: Mapping[str, LinkTypeEnd],
) -> tuple[Link, LinkCategory] | None:
    if isinstance(link, Hyperlink):
        candidate = Hyperlink(location=link.location, comment=link.comment)
        if _is_present(candidate, target=target, added=added):
            return None
        log.debug("Adding hyperlink %s to work item %s", link.location, target.id)
        return candidate, LinkCategory.HYPERLINK
    if isinstance(link, RelatedLink):
        related = _reflect_related(
            link,
            source=source,
            target=target,
            added=added,
            policy=policy,
            index=index,
            processed=processed,
            link_type_ends=link_type_ends,
        )
        return None if related is None else (related, LinkCategory.RELATED)
    return _reflect_external(link, target=target, added=added, policy=policy, remapper=remapper)


def _reflect_related(
    link: RelatedLink,
    *,
    source: WorkItem,
    target: WorkItem,
    added: AddedLinks,
    policy: LinkPolicy,
    index: IdentifierIndex,
    processed: Set[int],
    link_type_ends: Mapping[str, LinkTypeEnd],
) -> RelatedLink | None:
    statistics = added.statistics
    statistics.source_related_links += 1
    if not policy.add_missing_related:
        return None

    related_target_id = index.target_for(link.related_work_item_id)
    if related_target_id is None:
        statistics.missing_related_work_items += 1
        log.warning(
            "Cannot find the target counterpart of work item %s, linked from source %s",
            link.related_work_item_id,
            source.id,
        )
        return None

    if related_target_id in processed:
        statistics.cross_related_links += 1
        log.debug(
            "Work item %s was already processed; its link to %s exists in reverse",
            related_target_id,
            target.id,
        )
        return None

    immutable_name = link.link_type_end.immutable_name
    existing = [
        candidate
        for candidate in target.related_links
        if candidate.related_work_item_id == related_target_id
    ]
    if any(candidate.link_type_end.immutable_name == immutable_name for candidate in existing):
        return None
    if existing:
        log.warning(
            "Work item %s already links to %s as %s; adding %s as well",
            target.id,
            related_target_id,
            ", ".join(candidate.link_type_end.immutable_name for candidate in existing),
            immutable_name,
        )

    link_type_end = link_type_ends.get(immutable_name)
    if link_type_end is None:
        statistics.unknown_link_type_ends += 1
        log.error(
            "Link type %s does not exist on the target; cannot link %s to %s",
            immutable_name,
            target.id,
            related_target_id,
        )
        return None

    candidate = RelatedLink(
        link_type_end=link_type_end,
        related_work_item_id=related_target_id,
        comment=link.comment,
    )
    if candidate in added:
        return None
    log.debug(
        "Adding %s link from work item %s to %s", immutable_name, target.id, related_target_id
    )
    return candidate


def _reflect_external(
    link: ExternalLink,
    *,
    target: WorkItem,
    added: AddedLinks,
    policy: LinkPolicy,
    remapper: RemapChangeset,
) -> tuple[ExternalLink, LinkCategory] | None:
    statistics = added.statistics
    if is_changeset_link(link, changeset_link_type=policy.changeset_link_type):
        statistics.source_changeset_links += 1
        if not policy.add_missing_changesets:
            return None
        uri = remapper.remap(link.linked_artifact_uri)
        if uri is None:
            return None
        category = LinkCategory.CHANGESET
    else:
        statistics.source_external_links += 1
        if not policy.add_missing_external:
            return None
        uri = link.linked_artifact_uri
        category = LinkCategory.EXTERNAL

    candidate = ExternalLink(
        artifact_link_type=link.artifact_link_type,
        linked_artifact_uri=uri,
        comment=link.comment,
    )
    if _is_present(candidate, target=target, added=added):
        return None
    log.debug("Adding %s link %s to work item %s", link.artifact_link_type.name, uri, target.id)
    return candidate, category


def _is_present(candidate: Link, *, target: WorkItem, added: AddedLinks) -> bool:
    return candidate in target.links or candidate in added
