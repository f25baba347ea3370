"""Drive link reflection over the work items of a target query."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from reflectlinks.domain.ports import PersistenceError, RepositoryError

from .engine import index_link_type_ends, reconcile_links
from .index import InvalidProvenanceError, MissingProvenanceError, parse_provenance
from .queries import run_query
from .statistics import ReflectionStatistics

if TYPE_CHECKING:
    from collections.abc import Iterable

    from reflectlinks.domain.model import LinkTypeEnd, WorkItem
    from reflectlinks.domain.ports import QueryCatalog, WorkItemStore

    from .changesets import RemapChangeset
    from .index import IdentifierIndex
    from .policy import LinkPolicy

log = getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class LinkReflector:
    """Restore missing links on target work items, one item at a time.

    Each item is saved on its own; a failed save is counted and the run goes on.
    ``processed`` grows with every successful save and is what the engine uses to
    avoid re-adding links the target server already mirrored.
    """

    source_store: WorkItemStore
    target_store: WorkItemStore
    index: IdentifierIndex
    remapper: RemapChangeset
    policy: LinkPolicy
    reflected_id_field: str
    processed: set[int] = field(default_factory=set[int])
    statistics: ReflectionStatistics = field(default_factory=ReflectionStatistics)
    _link_type_ends: dict[str, LinkTypeEnd] | None = field(default=None, init=False, repr=False)

    def run(self, target_items: Iterable[WorkItem]) -> ReflectionStatistics:
        log.info("Starting link reflection")
        for work_item in target_items:
            self.reflect(work_item)
        log.info(
            "Processed %d work item(s), saved %d, %d save error(s)",
            self.statistics.processed_work_items,
            self.statistics.saved_work_items,
            self.statistics.save_errors,
        )
        return self.statistics

    def reflect(self, work_item: WorkItem) -> None:
        self.statistics.processed_work_items += 1
        source = self._source_for(work_item)
        if source is None:
            return

        log.debug(
            "Work item %s reflects source %s (%d link(s) on target, %d on source)",
            work_item.id,
            source.id,
            len(work_item.links),
            len(source.links),
        )
        try:
            link_type_ends = self.link_type_ends()
        except RepositoryError as exc:
            self.statistics.fetch_errors += 1
            log.error("Could not read target link types for work item %s: %s", work_item.id, exc)
            return
        added = reconcile_links(
            source,
            work_item,
            policy=self.policy,
            index=self.index,
            remapper=self.remapper,
            processed=self.processed,
            link_type_ends=link_type_ends,
        )
        self.statistics.links.merge(added.statistics)
        if added.capped:
            self.statistics.capped_work_items += 1
        if not added.links:
            return

        try:
            refreshed = self.target_store.get_work_item(work_item.id)
            for link in added.links:
                refreshed.add_link(link)
            self.target_store.save(refreshed)
        except PersistenceError as exc:
            self.statistics.save_errors += 1
            log.error("Could not save work item %s: %s", work_item.id, exc)
            return
        except RepositoryError as exc:
            self.statistics.save_errors += 1
            log.error("Could not refresh work item %s before saving: %s", work_item.id, exc)
            return

        self.processed.add(refreshed.id)
        self.statistics.record_saved(added)
        log.info("Added %d link(s) to work item %s", len(added), refreshed.id)

    def link_type_ends(self) -> dict[str, LinkTypeEnd]:
        if self._link_type_ends is None:
            self._link_type_ends = index_link_type_ends(self.target_store.link_type_ends())
        return self._link_type_ends

    def _source_for(self, work_item: WorkItem) -> WorkItem | None:
        try:
            source_id = parse_provenance(work_item, self.reflected_id_field)
        except MissingProvenanceError as exc:
            self.statistics.missing_provenance += 1
            log.error("%s", exc)
            return None
        except InvalidProvenanceError as exc:
            self.statistics.invalid_provenance += 1
            log.error("%s", exc)
            return None

        try:
            return self.source_store.get_work_item(source_id)
        except RepositoryError as exc:
            self.statistics.fetch_errors += 1
            log.error(
                "Could not fetch source work item %s for target %s: %s",
                source_id,
                work_item.id,
                exc,
            )
            return None


def reflect_work_items(
    target_items: Iterable[WorkItem],
    *,
    source_store: WorkItemStore,
    target_store: WorkItemStore,
    index: IdentifierIndex,
    remapper: RemapChangeset,
    policy: LinkPolicy,
    reflected_id_field: str,
    processed: set[int] | None = None,
    statistics: ReflectionStatistics | None = None,
) -> ReflectionStatistics:
    """Restore missing links on every item of ``target_items`` and return the totals."""

    reflector = LinkReflector(
        source_store=source_store,
        target_store=target_store,
        index=index,
        remapper=remapper,
        policy=policy,
        reflected_id_field=reflected_id_field,
        processed=processed if processed is not None else set[int](),
        statistics=statistics if statistics is not None else ReflectionStatistics(),
    )
    return reflector.run(target_items)


def resolve_and_reflect(
    query: str,
    *,
    source_store: WorkItemStore,
    target_store: WorkItemStore,
    target_catalog: QueryCatalog,
    index: IdentifierIndex,
    remapper: RemapChangeset,
    policy: LinkPolicy,
    reflected_id_field: str,
) -> ReflectionStatistics:
    """Run the saved target query ``query`` and reflect links on its results.

    An unknown query leaves nothing to process and yields empty statistics.
    """

    target_items = run_query(target_store, target_catalog, query)
    if target_items is None:
        return ReflectionStatistics()
    return reflect_work_items(
        target_items,
        source_store=source_store,
        target_store=target_store,
        index=index,
        remapper=remapper,
        policy=policy,
        reflected_id_field=reflected_id_field,
    )
