"""Locate saved queries by name or id and run them."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING
from uuid import UUID

from reflectlinks.domain.model import QueryDefinition, QueryFolder

if TYPE_CHECKING:
    from collections.abc import Sequence

    from reflectlinks.domain.model import WorkItem
    from reflectlinks.domain.ports import QueryCatalog, WorkItemStore

log = getLogger(__name__)


def find_query(folder: QueryFolder, name: str) -> QueryDefinition | None:
    """Depth-first search for a query definition named ``name`` (case-insensitive).

    Folders whose name matches are descended into like any other folder; only
    definitions are returned. The first match in hierarchy order wins.
    """

    wanted = name.casefold()
    for item in folder.children:
        if isinstance(item, QueryDefinition):
            if item.name.casefold() == wanted:
                return item
            continue
        found = find_query(item, name)
        if found is not None:
            return found
    return None


def resolve_scope(catalog: QueryCatalog, scope: str) -> QueryDefinition | None:
    """Resolve ``scope`` as a query id when it parses as a UUID, else as a query name."""

    try:
        query_id = UUID(scope)
    except ValueError:
        definition = find_query(catalog.query_hierarchy(), scope)
    else:
        definition = catalog.get_query(query_id)

    if definition is None:
        log.error("Cannot find query '%s'", scope)
        return None
    log.info("Found query '%s' with id '%s'", definition.name, definition.id)
    return definition


def run_query(
    store: WorkItemStore,
    catalog: QueryCatalog,
    scope: str,
) -> Sequence[WorkItem] | None:
    """Run the saved query ``scope`` against ``store``; ``None`` when it cannot be found."""

    definition = resolve_scope(catalog, scope)
    if definition is None:
        return None

    query_text = definition.text_for_project(store.project)
    log.info("Executing query '%s'", definition.name)
    log.debug("Query text: %s", query_text)
    work_items = store.query_work_items(query_text)
    log.info("Query '%s' returned %d work item(s)", definition.name, len(work_items))
    return work_items
