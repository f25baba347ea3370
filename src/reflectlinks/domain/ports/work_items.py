"""Ports for reading and writing work items."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from uuid import UUID

    from reflectlinks.domain.model import LinkTypeEnd, QueryDefinition, QueryFolder, WorkItem


@runtime_checkable
class WorkItemStore(Protocol):
    """Access to the work items of one repository.

    Implementations raise :class:`~reflectlinks.domain.ports.errors.WorkItemNotFoundError`
    for unknown ids and :class:`~reflectlinks.domain.ports.errors.PersistenceError` when
    :meth:`save` is rejected.
    """

    @property
    def project(self) -> str: ...

    def get_work_item(self, work_item_id: int) -> WorkItem: ...

    def link_type_ends(self) -> Collection[LinkTypeEnd]: ...

    def query_work_items(self, query_text: str) -> Sequence[WorkItem]:
        """Run ``query_text`` and return hydrated work items in result order."""
        ...

    def save(self, work_item: WorkItem) -> None:
        """Persist the pending links of ``work_item``."""
        ...


@runtime_checkable
class QueryCatalog(Protocol):
    """Saved queries of one project."""

    def query_hierarchy(self) -> QueryFolder: ...

    def get_query(self, query_id: UUID) -> QueryDefinition | None: ...
