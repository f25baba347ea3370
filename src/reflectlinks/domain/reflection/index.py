"""Index from source work item ids to the target items migrated from them.

Every migrated target item carries the id of its source item in a provenance
field. The index is built once from a scoped target query and then consulted
for every related link found on a source item.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING

from .queries import run_query

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from reflectlinks.domain.model import WorkItem
    from reflectlinks.domain.ports import QueryCatalog, WorkItemStore

log = getLogger(__name__)


class ProvenanceError(ValueError):
    """Raised when a target work item does not name its source work item."""

    def __init__(self, message: str, *, work_item_id: int, field_name: str) -> None:
        super().__init__(message)
        self.work_item_id = work_item_id
        self.field_name = field_name


class MissingProvenanceError(ProvenanceError):
    def __init__(self, *, work_item_id: int, field_name: str) -> None:
        super().__init__(
            f"Missing {field_name} field on work item {work_item_id}",
            work_item_id=work_item_id,
            field_name=field_name,
        )


class InvalidProvenanceError(ProvenanceError):
    def __init__(self, *, work_item_id: int, field_name: str, value: object) -> None:
        super().__init__(
            f"Could not parse {field_name} value {value!r} on work item {work_item_id}",
            work_item_id=work_item_id,
            field_name=field_name,
        )
        self.value = value


def parse_provenance(work_item: WorkItem, field_name: str) -> int:
    """Return the source work item id recorded on ``work_item``."""

    value = work_item.field_value(field_name)
    if value is None:
        raise MissingProvenanceError(work_item_id=work_item.id, field_name=field_name)

    if isinstance(value, bool):
        source_id = None
    elif isinstance(value, int):
        source_id = value
    elif isinstance(value, str):
        try:
            source_id = int(value.strip())
        except ValueError:
            source_id = None
    else:
        source_id = None

    if source_id is None or source_id < 1:
        raise InvalidProvenanceError(
            work_item_id=work_item.id, field_name=field_name, value=value
        )
    return source_id


@dataclass(slots=True, frozen=True)
class IndexReport:
    indexed: int = 0
    duplicates: int = 0
    missing: int = 0
    unparseable: int = 0


@dataclass(slots=True, frozen=True)
class IdentifierIndex:
    """Read-only mapping of source work item id to target work item id."""

    targets_by_source: Mapping[int, int] = field(
        default_factory=lambda: MappingProxyType({})
    )
    report: IndexReport = field(default_factory=IndexReport)

    def target_for(self, source_id: int) -> int | None:
        return self.targets_by_source.get(source_id)

    def __contains__(self, source_id: object) -> bool:
        return source_id in self.targets_by_source

    def __len__(self) -> int:
        return len(self.targets_by_source)

    def __iter__(self) -> Iterator[int]:
        return iter(self.targets_by_source)


def build_identifier_index(work_items: Iterable[WorkItem], *, field_name: str) -> IdentifierIndex:
    """Index ``work_items`` by the source id stored in ``field_name``.

    Items whose provenance is missing or unparseable are skipped. When several
    items name the same source id the first one wins.
    """

    targets_by_source: dict[int, int] = {}
    duplicates = missing = unparseable = 0
    for work_item in work_items:
        try:
            source_id = parse_provenance(work_item, field_name)
        except MissingProvenanceError:
            missing += 1
            log.debug("Work item %s has no %s value, not indexed", work_item.id, field_name)
            continue
        except InvalidProvenanceError as exc:
            unparseable += 1
            log.warning("%s, not indexed", exc)
            continue

        existing = targets_by_source.get(source_id)
        if existing is not None:
            duplicates += 1
            log.warning(
                "Source work item %s is reflected by both %s and %s; keeping %s",
                source_id,
                existing,
                work_item.id,
                existing,
            )
            continue
        targets_by_source[source_id] = work_item.id

    report = IndexReport(
        indexed=len(targets_by_source),
        duplicates=duplicates,
        missing=missing,
        unparseable=unparseable,
    )
    log.info(
        "Indexed %d target work item(s) (%d duplicate, %d without provenance, %d unparseable)",
        report.indexed,
        report.duplicates,
        report.missing,
        report.unparseable,
    )
    return IdentifierIndex(targets_by_source=MappingProxyType(targets_by_source), report=report)


def load_identifier_index(
    store: WorkItemStore,
    catalog: QueryCatalog,
    scope: str | None,
    *,
    field_name: str,
) -> IdentifierIndex:
    """Build the index from the saved query ``scope`` on the target side.

    Without a scope, or when the scope query cannot be found, the index is empty
    and every related link will be reported as missing its counterpart.
    """

    if scope is None:
        log.warning("No scope query configured; related links cannot be resolved")
        return IdentifierIndex()

    work_items = run_query(store, catalog, scope)
    if work_items is None:
        return IdentifierIndex()
    return build_identifier_index(work_items, field_name=field_name)
