"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from logging import getLogger
from time import perf_counter
from typing import TYPE_CHECKING

from reflectlinks.adapters.azure_devops import (
    AzureDevOpsClient,
    AzureDevOpsVersionControl,
    AzureDevOpsWorkItemStore,
)
from reflectlinks.config import (
    MissingConfigurationError,
    get_azure_devops_config,
    get_reflect_config,
)
from reflectlinks.domain.reflection import (
    ChangesetRemapper,
    LinkPolicy,
    load_identifier_index,
    resolve_and_reflect,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from reflectlinks.config import AzureDevOpsConfig, ReflectConfig
    from reflectlinks.domain.ports import QueryCatalog, VersionControl, WorkItemStore
    from reflectlinks.domain.reflection import IndexReport, ReflectionStatistics

log = getLogger(__name__)


@dataclass(slots=True, frozen=True, kw_only=True)
class Repository:
    """The ports of one side of the migration."""

    store: WorkItemStore
    catalog: QueryCatalog
    version_control: VersionControl


@dataclass(slots=True, frozen=True, kw_only=True)
class ReflectionOutcome:
    index: IndexReport
    statistics: ReflectionStatistics
    elapsed: timedelta


def connect_repository(config: AzureDevOpsConfig) -> Repository:
    """Build the Azure DevOps adapters for ``config`` and check the project is reachable."""

    client = AzureDevOpsClient(config=config)
    store = AzureDevOpsWorkItemStore(config=config, client=client)
    store.check_connection()
    return Repository(
        store=store,
        catalog=store,
        version_control=AzureDevOpsVersionControl(config=config, client=client),
    )


def link_policy(config: ReflectConfig) -> LinkPolicy:
    return LinkPolicy(
        add_missing_related=config.add_missing_related,
        add_missing_changesets=config.add_missing_changesets,
        add_missing_external=config.add_missing_external,
        max_links_per_item=config.max_links_per_item,
        changeset_link_type=config.changeset_link_type,
    )


def check_connections() -> tuple[Repository, Repository]:
    source = connect_repository(get_azure_devops_config("SOURCE"))
    target = connect_repository(get_azure_devops_config("TARGET"))
    return source, target


def reflect_links(
    *,
    config: ReflectConfig | None = None,
    source: Repository | None = None,
    target: Repository | None = None,
    clock: Callable[[], float] = perf_counter,
) -> ReflectionOutcome:
    """Restore the links of migrated work items selected by the target query."""

    effective_config = config or get_reflect_config()
    if effective_config.target_query is None:
        raise MissingConfigurationError("Missing configuration for: REFLECT_TARGET_QUERY")

    started = clock()
    if source is None:
        source = connect_repository(get_azure_devops_config("SOURCE"))
    if target is None:
        target = connect_repository(get_azure_devops_config("TARGET"))

    log.info(
        "Starting link reflection: scope=%s, target=%s, related=%s, changesets=%s, "
        "external=%s, max_links=%s",
        effective_config.scope_query,
        effective_config.target_query,
        effective_config.add_missing_related,
        effective_config.add_missing_changesets,
        effective_config.add_missing_external,
        effective_config.max_links_per_item,
    )

    index = load_identifier_index(
        target.store,
        target.catalog,
        effective_config.scope_query,
        field_name=effective_config.reflected_id_field,
    )
    remapper = ChangesetRemapper(
        source=source.version_control,
        target=target.version_control,
        note_field=effective_config.checkin_note_field,
    )
    statistics = resolve_and_reflect(
        effective_config.target_query,
        source_store=source.store,
        target_store=target.store,
        target_catalog=target.catalog,
        index=index,
        remapper=remapper,
        policy=link_policy(effective_config),
        reflected_id_field=effective_config.reflected_id_field,
    )

    elapsed = timedelta(seconds=clock() - started)
    log.info(
        "Finished link reflection in %s: processed=%s, saved=%s, save_errors=%s",
        elapsed,
        statistics.processed_work_items,
        statistics.saved_work_items,
        statistics.save_errors,
    )
    return ReflectionOutcome(index=index.report, statistics=statistics, elapsed=elapsed)
