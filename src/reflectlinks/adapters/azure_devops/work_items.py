"""Work item store backed by the Azure DevOps work item tracking API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING
from uuid import UUID

from reflectlinks.domain.model import QueryDefinition, QueryFolder
from reflectlinks.domain.ports import (
    ConnectionCheckError,
    PersistenceError,
    WorkItemNotFoundError,
)

from .client import AzureDevOpsAPIError, AzureDevOpsClient, AzureDevOpsNotFoundError
from .translator import (
    patch_document,
    translate_link_type_end,
    translate_query_item,
    translate_work_item,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from reflectlinks.adapters.http_resilience import ResilientClient
    from reflectlinks.config.azure_devops import AzureDevOpsConfig
    from reflectlinks.config.http_resilience import ResilienceConfig
    from reflectlinks.domain.model import LinkTypeEnd, WorkItem

log = getLogger(__name__)

ROOT_QUERY_FOLDER_ID = UUID(int=0)


class AzureDevOpsWorkItemStore:
    """Work items and saved queries of one Azure DevOps project."""

    def __init__(
        self,
        *,
        config: AzureDevOpsConfig,
        client: AzureDevOpsClient | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client = client or AzureDevOpsClient(config=config, client_factory=client_factory)
        self._link_type_ends: tuple[LinkTypeEnd, ...] | None = None

    @property
    def project(self) -> str:
        return self._config.project

    @property
    def client(self) -> AzureDevOpsClient:
        return self._client

    def check_connection(self) -> None:
        """Fail fast when the organization or project cannot be reached."""

        try:
            project = self._client.get_project()
        except AzureDevOpsAPIError as exc:
            raise ConnectionCheckError(
                f"Cannot connect to {self._config.organization_url} "
                f"project {self._config.project}: {exc}"
            ) from exc
        log.info("Connected to %s project %s", self._config.organization_url, project.name)

    def get_work_item(self, work_item_id: int) -> WorkItem:
        try:
            payload = self._client.get_work_item(work_item_id)
        except AzureDevOpsNotFoundError as exc:
            raise WorkItemNotFoundError(work_item_id) from exc
        return translate_work_item(payload)

    def link_type_ends(self) -> tuple[LinkTypeEnd, ...]:
        if self._link_type_ends is None:
            relation_types = self._client.list_relation_types()
            self._link_type_ends = tuple(
                translate_link_type_end(relation_type)
                for relation_type in relation_types
                if relation_type.is_work_item_link
            )
            log.debug(
                "%s defines %d work item link type end(s)",
                self._config.project,
                len(self._link_type_ends),
            )
        return self._link_type_ends

    def query_work_items(self, query_text: str) -> list[WorkItem]:
        payloads = self._client.query_work_items(query_text)
        return [translate_work_item(payload) for payload in payloads]

    def save(self, work_item: WorkItem) -> None:
        if not work_item.pending_links:
            return
        operations = patch_document(work_item, organization_url=self._config.organization_url)
        try:
            payload = self._client.update_work_item(work_item.id, operations)
        except AzureDevOpsAPIError as exc:
            raise PersistenceError(
                str(exc), work_item_id=work_item.id, status_code=exc.status_code
            ) from exc
        work_item.mark_saved(revision=payload.rev)

    def query_hierarchy(self) -> QueryFolder:
        root = QueryFolder(id=ROOT_QUERY_FOLDER_ID, name=self._config.project)
        for item in self._client.get_query_hierarchy():
            root.add(translate_query_item(item))
        return root

    def get_query(self, query_id: UUID) -> QueryDefinition | None:
        item = self._client.get_query(str(query_id))
        if item is None or item.is_folder:
            return None
        translated = translate_query_item(item)
        return translated if isinstance(translated, QueryDefinition) else None
