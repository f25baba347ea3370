"""HTTP client for the Azure DevOps work item tracking and TFVC REST APIs."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from reflectlinks.adapters.http_resilience import ResilientClient
from reflectlinks.domain.ports import RepositoryError

from .schema import (
    ChangesetListResponse,
    ChangesetPayload,
    ErrorResponse,
    ProjectPayload,
    QueryHierarchyItem,
    QueryHierarchyResponse,
    RelationTypeListResponse,
    WiqlResponse,
    WorkItemBatchResponse,
    WorkItemPayload,
    WorkItemRelationType,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from reflectlinks.config.azure_devops import AzureDevOpsConfig
    from reflectlinks.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

WORK_ITEM_BATCH_SIZE = 200
CHANGESET_PAGE_SIZE = 100
JSON_PATCH_CONTENT_TYPE = "application/json-patch+json"


class AzureDevOpsAPIError(RepositoryError):
    """Raised when Azure DevOps rejects a request or cannot be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AzureDevOpsNotFoundError(AzureDevOpsAPIError):
    """Raised for 404 responses."""


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class AzureDevOpsClient:
    """Low-level client bound to one organization and project.

    Work item traffic goes through ``config.resilience`` and is never cached.
    Relation types and changesets go through ``config.metadata_resilience``,
    which may cache responses on disk.
    """

    def __init__(
        self,
        *,
        config: AzureDevOpsConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or _default_client_factory
        self._project_path = quote(config.project, safe="")

    @property
    def config(self) -> AzureDevOpsConfig:
        return self._config

    def get_project(self) -> ProjectPayload:
        return asyncio.run(
            self._get_model(
                self._config.resilience,
                f"_apis/projects/{self._project_path}",
                ProjectPayload,
            )
        )

    def get_work_item(self, work_item_id: int) -> WorkItemPayload:
        return asyncio.run(
            self._get_model(
                self._config.resilience,
                f"{self._project_path}/_apis/wit/workitems/{work_item_id}",
                WorkItemPayload,
                params={"$expand": "relations"},
            )
        )

    def query_work_items(self, wiql: str) -> list[WorkItemPayload]:
        return asyncio.run(self._query_work_items_async(wiql))

    def update_work_item(
        self,
        work_item_id: int,
        operations: Sequence[dict[str, object]],
    ) -> WorkItemPayload:
        return asyncio.run(self._update_work_item_async(work_item_id, operations))

    def list_relation_types(self) -> list[WorkItemRelationType]:
        response = asyncio.run(
            self._get_model(
                self._config.metadata_resilience,
                "_apis/wit/workitemrelationtypes",
                RelationTypeListResponse,
            )
        )
        return response.value

    def get_query_hierarchy(self) -> list[QueryHierarchyItem]:
        return asyncio.run(self._get_query_hierarchy_async())

    def get_query(self, query_id: str) -> QueryHierarchyItem | None:
        try:
            return asyncio.run(
                self._get_model(
                    self._config.resilience,
                    f"{self._project_path}/_apis/wit/queries/{query_id}",
                    QueryHierarchyItem,
                    params={"$expand": "wiql"},
                )
            )
        except AzureDevOpsNotFoundError:
            return None

    def get_changeset(self, changeset_id: int) -> ChangesetPayload:
        return asyncio.run(
            self._get_model(
                self._config.metadata_resilience,
                f"{self._project_path}/_apis/tfvc/changesets/{changeset_id}",
                ChangesetPayload,
                params={"includeDetails": "true"},
            )
        )

    def latest_changeset(self) -> ChangesetPayload | None:
        return asyncio.run(self._latest_changeset_async())

    def changeset_page(
        self,
        *,
        item_path: str,
        from_id: int,
        to_id: int | None,
        skip: int,
        top: int = CHANGESET_PAGE_SIZE,
    ) -> list[ChangesetPayload]:
        """One page of changesets in ascending id order, each with its checkin notes."""

        return asyncio.run(
            self._changeset_page_async(
                item_path=item_path,
                from_id=from_id,
                to_id=to_id,
                skip=skip,
                top=top,
            )
        )

    async def _query_work_items_async(self, wiql: str) -> list[WorkItemPayload]:
        async with self._client_factory(self._config.resilience) as client:
            payload = await self._perform_request(
                client,
                "POST",
                f"{self._project_path}/_apis/wit/wiql",
                json={"query": wiql},
            )
            result = _validate(WiqlResponse, payload)
            work_item_ids = result.work_item_ids()
            log.debug("WIQL query matched %d work item(s)", len(work_item_ids))
            return await self._fetch_work_items(client, work_item_ids)

    async def _fetch_work_items(
        self,
        client: ResilientClient,
        work_item_ids: Sequence[int],
    ) -> list[WorkItemPayload]:
        by_id: dict[int, WorkItemPayload] = {}
        for start in range(0, len(work_item_ids), WORK_ITEM_BATCH_SIZE):
            chunk = work_item_ids[start : start + WORK_ITEM_BATCH_SIZE]
            payload = await self._perform_request(
                client,
                "GET",
                f"{self._project_path}/_apis/wit/workitems",
                params={
                    "ids": ",".join(str(work_item_id) for work_item_id in chunk),
                    "$expand": "relations",
                    "errorPolicy": "omit",
                },
            )
            batch = _validate(WorkItemBatchResponse, payload)
            for item in batch.value:
                if item is not None:
                    by_id[item.id] = item

        missing = [work_item_id for work_item_id in work_item_ids if work_item_id not in by_id]
        if missing:
            log.warning("Could not read %d work item(s): %s", len(missing), missing)
        return [by_id[work_item_id] for work_item_id in work_item_ids if work_item_id in by_id]

    async def _update_work_item_async(
        self,
        work_item_id: int,
        operations: Sequence[dict[str, object]],
    ) -> WorkItemPayload:
        async with self._client_factory(self._config.resilience) as client:
            payload = await self._perform_request(
                client,
                "PATCH",
                f"{self._project_path}/_apis/wit/workitems/{work_item_id}",
                json=list(operations),
                headers={"Content-Type": JSON_PATCH_CONTENT_TYPE},
            )
        return _validate(WorkItemPayload, payload)

    async def _get_query_hierarchy_async(self) -> list[QueryHierarchyItem]:
        async with self._client_factory(self._config.resilience) as client:
            payload = await self._perform_request(
                client,
                "GET",
                f"{self._project_path}/_apis/wit/queries",
                params={"$depth": "2", "$expand": "wiql"},
            )
            roots = _validate(QueryHierarchyResponse, payload).value
            for root in roots:
                await self._expand_folder(client, root)
            return roots

    async def _expand_folder(self, client: ResilientClient, item: QueryHierarchyItem) -> None:
        # the listing stops at depth 2; deeper folders come back without children
        if item.is_folder and item.has_children and not item.children:
            payload = await self._perform_request(
                client,
                "GET",
                f"{self._project_path}/_apis/wit/queries/{item.id}",
                params={"$depth": "2", "$expand": "wiql"},
            )
            item.children = _validate(QueryHierarchyItem, payload).children
        for child in item.children:
            await self._expand_folder(client, child)

    async def _latest_changeset_async(self) -> ChangesetPayload | None:
        async with self._client_factory(self._config.metadata_resilience) as client:
            payload = await self._perform_request(
                client,
                "GET",
                f"{self._project_path}/_apis/tfvc/changesets",
                params={"$top": "1"},
            )
            changesets = _validate(ChangesetListResponse, payload).value
            if not changesets:
                return None
            return await self._changeset_details(client, changesets[0].changeset_id)

    async def _changeset_page_async(
        self,
        *,
        item_path: str,
        from_id: int,
        to_id: int | None,
        skip: int,
        top: int,
    ) -> list[ChangesetPayload]:
        params = {
            "searchCriteria.itemPath": item_path,
            "searchCriteria.fromId": str(from_id),
            "$orderby": "id asc",
            "$top": str(top),
            "$skip": str(skip),
        }
        if to_id is not None:
            params["searchCriteria.toId"] = str(to_id)

        async with self._client_factory(self._config.metadata_resilience) as client:
            payload = await self._perform_request(
                client,
                "GET",
                f"{self._project_path}/_apis/tfvc/changesets",
                params=params,
            )
            changesets = _validate(ChangesetListResponse, payload).value
            return [
                await self._changeset_details(client, changeset.changeset_id)
                for changeset in changesets
            ]

    async def _changeset_details(
        self,
        client: ResilientClient,
        changeset_id: int,
    ) -> ChangesetPayload:
        payload = await self._perform_request(
            client,
            "GET",
            f"{self._project_path}/_apis/tfvc/changesets/{changeset_id}",
            params={"includeDetails": "true"},
        )
        return _validate(ChangesetPayload, payload)

    async def _get_model[TModel: BaseModel](
        self,
        resilience: ResilienceConfig,
        path: str,
        model: type[TModel],
        *,
        params: dict[str, str] | None = None,
    ) -> TModel:
        async with self._client_factory(resilience) as client:
            payload = await self._perform_request(client, "GET", path, params=params)
        return _validate(model, payload)

    async def _perform_request(
        self,
        client: ResilientClient,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: object = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, object]:
        query = {**(params or {}), "api-version": self._config.api_version}
        try:
            response = await client.request(method, path, params=query, json=json, headers=headers)
        except httpx.HTTPError as exc:
            raise AzureDevOpsAPIError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            raise _error_for_response(response, method=method, path=path)

        try:
            payload = response.json()
        except ValueError as exc:
            raise AzureDevOpsAPIError(f"{method} {path} returned a non-JSON body") from exc
        if not isinstance(payload, dict):
            raise AzureDevOpsAPIError("Unexpected Azure DevOps response payload")
        return payload


def _validate[TModel: BaseModel](model: type[TModel], payload: object) -> TModel:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise AzureDevOpsAPIError(f"Unexpected {model.__name__} payload: {exc}") from exc


def _error_for_response(response: httpx.Response, *, method: str, path: str) -> AzureDevOpsAPIError:
    message = f"{method} {path} returned HTTP {response.status_code}"
    try:
        error: ErrorResponse | None = ErrorResponse.model_validate(response.json())
    except ValueError:
        error = None
    if error is not None:
        message = f"{message}: {error.message}"

    if response.status_code == httpx.codes.NOT_FOUND:
        return AzureDevOpsNotFoundError(message, status_code=response.status_code)
    return AzureDevOpsAPIError(message, status_code=response.status_code)
