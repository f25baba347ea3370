from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

import httpx
import pytest

from reflectlinks.adapters.azure_devops import AzureDevOpsWorkItemStore
from reflectlinks.domain.model import QueryDefinition, QueryFolder
from reflectlinks.domain.ports import (
    ConnectionCheckError,
    PersistenceError,
    WorkItemNotFoundError,
)
from tests.helpers.azure_devops import ORGANIZATION_URL, RecordingTransport, request_json
from tests.helpers.work_items import PARENT, hyperlink, related

if TYPE_CHECKING:
    from reflectlinks.config import AzureDevOpsConfig

SCOPE_ID = "0b1c7a3e-1d43-4cc6-9d59-2bde2f2e7c11"


def _store(config: AzureDevOpsConfig, transport: RecordingTransport) -> AzureDevOpsWorkItemStore:
    return AzureDevOpsWorkItemStore(config=config, client_factory=transport.factory())


def _work_item(work_item_id: int, *, rev: int = 1) -> dict[str, object]:
    return {
        "id": work_item_id,
        "rev": rev,
        "fields": {"System.Title": f"Item {work_item_id}"},
        "relations": [
            {
                "rel": "System.LinkTypes.Hierarchy-Reverse",
                "url": f"{ORGANIZATION_URL}/_apis/wit/workItems/{work_item_id + 1}",
                "attributes": {"isLocked": False, "name": "Parent"},
            }
        ],
    }


def test_query_work_items_hydrates_results_in_query_order(
    azure_devops_config: AzureDevOpsConfig,
    transport: RecordingTransport,
) -> None:
    transport.add("POST", "/_apis/wit/wiql", {"workItems": [{"id": 900}, {"id": 500}, {"id": 7}]})
    # id 7 was deleted; errorPolicy=omit returns null in its place
    transport.add(
        "GET",
        "/_apis/wit/workitems",
        {"count": 3, "value": [_work_item(500), None, _work_item(900)]},
    )
    store = _store(azure_devops_config, transport)

    work_items = store.query_work_items("SELECT [System.Id] FROM WorkItems")

    assert [work_item.id for work_item in work_items] == [900, 500]
    assert work_items[0].links == [related(901, PARENT)]
    wiql_request, batch_request = transport.requests
    assert request_json(wiql_request) == {"query": "SELECT [System.Id] FROM WorkItems"}
    assert wiql_request.url.params["api-version"] == "7.1"
    assert wiql_request.url.path == "/tfs-new/Target Project/_apis/wit/wiql"
    assert batch_request.url.params["ids"] == "900,500,7"
    assert batch_request.url.params["$expand"] == "relations"
    assert batch_request.url.params["errorPolicy"] == "omit"


def test_query_work_items_fetches_in_batches(
    azure_devops_config: AzureDevOpsConfig,
    transport: RecordingTransport,
) -> None:
    ids = list(range(1, 451))
    transport.add("POST", "/_apis/wit/wiql", {"workItems": [{"id": value} for value in ids]})

    def batch(request: httpx.Request) -> httpx.Response:
        requested = [int(value) for value in request.url.params["ids"].split(",")]
        return httpx.Response(200, json={"value": [_work_item(value) for value in requested]})

    transport.add("GET", "/_apis/wit/workitems", batch)
    store = _store(azure_devops_config, transport)

    work_items = store.query_work_items("SELECT [System.Id] FROM WorkItems")

    assert [work_item.id for work_item in work_items] == ids
    batch_sizes = [
        len(request.url.params["ids"].split(","))
        for request in transport.requests
        if request.method == "GET"
    ]
    assert batch_sizes == [200, 200, 50]


def test_get_work_item_raises_not_found(
    azure_devops_config: AzureDevOpsConfig,
    transport: RecordingTransport,
) -> None:
    store = _store(azure_devops_config, transport)

    with pytest.raises(WorkItemNotFoundError) as excinfo:
        store.get_work_item(404)

    assert excinfo.value.work_item_id == 404


def test_save_patches_pending_links(
    azure_devops_config: AzureDevOpsConfig,
    transport: RecordingTransport,
) -> None:
    transport.add("GET", "/_apis/wit/workitems/500", _work_item(500, rev=3))
    transport.add("PATCH", "/_apis/wit/workitems/500", _work_item(500, rev=4))
    store = _store(azure_devops_config, transport)
    work_item = store.get_work_item(500)
    work_item.add_link(hyperlink("https://wiki/design", comment="notes"))

    store.save(work_item)

    patch = transport.requests[-1]
    assert patch.method == "PATCH"
    assert patch.headers["Content-Type"] == "application/json-patch+json"
    assert request_json(patch) == [
        {"op": "test", "path": "/rev", "value": 3},
        {
            "op": "add",
            "path": "/relations/-",
            "value": {
                "rel": "Hyperlink",
                "url": "https://wiki/design",
                "attributes": {"comment": "notes"},
            },
        },
    ]
    assert work_item.pending_links == ()
    assert work_item.revision == 4
    assert hyperlink("https://wiki/design") in work_item.links


def test_save_without_pending_links_sends_nothing(
    azure_devops_config: AzureDevOpsConfig,
    transport: RecordingTransport,
) -> None:
    transport.add("GET", "/_apis/wit/workitems/500", _work_item(500))
    store = _store(azure_devops_config, transport)
    work_item = store.get_work_item(500)

    store.save(work_item)

    assert transport.paths("PATCH") == []


def test_rejected_save_raises_persistence_error(
    azure_devops_config: AzureDevOpsConfig,
    transport: RecordingTransport,
) -> None:
    transport.add("GET", "/_apis/wit/workitems/500", _work_item(500))
    transport.add(
        "PATCH",
        "/_apis/wit/workitems/500",
        lambda _request: httpx.Response(
            400,
            json={"message": "TF201036: You cannot add a Parent link", "typeKey": "RuleValidation"},
        ),
    )
    store = _store(azure_devops_config, transport)
    work_item = store.get_work_item(500)
    work_item.add_link(related(42, PARENT))

    with pytest.raises(PersistenceError) as excinfo:
        store.save(work_item)

    assert excinfo.value.status_code == 400
    assert "TF201036" in str(excinfo.value)
    assert work_item.pending_links == (related(42, PARENT),)


def test_link_type_ends_keep_work_item_links_only(
    azure_devops_config: AzureDevOpsConfig,
    transport: RecordingTransport,
) -> None:
    transport.add(
        "GET",
        "/_apis/wit/workitemrelationtypes",
        {
            "value": [
                {
                    "referenceName": "System.LinkTypes.Hierarchy-Forward",
                    "name": "Child",
                    "attributes": {"usage": "workItemLink", "enabled": True},
                },
                {
                    "referenceName": "ArtifactLink",
                    "name": "Artifact Link",
                    "attributes": {"usage": "resourceLink"},
                },
            ]
        },
    )
    store = _store(azure_devops_config, transport)

    ends = store.link_type_ends()
    store.link_type_ends()

    assert [end.immutable_name for end in ends] == ["System.LinkTypes.Hierarchy-Forward"]
    assert ends[0].name == "Child"
    assert len(transport.requests) == 1


def test_query_hierarchy_expands_deep_folders(
    azure_devops_config: AzureDevOpsConfig,
    transport: RecordingTransport,
) -> None:
    deep_folder_id = "9d3c1c4e-4d8a-4a5b-8f57-6cf0b0a4a001"
    transport.add(
        "GET",
        "/_apis/wit/queries",
        {
            "value": [
                {
                    "id": "6b7e2d43-8b1a-4f4e-9a51-0c4c1f9a7f10",
                    "name": "Shared Queries",
                    "isFolder": True,
                    "hasChildren": True,
                    "children": [
                        {
                            "id": deep_folder_id,
                            "name": "Migration",
                            "isFolder": True,
                            "hasChildren": True,
                        }
                    ],
                }
            ]
        },
    )
    transport.add(
        "GET",
        f"/_apis/wit/queries/{deep_folder_id}",
        {
            "id": deep_folder_id,
            "name": "Migration",
            "isFolder": True,
            "hasChildren": True,
            "children": [{"id": SCOPE_ID, "name": "Migrated items", "wiql": "SELECT 1"}],
        },
    )
    store = _store(azure_devops_config, transport)

    root = store.query_hierarchy()

    (shared,) = root.children
    assert isinstance(shared, QueryFolder)
    (migration,) = shared.children
    assert isinstance(migration, QueryFolder)
    (query,) = migration.children
    assert isinstance(query, QueryDefinition)
    assert query.id == UUID(SCOPE_ID)
    assert query.text == "SELECT 1"


def test_get_query_returns_definitions_only(
    azure_devops_config: AzureDevOpsConfig,
    transport: RecordingTransport,
) -> None:
    folder_id = "6b7e2d43-8b1a-4f4e-9a51-0c4c1f9a7f10"
    transport.add(
        "GET",
        f"/_apis/wit/queries/{SCOPE_ID}",
        {"id": SCOPE_ID, "name": "Migrated items", "wiql": "SELECT 1"},
    )
    transport.add(
        "GET",
        f"/_apis/wit/queries/{folder_id}",
        {"id": folder_id, "name": "Shared Queries", "isFolder": True},
    )
    store = _store(azure_devops_config, transport)

    definition = store.get_query(UUID(SCOPE_ID))

    assert definition is not None
    assert definition.name == "Migrated items"
    assert store.get_query(UUID(folder_id)) is None
    assert store.get_query(UUID(int=1)) is None


def test_check_connection_reports_unreachable_project(
    azure_devops_config: AzureDevOpsConfig,
    transport: RecordingTransport,
) -> None:
    transport.add(
        "GET",
        "/_apis/projects/Target Project",
        lambda _request: httpx.Response(401, text="<html>Unauthorized</html>"),
    )
    store = _store(azure_devops_config, transport)

    with pytest.raises(ConnectionCheckError) as excinfo:
        store.check_connection()

    assert "HTTP 401" in str(excinfo.value)


def test_check_connection_succeeds(
    azure_devops_config: AzureDevOpsConfig,
    transport: RecordingTransport,
) -> None:
    transport.add(
        "GET",
        "/_apis/projects/Target Project",
        {"id": "5e2e7f5c-2c36-4f43-8a0b-3a3f6d3b9d11", "name": "Target Project"},
    )
    store = _store(azure_devops_config, transport)

    store.check_connection()

    assert transport.requests[0].headers["Authorization"] == "Basic OnRva2Vu"
