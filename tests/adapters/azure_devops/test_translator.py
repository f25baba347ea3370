from __future__ import annotations

from uuid import UUID

from reflectlinks.adapters.azure_devops.schema import (
    ChangesetPayload,
    QueryHierarchyItem,
    WiqlResponse,
    WorkItemPayload,
)
from reflectlinks.adapters.azure_devops.translator import (
    parse_changeset_uri,
    patch_document,
    translate_changeset,
    translate_query_item,
    translate_work_item,
)
from reflectlinks.domain.model import (
    ArtifactLinkType,
    ExternalLink,
    Hyperlink,
    QueryDefinition,
    QueryFolder,
    RelatedLink,
)
from tests.helpers.work_items import PARENT, changeset_link, hyperlink, make_work_item, related

ORGANIZATION_URL = "https://dev.azure.com/tfs-new"


def _work_item_payload() -> dict[str, object]:
    return {
        "id": 500,
        "rev": 4,
        "fields": {
            "System.Title": "Login fails",
            "TfsMigrationToolReflectedWorkItemId": "100",
        },
        "relations": [
            {
                "rel": "System.LinkTypes.Hierarchy-Reverse",
                "url": f"{ORGANIZATION_URL}/_apis/wit/workItems/900",
                "attributes": {"isLocked": False, "name": "Parent", "comment": "epic"},
            },
            {
                "rel": "ArtifactLink",
                "url": "vstfs:///VersionControl/Changeset/1207",
                "attributes": {"name": "Fixed in Changeset", "isLocked": True},
            },
            {
                "rel": "Hyperlink",
                "url": "https://wiki/design",
                "attributes": {"comment": "design notes"},
            },
            {
                "rel": "AttachedFile",
                "url": f"{ORGANIZATION_URL}/_apis/wit/attachments/abc",
                "attributes": {"name": "log.txt"},
            },
        ],
    }


def test_translate_work_item_maps_relations_to_links() -> None:
    work_item = translate_work_item(WorkItemPayload.model_validate(_work_item_payload()))

    assert work_item.id == 500
    assert work_item.revision == 4
    assert work_item.field_value("TfsMigrationToolReflectedWorkItemId") == "100"
    parent, changeset, link = work_item.links
    assert isinstance(parent, RelatedLink)
    assert parent == related(900, PARENT)
    assert parent.link_type_end.name == "Parent"
    assert parent.comment == "epic"
    assert isinstance(changeset, ExternalLink)
    assert changeset.artifact_link_type == ArtifactLinkType("Fixed in Changeset")
    assert changeset.is_locked is True
    assert isinstance(link, Hyperlink)
    assert link.comment == "design notes"


def test_translate_work_item_without_relations() -> None:
    work_item = translate_work_item(WorkItemPayload.model_validate({"id": 7, "fields": {}}))

    assert work_item.links == []


def test_patch_document_guards_revision_and_appends_relations() -> None:
    work_item = make_work_item(500, revision=4)
    work_item.add_link(related(900, PARENT, comment="epic", is_locked=True))
    work_item.add_link(changeset_link(1207))
    work_item.add_link(hyperlink("https://wiki/design"))

    operations = patch_document(work_item, organization_url=ORGANIZATION_URL)

    assert operations == [
        {"op": "test", "path": "/rev", "value": 4},
        {
            "op": "add",
            "path": "/relations/-",
            "value": {
                "rel": "System.LinkTypes.Hierarchy-Reverse",
                "url": f"{ORGANIZATION_URL}/_apis/wit/workItems/900",
                "attributes": {"comment": "epic"},
            },
        },
        {
            "op": "add",
            "path": "/relations/-",
            "value": {
                "rel": "ArtifactLink",
                "url": "vstfs:///VersionControl/Changeset/1207",
                "attributes": {"name": "Fixed in Changeset"},
            },
        },
        {
            "op": "add",
            "path": "/relations/-",
            "value": {"rel": "Hyperlink", "url": "https://wiki/design"},
        },
    ]


def test_translate_changeset_keeps_checkin_notes() -> None:
    payload = ChangesetPayload.model_validate(
        {
            "changesetId": 1207,
            "comment": "Migrated",
            "checkinNotes": [
                {"name": "SourceChangesetId", "value": "7"},
                {"name": "Code Reviewer", "value": None},
            ],
        }
    )

    changeset = translate_changeset(payload)

    assert changeset.artifact_uri == "vstfs:///VersionControl/Changeset/1207"
    assert changeset.checkin_notes == {"SourceChangesetId": "7"}


def test_parse_changeset_uri() -> None:
    assert parse_changeset_uri("vstfs:///VersionControl/Changeset/42") == 42
    assert parse_changeset_uri("VSTFS:///versioncontrol/changeset/42") == 42
    assert parse_changeset_uri("vstfs:///Build/Build/42") is None


def test_translate_query_item_builds_folders() -> None:
    payload = QueryHierarchyItem.model_validate(
        {
            "id": "6b7e2d43-8b1a-4f4e-9a51-0c4c1f9a7f10",
            "name": "Shared Queries",
            "isFolder": True,
            "hasChildren": True,
            "children": [
                {
                    "id": "0b1c7a3e-1d43-4cc6-9d59-2bde2f2e7c11",
                    "name": "Migrated",
                    "wiql": "SELECT [System.Id] FROM WorkItems",
                }
            ],
        }
    )

    folder = translate_query_item(payload)

    assert isinstance(folder, QueryFolder)
    (query,) = folder.children
    assert isinstance(query, QueryDefinition)
    assert query.id == UUID("0b1c7a3e-1d43-4cc6-9d59-2bde2f2e7c11")
    assert query.text == "SELECT [System.Id] FROM WorkItems"


def test_wiql_link_query_ids_are_collected_in_order() -> None:
    response = WiqlResponse.model_validate(
        {
            "queryType": "oneHop",
            "workItemRelations": [
                {"rel": None, "source": None, "target": {"id": 3}},
                {"rel": "System.LinkTypes.Related", "source": {"id": 3}, "target": {"id": 5}},
                {"rel": None, "source": None, "target": {"id": 5}},
            ],
        }
    )

    assert response.work_item_ids() == [3, 5]
