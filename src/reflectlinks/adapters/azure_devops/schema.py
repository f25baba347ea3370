"""Pydantic models describing the Azure DevOps REST payloads used here."""

from __future__ import annotations

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

HYPERLINK_REL = "Hyperlink"
ARTIFACT_LINK_REL = "ArtifactLink"
ATTACHED_FILE_REL = "AttachedFile"


class AzureDevOpsBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ErrorResponse(AzureDevOpsBaseModel):
    message: str
    type_key: str | None = Field(default=None, alias="typeKey")
    error_code: int | None = Field(default=None, alias="errorCode")


class RelationAttributes(AzureDevOpsBaseModel):
    name: str | None = None
    comment: str | None = None
    is_locked: bool = Field(default=False, alias="isLocked")


class WorkItemRelation(AzureDevOpsBaseModel):
    rel: str
    url: str
    attributes: RelationAttributes = Field(default_factory=RelationAttributes)


class WorkItemPayload(AzureDevOpsBaseModel):
    id: int
    rev: int | None = None
    fields: dict[str, object] = Field(default_factory=dict[str, object])
    relations: list[WorkItemRelation] | None = None


class WorkItemBatchResponse(AzureDevOpsBaseModel):
    count: int = 0
    # errorPolicy=omit leaves null entries for ids that cannot be read
    value: list[WorkItemPayload | None] = Field(default_factory=list["WorkItemPayload | None"])


class WorkItemReference(AzureDevOpsBaseModel):
    id: int
    url: str | None = None


class WorkItemLinkReference(AzureDevOpsBaseModel):
    rel: str | None = None
    source: WorkItemReference | None = None
    target: WorkItemReference | None = None


class WiqlResponse(AzureDevOpsBaseModel):
    query_type: Literal["flat", "tree", "oneHop"] | None = Field(default=None, alias="queryType")
    work_items: list[WorkItemReference] = Field(
        default_factory=list[WorkItemReference], alias="workItems"
    )
    work_item_relations: list[WorkItemLinkReference] = Field(
        default_factory=list[WorkItemLinkReference], alias="workItemRelations"
    )

    def work_item_ids(self) -> list[int]:
        """Result ids in query order; link queries contribute their source and target ends."""

        if self.work_items:
            return [reference.id for reference in self.work_items]
        seen: dict[int, None] = {}
        for relation in self.work_item_relations:
            for end in (relation.source, relation.target):
                if end is not None:
                    seen.setdefault(end.id, None)
        return list(seen)


class RelationTypeAttributes(AzureDevOpsBaseModel):
    usage: str | None = None
    enabled: bool = True


class WorkItemRelationType(AzureDevOpsBaseModel):
    reference_name: str = Field(alias="referenceName")
    name: str
    attributes: RelationTypeAttributes = Field(default_factory=RelationTypeAttributes)

    @property
    def is_work_item_link(self) -> bool:
        return self.attributes.usage == "workItemLink"


class RelationTypeListResponse(AzureDevOpsBaseModel):
    count: int = 0
    value: list[WorkItemRelationType] = Field(default_factory=list[WorkItemRelationType])


class QueryHierarchyItem(AzureDevOpsBaseModel):
    id: UUID
    name: str
    path: str | None = None
    is_folder: bool = Field(default=False, alias="isFolder")
    has_children: bool = Field(default=False, alias="hasChildren")
    wiql: str | None = None
    children: list[QueryHierarchyItem] = Field(default_factory=list["QueryHierarchyItem"])


class QueryHierarchyResponse(AzureDevOpsBaseModel):
    count: int = 0
    value: list[QueryHierarchyItem] = Field(default_factory=list[QueryHierarchyItem])


class CheckinNote(AzureDevOpsBaseModel):
    name: str
    value: str | None = None


class ChangesetPayload(AzureDevOpsBaseModel):
    changeset_id: int = Field(alias="changesetId")
    url: str | None = None
    comment: str | None = None
    checkin_notes: list[CheckinNote] = Field(
        default_factory=list[CheckinNote], alias="checkinNotes"
    )


class ChangesetListResponse(AzureDevOpsBaseModel):
    count: int = 0
    value: list[ChangesetPayload] = Field(default_factory=list[ChangesetPayload])


class ProjectPayload(AzureDevOpsBaseModel):
    id: UUID
    name: str
    state: str | None = None
