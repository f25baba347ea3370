"""Translate Azure DevOps payloads into domain objects and back."""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING

from reflectlinks.domain.model import (
    ArtifactLinkType,
    Changeset,
    ExternalLink,
    Hyperlink,
    LinkTypeEnd,
    QueryDefinition,
    QueryFolder,
    RelatedLink,
    WorkItem,
)

from .schema import ARTIFACT_LINK_REL, ATTACHED_FILE_REL, HYPERLINK_REL

if TYPE_CHECKING:
    from reflectlinks.domain.model import Link

    from .schema import (
        ChangesetPayload,
        QueryHierarchyItem,
        WorkItemPayload,
        WorkItemRelation,
        WorkItemRelationType,
    )

log = getLogger(__name__)

CHANGESET_URI_PREFIX = "vstfs:///VersionControl/Changeset/"

_WORK_ITEM_URL = re.compile(r"/_apis/wit/workItems/(?P<id>\d+)/?$", re.IGNORECASE)
_CHANGESET_URI = re.compile(r"^vstfs:///VersionControl/Changeset/(?P<id>\d+)$", re.IGNORECASE)


def changeset_artifact_uri(changeset_id: int) -> str:
    return f"{CHANGESET_URI_PREFIX}{changeset_id}"


def parse_changeset_uri(uri: str) -> int | None:
    match = _CHANGESET_URI.match(uri.strip())
    if match is None:
        return None
    return int(match.group("id"))


def work_item_url(organization_url: str, work_item_id: int) -> str:
    return f"{organization_url.rstrip('/')}/_apis/wit/workItems/{work_item_id}"


def translate_work_item(payload: WorkItemPayload) -> WorkItem:
    links: list[Link] = []
    for relation in payload.relations or ():
        link = translate_relation(relation)
        if link is not None:
            links.append(link)
    return WorkItem(id=payload.id, links=links, fields=dict(payload.fields), revision=payload.rev)


def translate_relation(relation: WorkItemRelation) -> Link | None:
    attributes = relation.attributes
    if relation.rel == HYPERLINK_REL:
        return Hyperlink(
            location=relation.url,
            comment=attributes.comment,
            is_locked=attributes.is_locked,
        )
    if relation.rel == ARTIFACT_LINK_REL:
        if attributes.name is None:
            log.debug("Artifact link %s has no link type name, ignored", relation.url)
            return None
        return ExternalLink(
            artifact_link_type=ArtifactLinkType(attributes.name),
            linked_artifact_uri=relation.url,
            comment=attributes.comment,
            is_locked=attributes.is_locked,
        )
    if relation.rel == ATTACHED_FILE_REL:
        return None

    match = _WORK_ITEM_URL.search(relation.url)
    if match is None:
        log.debug("Relation %s to %s is not a work item link, ignored", relation.rel, relation.url)
        return None
    return RelatedLink(
        link_type_end=LinkTypeEnd(relation.rel, name=attributes.name or ""),
        related_work_item_id=int(match.group("id")),
        comment=attributes.comment,
        is_locked=attributes.is_locked,
    )


def relation_for_link(link: Link, *, organization_url: str) -> dict[str, object]:
    """Build the ``relations`` entry that adds ``link`` to a work item.

    Locks are never written; only the comment travels with the link.
    """

    attributes: dict[str, object] = {}
    if link.comment:
        attributes["comment"] = link.comment

    if isinstance(link, Hyperlink):
        relation: dict[str, object] = {"rel": HYPERLINK_REL, "url": link.location}
    elif isinstance(link, RelatedLink):
        relation = {
            "rel": link.link_type_end.immutable_name,
            "url": work_item_url(organization_url, link.related_work_item_id),
        }
    else:
        attributes["name"] = link.artifact_link_type.name
        relation = {"rel": ARTIFACT_LINK_REL, "url": link.linked_artifact_uri}

    if attributes:
        relation["attributes"] = attributes
    return relation


def patch_document(work_item: WorkItem, *, organization_url: str) -> list[dict[str, object]]:
    """JSON patch adding the pending links of ``work_item``, guarded by its revision."""

    operations: list[dict[str, object]] = []
    if work_item.revision is not None:
        operations.append({"op": "test", "path": "/rev", "value": work_item.revision})
    operations.extend(
        {
            "op": "add",
            "path": "/relations/-",
            "value": relation_for_link(link, organization_url=organization_url),
        }
        for link in work_item.pending_links
    )
    return operations


def translate_link_type_end(relation_type: WorkItemRelationType) -> LinkTypeEnd:
    return LinkTypeEnd(relation_type.reference_name, name=relation_type.name)


def translate_changeset(payload: ChangesetPayload) -> Changeset:
    notes = {note.name: note.value for note in payload.checkin_notes if note.value is not None}
    return Changeset(
        changeset_id=payload.changeset_id,
        artifact_uri=changeset_artifact_uri(payload.changeset_id),
        checkin_notes=notes,
        comment=payload.comment,
    )


def translate_query_item(item: QueryHierarchyItem) -> QueryFolder | QueryDefinition:
    if not item.is_folder:
        return QueryDefinition(id=item.id, name=item.name, text=item.wiql or "")
    folder = QueryFolder(id=item.id, name=item.name)
    for child in item.children:
        folder.add(translate_query_item(child))
    return folder
