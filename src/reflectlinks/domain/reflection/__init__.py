"""Restore links on migrated work items from their source counterparts."""

from __future__ import annotations

from .changesets import ChangesetRemapper, RemapChangeset
from .engine import count_target_links, index_link_type_ends, reconcile_links
from .index import (
    IdentifierIndex,
    IndexReport,
    InvalidProvenanceError,
    MissingProvenanceError,
    ProvenanceError,
    build_identifier_index,
    load_identifier_index,
    parse_provenance,
)
from .orchestrator import LinkReflector, reflect_work_items, resolve_and_reflect
from .policy import CHANGESET_LINK_TYPE, MAX_LINKS_PER_ITEM, LinkPolicy
from .queries import find_query, resolve_scope, run_query
from .statistics import AddedLinks, LinkCategory, LinkStatistics, ReflectionStatistics

__all__ = [
    "CHANGESET_LINK_TYPE",
    "MAX_LINKS_PER_ITEM",
    "AddedLinks",
    "ChangesetRemapper",
    "IdentifierIndex",
    "IndexReport",
    "InvalidProvenanceError",
    "LinkCategory",
    "LinkPolicy",
    "LinkReflector",
    "LinkStatistics",
    "MissingProvenanceError",
    "ProvenanceError",
    "ReflectionStatistics",
    "RemapChangeset",
    "build_identifier_index",
    "count_target_links",
    "find_query",
    "index_link_type_ends",
    "load_identifier_index",
    "parse_provenance",
    "reconcile_links",
    "reflect_work_items",
    "resolve_and_reflect",
    "resolve_scope",
    "run_query",
]
