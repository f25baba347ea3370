"""Saved work item queries and the folders holding them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

PROJECT_PLACEHOLDER = "@project"


@dataclass(slots=True, frozen=True, kw_only=True)
class QueryDefinition:
    id: UUID
    name: str
    text: str

    def text_for_project(self, project: str) -> str:
        """Return the query text with ``@project`` bound to ``project``."""

        return self.text.replace(PROJECT_PLACEHOLDER, f"'{project}'")


@dataclass(slots=True, kw_only=True)
class QueryFolder:
    id: UUID
    name: str
    children: list[QueryFolder | QueryDefinition] = field(
        default_factory=list["QueryFolder | QueryDefinition"]
    )

    def add(self, child: QueryFolder | QueryDefinition) -> None:
        self.children.append(child)


type QueryItem = QueryFolder | QueryDefinition
