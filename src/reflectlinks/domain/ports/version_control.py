"""Ports for version-control history lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from reflectlinks.domain.model import Changeset

ROOT_PATH = "$/"


@runtime_checkable
class VersionControl(Protocol):
    def changeset_id_from_artifact_uri(self, uri: str) -> int:
        """Resolve a changeset artifact URI, raising ``ArtifactNotFoundError`` on failure."""
        ...

    def checkin_note_field_names(self) -> Collection[str]: ...

    def query_history(
        self,
        path: str = ROOT_PATH,
        *,
        from_id: int = 1,
        to_id: int | None = None,
    ) -> Iterable[Changeset]:
        """Yield changesets under ``path`` in ascending id order, checkin notes included."""
        ...
