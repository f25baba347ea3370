"""Remap changeset artifact URIs from the source to the target repository.

Migrated changesets carry the id of the changeset they were copied from in a
checkin note. Remapping a source URI means finding the target changeset whose
note holds that id. The target history is read once and memoized.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from reflectlinks.domain.ports import ROOT_PATH, ArtifactNotFoundError, RepositoryError

if TYPE_CHECKING:
    from reflectlinks.domain.ports import VersionControl

log = getLogger(__name__)

DEFAULT_CHECKIN_NOTE_FIELD = "SourceChangesetId"


class RemapChangeset(Protocol):
    """Map a source changeset URI to the matching target URI, or ``None``."""

    def remap(self, uri: str) -> str | None: ...


class ChangesetRemapper:
    def __init__(
        self,
        *,
        source: VersionControl,
        target: VersionControl,
        note_field: str = DEFAULT_CHECKIN_NOTE_FIELD,
        path: str = ROOT_PATH,
    ) -> None:
        self._source = source
        self._target = target
        self._note_field = note_field
        self._path = path
        self._supported: bool | None = None
        self._uris_by_source_id: dict[str, str] | None = None

    @property
    def note_field(self) -> str:
        return self._note_field

    @property
    def supported(self) -> bool:
        """Whether the target repository defines the checkin note used for remapping."""

        if self._supported is None:
            wanted = self._note_field.casefold()
            try:
                names = self._target.checkin_note_field_names()
            except RepositoryError as exc:
                log.error("Cannot read target checkin note definitions: %s", exc)
                names = ()
            self._supported = any(name.casefold() == wanted for name in names)
            if not self._supported:
                log.warning(
                    "Target repository has no '%s' checkin note; changeset links are skipped",
                    self._note_field,
                )
        return self._supported

    def remap(self, uri: str) -> str | None:
        try:
            source_id = self._source.changeset_id_from_artifact_uri(uri)
        except ArtifactNotFoundError as exc:
            log.warning("Cannot resolve source changeset: %s", exc)
            return None

        if not self.supported:
            return None

        try:
            uris_by_source_id = self._history_index()
        except RepositoryError as exc:
            log.error("Cannot read target changeset history: %s", exc)
            # no retry within this run; every later lookup finds nothing
            self._uris_by_source_id = {}
            return None

        target_uri = uris_by_source_id.get(str(source_id))
        if target_uri is None:
            log.debug("Source changeset %s has not been migrated", source_id)
        return target_uri

    def _history_index(self) -> dict[str, str]:
        if self._uris_by_source_id is None:
            log.info(
                "Reading target changeset history under %s for '%s' checkin notes",
                self._path,
                self._note_field,
            )
            uris_by_source_id: dict[str, str] = {}
            for changeset in self._target.query_history(self._path, from_id=1):
                value = changeset.checkin_note(self._note_field)
                if value is None:
                    continue
                # earliest changeset wins when several claim the same source id
                uris_by_source_id.setdefault(value, changeset.artifact_uri)
            log.info("Found %d migrated changeset(s)", len(uris_by_source_id))
            self._uris_by_source_id = uris_by_source_id
        return self._uris_by_source_id
