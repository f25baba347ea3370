from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from reflectlinks.domain.model import Changeset
from reflectlinks.domain.ports import RepositoryError
from reflectlinks.domain.reflection import ChangesetRemapper
from tests.helpers.work_items import FakeVersionControl, changeset_uri, migrated_changeset

if TYPE_CHECKING:
    from collections.abc import Iterator


def _remapper(
    target_changesets: tuple[Changeset, ...],
    *,
    note_names: tuple[str, ...] = ("Code Reviewer", "SourceChangesetId"),
    source_known: tuple[int, ...] | None = None,
) -> tuple[ChangesetRemapper, FakeVersionControl]:
    target = FakeVersionControl(target_changesets, note_names=note_names)
    source = FakeVersionControl(known_ids=source_known)
    return ChangesetRemapper(source=source, target=target), target


def test_remap_finds_migrated_changeset() -> None:
    remapper, _ = _remapper((migrated_changeset(1205, 6), migrated_changeset(1207, 7)))

    assert remapper.remap(changeset_uri(7)) == changeset_uri(1207)


def test_remap_returns_none_when_not_migrated() -> None:
    remapper, _ = _remapper((migrated_changeset(1205, 6),))

    assert remapper.remap(changeset_uri(7)) is None


def test_remap_prefers_earliest_matching_changeset() -> None:
    remapper, _ = _remapper((migrated_changeset(1300, 7), migrated_changeset(1207, 7)))

    assert remapper.remap(changeset_uri(7)) == changeset_uri(1207)


def test_remap_reads_history_once() -> None:
    remapper, target = _remapper((migrated_changeset(1205, 6), migrated_changeset(1207, 7)))

    remapper.remap(changeset_uri(6))
    remapper.remap(changeset_uri(7))
    remapper.remap(changeset_uri(8))

    assert target.history_reads == 1


def test_note_lookup_is_case_insensitive() -> None:
    changeset = Changeset(
        changeset_id=1207,
        artifact_uri=changeset_uri(1207),
        checkin_notes={"sourcechangesetid": "7"},
    )
    remapper, _ = _remapper((changeset,), note_names=("SOURCECHANGESETID",))

    assert remapper.supported is True
    assert remapper.remap(changeset_uri(7)) == changeset_uri(1207)


def test_unsupported_target_skips_history(caplog: pytest.LogCaptureFixture) -> None:
    remapper, target = _remapper((migrated_changeset(1207, 7),), note_names=("Code Reviewer",))

    with caplog.at_level(logging.WARNING):
        assert remapper.remap(changeset_uri(7)) is None
        assert remapper.remap(changeset_uri(8)) is None

    assert remapper.supported is False
    assert target.history_reads == 0
    assert target.note_name_reads == 1
    assert caplog.text.count("checkin note") == 1


def test_unresolvable_source_changeset_is_skipped() -> None:
    remapper, target = _remapper((migrated_changeset(1207, 7),), source_known=(6,))

    assert remapper.remap(changeset_uri(7)) is None
    assert remapper.remap("vstfs:///Build/Build/42") is None
    assert target.history_reads == 0


def test_history_failure_is_logged_once_and_skipped(caplog: pytest.LogCaptureFixture) -> None:
    class FailingHistory(FakeVersionControl):
        def query_history(
            self, path: str = "$/", *, from_id: int = 1, to_id: int | None = None
        ) -> Iterator[Changeset]:
            del path, from_id, to_id
            self.history_reads += 1
            raise RepositoryError("history unavailable")

    target = FailingHistory(note_names=("SourceChangesetId",))
    remapper = ChangesetRemapper(source=FakeVersionControl(), target=target)

    with caplog.at_level(logging.ERROR):
        assert remapper.remap(changeset_uri(7)) is None
        assert remapper.remap(changeset_uri(8)) is None

    assert target.history_reads == 1
    assert caplog.text.count("history unavailable") == 1
