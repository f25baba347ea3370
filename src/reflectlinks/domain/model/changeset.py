from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True, kw_only=True)
class Changeset:
    """A version-control changeset and its checkin notes."""

    changeset_id: int
    artifact_uri: str
    checkin_notes: dict[str, str] = field(default_factory=dict[str, str])
    comment: str | None = None

    def checkin_note(self, name: str) -> str | None:
        """Return the note value whose name matches ``name`` case-insensitively."""

        wanted = name.casefold()
        for note_name, value in self.checkin_notes.items():
            if note_name.casefold() == wanted:
                return value
        return None
