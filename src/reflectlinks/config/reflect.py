"""Link reflection defaults and toggles."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_flag, env_int, optional_env_var
from .errors import InvalidConfigurationValueError

MAX_LINKS_PER_ITEM = 30
CHANGESET_LINK_TYPE = "Fixed in Changeset"
DEFAULT_REFLECTED_ID_FIELD = "TfsMigrationToolReflectedWorkItemId"
DEFAULT_CHECKIN_NOTE_FIELD = "SourceChangesetId"


@dataclass(frozen=True, slots=True)
class ReflectConfig:
    """Which link categories to restore and how target items point back to their source.

    Disabling a category only suppresses additions; links of that category are still
    counted on both sides.
    """

    add_missing_related: bool = True
    add_missing_changesets: bool = True
    add_missing_external: bool = True
    max_links_per_item: int = MAX_LINKS_PER_ITEM
    reflected_id_field: str = DEFAULT_REFLECTED_ID_FIELD
    checkin_note_field: str = DEFAULT_CHECKIN_NOTE_FIELD
    changeset_link_type: str = CHANGESET_LINK_TYPE
    scope_query: str | None = None
    target_query: str | None = None

    def __post_init__(self) -> None:
        if self.max_links_per_item < 1:
            raise InvalidConfigurationValueError(
                "REFLECT_MAX_LINKS_PER_ITEM",
                str(self.max_links_per_item),
                expected="positive integer",
            )


def get_reflect_config() -> ReflectConfig:
    return ReflectConfig(
        add_missing_related=env_flag("REFLECT_ADD_MISSING_RELATED", default=True),
        add_missing_changesets=env_flag("REFLECT_ADD_MISSING_CHANGESETS", default=True),
        add_missing_external=env_flag("REFLECT_ADD_MISSING_EXTERNAL", default=True),
        max_links_per_item=env_int("REFLECT_MAX_LINKS_PER_ITEM", default=MAX_LINKS_PER_ITEM),
        reflected_id_field=optional_env_var("REFLECT_REFLECTED_ID_FIELD")
        or DEFAULT_REFLECTED_ID_FIELD,
        checkin_note_field=optional_env_var("REFLECT_CHECKIN_NOTE_FIELD")
        or DEFAULT_CHECKIN_NOTE_FIELD,
        scope_query=optional_env_var("REFLECT_SCOPE_QUERY"),
        target_query=optional_env_var("REFLECT_TARGET_QUERY"),
    )
