"""TFVC history lookups backed by the Azure DevOps REST API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from reflectlinks.domain.ports import ROOT_PATH, ArtifactNotFoundError

from .client import CHANGESET_PAGE_SIZE, AzureDevOpsAPIError, AzureDevOpsClient
from .translator import parse_changeset_uri, translate_changeset

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from reflectlinks.adapters.http_resilience import ResilientClient
    from reflectlinks.config.azure_devops import AzureDevOpsConfig
    from reflectlinks.config.http_resilience import ResilienceConfig
    from reflectlinks.domain.model import Changeset

log = getLogger(__name__)


class AzureDevOpsVersionControl:
    def __init__(
        self,
        *,
        config: AzureDevOpsConfig,
        client: AzureDevOpsClient | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        page_size: int = CHANGESET_PAGE_SIZE,
    ) -> None:
        self._config = config
        self._client = client or AzureDevOpsClient(config=config, client_factory=client_factory)
        self._page_size = page_size
        self._note_names: tuple[str, ...] | None = None

    def changeset_id_from_artifact_uri(self, uri: str) -> int:
        changeset_id = parse_changeset_uri(uri)
        if changeset_id is None:
            raise ArtifactNotFoundError(uri, "not a changeset URI")
        try:
            self._client.get_changeset(changeset_id)
        except AzureDevOpsAPIError as exc:
            raise ArtifactNotFoundError(uri, str(exc)) from exc
        return changeset_id

    def checkin_note_field_names(self) -> tuple[str, ...]:
        """Checkin note names defined for the project.

        The REST API does not list checkin note definitions, so unless they are
        configured explicitly the names found on the latest changeset are used.
        """

        if self._config.checkin_note_fields is not None:
            return self._config.checkin_note_fields
        if self._note_names is None:
            latest = self._client.latest_changeset()
            self._note_names = (
                tuple(note.name for note in latest.checkin_notes) if latest is not None else ()
            )
            log.debug(
                "Checkin notes on %s: %s",
                self._config.project,
                ", ".join(self._note_names) or "none",
            )
        return self._note_names

    def query_history(
        self,
        path: str = ROOT_PATH,
        *,
        from_id: int = 1,
        to_id: int | None = None,
    ) -> Iterator[Changeset]:
        skip = 0
        while True:
            page = self._client.changeset_page(
                item_path=path,
                from_id=from_id,
                to_id=to_id,
                skip=skip,
                top=self._page_size,
            )
            for payload in page:
                yield translate_changeset(payload)
            if len(page) < self._page_size:
                return
            skip += len(page)
