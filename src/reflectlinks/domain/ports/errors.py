"""Errors raised by repository and version-control adapters."""

from __future__ import annotations


class RepositoryError(RuntimeError):
    """Raised when a repository call fails for one item or artifact."""


class WorkItemNotFoundError(RepositoryError):
    def __init__(self, work_item_id: int) -> None:
        super().__init__(f"Work item {work_item_id} does not exist or is not accessible")
        self.work_item_id = work_item_id


class PersistenceError(RepositoryError):
    """Raised when saving a work item is rejected (conflict, validation, transport)."""

    def __init__(self, message: str, *, work_item_id: int, status_code: int | None = None) -> None:
        super().__init__(message)
        self.work_item_id = work_item_id
        self.status_code = status_code


class ArtifactNotFoundError(RepositoryError):
    """Raised when an artifact URI cannot be resolved to a version-control object."""

    def __init__(self, uri: str, reason: str | None = None) -> None:
        message = f"Cannot resolve artifact {uri}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.uri = uri


class ConnectionCheckError(RepositoryError):
    """Raised when a repository cannot be reached at startup."""
