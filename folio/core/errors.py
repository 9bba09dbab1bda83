"""Typed outcomes raised by the lifecycle core.

Every failure the core can report is a FolioError subclass carrying a stable
``code``. Callers map these to their own presentation; the core makes no
transport assumptions.
"""

from __future__ import annotations

from typing import Any


class FolioError(Exception):
    """Base class for lifecycle and query errors."""

    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(FolioError):
    """Malformed input reached the core."""

    code = "validation_failed"


class DuplicateValue(FolioError):
    """A unique field already holds the candidate value."""

    code = "duplicate_value"

    def __init__(self, field: str | None, value: Any = None, message: str | None = None):
        self.field = field
        self.value = value
        if message is None:
            message = f"{field} already in use" if field else "Unique constraint violated"
        super().__init__(message)


class NotFound(FolioError):
    code = "not_found"

    def __init__(self, kind: str, entity_id: Any):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} {entity_id} not found")


class NotDeleted(FolioError):
    """Restore attempted on an active record."""

    code = "not_deleted"

    def __init__(self, kind: str, entity_id: Any):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} {entity_id} is not deleted")


class ParentNotFound(FolioError):
    code = "parent_not_found"

    def __init__(self, parent_id: Any):
        self.parent_id = parent_id
        super().__init__(f"Owner account {parent_id} not found")


class Forbidden(FolioError):
    code = "forbidden"


class InvalidCredentials(FolioError):
    code = "invalid_credentials"

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class StorageFailure(FolioError):
    """Underlying datastore error; not recoverable locally."""

    code = "storage_failure"
