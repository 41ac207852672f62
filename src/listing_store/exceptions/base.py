"""
Public error taxonomy of the listing store.

Every failure that leaves the store or the service is one of these. The rendering
layer only needs `to_payload()` and `http_status()`; it never sees raw database
messages.
"""

from typing import Iterable, Mapping

# canonical repository-level exception

class RepositoryError(Exception):
    """
    Base exception for repository/service errors.

    - message: human-friendly message (safe to show to clients)
    - fields: optional list of field names related to the error (e.g., ['email'])
    - constraint: optional DB constraint name or identifier (for logs only)
    - error_code: canonical short code (e.g., 'not_found', 'edit_conflict') used by clients
    """

    # Map canonical error_code -> default HTTP status.
    ERROR_CODE_TO_STATUS = {
        "failed_validation": 422,
        "invalid_field": 422,
        "not_found": 404,
        "edit_conflict": 409,
        "storage": 500,
        "constraint": 500,
        "storage_timeout": 504,
        # fallback: default to 400 for general repository errors
    }

    def __init__(self, message: str, *, fields: Iterable[str] | None = None,
                 constraint: str | None = None, error_code: str | None = None):
        super().__init__(message)
        self.message = message  # user-friendly message
        self.fields = list(fields) if fields else None
        self.constraint = constraint
        self.error_code = error_code

    def __str__(self) -> str:
        base = self.message
        parts = []
        if self.fields:
            parts.append(f"fields: {', '.join(self.fields)}")
        if self.constraint:
            parts.append(f"constraint: {self.constraint}")
        if self.error_code:
            parts.append(f"code: {self.error_code}")
        if parts:
            return f"{base} ({'; '.join(parts)})"
        return base

    def to_payload(self) -> dict:
        """
        Return a JSON-serializable dict suitable for an HTTP response body.
        Standard shape:
            {
                "detail": "A human-friendly message",
                "code": "edit_conflict",       # optional canonical code
                "fields": ["version"],         # optional list for client usage
            }
        `constraint` never appears in the payload.
        """
        payload = {"detail": self.message}
        if self.error_code:
            payload["code"] = self.error_code
        if self.fields:
            payload["fields"] = list(self.fields)
        return payload

    def http_status(self) -> int:
        if self.error_code:
            return self.ERROR_CODE_TO_STATUS.get(self.error_code, 400)
        return 400


class NotFoundError(RepositoryError):
    def __init__(self, message: str = "the requested resource could not be found", *,
                 fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="not_found")


class EditConflictError(RepositoryError):
    """The stored version no longer matches the version the write was based on."""

    def __init__(self, message: str = "unable to update the record due to an edit conflict, please try again"):
        super().__init__(message, fields=["version"], error_code="edit_conflict")


class InvalidFieldError(RepositoryError):
    """Raised when the caller passes unknown or store-owned fields, or an unsafe sort key."""

    def __init__(self, message: str, *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="invalid_field")


class ValidationFailedError(RepositoryError):
    """Input failed validation; `errors` maps each failing field to its first message."""

    def __init__(self, errors: Mapping[str, str], message: str = "the submitted data failed validation"):
        self.errors = dict(errors)
        super().__init__(message, fields=sorted(self.errors), error_code="failed_validation")

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["errors"] = dict(self.errors)
        return payload


class StorageError(RepositoryError):
    """The backend failed to complete an operation."""

    def __init__(self, message: str = "the listing store could not complete the operation", *,
                 fields: Iterable[str] | None = None, constraint: str | None = None,
                 error_code: str = "storage"):
        super().__init__(message, fields=fields, constraint=constraint, error_code=error_code)


class StorageTimeoutError(StorageError):
    def __init__(self, message: str = "the listing store did not respond in time"):
        super().__init__(message, error_code="storage_timeout")


class ConstraintViolationError(StorageError):
    """A table constraint rejected the write (NOT NULL, CHECK, ...)."""

    def __init__(self, message: str, *, fields: Iterable[str] | None = None, constraint: str | None = None):
        super().__init__(message, fields=fields, constraint=constraint, error_code="constraint")


__all__ = [
    "RepositoryError",
    "NotFoundError",
    "EditConflictError",
    "InvalidFieldError",
    "ValidationFailedError",
    "StorageError",
    "StorageTimeoutError",
    "ConstraintViolationError",
]
