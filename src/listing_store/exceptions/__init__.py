from .base import (
    RepositoryError,
    NotFoundError,
    EditConflictError,
    InvalidFieldError,
    ValidationFailedError,
    StorageError,
    StorageTimeoutError,
    ConstraintViolationError,
)

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
