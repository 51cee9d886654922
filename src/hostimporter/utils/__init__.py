"""Utility functions and exceptions."""

from .exceptions import (
    EmptyFileError,
    FileError,
    ImporterError,
    InventoryAPIError,
    InventoryAuthenticationError,
    InventoryConnectionError,
    LineTooLongError,
    MissingRequiredColumnError,
    ResourceAlreadyExistsError,
    RowError,
    RowValidationError,
    UnreadableFileError,
    UploadError,
)
from .locking import KeyedLock

__all__ = [
    "ImporterError",
    "FileError",
    "EmptyFileError",
    "MissingRequiredColumnError",
    "LineTooLongError",
    "UnreadableFileError",
    "UploadError",
    "RowError",
    "RowValidationError",
    "InventoryAPIError",
    "ResourceAlreadyExistsError",
    "InventoryAuthenticationError",
    "InventoryConnectionError",
    "KeyedLock",
]
