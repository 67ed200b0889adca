"""Errors raised by generated repositories."""

from __future__ import annotations


class RepoError(Exception):
    """Base class for repository errors."""


class PrimaryKeyNotBlankError(RepoError):
    """Create was called with an entity whose primary key is already set."""

    def __init__(self, message: str = "primary key not blank") -> None:
        super().__init__(message)


class RecordNotFoundError(RepoError):
    def __init__(self, message: str = "record not found") -> None:
        super().__init__(message)
