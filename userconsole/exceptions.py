"""
Console Exceptions.

Raised by the repository layer and translated into ``AuthResult`` /
``ServiceResult`` envelopes by the services, so views never see them.
"""

from __future__ import annotations

from typing import Optional


class ConsoleError(Exception):
    """Base class for repository-level failures."""

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        self.message: str = message
        self.original_error: Optional[Exception] = original_error
        super().__init__(self.message)


class ProfileError(ConsoleError):
    """A ``users`` row could not be read or written."""


class ProfileInsertError(ProfileError):
    """The profile row insert after identity creation failed."""


class NotFoundError(ConsoleError):
    """A lookup by primary key returned no row."""


class StorageError(ConsoleError):
    """An object storage upload or URL derivation failed."""
