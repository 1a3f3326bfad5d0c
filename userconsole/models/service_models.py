"""
Service Layer Data Transfer Objects.

Pydantic models for validated input/output at service boundaries.
"""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from userconsole.models.enums import ErrorCode

T = TypeVar("T")

__all__ = [
    "AvatarUpload",
    "ServiceResult",
]


class AvatarUpload(BaseModel):
    """A picked image file, as handed over by the file-picker view.

    ``content_type`` is the MIME type the picker reports; it is checked
    against the allow-list, not sniffed from ``data``.
    """

    filename: str = Field(min_length=1)
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        """Text after the last dot of *filename* (whole name if none)."""
        return self.filename.rsplit(".", 1)[-1].lower()


class ServiceResult(BaseModel, Generic[T]):
    """
    Standard service return envelope.

    All view-facing service methods return this, providing a consistent
    contract for inline success/error rendering.  Generic over ``T`` so
    callers can annotate return types precisely
    (e.g. ``ServiceResult[list[UserProfile]]``).
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
