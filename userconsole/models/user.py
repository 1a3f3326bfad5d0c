"""
User, Role and Profile Models.

Pydantic models for the two persisted tables (``users``, ``roles``) and
the denormalised ``UserProfile`` view model the session store publishes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from userconsole.models.enums import RoleName


class Role(BaseModel):
    """A row of the ``roles`` table.  Read-only for the console."""

    id: str
    name: str
    description: str = ""
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class User(BaseModel):
    """A row of the ``users`` table.

    ``id`` equals the Supabase auth identity id.  ``email`` is written
    once at registration and never edited by the console.
    """

    id: str
    email: str
    full_name: str
    role_id: str
    profile_picture_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Role resolution
# ---------------------------------------------------------------------------

class RoleResolved(BaseModel):
    """The ``roles(name)`` join returned a row."""

    kind: Literal["resolved"] = "resolved"
    name: str

    model_config = {"frozen": True}


class RoleMissing(BaseModel):
    """The ``roles(name)`` join came back empty for *role_id*."""

    kind: Literal["missing"] = "missing"
    role_id: Optional[str] = None

    model_config = {"frozen": True}


RoleResolution = Annotated[Union[RoleResolved, RoleMissing], Field(discriminator="kind")]


class UserProfile(BaseModel):
    """User row joined with its role name.

    ``role`` records what the join actually produced; ``role_name`` is
    the name the repository settled on (the resolved name, or the
    configured fallback when the role is missing).
    """

    id: str
    email: str
    full_name: str
    role_id: str
    role_name: str
    role: RoleResolution
    profile_picture_url: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"frozen": True}

    @property
    def is_admin(self) -> bool:
        return self.role_name == RoleName.ADMIN

    @property
    def role_is_fallback(self) -> bool:
        """``True`` when ``role_name`` came from the fallback, not the join."""
        return isinstance(self.role, RoleMissing)
