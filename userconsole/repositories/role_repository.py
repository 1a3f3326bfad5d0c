"""
Role Repository.

Read-only access to the pre-seeded ``roles`` table.
"""

from __future__ import annotations

from typing import Optional

from userconsole.exceptions import ProfileError
from userconsole.models.user import Role
from userconsole.repositories.base_repository import BaseRepository


class RoleRepository(BaseRepository):
    """Lists roles for the registration form and the admin edit modal."""

    TABLE = "roles"

    def get_all(self) -> list[Role]:
        """Every role, ordered by name."""
        def _op() -> list[Role]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .order("name")
                .execute()
            )
            return [Role(**row) for row in response.data or []]

        return self._execute(
            _op, operation_name="get_all (roles)", error_cls=ProfileError,
        )

    def get_by_name(self, name: str) -> Optional[Role]:
        def _op() -> Optional[Role]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("name", name)
                .maybe_single()
                .execute()
            )
            if response is None or not response.data:
                return None
            return Role(**response.data)

        return self._execute(
            _op, operation_name="get_by_name (roles)", error_cls=ProfileError,
        )
