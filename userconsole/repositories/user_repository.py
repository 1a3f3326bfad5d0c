"""
User Repository.

Handles all access to the ``users`` table, including the ``roles(name)``
expansion that produces ``UserProfile`` view models.
"""

from __future__ import annotations

from typing import Optional

from userconsole.backend import BackendClient
from userconsole.exceptions import NotFoundError, ProfileError, ProfileInsertError
from userconsole.logger import StructuredLogger
from userconsole.models.user import RoleMissing, RoleResolved, User, UserProfile
from userconsole.repositories.base_repository import BaseRepository
from userconsole.utils.string_helpers import JsonRow


class UserRepository(BaseRepository):
    """Data access layer for User rows and joined profiles.

    **No ``delete()`` method.**  Rows disappear when the admin API deletes
    the auth identity; the ``users.id`` foreign key cascades.

    Parameters
    ----------
    missing_role_fallback:
        Role name reported when the ``roles`` join is empty.  ``None``
        makes a missing role a ``ProfileError`` instead.
    """

    TABLE = "users"

    PROFILE_COLUMNS = (
        "id, email, full_name, role_id, profile_picture_url, created_at, "
        "roles ( name )"
    )

    def __init__(
        self,
        backend: BackendClient,
        logger: StructuredLogger,
        missing_role_fallback: Optional[str] = "user",
    ) -> None:
        super().__init__(backend, logger)
        self._missing_role_fallback = missing_role_fallback

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_profile(self, user_id: str) -> UserProfile:
        """Fetch the joined profile for *user_id*.

        Raises:
            NotFoundError: No ``users`` row has this id.
            ProfileError: The query failed or the role could not be resolved.
        """
        def _op() -> UserProfile:
            response = (
                self.supabase.table(self.TABLE)
                .select(self.PROFILE_COLUMNS)
                .eq("id", user_id)
                .maybe_single()
                .execute()
            )
            # postgrest returns None instead of an empty response for
            # maybe_single() with no match.
            if response is None or not response.data:
                raise NotFoundError(f"No profile row for user {user_id}.")
            return self._to_profile(response.data)

        return self._execute(
            _op, operation_name="get_profile (users)", error_cls=ProfileError,
        )

    def list_profiles(self) -> list[UserProfile]:
        """Fetch every user joined with its role name, newest first."""
        def _op() -> list[UserProfile]:
            response = (
                self.supabase.table(self.TABLE)
                .select(self.PROFILE_COLUMNS)
                .order("created_at", desc=True)
                .execute()
            )
            return [self._to_profile(row) for row in response.data or []]

        return self._execute(
            _op, operation_name="list_profiles (users)", error_cls=ProfileError,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, user_id: str, email: str, full_name: str, role_id: str) -> None:
        """Insert the profile row for a freshly created auth identity."""
        def _op() -> None:
            self.supabase.table(self.TABLE).insert({
                "id": user_id,
                "email": email,
                "full_name": full_name,
                "role_id": role_id,
            }).execute()

        self._execute(
            _op, operation_name="insert (users)", error_cls=ProfileInsertError,
        )
        self._logger.info("Profile row inserted: %s", user_id)

    def update_full_name(self, user_id: str, full_name: str) -> User:
        return self._update(user_id, {"full_name": full_name}, "update_full_name")

    def update_profile_picture(self, user_id: str, url: str) -> User:
        return self._update(user_id, {"profile_picture_url": url}, "update_profile_picture")

    def update_name_and_role(self, user_id: str, full_name: str, role_id: str) -> User:
        """Admin edit: both fields in a single update."""
        return self._update(
            user_id,
            {"full_name": full_name, "role_id": role_id},
            "update_name_and_role",
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _update(self, user_id: str, payload: JsonRow, name: str) -> User:
        """Apply *payload* to one row and return the updated ``User``.

        An empty representation means no row matched (or row-level
        security hid it), reported as ``NotFoundError``.
        """
        def _op() -> User:
            response = (
                self.supabase.table(self.TABLE)
                .update(payload)
                .eq("id", user_id)
                .execute()
            )
            if not response.data:
                raise NotFoundError(f"No profile row for user {user_id}.")
            return User(**response.data[0])

        user = self._execute(
            _op, operation_name=f"{name} (users)", error_cls=ProfileError,
        )
        self._logger.info("Profile row updated (%s): %s", name, user_id)
        return user

    def _to_profile(self, row: JsonRow) -> UserProfile:
        """Build a ``UserProfile`` from a row carrying a ``roles`` expansion.

        PostgREST returns the to-one expansion as an object, or ``None``
        when the foreign row is missing; a list is tolerated for
        embeddings PostgREST could not infer as to-one.
        """
        embedded = row.get("roles")
        if isinstance(embedded, list):
            embedded = embedded[0] if embedded else None
        name = embedded.get("name") if isinstance(embedded, dict) else None

        if name:
            role = RoleResolved(name=name)
            role_name = name
        else:
            role = RoleMissing(role_id=row.get("role_id"))
            if self._missing_role_fallback is None:
                raise ProfileError(
                    f"User {row.get('id')} references role "
                    f"{row.get('role_id')!r} which could not be resolved."
                )
            self._logger.warning(
                "Role %r for user %s not found; falling back to %r.",
                row.get("role_id"),
                row.get("id"),
                self._missing_role_fallback,
            )
            role_name = self._missing_role_fallback

        return UserProfile(
            id=row["id"],
            email=row["email"],
            full_name=row["full_name"],
            role_id=row["role_id"],
            role_name=role_name,
            role=role,
            profile_picture_url=row.get("profile_picture_url"),
            created_at=row.get("created_at"),
        )
