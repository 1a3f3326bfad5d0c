"""
Repository Layer Package.

Provides data-access abstractions over Supabase tables and storage.
All backend row/object operations flow through repositories; services
never build PostgREST queries themselves.

Usage:
    from userconsole.repositories.user_repository import UserRepository
    from userconsole.repositories.role_repository import RoleRepository
"""

from userconsole.repositories.base_repository import BaseRepository
from userconsole.repositories.avatar_repository import AvatarRepository
from userconsole.repositories.role_repository import RoleRepository
from userconsole.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "AvatarRepository",
    "RoleRepository",
    "UserRepository",
]
