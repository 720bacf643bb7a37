"""
User repository.

Read-only access to account records (display name, legacy resume fields).
"""

from matchengine.data.models.candidate import User

from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for user account documents."""

    @property
    def collection_name(self) -> str:
        return "users"

    @property
    def model_class(self) -> type[User]:
        return User
