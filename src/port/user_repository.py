from typing import Protocol
from domain.model.user import ProfileUpdate, User


class UserRepository(Protocol):
    """Protocol defining the interface for user profile data access."""
    def create(self, auth0_id: str, email: str, name: str) -> User | None:
        """Create a new user. Return User or None if creation failed.

        Raises:
            DuplicateError: a user with this subject id already exists
        """
        ...

    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by local ID. Return User or None if not found."""
        ...

    def get_by_auth0_id(self, auth0_id: str) -> User | None:
        """Find a user by identity-provider subject id. Return User or None if not found."""
        ...

    def update_profile(self, user_id: str, update: ProfileUpdate) -> User | None:
        """Overwrite the mutable profile fields. Return the updated User or None if not found."""
        ...
