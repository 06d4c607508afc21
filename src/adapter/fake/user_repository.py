"""In-memory implementation of UserRepository for testing."""

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from domain.model.errors import DuplicateError
from domain.model.user import ProfileUpdate, User


class FakeUserRepository:
    def __init__(self):
        self.store: dict[str, User] = {}

    # ── write operations ─────────────────────────────────────

    def create(self, auth0_id: str, email: str, name: str) -> User | None:
        if self.get_by_auth0_id(auth0_id):
            raise DuplicateError(f"User already exists for {auth0_id}")

        user_id = uuid.uuid4().hex
        now = datetime.now(timezone.utc)

        user = User(
            id=user_id,
            auth0_id=auth0_id,
            email=email,
            name=name,
            created_at=now,
            updated_at=now,
        )
        self.store[user_id] = user
        return user

    def update_profile(self, user_id: str, update: ProfileUpdate) -> User | None:
        user = self.store.get(user_id)
        if not user:
            return None

        updated = replace(
            user,
            name=update.name,
            address_line1=update.address_line1,
            city=update.city,
            country=update.country,
            updated_at=datetime.now(timezone.utc),
        )
        self.store[user_id] = updated
        return updated

    # ── read operations ──────────────────────────────────────

    def get_by_id(self, user_id: str) -> User | None:
        return self.store.get(user_id)

    def get_by_auth0_id(self, auth0_id: str) -> User | None:
        for user in self.store.values():
            if user.auth0_id == auth0_id:
                return user
        return None
