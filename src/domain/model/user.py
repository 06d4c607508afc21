from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """Domain model representing a user profile tied to an identity-provider subject."""
    id: str
    auth0_id: str
    email: str
    name: str
    created_at: datetime
    updated_at: datetime
    address_line1: str | None = None
    city: str | None = None
    country: str | None = None


@dataclass(frozen=True)
class ProfileUpdate:
    """The mutable profile fields. An update overwrites all four."""
    name: str
    address_line1: str
    city: str
    country: str
