"""Pydantic models for API request/response.

Wire names are camelCase; Python attributes are snake_case.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from domain.model.user import User


class CreateMyUserRequest(BaseModel):
    """Request model for creating the current user."""
    model_config = ConfigDict(populate_by_name=True)

    auth0_id: str = Field(..., alias="auth0Id", description="Identity-provider subject id")
    email: str = Field(..., description="User email")
    name: str = Field("", description="Display name; filled in later by a profile update")


class UpdateMyUserRequest(BaseModel):
    """Request model for updating the current user's profile."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    address_line1: str = Field(..., alias="addressLine1")
    city: str
    country: str


class UserResponse(BaseModel):
    """Response model for a user record."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id", description="Local user ID (MongoDB _id)")
    auth0_id: str = Field(..., alias="auth0Id")
    email: str
    name: str
    address_line1: Optional[str] = Field(None, alias="addressLine1")
    city: Optional[str] = None
    country: Optional[str] = None
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            auth0_id=user.auth0_id,
            email=user.email,
            name=user.name,
            address_line1=user.address_line1,
            city=user.city,
            country=user.country,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
