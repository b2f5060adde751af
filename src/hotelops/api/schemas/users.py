"""Schemas for operator accounts."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from hotelops.api.schemas.common import Pagination
from hotelops.core.permissions import Role


class UserCreateRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    role: Role
    hotel_id: UUID | None = None
    phone: str | None = Field(default=None, max_length=25)


class UserUpdateRequest(BaseModel):
    """Partial update; only fields present in the body change.

    Values are validated by the service so that the error codes match
    the rest of the platform.
    """

    model_config = ConfigDict(extra="ignore")

    name: Any = None
    email: Any = None
    phone: Any = None
    is_active: Any = None
    role: Any = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    phone: str | None = None
    role: str
    hotel_id: UUID | None = None
    is_active: bool
    is_verified: bool
    verified_at: datetime | None = None
    created_by: UUID | None = None
    last_login: datetime | None = None
    created_at: datetime


class UserListResponse(BaseModel):
    data: list[UserResponse]
    pagination: Pagination


class CurrentUserResponse(BaseModel):
    """The authenticated operator with their effective permissions."""

    id: UUID
    name: str
    email: str
    role: str
    hotel_id: UUID | None = None
    permissions: list[str]
    hotel: dict | None = None
