"""Schemas for audit log responses."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from hotelops.api.schemas.common import Pagination


class AuditLogResponse(BaseModel):
    """One audit record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    actor_id: UUID
    actor_role: str
    action: str
    entity_type: str
    entity_id: UUID | None = None
    target_user_id: UUID | None = None
    target_hotel_id: UUID | None = None
    ip: str | None = None
    user_agent: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="details")
    created_at: datetime


class AuditLogListResponse(BaseModel):
    data: list[AuditLogResponse]
    pagination: Pagination
