"""Schemas for platform hotel management."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from hotelops.api.schemas.common import Pagination
from hotelops.db.models.hotel import SubscriptionPlan, SubscriptionStatus


class HotelCreateRequest(BaseModel):
    """Provision a hotel together with its admin operator."""

    hotel_name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    phone: str = Field(..., min_length=6, max_length=25)
    admin_name: str = Field(..., min_length=2, max_length=100)
    city: str | None = Field(default=None, max_length=100)
    country: str | None = Field(default=None, max_length=100)
    plan: SubscriptionPlan = SubscriptionPlan.FREE


class HotelUpdateRequest(BaseModel):
    """Activation and subscription changes; all fields optional."""

    is_active: bool | None = None
    subscription_status: SubscriptionStatus | None = None
    subscription_plan: SubscriptionPlan | None = None
    payment_date: datetime | None = Field(
        default=None, description="Recording a payment renews the subscription"
    )


class SubscriptionInfo(BaseModel):
    plan: str
    status: str
    start_date: datetime
    payment_date: datetime | None = None
    end_date: datetime | None = None


class HotelResponse(BaseModel):
    """Hotel as seen by platform operators."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    email: str
    phone: str
    address: dict[str, Any] = Field(default_factory=dict)
    is_active: bool
    subscription: SubscriptionInfo
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, hotel: Any) -> "HotelResponse":
        return cls(
            id=hotel.id,
            name=hotel.name,
            slug=hotel.slug,
            email=hotel.email,
            phone=hotel.phone,
            address=hotel.address or {},
            is_active=hotel.is_active,
            subscription=SubscriptionInfo(
                plan=hotel.subscription_plan,
                status=hotel.subscription_status,
                start_date=hotel.subscription_start_date,
                payment_date=hotel.subscription_payment_date,
                end_date=hotel.subscription_end_date,
            ),
            created_by=hotel.created_by,
            created_at=hotel.created_at,
            updated_at=hotel.updated_at,
        )


class AdminSummary(BaseModel):
    id: UUID
    name: str
    email: str


class HotelCreatedResponse(BaseModel):
    hotel: HotelResponse
    admin: AdminSummary


class HotelListResponse(BaseModel):
    data: list[HotelResponse]
    pagination: Pagination
