"""Profile and settings of the current hotel."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from hotelops.api.dependencies import get_settings_dependency, require_permission, tenant_hotel_id
from hotelops.api.schemas.tenant import HotelProfileResponse, HotelSettingsUpdateRequest
from hotelops.core.auth import AuthContext
from hotelops.core.hotels import HotelService, recent_notifications
from hotelops.core.permissions import Permission
from hotelops.db.dependencies import DatabaseSession
from hotelops.db.models.hotel import Hotel

router = APIRouter(prefix="/hotel", tags=["hotel"])


def _profile(hotel: Hotel) -> HotelProfileResponse:
    return HotelProfileResponse(
        id=hotel.id,
        name=hotel.name,
        slug=hotel.slug,
        email=hotel.email,
        phone=hotel.phone,
        logo=hotel.logo,
        is_active=hotel.is_active,
        subscription_plan=hotel.subscription_plan,
        subscription_status=hotel.subscription_status,
        subscription_end_date=hotel.subscription_end_date,
        settings=hotel.settings or {},
        notifications=recent_notifications(hotel),
    )


@router.get("/settings", response_model=HotelProfileResponse, summary="Hotel settings")
async def get_hotel_settings(
    auth: Annotated[AuthContext, Depends(require_permission(Permission.SETTINGS_READ))],
    db: DatabaseSession,
) -> HotelProfileResponse:
    hotel = await HotelService(db).get_hotel_or_raise(tenant_hotel_id(auth))
    return _profile(hotel)


@router.patch(
    "/settings",
    response_model=HotelProfileResponse,
    summary="Update hotel settings",
    description="Nested notification toggles are merged key by key.",
)
async def update_hotel_settings(
    body: HotelSettingsUpdateRequest,
    request: Request,
    auth: Annotated[AuthContext, Depends(require_permission(Permission.SETTINGS_UPDATE))],
    db: DatabaseSession,
) -> HotelProfileResponse:
    service = HotelService(db, settings=get_settings_dependency(request))
    hotel = await service.update_settings(
        tenant_hotel_id(auth),
        name=body.name,
        email=body.email,
        phone=body.phone,
        logo=body.logo,
        settings=body.settings,
    )
    return _profile(hotel)
