"""Platform hotel management endpoints.

- GET   /platform/hotels        - List hotels in the caller's ownership scope
- POST  /platform/hotels        - Provision a hotel with its admin operator
- PATCH /platform/hotels/{id}   - Activation, suspension and payment renewal
"""

from uuid import UUID

from fastapi import APIRouter, Request, status

from hotelops.api.dependencies import AuditWriter, PlatformAdmin, get_settings_dependency
from hotelops.api.schemas.common import Pagination
from hotelops.api.schemas.hotels import (
    AdminSummary,
    HotelCreatedResponse,
    HotelCreateRequest,
    HotelListResponse,
    HotelResponse,
    HotelUpdateRequest,
)
from hotelops.core.auth import OwnershipScope
from hotelops.core.hotels import HotelService
from hotelops.db.dependencies import DatabaseSession
from hotelops.utils.params import parse_pagination

router = APIRouter(prefix="/platform/hotels", tags=["platform-hotels"])


@router.get(
    "",
    response_model=HotelListResponse,
    summary="List hotels",
    description="Hotels visible to the caller, newest first. Sub super admins see their own.",
)
async def list_hotels(
    auth: PlatformAdmin,
    db: DatabaseSession,
    search: str | None = None,
    page: str | None = None,
    limit: str | None = None,
) -> HotelListResponse:
    page_number, page_size = parse_pagination(page, limit)
    hotels, total = await HotelService(db).list_hotels(
        OwnershipScope.for_actor(auth),
        search=search,
        limit=page_size,
        offset=(page_number - 1) * page_size,
    )
    return HotelListResponse(
        data=[HotelResponse.from_model(hotel) for hotel in hotels],
        pagination=Pagination.build(page_number, page_size, total),
    )


@router.post(
    "",
    response_model=HotelCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create hotel",
    description="Creates the hotel and its admin operator in one transaction.",
)
async def create_hotel(
    body: HotelCreateRequest,
    request: Request,
    auth: PlatformAdmin,
    db: DatabaseSession,
    audit: AuditWriter,
) -> HotelCreatedResponse:
    service = HotelService(db, audit=audit, settings=get_settings_dependency(request))
    hotel, admin = await service.create_hotel(
        auth,
        hotel_name=body.hotel_name,
        email=body.email,
        password=body.password,
        phone=body.phone,
        admin_name=body.admin_name,
        city=body.city,
        country=body.country,
        plan=body.plan,
        request=request,
    )
    return HotelCreatedResponse(
        hotel=HotelResponse.from_model(hotel),
        admin=AdminSummary(id=admin.id, name=admin.name, email=admin.email),
    )


@router.patch(
    "/{hotel_id}",
    response_model=HotelResponse,
    summary="Update hotel",
    description=(
        "Suspending or cancelling deactivates the hotel; recording a payment "
        "renews the subscription. Expired hotels cannot be activated without renewal."
    ),
)
async def update_hotel(
    hotel_id: UUID,
    body: HotelUpdateRequest,
    request: Request,
    auth: PlatformAdmin,
    db: DatabaseSession,
    audit: AuditWriter,
) -> HotelResponse:
    service = HotelService(db, audit=audit, settings=get_settings_dependency(request))
    hotel = await service.update_hotel(
        auth,
        hotel_id,
        is_active=body.is_active,
        subscription_status=body.subscription_status,
        subscription_plan=body.subscription_plan,
        payment_date=body.payment_date,
        request=request,
    )
    return HotelResponse.from_model(hotel)
