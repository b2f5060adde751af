"""Identity of the calling operator."""

from fastapi import APIRouter
from sqlalchemy import select

from hotelops.api.dependencies import CurrentOperator
from hotelops.api.schemas.users import CurrentUserResponse
from hotelops.core.hotels import recent_notifications
from hotelops.db.dependencies import DatabaseSession
from hotelops.db.models.hotel import Hotel
from hotelops.db.models.user import User
from hotelops.db.tenant_isolation import SKIP_TENANT_SCOPE

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    summary="Current operator",
    description="The authenticated operator, effective permissions and hotel profile.",
)
async def get_me(auth: CurrentOperator, db: DatabaseSession) -> CurrentUserResponse:
    user = (
        await db.execute(
            select(User)
            .where(User.id == auth.user_id)
            .execution_options(**{SKIP_TENANT_SCOPE: True})
        )
    ).scalar_one()

    hotel_payload = None
    if user.hotel_id is not None:
        hotel = (await db.execute(select(Hotel).where(Hotel.id == user.hotel_id))).scalar_one_or_none()
        if hotel is not None:
            hotel_payload = {
                "id": str(hotel.id),
                "name": hotel.name,
                "slug": hotel.slug,
                "logo": hotel.logo,
                "is_active": hotel.is_active,
                "subscription_status": hotel.subscription_status,
                "subscription_end_date": (
                    hotel.subscription_end_date.isoformat()
                    if hotel.subscription_end_date
                    else None
                ),
                "settings": hotel.settings,
                "notifications": recent_notifications(hotel),
            }

    return CurrentUserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        hotel_id=user.hotel_id,
        permissions=sorted(auth.permissions),
        hotel=hotel_payload,
    )
