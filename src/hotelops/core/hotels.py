"""Hotel provisioning and lifecycle service.

Mutations are committed before their audit record is written; the audit
writer uses its own session, and a failed audit write never undoes the
change it describes.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from hotelops.config.settings import Settings, get_settings
from hotelops.core.audit import AuditLogger
from hotelops.core.auth import AuthContext, OwnershipScope
from hotelops.core.exceptions import (
    ConflictError,
    TenantAccessDeniedError,
    TenantNotFoundError,
    ValidationFailedError,
)
from hotelops.core.permissions import Role
from hotelops.core.security import hash_password, validate_password_strength
from hotelops.db.models.audit import AuditAction, AuditEntityType
from hotelops.db.models.hotel import (
    Hotel,
    NotificationType,
    SubscriptionPlan,
    SubscriptionStatus,
)
from hotelops.db.models.user import User
from hotelops.subscription.maintenance import scope_criteria
from hotelops.subscription.policy import (
    add_days,
    as_utc,
    compute_renewal_end_date,
    is_subscription_expired,
    utc_now,
)
from hotelops.utils.text import escape_like, normalize_search_term, slugify

logger = structlog.get_logger(__name__)

INACTIVE_STATUSES = frozenset({SubscriptionStatus.SUSPENDED.value, SubscriptionStatus.CANCELLED.value})


class HotelService:
    """Service for hotel CRUD and subscription changes."""

    def __init__(
        self,
        db: AsyncSession,
        audit: AuditLogger | None = None,
        settings: Settings | None = None,
    ):
        """Initialize hotel service.

        Args:
            db: Async SQLAlchemy session for database operations
            audit: Audit writer for privileged mutations (optional)
            settings: Application settings (default: cached settings)
        """
        self.db = db
        self.audit = audit
        self.settings = settings or get_settings()

    async def get_hotel(self, hotel_id: UUID) -> Hotel | None:
        result = await self.db.execute(select(Hotel).where(Hotel.id == hotel_id))
        return result.scalar_one_or_none()

    async def get_hotel_or_raise(self, hotel_id: UUID) -> Hotel:
        """Get a hotel by ID.

        Raises:
            TenantNotFoundError: If the hotel does not exist
        """
        hotel = await self.get_hotel(hotel_id)
        if hotel is None:
            raise TenantNotFoundError(hotel_id)
        return hotel

    def ensure_managed(self, auth: AuthContext, hotel: Hotel) -> None:
        """Reject operators acting on a hotel outside their ownership scope.

        Raises:
            TenantAccessDeniedError: If a sub super admin did not create the hotel
        """
        scope = OwnershipScope.for_actor(auth)
        if not scope.is_unrestricted and hotel.created_by != scope.created_by:
            raise TenantAccessDeniedError(hotel.id, "hotel")

    async def managed_hotel_ids(self, auth: AuthContext) -> list[UUID] | None:
        """Ids of hotels the operator manages, or None for all hotels."""
        scope = OwnershipScope.for_actor(auth)
        if scope.is_unrestricted:
            return None
        result = await self.db.execute(select(Hotel.id).where(*scope_criteria(scope)))
        return list(result.scalars().all())

    async def list_hotels(
        self,
        scope: OwnershipScope,
        search: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Hotel], int]:
        """List hotels in scope, newest first.

        Args:
            scope: Ownership scope of the caller
            search: Case-insensitive match on name, email or slug
            limit: Page size
            offset: Pagination offset

        Returns:
            (page of hotels, total matching count)
        """
        criteria = list(scope_criteria(scope))
        term = normalize_search_term(search)
        if term:
            pattern = f"%{escape_like(term)}%"
            criteria.append(
                or_(
                    Hotel.name.ilike(pattern, escape="\\"),
                    Hotel.email.ilike(pattern, escape="\\"),
                    Hotel.slug.ilike(pattern, escape="\\"),
                )
            )

        count_query = select(func.count()).select_from(Hotel).where(*criteria)
        total = (await self.db.execute(count_query)).scalar_one()

        query = (
            select(Hotel)
            .where(*criteria)
            .order_by(Hotel.created_at.desc(), Hotel.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def generate_unique_slug(self, name: str) -> str:
        """Slug of ``name``, suffixed -2, -3, ... until unused."""
        base = slugify(name)
        result = await self.db.execute(
            select(Hotel.slug).where(
                or_(Hotel.slug == base, Hotel.slug.like(f"{escape_like(base)}-%", escape="\\"))
            )
        )
        taken = set(result.scalars().all())
        slug = base
        counter = 1
        while slug in taken:
            counter += 1
            slug = f"{base}-{counter}"
        return slug

    async def email_in_use(self, email: str) -> bool:
        """Whether a hotel or any operator already uses ``email``."""
        email = email.strip().lower()
        hotel_match = await self.db.execute(
            select(Hotel.id).where(func.lower(Hotel.email) == email).limit(1)
        )
        if hotel_match.first() is not None:
            return True
        user_match = await self.db.execute(
            select(User.id).where(func.lower(User.email) == email).limit(1)
        )
        return user_match.first() is not None

    async def create_hotel(
        self,
        auth: AuthContext,
        *,
        hotel_name: str,
        email: str,
        password: str,
        phone: str,
        admin_name: str,
        city: str | None = None,
        country: str | None = None,
        plan: SubscriptionPlan = SubscriptionPlan.FREE,
        request: Request | None = None,
    ) -> tuple[Hotel, User]:
        """Provision a hotel together with its admin operator.

        Both rows are written in one transaction: either both exist
        afterwards or neither does.

        Raises:
            ValidationFailedError: If the password is too weak
            ConflictError: If the email is already used by a hotel or operator
        """
        violations = validate_password_strength(password)
        if violations:
            raise ValidationFailedError(violations[0], field="password")

        email = email.strip().lower()
        if await self.email_in_use(email):
            raise ConflictError("Email already in use", field="email")

        now = utc_now()
        hotel = Hotel(
            name=hotel_name.strip(),
            slug=await self.generate_unique_slug(hotel_name),
            email=email,
            phone=phone.strip(),
            address={"city": city, "country": country},
            subscription_plan=SubscriptionPlan(plan).value,
            subscription_status=SubscriptionStatus.ACTIVE.value,
            subscription_start_date=now,
            subscription_end_date=add_days(now, self.settings.subscription.renewal_days),
            is_active=True,
            created_by=auth.user_id,
        )
        admin = User(
            email=email,
            password_hash=hash_password(password),
            name=admin_name.strip(),
            phone=phone.strip(),
            role=Role.ADMIN.value,
            permissions=[],
            is_active=True,
            created_by=auth.user_id,
        )

        try:
            self.db.add(hotel)
            await self.db.flush()
            admin.hotel_id = hotel.id
            self.db.add(admin)
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictError("Email already in use", field="email") from exc

        logger.info(
            "hotel_created",
            hotel_id=str(hotel.id),
            slug=hotel.slug,
            created_by=str(auth.user_id),
        )

        if self.audit is not None:
            await self.audit.log_action(
                auth,
                AuditAction.HOTEL_CREATE,
                AuditEntityType.HOTEL,
                request=request,
                entity_id=hotel.id,
                target_hotel_id=hotel.id,
                target_user_id=admin.id,
                metadata={"name": hotel.name, "slug": hotel.slug, "admin_email": admin.email},
            )

        return hotel, admin

    async def update_hotel(
        self,
        auth: AuthContext,
        hotel_id: UUID,
        *,
        is_active: bool | None = None,
        subscription_status: SubscriptionStatus | None = None,
        subscription_plan: SubscriptionPlan | None = None,
        payment_date: datetime | None = None,
        request: Request | None = None,
    ) -> Hotel:
        """Change activation or subscription state of a hotel.

        Changes apply in this order: status, plan, payment, activation.
        A suspended or cancelled status forces the hotel inactive; a payment
        renews the subscription and reactivates the hotel.

        Raises:
            TenantNotFoundError: If the hotel does not exist
            TenantAccessDeniedError: If the caller does not manage the hotel
            ValidationFailedError: If nothing changes, or activation is
                requested for a suspended, cancelled or expired hotel
        """
        if (
            is_active is None
            and subscription_status is None
            and subscription_plan is None
            and payment_date is None
        ):
            raise ValidationFailedError("No valid update fields provided")

        hotel = await self.get_hotel_or_raise(hotel_id)
        self.ensure_managed(auth, hotel)

        actions: list[tuple[AuditAction, dict[str, Any]]] = []

        if subscription_status is not None:
            status = SubscriptionStatus(subscription_status).value
            if status != hotel.subscription_status:
                actions.append(
                    (
                        AuditAction.HOTEL_SUSPEND
                        if status == SubscriptionStatus.SUSPENDED.value
                        else AuditAction.HOTEL_UPDATE,
                        {"subscription_status": {"old": hotel.subscription_status, "new": status}},
                    )
                )
                hotel.subscription_status = status
            if status in INACTIVE_STATUSES:
                hotel.is_active = False

        if subscription_plan is not None:
            plan = SubscriptionPlan(subscription_plan).value
            if plan != hotel.subscription_plan:
                actions.append(
                    (
                        AuditAction.HOTEL_UPDATE,
                        {"subscription_plan": {"old": hotel.subscription_plan, "new": plan}},
                    )
                )
                hotel.subscription_plan = plan

        if payment_date is not None:
            payment_date = as_utc(payment_date)
            previous_end = hotel.subscription_end_date
            hotel.subscription_payment_date = payment_date
            hotel.subscription_end_date = compute_renewal_end_date(
                previous_end, payment_date, self.settings.subscription.renewal_days
            )
            hotel.subscription_status = SubscriptionStatus.ACTIVE.value
            hotel.is_active = True
            actions.append(
                (
                    AuditAction.SUBSCRIPTION_RENEW,
                    {
                        "payment_date": payment_date.isoformat(),
                        "previous_end_date": previous_end.isoformat() if previous_end else None,
                        "end_date": hotel.subscription_end_date.isoformat(),
                    },
                )
            )

        if is_active is not None and is_active != hotel.is_active:
            if is_active:
                if hotel.subscription_status in INACTIVE_STATUSES:
                    raise ValidationFailedError(
                        f"Cannot activate a hotel whose subscription is {hotel.subscription_status}",
                        field="is_active",
                    )
                if is_subscription_expired(hotel.subscription_end_date):
                    raise ValidationFailedError(
                        "Cannot activate a hotel whose subscription has expired",
                        field="is_active",
                    )
            hotel.is_active = is_active
            actions.append(
                (
                    AuditAction.HOTEL_ACTIVATE if is_active else AuditAction.HOTEL_DEACTIVATE,
                    {"is_active": is_active},
                )
            )

        await self.db.commit()

        if self.audit is not None:
            for action, metadata in actions:
                await self.audit.log_action(
                    auth,
                    action,
                    AuditEntityType.SUBSCRIPTION
                    if action == AuditAction.SUBSCRIPTION_RENEW
                    else AuditEntityType.HOTEL,
                    request=request,
                    entity_id=hotel.id,
                    target_hotel_id=hotel.id,
                    metadata=metadata,
                )

        return hotel

    async def update_settings(
        self,
        hotel_id: UUID,
        *,
        name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
        logo: str | None = None,
        settings: dict[str, Any] | None = None,
    ) -> Hotel:
        """Update a hotel's profile and operational settings.

        ``settings`` is merged into the stored settings; nested
        ``notifications`` toggles are merged key by key.

        Raises:
            TenantNotFoundError: If the hotel does not exist
            ConflictError: If another hotel already uses ``email``
        """
        hotel = await self.get_hotel_or_raise(hotel_id)

        if email is not None:
            email = email.strip().lower()
            clash = await self.db.execute(
                select(Hotel.id).where(func.lower(Hotel.email) == email, Hotel.id != hotel.id)
            )
            if clash.first() is not None:
                raise ConflictError("Email already in use", field="email")
            hotel.email = email
        if name is not None:
            hotel.name = name.strip()
        if phone is not None:
            hotel.phone = phone.strip()
        if logo is not None:
            hotel.logo = logo or None

        if settings:
            merged = dict(hotel.settings or {})
            notifications = dict(merged.get("notifications") or {})
            notifications.update(settings.get("notifications") or {})
            merged.update({k: v for k, v in settings.items() if k != "notifications"})
            merged["notifications"] = notifications
            hotel.settings = merged

        await self.db.commit()
        logger.info("hotel_settings_updated", hotel_id=str(hotel.id))
        return hotel

    def append_notification(
        self,
        hotel: Hotel,
        notification_type: NotificationType,
        message: str,
    ) -> None:
        """Append to the hotel's notifications log, keeping the newest entries.

        The caller commits.
        """
        entries = list(hotel.notifications_log or [])
        entries.append(
            {
                "type": NotificationType(notification_type).value,
                "message": message,
                "created_at": utc_now().isoformat(),
            }
        )
        hotel.notifications_log = entries[-self.settings.NOTIFICATIONS_LOG_LIMIT :]


def recent_notifications(hotel: Hotel, count: int = 20) -> list[dict[str, Any]]:
    """Newest ``count`` log entries, newest first."""
    return list(reversed((hotel.notifications_log or [])[-count:]))
