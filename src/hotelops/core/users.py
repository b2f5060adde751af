"""Operator account management for platform admins."""

import re
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from hotelops.core.audit import AuditLogger
from hotelops.core.auth import AuthContext
from hotelops.core.exceptions import (
    ConflictError,
    ResourceNotFoundError,
    RoleNotAllowedError,
    TenantAccessDeniedError,
    ValidationFailedError,
)
from hotelops.core.hotels import HotelService
from hotelops.core.permissions import (
    HOTEL_ROLES,
    PLATFORM_ROLES,
    Role,
    can_manage_role,
    is_platform_role,
)
from hotelops.core.security import hash_password, validate_password_strength
from hotelops.db.models.audit import AuditAction, AuditEntityType
from hotelops.db.models.user import User
from hotelops.subscription.policy import utc_now
from hotelops.utils.text import escape_like, normalize_search_term

logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Sentinel for "field not supplied" in partial updates
UNSET: Any = object()


def _parse_role(role: Role | str) -> Role:
    try:
        return Role(role)
    except ValueError as exc:
        raise ValidationFailedError(f"Unknown role: {role}", field="role") from exc


class UserService:
    """Service for listing, creating and updating operator accounts.

    A sub super admin only sees and manages hotel-role operators of hotels
    they created; the main super admin manages everyone.
    """

    def __init__(self, db: AsyncSession, audit: AuditLogger | None = None):
        self.db = db
        self.audit = audit
        self.hotels = HotelService(db)

    async def _audit(self, auth: AuthContext, action: AuditAction, user: User, **kwargs) -> None:
        if self.audit is None:
            return
        await self.audit.log_action(
            auth,
            action,
            kwargs.pop("entity_type", AuditEntityType.USER),
            entity_id=user.id,
            target_user_id=user.id,
            target_hotel_id=user.hotel_id,
            **kwargs,
        )

    async def get_user_or_raise(self, user_id: UUID) -> User:
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise ResourceNotFoundError("User", user_id)
        return user

    async def list_users(
        self,
        auth: AuthContext,
        search: str | None = None,
        role: str | None = None,
        hotel_id: UUID | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[User], int]:
        """List operators visible to ``auth``, newest first.

        Raises:
            TenantAccessDeniedError: If a sub super admin filters by a hotel
                they do not manage
        """
        criteria = []
        term = normalize_search_term(search)
        if term:
            pattern = f"%{escape_like(term)}%"
            criteria.append(
                or_(User.name.ilike(pattern, escape="\\"), User.email.ilike(pattern, escape="\\"))
            )
        if role:
            criteria.append(User.role == role)

        managed = await self.hotels.managed_hotel_ids(auth)
        if managed is None:
            if hotel_id is not None:
                criteria.append(User.hotel_id == hotel_id)
        else:
            if not managed or (role and is_platform_role(role)):
                return [], 0
            if hotel_id is not None:
                if hotel_id not in managed:
                    raise TenantAccessDeniedError(hotel_id, "user")
                criteria.append(User.hotel_id == hotel_id)
            else:
                criteria.append(User.hotel_id.in_(managed))

        total = (
            await self.db.execute(select(func.count()).select_from(User).where(*criteria))
        ).scalar_one()
        result = await self.db.execute(
            select(User)
            .where(*criteria)
            .order_by(User.created_at.desc(), User.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total

    async def _email_taken(self, email: str, exclude_id: UUID | None = None) -> bool:
        query = select(User.id).where(func.lower(User.email) == email)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        return (await self.db.execute(query.limit(1))).first() is not None

    async def _commit_email_change(self) -> None:
        """Commit, reporting a concurrent duplicate email as a conflict."""
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictError("Email already in use", field="email") from exc

    async def create_user(
        self,
        auth: AuthContext,
        *,
        name: str,
        email: str,
        password: str,
        role: Role | str,
        hotel_id: UUID | None = None,
        phone: str | None = None,
        request: Request | None = None,
    ) -> User:
        """Create an operator account.

        Platform roles are created without a hotel and only by the main
        super admin. Every other role needs an existing hotel the caller
        manages.

        Raises:
            ValidationFailedError: Weak password, unknown role or missing hotel
            RoleNotAllowedError: If the caller may not assign ``role``
            TenantNotFoundError: If ``hotel_id`` does not exist
            TenantAccessDeniedError: If the caller does not manage the hotel
            ConflictError: If the email is already in use
        """
        role = _parse_role(role)
        violations = validate_password_strength(password)
        if violations:
            raise ValidationFailedError(violations[0], field="password")

        if not auth.is_main_super_admin and not can_manage_role(auth.role, role):
            raise RoleNotAllowedError(
                role.value, sorted(r.value for r in Role if can_manage_role(auth.role, r))
            )

        email = email.strip().lower()
        if await self._email_taken(email):
            raise ConflictError("Email already in use", field="email")

        resolved_hotel_id = None
        if role not in PLATFORM_ROLES:
            if hotel_id is None:
                raise ValidationFailedError("Hotel is required for this role", field="hotel_id")
            hotel = await self.hotels.get_hotel_or_raise(hotel_id)
            self.hotels.ensure_managed(auth, hotel)
            resolved_hotel_id = hotel.id

        user = User(
            name=name.strip(),
            email=email,
            password_hash=hash_password(password),
            phone=phone.strip() if phone else None,
            role=role.value,
            hotel_id=resolved_hotel_id,
            permissions=[],
            is_active=True,
            created_by=auth.user_id,
        )
        self.db.add(user)
        await self._commit_email_change()

        logger.info("user_created", user_id=str(user.id), role=user.role)
        await self._audit(
            auth,
            AuditAction.USER_CREATE,
            user,
            request=request,
            metadata={"email": user.email, "role": user.role},
        )
        return user

    async def _ensure_can_edit(self, auth: AuthContext, target: User) -> None:
        if auth.is_main_super_admin:
            return
        if is_platform_role(target.role) or target.hotel_id is None:
            raise TenantAccessDeniedError(target.id, "user")
        hotel = await self.hotels.get_hotel(target.hotel_id)
        if hotel is None or hotel.created_by != auth.user_id:
            raise TenantAccessDeniedError(target.hotel_id, "user")

    async def update_user(
        self,
        auth: AuthContext,
        user_id: UUID,
        *,
        name: Any = UNSET,
        email: Any = UNSET,
        phone: Any = UNSET,
        is_active: Any = UNSET,
        role: Any = UNSET,
        request: Request | None = None,
    ) -> User:
        """Partially update an operator.

        Only supplied fields change. ``phone`` of None or "" clears it.
        Role changes are limited to hotel roles.

        Raises:
            ResourceNotFoundError: If the user does not exist
            TenantAccessDeniedError: If the caller may not edit the user
            ValidationFailedError: On invalid values or self-deactivation
            ConflictError: If the new email is already in use
        """
        if all(value is UNSET for value in (name, email, phone, is_active, role)):
            raise ValidationFailedError("No valid update fields provided")

        target = await self.get_user_or_raise(user_id)
        await self._ensure_can_edit(auth, target)

        if is_active is False and target.id == auth.user_id:
            raise ValidationFailedError("You cannot deactivate your own account", field="is_active")

        changes: dict[str, dict[str, Any]] = {}

        if name is not UNSET:
            if not isinstance(name, str) or not 2 <= len(name.strip()) <= 100:
                raise ValidationFailedError("Name must be between 2 and 100 chars", field="name")
            changes["name"] = {"old": target.name, "new": name.strip()}
            target.name = name.strip()

        if email is not UNSET:
            if not isinstance(email, str) or not EMAIL_PATTERN.match(email.strip().lower()):
                raise ValidationFailedError("Invalid email format", field="email")
            email = email.strip().lower()
            if await self._email_taken(email, exclude_id=target.id):
                raise ConflictError("Email already in use", field="email")
            changes["email"] = {"old": target.email, "new": email}
            target.email = email

        if phone is not UNSET:
            if phone is None or phone == "":
                new_phone = None
            elif isinstance(phone, str) and 6 <= len(phone.strip()) <= 25:
                new_phone = phone.strip()
            else:
                raise ValidationFailedError("Invalid phone number", field="phone")
            changes["phone"] = {"old": target.phone, "new": new_phone}
            target.phone = new_phone

        role_change: dict[str, str] | None = None
        if role is not UNSET:
            new_role = _parse_role(role)
            if new_role not in HOTEL_ROLES or not is_hotel_role(target.role):
                raise ValidationFailedError("Role can only change between hotel roles", field="role")
            if new_role.value != target.role:
                role_change = {"old": target.role, "new": new_role.value}
                target.role = new_role.value

        status_change: bool | None = None
        if is_active is not UNSET:
            if not isinstance(is_active, bool):
                raise ValidationFailedError("Invalid status value", field="is_active")
            if is_active != target.is_active:
                status_change = is_active
                target.is_active = is_active

        await self._commit_email_change()

        if changes:
            await self._audit(
                auth, AuditAction.USER_UPDATE, target, request=request, metadata={"changes": changes}
            )
        if role_change is not None:
            await self._audit(
                auth, AuditAction.USER_ROLE_CHANGE, target, request=request, metadata=role_change
            )
        if status_change is not None:
            await self._audit(
                auth,
                AuditAction.USER_REACTIVATE if status_change else AuditAction.USER_DEACTIVATE,
                target,
                request=request,
            )
        return target

    async def verify_operator(
        self,
        auth: AuthContext,
        user_id: UUID,
        request: Request | None = None,
    ) -> User:
        """Mark a sub super admin as verified by the main super admin.

        Raises:
            ResourceNotFoundError: If no sub super admin has this id
        """
        target = await self.get_user_or_raise(user_id)
        if target.role != Role.SUB_SUPER_ADMIN.value:
            raise ResourceNotFoundError("Sub super admin", user_id)

        if not target.is_verified:
            target.is_verified = True
            target.verified_by = auth.user_id
            target.verified_at = utc_now()
            await self.db.commit()
            await self._audit(
                auth,
                AuditAction.USER_VERIFY,
                target,
                request=request,
                entity_type=AuditEntityType.VERIFICATION,
            )
        return target


def is_hotel_role(role: Role | str) -> bool:
    try:
        return Role(role) in HOTEL_ROLES
    except ValueError:
        return False
