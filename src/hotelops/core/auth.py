"""Authenticated operator identity and ownership scope."""

from dataclasses import dataclass, field
from uuid import UUID

from hotelops.core.permissions import Permission, Role, has_permission, is_platform_role


@dataclass(frozen=True)
class AuthContext:
    """Verified operator identity attached to a request.

    Attributes:
        user_id: Operator id from the token subject
        role: Operator role as currently stored
        hotel_id: Effective hotel; the operator's own, or an override chosen
            by a platform admin once the tenant is resolved
        permissions: Effective permissions (role defaults plus explicit grants)
        is_verified: Verification state of the operator account
    """

    user_id: UUID
    role: str
    hotel_id: UUID | None = None
    permissions: frozenset[str] = field(default_factory=frozenset)
    is_verified: bool = False

    @property
    def is_platform_admin(self) -> bool:
        return is_platform_role(self.role)

    @property
    def is_main_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN.value

    def has_permission(self, permission: Permission | str) -> bool:
        return has_permission(self.role, self.permissions, permission)

    def with_hotel(self, hotel_id: UUID) -> "AuthContext":
        return AuthContext(
            user_id=self.user_id,
            role=self.role,
            hotel_id=hotel_id,
            permissions=self.permissions,
            is_verified=self.is_verified,
        )


@dataclass(frozen=True)
class OwnershipScope:
    """Which hotels a platform operator may act on.

    ``created_by`` of None means every hotel (main super admin); otherwise
    only hotels provisioned by that operator.
    """

    created_by: UUID | None = None

    @classmethod
    def for_actor(cls, auth: AuthContext) -> "OwnershipScope":
        if auth.is_main_super_admin:
            return cls()
        return cls(created_by=auth.user_id)

    @property
    def is_unrestricted(self) -> bool:
        return self.created_by is None
