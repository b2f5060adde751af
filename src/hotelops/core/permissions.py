"""Roles, permissions and the role hierarchy.

An operator's effective permission set is the default set for their role
plus any explicit grants stored on the user record.
"""

from collections.abc import Iterable
from enum import Enum


class Role(str, Enum):
    """Operator roles."""

    SUPER_ADMIN = "super_admin"  # Platform owner, unrestricted
    SUB_SUPER_ADMIN = "sub_super_admin"  # Delegated platform admin, own hotels only
    ADMIN = "admin"  # Hotel owner/administrator
    MANAGER = "manager"
    RECEPTIONIST = "receptionist"
    HOUSEKEEPING = "housekeeping"
    ACCOUNTANT = "accountant"


class Permission(str, Enum):
    """Fine-grained permissions checked by endpoints."""

    # Hotel management
    HOTEL_CREATE = "hotel:create"
    HOTEL_READ = "hotel:read"
    HOTEL_UPDATE = "hotel:update"
    HOTEL_DELETE = "hotel:delete"

    # User management
    USER_CREATE = "user:create"
    USER_READ = "user:read"
    USER_UPDATE = "user:update"
    USER_DELETE = "user:delete"

    # Rooms
    ROOM_CREATE = "room:create"
    ROOM_READ = "room:read"
    ROOM_UPDATE = "room:update"
    ROOM_DELETE = "room:delete"

    # Bookings
    BOOKING_CREATE = "booking:create"
    BOOKING_READ = "booking:read"
    BOOKING_UPDATE = "booking:update"
    BOOKING_DELETE = "booking:delete"
    BOOKING_CONFIRM = "booking:confirm"
    BOOKING_CANCEL = "booking:cancel"
    BOOKING_CHECKIN = "booking:checkin"
    BOOKING_CHECKOUT = "booking:checkout"

    # Guests
    GUEST_CREATE = "guest:create"
    GUEST_READ = "guest:read"
    GUEST_UPDATE = "guest:update"
    GUEST_DELETE = "guest:delete"

    # Finance
    PAYMENT_CREATE = "payment:create"
    PAYMENT_READ = "payment:read"
    PAYMENT_REFUND = "payment:refund"
    REPORT_VIEW = "report:view"
    REPORT_EXPORT = "report:export"

    # Settings
    SETTINGS_READ = "settings:read"
    SETTINGS_UPDATE = "settings:update"

    # Housekeeping
    HOUSEKEEPING_READ = "housekeeping:read"
    HOUSEKEEPING_UPDATE = "housekeeping:update"


PLATFORM_ROLES: frozenset[Role] = frozenset({Role.SUPER_ADMIN, Role.SUB_SUPER_ADMIN})

# Roles a delegated platform admin may assign
HOTEL_ROLES: frozenset[Role] = frozenset(
    {Role.ADMIN, Role.MANAGER, Role.RECEPTIONIST, Role.HOUSEKEEPING, Role.ACCOUNTANT}
)

_BOOKING_DESK = {
    Permission.BOOKING_CREATE,
    Permission.BOOKING_READ,
    Permission.BOOKING_UPDATE,
    Permission.BOOKING_CONFIRM,
    Permission.BOOKING_CANCEL,
    Permission.BOOKING_CHECKIN,
    Permission.BOOKING_CHECKOUT,
}

ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.SUPER_ADMIN: frozenset(Permission),
    Role.SUB_SUPER_ADMIN: frozenset(
        {
            Permission.HOTEL_CREATE,
            Permission.HOTEL_READ,
            Permission.HOTEL_UPDATE,
            Permission.USER_CREATE,
            Permission.USER_READ,
            Permission.USER_UPDATE,
            Permission.REPORT_VIEW,
            Permission.REPORT_EXPORT,
        }
    ),
    Role.ADMIN: frozenset(Permission) - {Permission.HOTEL_CREATE, Permission.HOTEL_DELETE},
    Role.MANAGER: frozenset(
        _BOOKING_DESK
        | {
            Permission.HOTEL_READ,
            Permission.USER_READ,
            Permission.ROOM_CREATE,
            Permission.ROOM_READ,
            Permission.ROOM_UPDATE,
            Permission.GUEST_CREATE,
            Permission.GUEST_READ,
            Permission.GUEST_UPDATE,
            Permission.PAYMENT_CREATE,
            Permission.PAYMENT_READ,
            Permission.REPORT_VIEW,
            Permission.SETTINGS_READ,
            Permission.HOUSEKEEPING_READ,
            Permission.HOUSEKEEPING_UPDATE,
        }
    ),
    Role.RECEPTIONIST: frozenset(
        _BOOKING_DESK
        | {
            Permission.ROOM_READ,
            Permission.GUEST_CREATE,
            Permission.GUEST_READ,
            Permission.GUEST_UPDATE,
            Permission.PAYMENT_CREATE,
            Permission.PAYMENT_READ,
            Permission.HOUSEKEEPING_READ,
        }
    ),
    Role.HOUSEKEEPING: frozenset(
        {
            Permission.ROOM_READ,
            Permission.HOUSEKEEPING_READ,
            Permission.HOUSEKEEPING_UPDATE,
        }
    ),
    Role.ACCOUNTANT: frozenset(
        {
            Permission.BOOKING_READ,
            Permission.GUEST_READ,
            Permission.PAYMENT_CREATE,
            Permission.PAYMENT_READ,
            Permission.PAYMENT_REFUND,
            Permission.REPORT_VIEW,
            Permission.REPORT_EXPORT,
        }
    ),
}

ROLE_HIERARCHY: dict[Role, int] = {
    Role.SUPER_ADMIN: 100,
    Role.SUB_SUPER_ADMIN: 90,
    Role.ADMIN: 80,
    Role.MANAGER: 60,
    Role.ACCOUNTANT: 40,
    Role.RECEPTIONIST: 40,
    Role.HOUSEKEEPING: 20,
}


def get_permissions_for_role(role: Role | str) -> frozenset[Permission]:
    """Default permissions granted by a role (empty for unknown roles)."""
    try:
        return ROLE_PERMISSIONS[Role(role)]
    except ValueError:
        return frozenset()


def effective_permissions(role: Role | str, explicit: Iterable[str] = ()) -> frozenset[str]:
    """Union of role defaults and explicit grants, as permission strings."""
    return frozenset(p.value for p in get_permissions_for_role(role)) | frozenset(explicit)


def has_permission(
    role: Role | str,
    explicit: Iterable[str],
    required: Permission | str,
) -> bool:
    """Check a single permission against role defaults, then explicit grants."""
    required_value = required.value if isinstance(required, Permission) else required
    return required_value in effective_permissions(role, explicit)


def has_any_permission(
    role: Role | str,
    explicit: Iterable[str],
    required: Iterable[Permission | str],
) -> bool:
    granted = effective_permissions(role, explicit)
    return any((p.value if isinstance(p, Permission) else p) in granted for p in required)


def is_platform_role(role: Role | str) -> bool:
    try:
        return Role(role) in PLATFORM_ROLES
    except ValueError:
        return False


def can_manage_role(manager_role: Role | str, target_role: Role | str) -> bool:
    """Operators may only manage roles strictly below their own."""
    return ROLE_HIERARCHY[Role(manager_role)] > ROLE_HIERARCHY[Role(target_role)]
