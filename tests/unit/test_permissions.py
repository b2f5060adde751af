"""Unit tests for roles, permissions and the operator identity."""

from uuid import uuid4

import pytest

from hotelops.core.auth import AuthContext, OwnershipScope
from hotelops.core.permissions import (
    Permission,
    Role,
    can_manage_role,
    effective_permissions,
    get_permissions_for_role,
    has_any_permission,
    has_permission,
    is_platform_role,
)


class TestRolePermissions:
    def test_super_admin_has_everything(self):
        assert get_permissions_for_role(Role.SUPER_ADMIN) == frozenset(Permission)

    def test_admin_cannot_create_hotels(self):
        permissions = get_permissions_for_role("admin")
        assert Permission.HOTEL_CREATE not in permissions
        assert Permission.ROOM_DELETE in permissions

    def test_housekeeping_is_read_mostly(self):
        permissions = get_permissions_for_role(Role.HOUSEKEEPING)
        assert Permission.ROOM_READ in permissions
        assert Permission.ROOM_CREATE not in permissions
        assert Permission.BOOKING_READ not in permissions

    def test_unknown_role_has_nothing(self):
        assert get_permissions_for_role("night_auditor") == frozenset()

    def test_explicit_grants_extend_role_defaults(self):
        granted = effective_permissions(Role.HOUSEKEEPING, ["room:update"])
        assert "room:update" in granted
        assert "room:read" in granted

    def test_has_permission_checks_defaults_then_grants(self):
        assert has_permission("receptionist", [], Permission.BOOKING_CREATE) is True
        assert has_permission("receptionist", [], "room:delete") is False
        assert has_permission("receptionist", ["room:delete"], "room:delete") is True

    def test_any_permission(self):
        required = [Permission.ROOM_READ, Permission.ROOM_DELETE]
        assert has_any_permission(Role.HOUSEKEEPING, [], required) is True
        assert has_any_permission(Role.HOUSEKEEPING, [], [Permission.ROOM_DELETE]) is False
        assert has_any_permission(Role.HOUSEKEEPING, ["room:delete"], [Permission.ROOM_DELETE]) is True


class TestRoleHierarchy:
    @pytest.mark.parametrize("role", ["super_admin", "sub_super_admin"])
    def test_platform_roles(self, role):
        assert is_platform_role(role) is True

    @pytest.mark.parametrize("role", ["admin", "manager", "unknown"])
    def test_hotel_roles_are_not_platform(self, role):
        assert is_platform_role(role) is False

    def test_manage_only_strictly_lower_roles(self):
        assert can_manage_role(Role.ADMIN, Role.MANAGER) is True
        assert can_manage_role(Role.ADMIN, Role.ADMIN) is False
        assert can_manage_role(Role.SUB_SUPER_ADMIN, Role.ADMIN) is True
        assert can_manage_role(Role.SUB_SUPER_ADMIN, Role.SUB_SUPER_ADMIN) is False


class TestAuthContext:
    def test_platform_flags(self):
        main = AuthContext(user_id=uuid4(), role="super_admin")
        delegate = AuthContext(user_id=uuid4(), role="sub_super_admin")
        hotel_admin = AuthContext(user_id=uuid4(), role="admin", hotel_id=uuid4())

        assert main.is_platform_admin and main.is_main_super_admin
        assert delegate.is_platform_admin and not delegate.is_main_super_admin
        assert not hotel_admin.is_platform_admin

    def test_with_hotel_keeps_identity(self):
        auth = AuthContext(
            user_id=uuid4(),
            role="super_admin",
            permissions=frozenset({"hotel:read"}),
            is_verified=True,
        )
        hotel_id = uuid4()
        scoped = auth.with_hotel(hotel_id)

        assert scoped.hotel_id == hotel_id
        assert scoped.user_id == auth.user_id
        assert scoped.permissions == auth.permissions
        assert auth.hotel_id is None

    def test_ownership_scope(self):
        main = AuthContext(user_id=uuid4(), role="super_admin")
        delegate = AuthContext(user_id=uuid4(), role="sub_super_admin")

        assert OwnershipScope.for_actor(main).is_unrestricted
        scope = OwnershipScope.for_actor(delegate)
        assert not scope.is_unrestricted
        assert scope.created_by == delegate.user_id
