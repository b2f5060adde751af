"""API request and response schemas."""

from hotelops.api.schemas.alerts import AlertReportResponse
from hotelops.api.schemas.audit import AuditLogListResponse, AuditLogResponse
from hotelops.api.schemas.common import CountItem, Pagination
from hotelops.api.schemas.errors import APIError, ErrorCode
from hotelops.api.schemas.health import (
    ComponentHealth,
    HealthDetailResponse,
    HealthResponse,
    HealthStatus,
)
from hotelops.api.schemas.hotels import (
    HotelCreatedResponse,
    HotelCreateRequest,
    HotelListResponse,
    HotelResponse,
    HotelUpdateRequest,
)
from hotelops.api.schemas.monitoring import ActivityResponse, MonitoringResponse, VerifyResponse
from hotelops.api.schemas.tenant import (
    BookingCreateRequest,
    BookingListResponse,
    BookingResponse,
    DashboardStatsResponse,
    GuestCreateRequest,
    GuestListResponse,
    GuestResponse,
    HotelProfileResponse,
    HotelSettingsUpdateRequest,
    RoomCreateRequest,
    RoomListResponse,
    RoomResponse,
    RoomUpdateRequest,
)
from hotelops.api.schemas.users import (
    CurrentUserResponse,
    UserCreateRequest,
    UserListResponse,
    UserResponse,
    UserUpdateRequest,
)

__all__ = [
    "APIError",
    "ActivityResponse",
    "AlertReportResponse",
    "AuditLogListResponse",
    "AuditLogResponse",
    "BookingCreateRequest",
    "BookingListResponse",
    "BookingResponse",
    "ComponentHealth",
    "CountItem",
    "CurrentUserResponse",
    "DashboardStatsResponse",
    "ErrorCode",
    "GuestCreateRequest",
    "GuestListResponse",
    "GuestResponse",
    "HealthDetailResponse",
    "HealthResponse",
    "HealthStatus",
    "HotelCreateRequest",
    "HotelCreatedResponse",
    "HotelListResponse",
    "HotelProfileResponse",
    "HotelResponse",
    "HotelSettingsUpdateRequest",
    "HotelUpdateRequest",
    "MonitoringResponse",
    "Pagination",
    "RoomCreateRequest",
    "RoomListResponse",
    "RoomResponse",
    "RoomUpdateRequest",
    "UserCreateRequest",
    "UserListResponse",
    "UserResponse",
    "UserUpdateRequest",
    "VerifyResponse",
]
