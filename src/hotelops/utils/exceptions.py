"""Custom exceptions for HotelOps."""


class HotelOpsError(Exception):
    """Base exception for all HotelOps errors."""

    pass


class ConfigurationError(HotelOpsError):
    """Error in configuration or settings."""

    pass
