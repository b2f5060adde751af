"""Configuration for HotelOps."""

from .settings import Settings, SubscriptionConfig, get_settings

__all__ = ["Settings", "SubscriptionConfig", "get_settings"]
