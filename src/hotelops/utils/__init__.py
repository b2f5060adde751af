"""Shared utilities for HotelOps."""
