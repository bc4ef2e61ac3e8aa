"""
Core Utilities Package

This package contains utility functions and helpers used throughout the application.

Modules:
    - time: Timestamp conversion and formatting utilities
"""

from core.utils.time import to_utc_datetime, to_iso_utc

__all__ = ["to_utc_datetime", "to_iso_utc"]
