"""Centralized configuration for environment variables and external APIs.

This module is the single source of truth for configuration used across the
tracking engine. Import constants from here rather than calling os.getenv
directly in multiple places.

NOTE: The Redis URL lives in core.redis, next to the shared client it
configures.
"""

from __future__ import annotations

import os
from typing import Final

from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# --- Logging ---
LOG_LEVEL: Final[str] = os.getenv("LOG_LEVEL", "INFO").upper()


# --- History record keys ---
# Names match the records written by earlier releases so existing history
# keeps loading after an upgrade.
HISTORY_KEY_PREFIX: Final[str] = os.getenv("HISTORY_KEY_PREFIX", "")

SIGNIFICANT_CHANGE_HISTORY_KEY: Final[str] = f"{HISTORY_KEY_PREFIX}LocationHistory"
TRIP_HISTORY_KEY: Final[str] = f"{HISTORY_KEY_PREFIX}MapTrackingHistory"
ACTIVITY_HISTORY_KEY: Final[str] = f"{HISTORY_KEY_PREFIX}MovementHistory"
TRACKING_ENABLED_KEY: Final[str] = f"{HISTORY_KEY_PREFIX}isTrackingEnabled"


# --- Tracking policy ---
SIGNIFICANT_CHANGE_MAX_AGE_SECONDS: Final[float] = _float_env(
    "SIGNIFICANT_CHANGE_MAX_AGE_SECONDS",
    60.0,
)
ACTIVITY_HISTORY_LIMIT: Final[int] = _int_env("ACTIVITY_HISTORY_LIMIT", 50)


# --- Reverse geocoding ---
# 4 decimal places is roughly 11 m of latitude.
GEOCODE_PRECISION: Final[int] = _int_env("GEOCODE_PRECISION", 4)
NOMINATIM_REQUESTS_PER_SECOND: Final[float] = _float_env(
    "NOMINATIM_REQUESTS_PER_SECOND",
    1.0,
)


# --- Outbound HTTP ---
HTTP_CONNECTION_LIMIT: Final[int] = _int_env("HTTP_CONNECTION_LIMIT", 10)
HTTP_TIMEOUT_CONNECT: Final[float] = _float_env("HTTP_TIMEOUT_CONNECT", 10.0)
HTTP_TIMEOUT_SOCK_READ: Final[float] = _float_env("HTTP_TIMEOUT_SOCK_READ", 20.0)
HTTP_TIMEOUT_TOTAL: Final[float] = _float_env("HTTP_TIMEOUT_TOTAL", 30.0)


def get_nominatim_base_url() -> str:
    """Base URL of the Nominatim instance used for reverse geocoding."""
    base_url = os.getenv("NOMINATIM_BASE_URL", "").strip()
    if base_url:
        return base_url.rstrip("/")
    return "https://nominatim.openstreetmap.org"


def get_nominatim_reverse_url() -> str:
    return f"{get_nominatim_base_url()}/reverse"


def get_nominatim_user_agent() -> str:
    """User-Agent sent to Nominatim; its usage policy requires a descriptive one."""
    user_agent = os.getenv("NOMINATIM_USER_AGENT", "").strip()
    return user_agent or "TripTracker/1.0 (reverse-geocode)"


__all__ = [
    "ACTIVITY_HISTORY_KEY",
    "ACTIVITY_HISTORY_LIMIT",
    "GEOCODE_PRECISION",
    "HTTP_CONNECTION_LIMIT",
    "HTTP_TIMEOUT_CONNECT",
    "HTTP_TIMEOUT_SOCK_READ",
    "HTTP_TIMEOUT_TOTAL",
    "HISTORY_KEY_PREFIX",
    "LOG_LEVEL",
    "NOMINATIM_REQUESTS_PER_SECOND",
    "SIGNIFICANT_CHANGE_HISTORY_KEY",
    "SIGNIFICANT_CHANGE_MAX_AGE_SECONDS",
    "TRACKING_ENABLED_KEY",
    "TRIP_HISTORY_KEY",
    "get_nominatim_base_url",
    "get_nominatim_reverse_url",
    "get_nominatim_user_agent",
]
