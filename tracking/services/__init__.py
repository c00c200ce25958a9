"""Tracking services module."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tracking.services.activity_monitor import ActivityMonitor
    from tracking.services.significant_change_monitor import SignificantChangeMonitor
    from tracking.services.tracking_controller import TrackingController
    from tracking.services.tracking_service import TrackingService

__all__ = (
    "ActivityMonitor",
    "SignificantChangeMonitor",
    "TrackingController",
    "TrackingService",
)


def __getattr__(name: str):
    if name == "ActivityMonitor":
        from tracking.services.activity_monitor import ActivityMonitor

        return ActivityMonitor
    if name == "SignificantChangeMonitor":
        from tracking.services.significant_change_monitor import (
            SignificantChangeMonitor,
        )

        return SignificantChangeMonitor
    if name == "TrackingController":
        from tracking.services.tracking_controller import TrackingController

        return TrackingController
    if name == "TrackingService":
        from tracking.services.tracking_service import TrackingService

        return TrackingService
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
