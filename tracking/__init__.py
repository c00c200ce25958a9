"""
Tracking package.

Significant-change monitoring, active tracking and trip history. Platform
sensors and the notification surface are modelled as the contracts in
`tracking.sources` and `tracking.notifier`.
"""

from tracking.models import (
    ActivityEntry,
    ActivityState,
    LocationSample,
    MotionActivity,
    SignificantChangeEntry,
    SignificantChangeEvent,
    TrackingState,
    Trip,
)
from tracking.sources import AuthorizationStatus

__all__ = [
    "ActivityEntry",
    "ActivityState",
    "AuthorizationStatus",
    "LocationSample",
    "MotionActivity",
    "SignificantChangeEntry",
    "SignificantChangeEvent",
    "TrackingState",
    "Trip",
]
