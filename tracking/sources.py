"""
Event-source contracts.

Each platform source accepts exactly one subscriber and calls one method
per event type. Sources may deliver on any thread; subscribers are
responsible for hopping onto the serialized context.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from tracking.models import LocationSample, MotionActivity, SignificantChangeEvent


class AuthorizationStatus(str, Enum):
    """Platform location authorization levels."""

    NOT_DETERMINED = "notDetermined"
    WHEN_IN_USE = "authorizedWhenInUse"
    ALWAYS = "authorizedAlways"
    DENIED = "denied"
    RESTRICTED = "restricted"
    UNKNOWN = "unknown"

    @property
    def permits_monitoring(self) -> bool:
        return self in {AuthorizationStatus.ALWAYS, AuthorizationStatus.WHEN_IN_USE}


class SignificantChangeSubscriber(Protocol):
    def on_significant_change(self, event: SignificantChangeEvent) -> None: ...

    def on_authorization_changed(self, status: AuthorizationStatus) -> None: ...

    def on_error(self, error: Exception) -> None: ...


class LowPowerEventSource(Protocol):
    """Coarse, power-efficient location change notifications."""

    def is_available(self) -> bool:
        """Whether significant-change monitoring exists on this platform instance."""
        ...

    def set_subscriber(self, subscriber: SignificantChangeSubscriber | None) -> None:
        """Register the single subscriber (None detaches it)."""
        ...

    def request_authorization(self) -> None:
        """Ask the platform for "always" access; the answer arrives as a callback."""
        ...

    def start_monitoring(self) -> None: ...

    def stop_monitoring(self) -> None: ...


class PositionSubscriber(Protocol):
    def on_position(self, sample: LocationSample) -> None: ...

    def on_position_error(self, error: Exception) -> None: ...


class PositionSource(Protocol):
    """High-frequency positions, already filtered by the source's own policy."""

    def is_available(self) -> bool: ...

    def start_updates(self, subscriber: PositionSubscriber) -> None:
        """Begin delivering samples; may raise SourceUnavailableError."""
        ...

    def stop_updates(self) -> None: ...


class ActivitySubscriber(Protocol):
    def on_activity(self, activity: MotionActivity) -> None: ...


class ActivitySource(Protocol):
    """Motion-activity classifier readings."""

    def is_available(self) -> bool: ...

    def start_updates(self, subscriber: ActivitySubscriber) -> None: ...

    def stop_updates(self) -> None: ...


__all__ = [
    "ActivitySource",
    "ActivitySubscriber",
    "AuthorizationStatus",
    "LowPowerEventSource",
    "PositionSource",
    "PositionSubscriber",
    "SignificantChangeSubscriber",
]
