"""Pydantic models for samples, significant-change entries, trips and activity.

Every persisted record is frozen. The only field changes the engine makes
after creation are a trip's two place names, and those are expressed as a
`model_copy` that replaces the list element rather than an in-place edit.

Field names match the persisted JSON layout, so existing history written
with camelCase keys keeps loading.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from date_utils import get_current_utc_time, parse_timestamp
from tracking.geometry import PathRegion, region_for_trip


def _utc(value: object) -> object:
    if isinstance(value, (str, datetime)):
        return parse_timestamp(value)
    return value


class LocationSample(BaseModel):
    """A single position fix from either event source."""

    model_config = ConfigDict(frozen=True)

    # Optional so trips persisted as bare coordinates still load.
    timestamp: datetime | None = None
    latitude: float
    longitude: float

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: object) -> object:
        return _utc(value)

    @property
    def coordinate(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


class SignificantChangeEvent(BaseModel):
    """Delivered by the low-power source, possibly after the process was dormant."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    latitude: float
    longitude: float

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: object) -> object:
        return _utc(value)


class SignificantChangeEntry(BaseModel):
    """One accepted significant-change event in the monitor's log."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    timestamp: datetime
    latitude: float
    longitude: float

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: object) -> object:
        return _utc(value)

    @classmethod
    def from_event(cls, event: SignificantChangeEvent) -> SignificantChangeEntry:
        return cls(
            timestamp=event.timestamp,
            latitude=event.latitude,
            longitude=event.longitude,
        )


class Trip(BaseModel):
    """A finalized active-tracking session."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    date: datetime = Field(default_factory=get_current_utc_time)
    locations: tuple[LocationSample, ...]
    startLocationName: str | None = None
    endLocationName: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: object) -> object:
        return _utc(value)

    @property
    def start(self) -> LocationSample | None:
        return self.locations[0] if self.locations else None

    @property
    def end(self) -> LocationSample | None:
        return self.locations[-1] if self.locations else None

    @property
    def region(self) -> PathRegion:
        return region_for_trip(self)

    def with_place_names(
        self,
        start_name: str | None,
        end_name: str | None,
    ) -> Trip:
        """
        Return a copy with any still-absent place name filled in.

        Names that are already present are never overwritten.
        """
        updates: dict[str, str] = {}
        if self.startLocationName is None and start_name is not None:
            updates["startLocationName"] = start_name
        if self.endLocationName is None and end_name is not None:
            updates["endLocationName"] = end_name
        if not updates:
            return self
        return self.model_copy(update=updates)


class TrackingState(Enum):
    """Active-tracking state machine."""

    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class TrackingSession:
    """Transient tracking state; one instance, reset in place, never persisted."""

    is_active: bool = False
    buffer: list[LocationSample] = field(default_factory=list)
    manual_override: bool = False

    @property
    def state(self) -> TrackingState:
        return TrackingState.ACTIVE if self.is_active else TrackingState.IDLE


class ActivityState(str, Enum):
    """Coarse motion classification."""

    RUNNING = "running"
    WALKING = "walking"
    CYCLING = "cycling"
    AUTOMOTIVE = "automotive"
    STATIONARY = "stationary"
    UNKNOWN = "unknown"


class MotionActivity(BaseModel):
    """A raw motion-activity reading; several flags may be set at once."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=get_current_utc_time)
    running: bool = False
    walking: bool = False
    cycling: bool = False
    automotive: bool = False
    stationary: bool = False

    @property
    def state(self) -> ActivityState:
        if self.running:
            return ActivityState.RUNNING
        if self.walking:
            return ActivityState.WALKING
        if self.cycling:
            return ActivityState.CYCLING
        if self.automotive:
            return ActivityState.AUTOMOTIVE
        if self.stationary:
            return ActivityState.STATIONARY
        return ActivityState.UNKNOWN


class ActivityEntry(BaseModel):
    """One logged change of motion state."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    date: datetime = Field(default_factory=get_current_utc_time)
    state: ActivityState

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: object) -> object:
        return _utc(value)


__all__ = [
    "ActivityEntry",
    "ActivityState",
    "LocationSample",
    "MotionActivity",
    "SignificantChangeEntry",
    "SignificantChangeEvent",
    "TrackingSession",
    "TrackingState",
    "Trip",
]
