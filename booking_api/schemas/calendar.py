"""Calendar schemas - locations, calendars, time periods, and availability."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from booking_api.db.enums import TimeperiodType

# ORM models keep JSON metadata on ``metadata_``
METADATA_ALIAS = AliasChoices("metadata_", "metadata")


# =============================================================================
# Locations
# =============================================================================

class LocationCreate(BaseModel):
    """Schema for creating a location."""
    name: str = Field(..., min_length=1, max_length=255)
    metadata: dict[str, Any] | None = None


class LocationRead(BaseModel):
    id: UUID
    name: str
    metadata: dict[str, Any] | None = Field(None, validation_alias=METADATA_ALIAS)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Calendars
# =============================================================================

class CalendarCreate(BaseModel):
    """Schema for creating a calendar."""
    name: str = Field(..., min_length=1, max_length=255)
    location_id: UUID | None = None
    color: str | None = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    metadata: dict[str, Any] | None = None


class CalendarRead(BaseModel):
    id: UUID
    location_id: UUID | None
    name: str
    color: str | None
    metadata: dict[str, Any] | None = Field(None, validation_alias=METADATA_ALIAS)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Time periods
# =============================================================================

class TimeperiodCreate(BaseModel):
    """Schema for adding a period to a calendar. Naive timestamps are read as UTC."""
    type: TimeperiodType
    start_at: datetime
    end_at: datetime
    title: str | None = Field(None, max_length=255)
    metadata: dict[str, Any] | None = None


class TimeperiodRead(BaseModel):
    id: UUID
    calendar_id: UUID
    type: TimeperiodType
    title: str | None
    start_at: datetime
    end_at: datetime
    metadata: dict[str, Any] | None = Field(None, validation_alias=METADATA_ALIAS)

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Availability
# =============================================================================

class DaySlotsRead(BaseModel):
    """Free slot starts for one UTC day."""
    date: date
    slot_times: list[datetime]


class CalendarAvailabilityRead(BaseModel):
    calendar_id: UUID
    days: list[DaySlotsRead]
