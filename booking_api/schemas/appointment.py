"""Appointment schemas - Pydantic models for the appointments API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from booking_api.db.enums import AppointmentStatus
from booking_api.schemas.calendar import METADATA_ALIAS


class AppointmentBook(BaseModel):
    """Schema for booking an order onto a calendar."""
    order_id: UUID
    calendar_id: UUID
    location_id: UUID | None = None
    slot_time: datetime


class AppointmentCreate(BaseModel):
    """Schema for creating a draft appointment."""
    order_id: UUID | None = None
    metadata: dict[str, Any] | None = None


class AppointmentUpdate(BaseModel):
    """Schema for updating appointment flags and metadata."""
    is_confirmed: bool | None = None
    notified_via_email_at: datetime | None = None
    notified_via_sms_at: datetime | None = None
    metadata: dict[str, Any] | None = None


class AppointmentStatusChange(BaseModel):
    status: AppointmentStatus


class AppointmentReschedule(BaseModel):
    """Schema for moving an appointment to a new start."""
    slot_time: datetime


class AppointmentRead(BaseModel):
    id: UUID
    status: AppointmentStatus
    order_id: UUID | None
    code: str | None
    is_confirmed: bool
    scheduled_start: datetime | None
    scheduled_end: datetime | None
    notified_via_email_at: datetime | None = None
    notified_via_sms_at: datetime | None = None
    metadata: dict[str, Any] | None = Field(None, validation_alias=METADATA_ALIAS)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AppointmentListResponse(BaseModel):
    items: list[AppointmentRead]
    total: int
    page: int
    per_page: int
    pages: int


class CurrentAppointmentResponse(BaseModel):
    appointment: AppointmentRead | None
