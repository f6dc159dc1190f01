from datetime import date, datetime

from pydantic import BaseModel, Field

from availability_engine.core.config import settings


class TimeSlotSchema(BaseModel):
    start: datetime
    end: datetime


class SlotsResponseSchema(BaseModel):
    host_id: str
    date: date
    duration_minutes: int
    buffer_minutes: int
    slots: list[TimeSlotSchema]


class SlotsRangeResponseSchema(BaseModel):
    host_id: str
    duration_minutes: int
    buffer_minutes: int
    days: dict[date, list[TimeSlotSchema]]


class NextSlotResponseSchema(BaseModel):
    host_id: str
    slot: TimeSlotSchema | None = None


class ConflictCheckRequestSchema(BaseModel):
    start: datetime
    end: datetime
    exclude_booking_id: str | None = None


class ConflictSchema(BaseModel):
    external_event_id: str
    title: str
    start: datetime
    end: datetime
    provider: str
    calendar_name: str
    location: str | None = None
    status: str


class IntegrationCheckSchema(BaseModel):
    integration_id: str
    name: str
    provider: str
    success: bool
    error: str | None = None


class ConflictCheckResponseSchema(BaseModel):
    has_conflicts: bool
    conflicts: list[ConflictSchema] = Field(default_factory=list)
    checked_integrations: list[IntegrationCheckSchema] = Field(default_factory=list)


class SlotAvailabilityResponseSchema(BaseModel):
    host_id: str
    available: bool


class AlternativesRequestSchema(BaseModel):
    preferred_start: datetime
    duration_minutes: int = Field(gt=0)
    search_days: int = Field(default=settings.SUGGESTION_SEARCH_DAYS, gt=0)
    max_suggestions: int = Field(default=settings.MAX_SUGGESTIONS, gt=0)


class AlternativesResponseSchema(BaseModel):
    host_id: str
    suggestions: list[datetime]
