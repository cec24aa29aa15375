import datetime as dt

from pydantic import BaseModel, Field, StrictInt, StrictStr, field_validator

from events_api.models.events import MAX_CAPACITY
from events_api.schemas.users import UserOut


def as_utc(value: dt.datetime) -> dt.datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


# ---------- Event ----------
class EventCreate(BaseModel):
    title: StrictStr = Field(min_length=1, max_length=200)
    datetime: dt.datetime
    location: StrictStr = Field(min_length=1, max_length=200)
    capacity: StrictInt = Field(gt=0, le=MAX_CAPACITY)

    @field_validator("datetime")
    @classmethod
    def normalize_datetime(cls, value: dt.datetime) -> dt.datetime:
        return as_utc(value)


class EventOut(BaseModel):
    id: int
    title: str
    datetime: dt.datetime
    location: str
    capacity: int

    class Config:
        from_attributes = True

    @field_validator("datetime")
    @classmethod
    def normalize_datetime(cls, value: dt.datetime) -> dt.datetime:
        # SQLite hands back naive values
        return as_utc(value)


class EventDetails(BaseModel):
    event: EventOut
    registrations: list[UserOut]


class EventStatsOut(BaseModel):
    event: EventOut
    total_registrations: int
    remaining_capacity: int
    percent_filled: str


# ---------- Responses ----------
class EventCreatedResponse(BaseModel):
    message: str
    event: EventOut


class UpcomingEventsResponse(BaseModel):
    message: str
    events: list[EventOut]


class EventDetailsResponse(EventDetails):
    message: str


class EventStatsResponse(BaseModel):
    message: str
    stats: EventStatsOut
