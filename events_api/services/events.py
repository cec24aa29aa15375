import datetime as dt
import logging
from decimal import ROUND_HALF_UP, Decimal

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from events_api.core.errors import NotFound, ValidationError
from events_api.database.db import transaction
from events_api.models.events import Event
from events_api.models.registrations import Registration
from events_api.models.users import User
from events_api.schemas.events import EventCreate, EventDetails, EventOut, EventStatsOut, as_utc
from events_api.schemas.users import UserOut

logger = logging.getLogger(__name__)


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def create_event(db: Session, *, title: str, datetime, location: str, capacity: int) -> Event:
    try:
        payload = EventCreate(title=title, datetime=datetime, location=location, capacity=capacity)
    except PydanticValidationError as exc:
        raise ValidationError("Invalid input data for event creation") from exc

    event = Event(
        title=payload.title,
        datetime=payload.datetime,
        location=payload.location,
        capacity=payload.capacity,
    )
    with transaction(db):
        db.add(event)
    db.refresh(event)

    logger.info("Created event id=%s capacity=%s", event.id, event.capacity)
    return event


def get_event(db: Session, event_id: int) -> Event:
    event = db.get(Event, event_id)
    if event is None:
        raise NotFound("Event not found")
    return event


def count_registrations(db: Session, event_id: int) -> int:
    total = db.scalar(select(func.count(Registration.id)).where(Registration.event_id == event_id))
    return int(total or 0)


def get_event_details(db: Session, event_id: int) -> EventDetails:
    """Event row plus its registrants (id, name, email), in no particular order."""
    event = get_event(db, event_id)
    users = db.scalars(
        select(User).join(Registration, Registration.user_id == User.id).where(Registration.event_id == event_id)
    ).all()
    return EventDetails(
        event=EventOut.model_validate(event),
        registrations=[UserOut.model_validate(user) for user in users],
    )


def list_upcoming(db: Session, *, now: dt.datetime | None = None) -> list[Event]:
    """Events strictly after ``now``, soonest first, ties broken by location."""
    now = as_utc(now) if now else utcnow()
    stmt = select(Event).where(Event.datetime > now).order_by(Event.datetime.asc(), Event.location.asc())
    return list(db.scalars(stmt).all())


def get_event_stats(db: Session, event_id: int) -> EventStatsOut:
    event = get_event(db, event_id)
    total = count_registrations(db, event_id)
    # exact decimal arithmetic so halves round up (1/800 -> 0.13%)
    percentage = (Decimal(total * 100) / Decimal(event.capacity)).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )

    return EventStatsOut(
        event=EventOut.model_validate(event),
        total_registrations=total,
        remaining_capacity=event.capacity - total,
        percent_filled=f"{percentage}%",
    )
