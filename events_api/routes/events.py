import redis
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from events_api.core.config import Settings, get_settings
from events_api.core.redis_config import get_redis
from events_api.core.security import get_current_user_id
from events_api.database.db import get_db
from events_api.schemas.events import (
    EventCreate,
    EventCreatedResponse,
    EventDetailsResponse,
    EventStatsResponse,
    UpcomingEventsResponse,
)
from events_api.schemas.registrations import RegistrationResponse
from events_api.services.events import create_event, get_event_details, get_event_stats, list_upcoming
from events_api.services.registrations import cancel_registration, register_user_to_event

router = APIRouter(prefix="/events", tags=["events"])


@router.post("/createEvent", response_model=EventCreatedResponse, status_code=status.HTTP_201_CREATED)
def create(
    payload: EventCreate,
    db: Session = Depends(get_db),
    _user_id: int = Depends(get_current_user_id),
):
    event = create_event(db, **payload.model_dump())
    return {"message": "Event created successfully", "event": event}


# Declared before "/{event_id}" so "upcoming" is not parsed as an id
@router.get("/upcoming", response_model=UpcomingEventsResponse)
def upcoming(db: Session = Depends(get_db)):
    return {"message": "Upcoming events fetched successfully", "events": list_upcoming(db)}


@router.get("/{event_id}", response_model=EventDetailsResponse)
def details(event_id: int, db: Session = Depends(get_db)):
    result = get_event_details(db, event_id)
    return {
        "message": "Event details fetched successfully",
        "event": result.event,
        "registrations": result.registrations,
    }


@router.post("/{event_id}/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
def register(
    event_id: int,
    db: Session = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis),
    settings: Settings = Depends(get_settings),
    user_id: int = Depends(get_current_user_id),
):
    registration = register_user_to_event(
        db,
        redis_client,
        event_id=event_id,
        user_id=user_id,
        lock_timeout=settings.event_lock_timeout,
        lock_blocking_timeout=settings.event_lock_blocking_timeout,
    )
    return {"message": "User registered successfully", "registration": registration}


@router.delete("/{event_id}/cancel/{user_id}", response_model=RegistrationResponse)
def cancel(
    event_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis),
    settings: Settings = Depends(get_settings),
    _caller_id: int = Depends(get_current_user_id),
):
    registration = cancel_registration(
        db,
        redis_client,
        event_id=event_id,
        user_id=user_id,
        lock_timeout=settings.event_lock_timeout,
        lock_blocking_timeout=settings.event_lock_blocking_timeout,
    )
    return {"message": "Registration cancelled successfully", "registration": registration}


@router.get("/{event_id}/stats", response_model=EventStatsResponse)
def stats(event_id: int, db: Session = Depends(get_db)):
    return {"message": "Stats fetched successfully", "stats": get_event_stats(db, event_id)}
