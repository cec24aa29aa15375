"""
Capacity-safe registration.

Every write that touches an event's registrations runs while holding the
Redis lock ``event_lock:{event_id}`` and inside a single database
transaction that also row-locks the event (``SELECT ... FOR UPDATE``; SQLite
ignores it). The existence check, the count check and the insert therefore
see the same committed state, and ``count(registrations) <= capacity`` holds
no matter how many requests race for the last seat. The unique constraint on
``(event_id, user_id)`` stays as the final guard against duplicates.

Writers for different events take different locks and never wait on each
other.
"""
import datetime as dt
import logging
from contextlib import contextmanager
from typing import Iterator

import redis
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from events_api.core.errors import AlreadyRegistered, EventFull, InternalError, NotFound, PastEvent
from events_api.database.db import transaction
from events_api.models.events import Event
from events_api.models.registrations import Registration
from events_api.models.users import User
from events_api.schemas.events import as_utc
from events_api.schemas.registrations import RegistrationOut
from events_api.services.events import count_registrations, utcnow

logger = logging.getLogger(__name__)

LOCK_TIMEOUT = 10
LOCK_BLOCKING_TIMEOUT = 5


def lock_key(event_id: int) -> str:
    return f"event_lock:{event_id}"


@contextmanager
def event_lock(
    redis_client: redis.Redis,
    event_id: int,
    *,
    timeout: int = LOCK_TIMEOUT,
    blocking_timeout: int = LOCK_BLOCKING_TIMEOUT,
) -> Iterator[None]:
    """Hold the per-event lock for the duration of the block."""
    lock = redis_client.lock(lock_key(event_id), timeout=timeout, blocking_timeout=blocking_timeout)
    try:
        acquired = lock.acquire(blocking=True, blocking_timeout=blocking_timeout)
    except redis.exceptions.RedisError as exc:
        raise InternalError(f"Could not acquire lock for event {event_id}: {exc}") from exc
    if not acquired:
        logger.warning("Timed out waiting for lock on event %s", event_id)
        raise InternalError(f"Timed out waiting for lock on event {event_id}")

    try:
        yield
    finally:
        try:
            lock.release()
        except redis.exceptions.LockError:
            # Lock expired while held; the transaction has already finished.
            logger.warning("Lock on event %s expired before release", event_id)


def register_user_to_event(
    db: Session,
    redis_client: redis.Redis,
    *,
    event_id: int,
    user_id: int,
    now: dt.datetime | None = None,
    lock_timeout: int = LOCK_TIMEOUT,
    lock_blocking_timeout: int = LOCK_BLOCKING_TIMEOUT,
) -> RegistrationOut:
    """
    Register ``user_id`` for ``event_id``.

    Checks run in order and the first failure wins: missing event
    (``NotFound``), event already started (``PastEvent``), existing
    registration (``AlreadyRegistered``), no seats left (``EventFull``),
    unknown user (``NotFound``).
    """
    with event_lock(redis_client, event_id, timeout=lock_timeout, blocking_timeout=lock_blocking_timeout):
        try:
            with transaction(db):
                return _register_in_transaction(db, event_id, user_id, now)
        except IntegrityError as exc:
            # Only the (event_id, user_id) constraint can fire here.
            raise AlreadyRegistered("User already registered") from exc


def _register_in_transaction(
    db: Session, event_id: int, user_id: int, now: dt.datetime | None
) -> RegistrationOut:
    # read the clock only once the lock is held
    now = as_utc(now) if now else utcnow()

    event = db.scalar(select(Event).where(Event.id == event_id).with_for_update())
    if event is None:
        raise NotFound("Event not found")

    if as_utc(event.datetime) < now:
        raise PastEvent("Cannot register for past events")

    existing = db.scalar(
        select(Registration.id).where(Registration.event_id == event_id, Registration.user_id == user_id)
    )
    if existing is not None:
        raise AlreadyRegistered("User already registered")

    if count_registrations(db, event_id) >= event.capacity:
        raise EventFull("Event is full")

    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    registration = Registration(event=event, user=user)
    db.add(registration)
    db.flush()

    logger.info("User %s registered for event %s", user_id, event_id)
    return RegistrationOut.model_validate(registration)


def cancel_registration(
    db: Session,
    redis_client: redis.Redis,
    *,
    event_id: int,
    user_id: int,
    lock_timeout: int = LOCK_TIMEOUT,
    lock_blocking_timeout: int = LOCK_BLOCKING_TIMEOUT,
) -> RegistrationOut:
    """Delete the (event, user) registration and return what was removed."""
    with event_lock(redis_client, event_id, timeout=lock_timeout, blocking_timeout=lock_blocking_timeout):
        with transaction(db):
            registration = db.scalar(
                select(Registration)
                .where(Registration.event_id == event_id, Registration.user_id == user_id)
                .with_for_update()
            )
            if registration is None:
                raise NotFound("User not registered for this event")

            removed = RegistrationOut.model_validate(registration)
            db.delete(registration)

    logger.info("User %s cancelled registration for event %s", user_id, event_id)
    return removed
