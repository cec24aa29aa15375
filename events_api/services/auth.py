import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from events_api.core.config import Settings
from events_api.core.errors import DuplicateEmail, NotFound, Unauthorized, ValidationError
from events_api.core.security import create_access_token, hash_password, verify_password
from events_api.database.db import transaction
from events_api.models.users import User
from events_api.schemas.users import UserCreate, UserLogin, UserOut

logger = logging.getLogger(__name__)


def register_user(db: Session, *, name: str, email: str, password: str, bcrypt_rounds: int = 10) -> UserOut:
    """
    Create an account. The email is stored lowercased and the password only
    as a bcrypt hash. The unique index on ``users.email`` decides duplicates,
    so two concurrent sign-ups with one address cannot both succeed.
    """
    try:
        payload = UserCreate(name=name, email=email, password=password)
    except PydanticValidationError as exc:
        raise ValidationError(
            "Invalid input. Name, valid email, and password (min 6 chars) are required."
        ) from exc

    user = User(
        name=payload.name,
        email=payload.email,
        password=hash_password(payload.password, rounds=bcrypt_rounds),
    )
    try:
        with transaction(db):
            db.add(user)
            db.flush()
            created = UserOut.model_validate(user)
    except IntegrityError as exc:
        raise DuplicateEmail("Email already exists") from exc

    logger.info("Registered user id=%s", created.id)
    return created


def login(db: Session, *, email: str, password: str, settings: Settings) -> tuple[str, UserOut]:
    """Check credentials and issue a session token bound to the user id."""
    try:
        payload = UserLogin(email=email, password=password)
    except PydanticValidationError as exc:
        raise ValidationError("Invalid login input. Email and password are required.") from exc

    user = db.scalar(select(User).where(User.email == payload.email))
    if user is None:
        raise NotFound("User not found with this email")

    if not verify_password(payload.password, user.password):
        raise Unauthorized("Incorrect password")

    token = create_access_token(
        user.id,
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_minutes=settings.access_token_expire_minutes,
    )
    logger.info("User id=%s logged in", user.id)
    return token, UserOut.model_validate(user)
