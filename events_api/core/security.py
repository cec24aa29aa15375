"""
Password hashing and session tokens.

Passwords are stored as bcrypt hashes. Session tokens are HS256 JWTs whose
``sub`` claim carries the user id; the signing secret always comes from
``Settings`` and is never a literal.
"""
from datetime import datetime, timedelta, timezone

import bcrypt
from fastapi import Depends
from fastapi.security import APIKeyHeader
from jose import JWTError, jwt

from events_api.core.config import Settings, get_settings
from events_api.core.errors import InvalidToken, Unauthenticated


def hash_password(password: str, rounds: int = 10) -> str:
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def create_access_token(
    user_id: int,
    *,
    secret: str,
    algorithm: str = "HS256",
    expires_minutes: int = 120,
) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    claims = {"sub": str(user_id), "exp": expire}
    return jwt.encode(claims, secret, algorithm=algorithm)


def verify_token(token: str | None, *, secret: str, algorithm: str = "HS256") -> int:
    """Return the user id bound to ``token``.

    Raises ``Unauthenticated`` when no token is supplied and ``InvalidToken``
    when the signature, expiry or subject claim does not check out.
    """
    if not token:
        raise Unauthenticated("Token required")

    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
        return int(payload["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise InvalidToken("Invalid token")


authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


def token_from_header(authorization: str | None) -> str | None:
    """Take whatever follows the first space in ``Authorization``; the scheme is not checked."""
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    return parts[1] if len(parts) > 1 else None


def get_current_user_id(
    authorization: str | None = Depends(authorization_header),
    settings: Settings = Depends(get_settings),
) -> int:
    token = token_from_header(authorization)
    return verify_token(token, secret=settings.jwt_secret, algorithm=settings.jwt_algorithm)
