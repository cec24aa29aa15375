import os
from dataclasses import dataclass, field

from fastapi import Request


def parse_origins(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    jwt_secret: str
    database_url: str = "sqlite:///./events.db"
    redis_url: str = "redis://localhost:6379/0"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 120
    bcrypt_rounds: int = 10
    event_lock_timeout: int = 10
    event_lock_blocking_timeout: int = 5
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables. JWT_SECRET has no default."""
        jwt_secret = os.getenv("JWT_SECRET")
        if not jwt_secret:
            raise RuntimeError("JWT_SECRET environment variable is not set")

        return cls(
            jwt_secret=jwt_secret,
            database_url=os.getenv("DATABASE_URL", "sqlite:///./events.db"),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "120")),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "10")),
            event_lock_timeout=int(os.getenv("EVENT_LOCK_TIMEOUT", "10")),
            event_lock_blocking_timeout=int(os.getenv("EVENT_LOCK_BLOCKING_TIMEOUT", "5")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            cors_origins=cors_origins_from_env(),
        )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def cors_origins_from_env() -> list[str]:
    return parse_origins(os.getenv("CORS_ORIGINS", "*"))
