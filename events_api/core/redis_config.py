import redis
from fastapi import Request


def make_redis_client(redis_url: str) -> redis.Redis:
    """Redis client used for per-event locking."""
    return redis.from_url(redis_url, decode_responses=True)


def get_redis(request: Request) -> redis.Redis:
    return request.app.state.redis
