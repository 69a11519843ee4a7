"""
Rate Limiting Module

Limits how often a caller may hit upload and administrative endpoints.
Counts live in Redis when connect_rate_limit_backend() succeeded at startup
and in an in-process store otherwise. Redis is not used for anything else.

Routers call enforce_rate_limit() with the authenticated user id:

    await enforce_rate_limit(current_user.id, "documents:upload", *RATE_LIMIT_UPLOAD)
"""

import logging
import time
from uuid import UUID

from fastapi import HTTPException, status
from redis.asyncio import Redis, from_url

from admissions.core.config import settings

logger = logging.getLogger(__name__)

_redis_client: Redis | None = None

# Fallback storage: {key: [expiry timestamp, ...]}; keys with no live hits are dropped
_memory_store: dict[str, list[float]] = {}


async def connect_rate_limit_backend(url: str | None = None) -> Redis:
    """
    Connect the Redis counter backend. Call on application startup.

    The client is only kept once it answers a ping, so a failed connection
    leaves the limiter on the in-process store.
    """
    global _redis_client
    client = from_url(url or settings.redis_url, encoding="utf-8", decode_responses=True)
    try:
        await client.ping()
    except Exception:
        await client.aclose()
        raise
    _redis_client = client
    return client


def get_redis() -> Redis | None:
    """The connected Redis client, or None when counting in memory."""
    return _redis_client


async def close_rate_limit_backend() -> None:
    """Close the Redis connection, if any."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


class RateLimitExceeded(HTTPException):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(client, key: str, limit: int, window_seconds: int) -> bool:
    """Sliding window check backed by a Redis sorted set."""
    now = time.time()
    window_start = now - window_seconds

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, window_start)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)

    results = await pipe.execute()
    current_count = results[1]

    return current_count < limit


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    """
    Sliding window check using in-memory storage.

    Only accurate for a single server process.
    """
    now = time.time()
    _prune_memory_store(now)

    expiries = _memory_store.get(key, [])
    if len(expiries) >= limit:
        return False

    expiries.append(now + window_seconds)
    _memory_store[key] = expiries
    return True


def _prune_memory_store(now: float) -> None:
    """Drop expired hits from every key and remove keys left empty."""
    for key in list(_memory_store):
        expiries = [ts for ts in _memory_store[key] if ts > now]
        if expiries:
            _memory_store[key] = expiries
        else:
            del _memory_store[key]


def memory_store_size() -> int:
    """Number of keys currently tracked by the in-process store."""
    return len(_memory_store)


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check if a request is within rate limits.

    Args:
        key: Unique key for this rate limit (e.g., "documents:upload:<user_id>")
        limit: Maximum requests allowed in the window
        window_seconds: Time window in seconds

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    client = get_redis()

    if client is not None:
        try:
            return await _check_rate_limit_redis(client, key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


def reset_memory_store() -> None:
    """Clear the in-process fallback store."""
    _memory_store.clear()


async def enforce_rate_limit(
    subject_id: UUID,
    action: str,
    limit: int,
    window_seconds: int,
) -> None:
    """
    Check the rate limit for one user performing one action.

    Args:
        subject_id: The authenticated user's ID
        action: Action name (e.g., "documents:upload", "admin:document_status")
        limit: Maximum requests allowed
        window_seconds: Time window in seconds

    Raises:
        RateLimitExceeded: If rate limit is exceeded
    """
    key = f"rate_limit:{action}:{subject_id}"
    allowed = await check_rate_limit(key, limit, window_seconds)

    if not allowed:
        logger.warning(
            f"Rate limit exceeded for user {subject_id} on action '{action}': "
            f"{limit}/{window_seconds}s"
        )
        raise RateLimitExceeded(limit, window_seconds)


__all__ = [
    "RateLimitExceeded",
    "check_rate_limit",
    "close_rate_limit_backend",
    "connect_rate_limit_backend",
    "enforce_rate_limit",
    "get_redis",
    "memory_store_size",
    "reset_memory_store",
]
