import logging
import os
import random
from datetime import date
from typing import Any, Optional

import redis

from app.core.config import settings
from .json import loads
from .json_utils import dumps

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


class _NullRedis:
    """No-op Redis client used when Redis is disabled or unavailable.

    Methods mirror the minimal surface used by the slot cache so callers can
    proceed without try/except around get_redis_client().
    """

    def get(self, key: str):
        return None

    def setex(self, key: str, expire: int, value: str):
        return None

    def incr(self, key: str):
        return 0

    def scan_iter(self, pattern: str):
        return iter(())

    def delete(self, *keys: str):
        return 0

    def close(self):
        return None


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def get_redis_client() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        url = (getattr(settings, "REDIS_URL", "") or "").strip()
        # Allow disabling via empty/none/disabled/false
        if not url or url.lower() in {"none", "disabled", "false", "0"}:
            _redis_client = _NullRedis()  # type: ignore[assignment]
            return _redis_client
        try:
            # Short socket timeouts keep a slow Redis off the slot query path.
            _redis_client = redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=_float_env("REDIS_CONNECT_TIMEOUT", 0.5),
                socket_timeout=_float_env("REDIS_SOCKET_TIMEOUT", 0.5),
            )
        except (redis.exceptions.RedisError, ValueError) as exc:
            logger.warning("Redis client unavailable, caching disabled: %s", exc)
            _redis_client = _NullRedis()  # type: ignore[assignment]
    return _redis_client


AVAILABLE_SLOTS_KEY_PREFIX = "available_slots"
# Bumped on every calendar write; cached payloads are keyed by the value
# read before their sweep, so a sweep that raced a write lands under a
# generation nobody reads any more.
AVAILABLE_SLOTS_GENERATION_PREFIX = "available_slots_gen"


def _apply_jitter(expire: int) -> int:
    """Return a TTL with a small random jitter to prevent cache stampedes."""
    return expire + random.randint(0, max(1, expire // 10))


def _slots_key(contractor_id: int, service_id: int, today: date, generation: int = 0) -> str:
    # The day is part of the key so a cached sweep never outlives its horizon.
    return (
        f"{AVAILABLE_SLOTS_KEY_PREFIX}:{contractor_id}:{service_id}:"
        f"{today.isoformat()}:g{generation}"
    )


def _generation_key(contractor_id: int) -> str:
    return f"{AVAILABLE_SLOTS_GENERATION_PREFIX}:{contractor_id}"


def get_availability_generation(contractor_id: int) -> Optional[int]:
    """Current cache generation of a contractor, or None when Redis is down.

    Read it before computing a payload and pass the same value to both
    ``get_cached_available_slots`` and ``cache_available_slots``.
    """
    client = get_redis_client()
    try:
        value = client.get(_generation_key(contractor_id))
    except redis.exceptions.RedisError as exc:
        logger.warning("Redis unavailable: %s", exc)
        return None
    try:
        return int(value or 0)
    except ValueError:
        logger.warning("Bad cache generation for contractor %s: %r", contractor_id, value)
        return None


def get_cached_available_slots(
    contractor_id: int, service_id: int, today: date, generation: int = 0
) -> Optional[dict]:
    client = get_redis_client()
    key = _slots_key(contractor_id, service_id, today, generation)
    try:
        data = client.get(key)
    except redis.exceptions.RedisError as exc:
        logger.warning("Redis unavailable: %s", exc)
        return None
    if not data:
        return None
    try:
        return loads(data)
    except ValueError as exc:
        # Corrupt entries are treated as misses so the slot query never 500s.
        logger.warning("Could not decode available slots cache for key %s: %s", key, exc)
        return None


def cache_available_slots(
    data: Any,
    contractor_id: int,
    service_id: int,
    today: date,
    generation: int = 0,
    expire: Optional[int] = None,
) -> None:
    client = get_redis_client()
    key = _slots_key(contractor_id, service_id, today, generation)
    ttl = _apply_jitter(expire if expire is not None else settings.AVAILABILITY_CACHE_TTL)
    try:
        client.setex(key, ttl, dumps(data))
    except redis.exceptions.RedisError as exc:
        logger.warning("Could not cache available slots: %s", exc)


def invalidate_availability_cache(contractor_id: int) -> int:
    """Drop every cached slot payload of a contractor. Returns keys deleted.

    The generation bump comes first so a payload computed before this call
    can no longer be stored where readers look.
    """
    client = get_redis_client()
    deleted = 0
    try:
        client.incr(_generation_key(contractor_id))
        for key in client.scan_iter(f"{AVAILABLE_SLOTS_KEY_PREFIX}:{contractor_id}:*"):
            deleted += int(client.delete(key) or 0)
    except redis.exceptions.RedisError as exc:
        logger.warning("Could not clear available slots cache: %s", exc)
    return deleted


def close_redis_client() -> None:
    """Close the global Redis client if it exists."""
    global _redis_client
    if _redis_client is not None:
        try:
            _redis_client.close()
        except redis.exceptions.RedisError as exc:  # pragma: no cover - best effort
            logger.warning("Error closing Redis client: %s", exc)
        finally:
            _redis_client = None
