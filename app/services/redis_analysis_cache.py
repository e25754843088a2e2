"""
Redis cache for AI analysis results. Cache-Aside: Redis is a read-through copy only,
the ai_analyses table is the source of truth.
All Redis errors are handled internally; never raise to caller. System works if Redis is down.
Key: analysis:{cache_key}:{slot}: JSON {"value": ..., "text": ...}, TTL from settings.
"""
import json
import logging
from typing import Any

from app.config import get_settings

logger = logging.getLogger(__name__)

ANALYSIS_KEY_PREFIX = "analysis:"


def _key(cache_key: str, slot: str) -> str:
    return f"{ANALYSIS_KEY_PREFIX}{cache_key}:{slot}"


def _deserialize(s: str) -> dict | None:
    try:
        data = json.loads(s)
        if isinstance(data, dict) and "value" in data:
            return {"value": data["value"], "text": data.get("text") or ""}
    except (json.JSONDecodeError, TypeError):
        pass
    return None


class RedisAnalysisCache:
    """
    Async Redis cache for analysis slots. Plain string keys with EXPIRE.
    All methods swallow Redis errors and log; caller gets None or no-op on failure.
    """

    def __init__(self, redis_client: Any, ttl_seconds: int | None = None):
        self._redis = redis_client
        self._ttl = ttl_seconds or get_settings().analysis_cache_ttl_seconds

    async def get(self, cache_key: str, slot: str) -> dict | None:
        """Returns {"value", "text"} or None on miss/error (caller should hit DB)."""
        if not self._redis:
            return None
        try:
            raw = await self._redis.get(_key(cache_key, slot))
            if not raw:
                return None
            s = raw.decode() if isinstance(raw, bytes) else raw
            return _deserialize(s)
        except Exception as e:
            logger.warning("Redis analysis cache get failed for %s: %s", slot, e, exc_info=False)
            return None

    async def set(self, cache_key: str, slot: str, value: Any, text: str) -> None:
        """After DB save or on DB hit (warm). On Redis error: log only, do not raise."""
        if not self._redis:
            return
        try:
            payload = json.dumps({"value": value, "text": text or ""}, default=str)
            await self._redis.set(_key(cache_key, slot), payload, ex=self._ttl)
        except Exception as e:
            logger.warning("Redis analysis cache set failed for %s: %s", slot, e, exc_info=False)
