"""Redis connection and the JSON cache used for doctor lookups.

The cache is an optimisation only. Every failure is logged and reads as a
miss, so a Redis outage never fails a lifecycle request.
"""

import json
from typing import Any

import redis
import structlog

from clinicops.config import settings

logger = structlog.get_logger(__name__)

_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Shared client built from ``REDIS_URL`` on first use."""
    global _client

    if _client is None:
        _client = redis.Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=2,
            health_check_interval=30,
        )

    return _client


def redis_available() -> bool:
    try:
        return bool(get_redis_client().ping())
    except redis.RedisError as e:
        logger.warning("redis_unavailable", error=str(e))
        return False


def close_redis_connection() -> None:
    global _client

    if _client is not None:
        _client.close()
        _client = None


class JSONCache:
    """JSON values stored under ``<namespace>:<key>`` with an optional TTL."""

    def __init__(self, client: redis.Redis, namespace: str, ttl: int | None = None):
        self.client = client
        self.namespace = namespace
        self.ttl = ttl

    def key_for(self, key: object) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: object) -> Any | None:
        """Cached value for ``key``, or None on a miss or Redis error."""
        try:
            raw = self.client.get(self.key_for(key))
        except Exception as e:
            logger.warning("cache_read_failed", key=self.key_for(key), error=str(e))
            return None

        if not raw:
            return None
        return json.loads(raw)

    def put(self, key: object, value: Any) -> bool:
        """Store ``value``; non-JSON types such as UUIDs are stringified."""
        payload = json.dumps(value, default=str)
        try:
            if self.ttl:
                self.client.setex(self.key_for(key), self.ttl, payload)
            else:
                self.client.set(self.key_for(key), payload)
        except Exception as e:
            logger.warning("cache_write_failed", key=self.key_for(key), error=str(e))
            return False
        return True
