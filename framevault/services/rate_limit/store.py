from datetime import datetime
from typing import Any, Protocol

from loguru import logger
from postgrest.exceptions import APIError as PostgrestAPIError

from framevault.core.config import settings
from framevault.models.rate_limit import ActorType
from framevault.services.redis_service import RedisService, redis_service
from framevault.services.supabase_service import SupabaseService, supabase_service


class RateLimitStore(Protocol):
    """Durable, shared counters keyed by (bucket, actor type, actor id, window start)."""

    async def increment_and_get(
        self,
        bucket: str,
        actor_type: ActorType,
        actor_id: str,
        window_start: datetime,
        window_end: datetime,
    ) -> int:
        """Atomically create-or-increment the window row and return the new count (first hit is 1)."""
        ...


class RedisRateLimitStore:
    """
    Counters live in Redis so every service instance sees the same usage.

    INCR and EXPIREAT run inside one MULTI/EXEC transaction: INCR creates the
    key at 1 when absent and the expiry lets Redis drop the window once it ends.
    """

    def __init__(self, service: RedisService | None = None, key_prefix: str | None = None):
        self.service = service or redis_service
        self.key_prefix = key_prefix if key_prefix is not None else settings.RATE_LIMIT_KEY_PREFIX

    def _format_key(self, bucket: str, actor_type: ActorType, actor_id: str, window_start: datetime) -> str:
        return f"{self.key_prefix}{bucket}:{actor_type.value}:{actor_id}:{int(window_start.timestamp())}"

    async def increment_and_get(
        self,
        bucket: str,
        actor_type: ActorType,
        actor_id: str,
        window_start: datetime,
        window_end: datetime,
    ) -> int:
        key = self._format_key(bucket, actor_type, actor_id, window_start)
        client = await self.service.get_client()
        async with client.pipeline(transaction=True) as pipe:
            pipe.incr(key)
            pipe.expireat(key, int(window_end.timestamp()) + 1)
            count, _ = await pipe.execute()
        return int(count)


class SupabaseRateLimitStore:
    """
    Counters live in the tmdb_rate_limit table.

    The increment happens inside the increment_rate_limit Postgres function
    (see db/rate_limit.sql) as a single INSERT ... ON CONFLICT DO UPDATE.
    """

    FUNCTION = "increment_rate_limit"

    def __init__(self, service: SupabaseService | None = None):
        self.service = service or supabase_service

    def _increment_sync(self, params: dict[str, Any]) -> Any:
        return self.service.get_client().rpc(self.FUNCTION, params).execute()

    async def increment_and_get(
        self,
        bucket: str,
        actor_type: ActorType,
        actor_id: str,
        window_start: datetime,
        window_end: datetime,
    ) -> int:
        params = {
            "p_bucket": bucket,
            "p_actor_type": actor_type.value,
            "p_actor": actor_id,
            "p_window_start": window_start.isoformat(),
            "p_window_end": window_end.isoformat(),
        }
        try:
            response = await self.service.run(self._increment_sync, params)
        except PostgrestAPIError as exc:
            logger.error(f"Rate limit increment failed for bucket {bucket}: {exc}")
            raise
        data = response.data
        if isinstance(data, list):
            data = data[0] if data else None
        if isinstance(data, dict):
            data = data.get("request_count", data.get(self.FUNCTION))
        if data is None:
            raise RuntimeError(f"{self.FUNCTION} returned no count")
        return int(data)


def get_rate_limit_store() -> RateLimitStore:
    if settings.RATE_LIMIT_BACKEND == "supabase":
        return SupabaseRateLimitStore()
    return RedisRateLimitStore()


async def purge_expired_windows(service: SupabaseService | None = None, older_than: datetime | None = None) -> int:
    """
    Delete ended windows from tmdb_rate_limit. Redis windows expire on their own.

    Scheduled through scripts/purge_rate_limits.py.
    """
    service = service or supabase_service
    params = {"older_than": older_than.isoformat()} if older_than else {}

    def _purge_sync() -> Any:
        return service.get_client().rpc("purge_rate_limit_windows", params).execute()

    response = await service.run(_purge_sync)
    removed = int(response.data or 0)
    logger.info(f"Purged {removed} expired rate limit windows")
    return removed
