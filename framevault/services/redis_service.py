import redis.asyncio as redis
from loguru import logger

from framevault.core.config import settings


class RedisService:
    """Lazily created, process-shared Redis connection pool."""

    def __init__(self) -> None:
        self._client: redis.Redis | None = None
        if not settings.REDIS_URL:
            logger.warning("REDIS_URL is not set. Rate limiting will fail closed until configured.")

    async def get_client(self) -> redis.Redis:
        if self._client is None:
            logger.info("Creating Redis client for RedisService")
            self._client = redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                encoding="utf-8",
                socket_connect_timeout=5,
                socket_timeout=5,
                max_connections=settings.REDIS_MAX_CONNECTIONS,
                health_check_interval=30,
                socket_keepalive=True,
            )
        return self._client

    async def close(self) -> None:
        """Close and disconnect the Redis client"""
        if self._client is not None:
            try:
                await self._client.aclose()
                logger.info("RedisService client closed")
            except (redis.RedisError, OSError) as exc:
                logger.warning(f"Failed to close RedisService client: {exc}")
            finally:
                self._client = None


redis_service = RedisService()
