import math
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timedelta, timezone

from loguru import logger

from framevault.core.constants import BUCKET_WINDOW_SECONDS
from framevault.core.errors import RateLimited
from framevault.core.security import redact_identity
from framevault.models.rate_limit import RateLimitActor, RateLimitDecision, RateLimitWindow
from framevault.services.rate_limit.store import RateLimitStore


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def fixed_window(now: datetime, window_seconds: int) -> tuple[datetime, datetime]:
    """Truncate `now` to the start of its fixed window and return (start, end)."""
    epoch = int(now.timestamp())
    start_epoch = epoch - (epoch % window_seconds)
    start = datetime.fromtimestamp(start_epoch, tz=timezone.utc)
    return start, start + timedelta(seconds=window_seconds)


class RateLimiter:
    """
    Fixed-window, multi-actor quota enforcement.

    Actors are charged in the order given. The first actor whose post-increment
    count exceeds its limit stops evaluation and rejects the request. Actors
    charged before it keep their increment: quotas are consumed per attempt and
    only reset when the window rolls over. Nothing is ever decremented.
    """

    def __init__(
        self,
        store: RateLimitStore,
        bucket_windows: Mapping[str, int] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.bucket_windows = dict(bucket_windows or BUCKET_WINDOW_SECONDS)
        self.clock = clock

    def window_seconds(self, bucket: str) -> int:
        try:
            return self.bucket_windows[bucket]
        except KeyError:
            raise ValueError(f"Unknown rate limit bucket: {bucket}") from None

    async def check(self, bucket: str, actors: Iterable[RateLimitActor]) -> RateLimitDecision:
        window_seconds = self.window_seconds(bucket)
        now = self.clock()
        window_start, window_end = fixed_window(now, window_seconds)
        charged: list[RateLimitWindow] = []

        for actor in actors:
            if not actor.actor_id:
                continue

            count = await self.store.increment_and_get(
                bucket, actor.actor_type, actor.actor_id, window_start, window_end
            )
            window = RateLimitWindow(
                bucket=bucket,
                actor_type=actor.actor_type,
                actor_id=actor.actor_id,
                window_start=window_start,
                window_end=window_end,
                count=count,
                limit=actor.limit,
            )
            charged.append(window)

            if window.exceeded:
                retry_after = max(1, math.ceil((window_end - now).total_seconds()))
                logger.info(
                    f"Rate limit hit on {bucket} for {actor.actor_type.value} "
                    f"{redact_identity(actor.actor_id)}: {count}/{actor.limit}, retry in {retry_after}s"
                )
                return RateLimitDecision(allowed=False, retry_after_seconds=retry_after, windows=charged)

        return RateLimitDecision(allowed=True, windows=charged)

    async def enforce(self, bucket: str, actors: Iterable[RateLimitActor]) -> RateLimitDecision:
        """Like check(), but raises RateLimited on rejection."""
        decision = await self.check(bucket, actors)
        if not decision.allowed:
            raise RateLimited(decision.retry_after_seconds, bucket=bucket)
        return decision
