from framevault.services.rate_limit.limiter import RateLimiter, fixed_window
from framevault.services.rate_limit.store import RateLimitStore, RedisRateLimitStore, SupabaseRateLimitStore

__all__ = [
    "RateLimiter",
    "RateLimitStore",
    "RedisRateLimitStore",
    "SupabaseRateLimitStore",
    "fixed_window",
]
