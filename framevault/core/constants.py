"""
Core constants used across the application. Keep these simple and documented.
"""

from typing import Final

# Smart Picks request shaping
DEFAULT_SMART_PICKS_LIMIT: Final[int] = 6
MAX_SMART_PICKS_LIMIT: Final[int] = 24

# Taste profile
WATCHED_HISTORY_CAP: Final[int] = 300
TOP_GENRES_LIMIT: Final[int] = 8

# Candidate pool is oversized so filtering still leaves enough picks
CANDIDATE_POOL_MULTIPLIER: Final[int] = 4
CANDIDATE_POOL_MIN: Final[int] = 40
CANDIDATE_MIN_VOTE_COUNT: Final[int] = 150
# Discover pages of 20 titles each; stop after 200
CATALOG_MAX_PAGES: Final[int] = 10

FALLBACK_RATIONALE: Final[str] = "Trending with the community"

RECOMMENDATIONS_BUCKET: Final[str] = "recommendations"

# Window granularity (seconds) per rate-limit bucket
BUCKET_WINDOW_SECONDS: Final[dict[str, int]] = {
    "search": 60,
    "movie": 60,
    "export": 60,
    "providers": 60,
    RECOMMENDATIONS_BUCKET: 60,
}

# Plans allowed to request Smart Picks
SMART_PICKS_PLANS: Final[frozenset[str]] = frozenset({"pro"})
