"""
Shared fixtures for the Smart Picks test suite.

Provides in-memory stand-ins for every collaborator (rate-limit counters,
history, catalog, plan lookup), a controllable clock, and a fully wired
SmartPicksService built from them.
"""

import asyncio
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

import pytest

from framevault.core.errors import UpstreamUnavailable
from framevault.models.picks import Candidate
from framevault.models.rate_limit import ActorType
from framevault.services.profile.builder import TasteProfileBuilder
from framevault.services.rate_limit.limiter import RateLimiter
from framevault.services.recommendation.ranker import CandidateRanker
from framevault.services.smart_picks import SmartPicksService
from framevault.services.tmdb.genre import movie_genre_name

ACTION, ADVENTURE, COMEDY, DRAMA, HORROR, ROMANCE, SCI_FI, THRILLER = 28, 12, 35, 18, 27, 10749, 878, 53


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class InMemoryRateLimitStore:
    """Atomic increment-or-create over a dict, guarded by an asyncio lock."""

    def __init__(self, events: list | None = None):
        self.counts: dict[tuple, int] = defaultdict(int)
        self.calls: list[tuple] = []
        self.events = events if events is not None else []
        self._lock = asyncio.Lock()

    async def increment_and_get(self, bucket, actor_type, actor_id, window_start, window_end) -> int:
        key = (bucket, actor_type, actor_id, window_start)
        async with self._lock:
            self.counts[key] += 1
            self.calls.append(key)
            self.events.append(("rate_limit", actor_type.value, actor_id))
            return self.counts[key]

    def count_for(self, bucket: str, actor_type: ActorType, actor_id: str) -> int:
        return sum(v for (b, t, a, _), v in self.counts.items() if b == bucket and t == actor_type and a == actor_id)


class FailingRateLimitStore:
    async def increment_and_get(self, *args) -> int:
        raise ConnectionError("redis is down")


class FakeHistoryStore:
    def __init__(
        self,
        watched: list[int] | None = None,
        collected: set[int] | None = None,
        logged: set[int] | None = None,
        failing: Iterable[str] = (),
        events: list | None = None,
    ):
        self.watched = watched or []
        self.collected = collected or set()
        self.logged = logged or set()
        self.failing = set(failing)
        self.events = events if events is not None else []

    def _maybe_fail(self, source: str) -> None:
        self.events.append(("history", source))
        if source in self.failing:
            raise UpstreamUnavailable(f"{source} unavailable")

    async def get_watched_tmdb_ids(self, user_id: str, capacity: int) -> list[int]:
        self._maybe_fail("watched")
        return self.watched[:capacity]

    async def get_collection_tmdb_ids(self, user_id: str) -> set[int]:
        self._maybe_fail("collections")
        return set(self.collected)

    async def get_logged_tmdb_ids(self, user_id: str, capacity: int) -> set[int]:
        self._maybe_fail("logged")
        return set(self.logged)


class FakeCatalog:
    def __init__(
        self,
        genres: dict[int, set[int]] | None = None,
        candidates: list[Candidate] | None = None,
        fail_genres: bool = False,
        fail_pool: bool = False,
        events: list | None = None,
    ):
        self.genres = genres or {}
        self.candidates = candidates or []
        self.fail_genres = fail_genres
        self.fail_pool = fail_pool
        self.events = events if events is not None else []
        self.genre_lookups: list[int] = []
        self.pool_requests: list[tuple[set[int], int]] = []

    async def get_genres(self, tmdb_id: int) -> frozenset[int]:
        self.events.append(("catalog", "genres"))
        self.genre_lookups.append(tmdb_id)
        if self.fail_genres:
            raise UpstreamUnavailable("catalog down")
        return frozenset(self.genres.get(tmdb_id, set()))

    def get_genre_name(self, genre_id: int) -> str:
        return movie_genre_name(genre_id)

    async def get_popular_candidates(self, excluding: Iterable[int], pool_size: int) -> list[Candidate]:
        excluded = set(excluding)
        self.events.append(("catalog", "candidates"))
        self.pool_requests.append((excluded, pool_size))
        if self.fail_pool:
            raise UpstreamUnavailable("discover down")
        pool = [c for c in self.candidates if c.tmdb_id not in excluded]
        pool.sort(key=lambda c: c.popularity, reverse=True)
        return pool[:pool_size]


class FakePlanStore:
    def __init__(self, plan: str = "pro", events: list | None = None):
        self.plan = plan
        self.events = events if events is not None else []

    async def get_effective_plan(self, user_id: str) -> str:
        self.events.append(("plan", user_id))
        return self.plan


def make_candidate(tmdb_id: int, genres: Iterable[int], popularity: float, title: str = "") -> Candidate:
    return Candidate(tmdb_id=tmdb_id, title=title or f"Movie {tmdb_id}", genres=frozenset(genres), popularity=popularity)


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 9, 15, 12, 0, 15, tzinfo=timezone.utc))


@pytest.fixture
def events() -> list:
    return []


@pytest.fixture
def rate_store(events) -> InMemoryRateLimitStore:
    return InMemoryRateLimitStore(events)


@pytest.fixture
def limiter(rate_store, clock) -> RateLimiter:
    return RateLimiter(rate_store, clock=clock)


@pytest.fixture
def catalog_candidates() -> list[Candidate]:
    return [
        make_candidate(101, {ACTION, ADVENTURE}, 900.0),
        make_candidate(102, {COMEDY}, 800.0),
        make_candidate(103, {SCI_FI, DRAMA}, 500.0),
        make_candidate(104, {HORROR}, 500.0),
        make_candidate(105, {DRAMA, ROMANCE}, 400.0),
        make_candidate(106, {SCI_FI, THRILLER}, 300.0),
        make_candidate(107, {ROMANCE}, 200.0),
        make_candidate(108, {THRILLER}, 100.0),
    ]


@pytest.fixture
def build_service(events, limiter):
    """Factory wiring a SmartPicksService from fakes; returns (service, history, catalog, plan_store)."""

    def _build(
        watched=None,
        collected=None,
        logged=None,
        genres=None,
        candidates=None,
        plan="pro",
        history_failing=(),
        fail_genres=False,
        fail_pool=False,
        user_limit=30,
        ip_limit=60,
    ):
        history = FakeHistoryStore(watched, collected, logged, failing=history_failing, events=events)
        catalog = FakeCatalog(genres, candidates, fail_genres=fail_genres, fail_pool=fail_pool, events=events)
        plan_store = FakePlanStore(plan, events=events)
        service = SmartPicksService(
            plan_store=plan_store,
            rate_limiter=limiter,
            profile_builder=TasteProfileBuilder(history, catalog),
            ranker=CandidateRanker(catalog),
            user_limit=user_limit,
            ip_limit=ip_limit,
        )
        return service, history, catalog, plan_store

    return _build
