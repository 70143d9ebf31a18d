import asyncio
from collections.abc import Iterable
from typing import Any, Protocol

import httpx
from cachetools import TTLCache
from loguru import logger

from framevault.core.config import settings
from framevault.core.constants import CANDIDATE_MIN_VOTE_COUNT, CATALOG_MAX_PAGES
from framevault.core.errors import UpstreamUnavailable
from framevault.models.picks import Candidate
from framevault.services.tmdb.genre import movie_genre_name
from framevault.services.tmdb.service import TMDBService


class CatalogGateway(Protocol):
    """Read-only access to catalog titles and their genre/popularity metadata."""

    async def get_genres(self, tmdb_id: int) -> frozenset[int]: ...

    def get_genre_name(self, genre_id: int) -> str: ...

    async def get_popular_candidates(self, excluding: Iterable[int], pool_size: int) -> list[Candidate]: ...


def _release_year(value: Any) -> int | None:
    if not value:
        return None
    try:
        return int(str(value)[:4])
    except (TypeError, ValueError):
        return None


def candidate_from_tmdb(item: dict[str, Any]) -> Candidate | None:
    """Build a Candidate from a TMDB discover result, or None if it has no usable id."""
    tmdb_id = item.get("id")
    if not isinstance(tmdb_id, int):
        return None
    genre_ids = item.get("genre_ids")
    if genre_ids is None:
        genre_ids = [g.get("id") for g in item.get("genres", []) if isinstance(g, dict)]
    return Candidate(
        tmdb_id=tmdb_id,
        title=item.get("title") or item.get("original_title") or "",
        genres=frozenset(g for g in genre_ids if isinstance(g, int)),
        popularity=float(item.get("popularity") or 0.0),
        release_year=_release_year(item.get("release_date")),
        poster_path=item.get("poster_path"),
        vote_average=item.get("vote_average"),
    )


class TMDBCatalogGateway:
    """
    Catalog reads backed by TMDB.

    Genre lookups go through a TTL cache owned by this gateway instance, so its
    lifetime is the gateway's lifetime. invalidate() and clear() drop entries
    early. Every upstream call is bounded by `timeout`; a call that fails or
    runs over raises UpstreamUnavailable.
    """

    def __init__(
        self,
        tmdb_service: TMDBService,
        timeout: float | None = None,
        cache_ttl: int | None = None,
        cache_size: int | None = None,
        min_vote_count: int = CANDIDATE_MIN_VOTE_COUNT,
    ):
        self.tmdb_service = tmdb_service
        self.timeout = timeout if timeout is not None else settings.UPSTREAM_TIMEOUT_SECONDS
        self.min_vote_count = min_vote_count
        self._genre_cache: TTLCache = TTLCache(
            maxsize=cache_size or settings.CATALOG_GENRE_CACHE_SIZE,
            ttl=cache_ttl or settings.CATALOG_GENRE_CACHE_TTL_SECONDS,
        )

    async def close(self) -> None:
        await self.tmdb_service.close()

    def invalidate(self, tmdb_id: int) -> None:
        self._genre_cache.pop(tmdb_id, None)

    def clear(self) -> None:
        self._genre_cache.clear()

    async def get_genres(self, tmdb_id: int) -> frozenset[int]:
        cached = self._genre_cache.get(tmdb_id)
        if cached is not None:
            return cached

        try:
            details = await asyncio.wait_for(self.tmdb_service.get_movie_details(tmdb_id), timeout=self.timeout)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                logger.debug(f"TMDB has no movie {tmdb_id}; treating it as genre-less")
                self._genre_cache[tmdb_id] = frozenset()
                return frozenset()
            raise UpstreamUnavailable(f"TMDB movie lookup failed for {tmdb_id}") from e
        except (httpx.HTTPError, asyncio.TimeoutError) as e:
            raise UpstreamUnavailable(f"TMDB movie lookup failed for {tmdb_id}") from e

        genres = frozenset(
            g["id"] for g in (details.get("genres") or []) if isinstance(g, dict) and isinstance(g.get("id"), int)
        )
        self._genre_cache[tmdb_id] = genres
        return genres

    def get_genre_name(self, genre_id: int) -> str:
        return movie_genre_name(genre_id)

    async def get_popular_candidates(self, excluding: Iterable[int], pool_size: int) -> list[Candidate]:
        """
        Page through popularity-sorted discover results until `pool_size` eligible
        candidates are collected. Pages fetched before a failure are kept.
        """
        excluded = set(excluding)
        seen: set[int] = set()
        pool: list[Candidate] = []
        page = 1

        while len(pool) < pool_size and page <= CATALOG_MAX_PAGES:
            try:
                data = await asyncio.wait_for(
                    self.tmdb_service.get_discover(
                        sort_by="popularity.desc", page=page, **{"vote_count.gte": self.min_vote_count}
                    ),
                    timeout=self.timeout,
                )
            except (httpx.HTTPError, asyncio.TimeoutError) as e:
                if pool:
                    logger.warning(f"Discover page {page} failed, continuing with {len(pool)} candidates: {e}")
                    break
                raise UpstreamUnavailable("TMDB discover is unavailable") from e

            results = data.get("results") or []
            for item in results:
                candidate = candidate_from_tmdb(item)
                if candidate is None or candidate.tmdb_id in excluded or candidate.tmdb_id in seen:
                    continue
                seen.add(candidate.tmdb_id)
                pool.append(candidate)

            total_pages = int(data.get("total_pages") or page)
            if not results or page >= total_pages:
                break
            page += 1

        pool.sort(key=lambda c: c.popularity, reverse=True)
        return pool[:pool_size]
