from typing import Any

import httpx

from framevault.core.config import settings
from framevault.services.tmdb.client import TMDBClient


class TMDBService:
    """
    Thin wrapper over the TMDB endpoints Smart Picks reads.
    """

    def __init__(
        self,
        api_key: str,
        language: str = "en-US",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client = TMDBClient(api_key=api_key, language=language, timeout=timeout, transport=transport)

    async def close(self):
        """Close the underlying HTTP client."""
        await self.client.close()

    async def get_movie_details(self, movie_id: int) -> dict[str, Any]:
        """Get details of a specific movie, including its genres."""
        return await self.client.get(f"/movie/{movie_id}")

    async def get_discover(
        self,
        sort_by: str = "popularity.desc",
        page: int = 1,
        **kwargs,
    ) -> dict[str, Any]:
        """Get a page of discover results for movies."""
        params = {"page": page, "sort_by": sort_by, "include_adult": "false"}
        params.update(kwargs)
        return await self.client.get("/discover/movie", params=params)


def get_tmdb_service(language: str | None = None) -> TMDBService:
    if not settings.TMDB_API_KEY:
        raise RuntimeError("TMDB_API_KEY is not configured")
    return TMDBService(
        api_key=settings.TMDB_API_KEY,
        language=language or settings.TMDB_LANGUAGE,
        timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
    )
