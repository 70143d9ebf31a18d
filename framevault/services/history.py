import asyncio
from typing import Any, Protocol

import httpx
from loguru import logger
from postgrest.exceptions import APIError as PostgrestAPIError

from framevault.core.config import settings
from framevault.core.errors import UpstreamUnavailable
from framevault.core.security import redact_identity
from framevault.services.supabase_service import SupabaseService, supabase_service

# Keeps PostgREST `in.(...)` filters within URL limits
MAX_IN = 200


class HistoryStore(Protocol):
    """Read-only view of what a user has watched, logged and collected."""

    async def get_watched_tmdb_ids(self, user_id: str, capacity: int) -> list[int]: ...

    async def get_collection_tmdb_ids(self, user_id: str) -> set[int]: ...

    async def get_logged_tmdb_ids(self, user_id: str, capacity: int) -> set[int]: ...


def _tmdb_ids(rows: list[dict[str, Any]] | None) -> list[int]:
    ids: list[int] = []
    for row in rows or []:
        try:
            ids.append(int(row["tmdb_id"]))
        except (KeyError, TypeError, ValueError):
            continue
    return ids


class SupabaseHistoryStore:
    """
    History reads over the view_logs, collections and collection_items tables.
    """

    def __init__(self, service: SupabaseService | None = None, timeout: float | None = None):
        self.service = service or supabase_service
        self.timeout = timeout if timeout is not None else settings.UPSTREAM_TIMEOUT_SECONDS

    async def _run(self, label: str, fn, *args):
        try:
            return await asyncio.wait_for(self.service.run(fn, *args), timeout=self.timeout)
        except (PostgrestAPIError, httpx.HTTPError, asyncio.TimeoutError) as e:
            logger.warning(f"History read '{label}' failed: {e}")
            raise UpstreamUnavailable(f"History read '{label}' failed") from e

    # ---------- sync queries (run in a worker thread) ----------
    def _watched_sync(self, user_id: str, capacity: int) -> list[dict[str, Any]]:
        resp = (
            self.service.get_client()
            .table("view_logs")
            .select("tmdb_id")
            .eq("user_id", user_id)
            .eq("status", "watched")
            .order("created_at", desc=True)
            .limit(capacity)
            .execute()
        )
        return resp.data or []

    def _logged_sync(self, user_id: str, capacity: int) -> list[dict[str, Any]]:
        resp = (
            self.service.get_client()
            .table("view_logs")
            .select("tmdb_id")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(capacity)
            .execute()
        )
        return resp.data or []

    def _collection_items_sync(self, user_id: str) -> list[dict[str, Any]]:
        client = self.service.get_client()
        collections = client.table("collections").select("id").eq("owner_id", user_id).execute()
        collection_ids = [row["id"] for row in (collections.data or []) if row.get("id")]

        rows: list[dict[str, Any]] = []
        for i in range(0, len(collection_ids), MAX_IN):
            chunk = collection_ids[i : i + MAX_IN]
            items = client.table("collection_items").select("tmdb_id").in_("collection_id", chunk).execute()
            rows.extend(items.data or [])
        return rows

    # ---------- async facade ----------
    async def get_watched_tmdb_ids(self, user_id: str, capacity: int) -> list[int]:
        rows = await self._run("watched", self._watched_sync, user_id, capacity)
        ordered: list[int] = []
        seen: set[int] = set()
        for tmdb_id in _tmdb_ids(rows):
            if tmdb_id in seen:
                continue
            seen.add(tmdb_id)
            ordered.append(tmdb_id)
        logger.debug(f"[{redact_identity(user_id)}] Loaded {len(ordered)} watched titles")
        return ordered

    async def get_collection_tmdb_ids(self, user_id: str) -> set[int]:
        rows = await self._run("collections", self._collection_items_sync, user_id)
        return set(_tmdb_ids(rows))

    async def get_logged_tmdb_ids(self, user_id: str, capacity: int) -> set[int]:
        rows = await self._run("logged", self._logged_sync, user_id, capacity)
        return set(_tmdb_ids(rows))
