import asyncio
from collections import Counter

from loguru import logger

from framevault.core.constants import TOP_GENRES_LIMIT, WATCHED_HISTORY_CAP
from framevault.core.errors import UpstreamUnavailable
from framevault.core.security import redact_identity
from framevault.models.history import HistoryItem, HistorySnapshot, HistorySource
from framevault.models.taste_profile import GenreWeight, TasteProfile
from framevault.services.catalog import CatalogGateway
from framevault.services.history import HistoryStore
from framevault.services.tmdb.genre import UnknownGenre

# Concurrent genre lookups per profile build
GENRE_LOOKUP_CONCURRENCY = 8


class TasteProfileBuilder:
    """
    Builds a taste profile by counting genre votes.

    Design principles:
    - Each origin (watched log, collections) is deduplicated on its own.
    - A title present in both origins votes twice: watching and keeping it is a stronger signal.
    - One vote per item per genre, no decay, no normalization.
    - Ties between genres break on ascending genre id so output is reproducible.
    """

    def __init__(
        self,
        history_store: HistoryStore,
        catalog: CatalogGateway,
        watched_cap: int = WATCHED_HISTORY_CAP,
        top_n: int = TOP_GENRES_LIMIT,
    ):
        self.history_store = history_store
        self.catalog = catalog
        self.watched_cap = watched_cap
        self.top_n = top_n

    async def build(self, user_id: str) -> TasteProfile:
        history = await self.load_history(user_id)
        return await self.build_from_history(history)

    async def load_history(self, user_id: str) -> HistorySnapshot:
        """
        Read every history origin for the user.

        A failing origin is recorded as missing (complete=False) instead of
        aborting, so whatever was read can still be excluded from picks.
        """
        results = await asyncio.gather(
            self.history_store.get_watched_tmdb_ids(user_id, self.watched_cap),
            self.history_store.get_collection_tmdb_ids(user_id),
            self.history_store.get_logged_tmdb_ids(user_id, self.watched_cap),
            return_exceptions=True,
        )

        complete = True
        for result in results:
            if isinstance(result, UpstreamUnavailable):
                complete = False
            elif isinstance(result, BaseException):
                raise result

        watched, collected, logged = (r if not isinstance(r, BaseException) else None for r in results)
        snapshot = HistorySnapshot(
            watched=list(watched or [])[: self.watched_cap],
            collected=set(collected or ()),
            logged=set(logged or ()),
            complete=complete,
        )
        if not complete:
            logger.warning(f"[{redact_identity(user_id)}] History partially unavailable; taste profile disabled")
        return snapshot

    async def build_from_history(self, history: HistorySnapshot) -> TasteProfile:
        if not history.complete or history.is_empty:
            return TasteProfile.empty()

        items = await self._resolve_items(history)
        if items is None:
            return TasteProfile.empty()

        votes: Counter[int] = Counter()
        contributing: set[int] = set()
        for item in items:
            if not item.genres:
                continue
            contributing.add(item.tmdb_id)
            votes.update(item.genres)

        if not contributing:
            return TasteProfile.empty()

        ranked = sorted(votes.items(), key=lambda kv: (-kv[1], kv[0]))[: self.top_n]
        return TasteProfile(
            top_genres=[GenreWeight(id=gid, name=self._genre_name(gid), weight=float(count)) for gid, count in ranked],
            sample_size=len(contributing),
        )

    async def _resolve_items(self, history: HistorySnapshot) -> list[HistoryItem] | None:
        """Attach genres to every history item, or None if the catalog could not answer for all of them."""
        distinct = list(dict.fromkeys([*history.watched, *sorted(history.collected)]))
        semaphore = asyncio.Semaphore(GENRE_LOOKUP_CONCURRENCY)

        async def lookup(tmdb_id: int) -> frozenset[int]:
            async with semaphore:
                return await self.catalog.get_genres(tmdb_id)

        results = await asyncio.gather(*(lookup(tmdb_id) for tmdb_id in distinct), return_exceptions=True)

        genres_by_id: dict[int, frozenset[int]] = {}
        for tmdb_id, result in zip(distinct, results):
            if isinstance(result, UpstreamUnavailable):
                logger.warning(f"Genre lookup failed for {tmdb_id}; falling back to an empty taste profile")
                return None
            if isinstance(result, BaseException):
                raise result
            genres_by_id[tmdb_id] = result

        items = [
            HistoryItem(tmdb_id=tmdb_id, source=HistorySource.WATCHED, genres=genres_by_id[tmdb_id])
            for tmdb_id in dict.fromkeys(history.watched)
        ]
        items.extend(
            HistoryItem(tmdb_id=tmdb_id, source=HistorySource.COLLECTION, genres=genres_by_id[tmdb_id])
            for tmdb_id in sorted(history.collected)
        )
        return items

    def _genre_name(self, genre_id: int) -> str | None:
        try:
            return self.catalog.get_genre_name(genre_id)
        except UnknownGenre:
            return None
