from collections.abc import Iterable

from loguru import logger

from framevault.core.constants import CANDIDATE_POOL_MIN, CANDIDATE_POOL_MULTIPLIER
from framevault.models.picks import Candidate, RankedPick
from framevault.models.taste_profile import TasteProfile
from framevault.services.catalog import CatalogGateway


def pool_size_for(limit: int) -> int:
    return max(limit * CANDIDATE_POOL_MULTIPLIER, CANDIDATE_POOL_MIN)


def score_candidate(candidate: Candidate, weights: dict[int, float]) -> float:
    """Sum of profile weights for the genres the candidate shares with the profile."""
    return sum(weights[g] for g in candidate.genres if g in weights)


def rank_candidates(
    profile: TasteProfile, candidates: Iterable[Candidate], exclude: set[int], limit: int
) -> list[RankedPick]:
    """
    Order candidates by (score desc, popularity desc, tmdb id asc) and keep `limit`.

    With an empty profile every score is zero, so the order is exactly
    popularity descending.
    """
    weights = profile.weights()
    seen: set[int] = set()
    scored: list[tuple[float, Candidate]] = []
    for candidate in candidates:
        if candidate.tmdb_id in exclude or candidate.tmdb_id in seen:
            continue
        seen.add(candidate.tmdb_id)
        scored.append((score_candidate(candidate, weights), candidate))

    scored.sort(key=lambda pair: (-pair[0], -pair[1].popularity, pair[1].tmdb_id))
    return [
        RankedPick(tmdb_id=candidate.tmdb_id, score=score, movie=candidate) for score, candidate in scored[:limit]
    ]


class CandidateRanker:
    """Scores popular catalog titles against a taste profile."""

    def __init__(self, catalog: CatalogGateway):
        self.catalog = catalog

    async def rank(self, profile: TasteProfile, exclude_tmdb_ids: set[int], limit: int) -> list[RankedPick]:
        if limit < 1:
            raise ValueError("limit must be a positive integer")

        pool = await self.catalog.get_popular_candidates(exclude_tmdb_ids, pool_size_for(limit))
        picks = rank_candidates(profile, pool, exclude_tmdb_ids, limit)
        logger.debug(f"Ranked {len(pool)} candidates into {len(picks)} picks (profile genres={profile.genre_ids()})")
        return picks
