from pydantic import Field

from framevault.models.base import CamelModel
from framevault.models.taste_profile import TasteProfile


class Candidate(CamelModel):
    tmdb_id: int
    title: str = ""
    genres: frozenset[int] = Field(default_factory=frozenset)
    popularity: float = 0.0
    release_year: int | None = None
    poster_path: str | None = None
    vote_average: float | None = None


class RankedPick(CamelModel):
    tmdb_id: int
    score: float
    rationale: list[str] = Field(default_factory=list, max_length=2)
    movie: Candidate


class SmartPicksOptions(CamelModel):
    limit: int | None = None
    exclude_tmdb_ids: set[int] = Field(default_factory=set)


class SmartPicksResult(CamelModel):
    picks: list[RankedPick] = Field(default_factory=list)
    profile: TasteProfile = Field(default_factory=TasteProfile)
