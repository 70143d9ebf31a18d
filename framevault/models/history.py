from enum import Enum

from pydantic import BaseModel, Field


class HistorySource(str, Enum):
    WATCHED = "watched"
    COLLECTION = "collection"


class HistoryItem(BaseModel):
    tmdb_id: int
    source: HistorySource
    genres: frozenset[int] = Field(default_factory=frozenset)


class HistorySnapshot(BaseModel):
    """What a user has already seen or saved, split by origin."""

    watched: list[int] = Field(default_factory=list, description="Watched TMDB ids, most recent first")
    collected: set[int] = Field(default_factory=set, description="TMDB ids across all owned collections")
    logged: set[int] = Field(default_factory=set, description="Every logged TMDB id regardless of status")
    complete: bool = Field(default=True, description="False when a history source could not be read")

    @property
    def is_empty(self) -> bool:
        return not self.watched and not self.collected

    def exclusion_ids(self) -> set[int]:
        return set(self.watched) | self.collected | self.logged
