from pydantic import Field

from framevault.models.base import CamelModel


class GenreWeight(CamelModel):
    id: int
    name: str | None = None
    weight: float


class TasteProfile(CamelModel):
    """
    Ranked genre affinity for one user, most significant genre first.

    An empty profile is the valid cold-start state, not an error.
    """

    top_genres: list[GenreWeight] = Field(default_factory=list)
    sample_size: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.top_genres

    def genre_ids(self) -> list[int]:
        return [genre.id for genre in self.top_genres]

    def weights(self) -> dict[int, float]:
        return {genre.id: genre.weight for genre in self.top_genres}

    @classmethod
    def empty(cls) -> "TasteProfile":
        return cls()
