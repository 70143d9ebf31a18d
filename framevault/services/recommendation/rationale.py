from framevault.core.constants import FALLBACK_RATIONALE
from framevault.models.picks import Candidate
from framevault.models.taste_profile import TasteProfile

MAX_RATIONALE_LINES = 2


class MissingGenreMetadata(LookupError):
    def __init__(self, genre_id: int):
        super().__init__(f"No display name for genre {genre_id}")
        self.genre_id = genre_id


class RationaleGenerator:
    """
    Deterministic, template-based explanations for a ranked pick.

    Output depends only on the profile and the candidate. Overlapping genres
    are reported in profile order, most significant first. Genres without a
    display name are skipped.
    """

    def explain(self, profile: TasteProfile, candidate: Candidate) -> list[str]:
        if profile.is_empty:
            return [FALLBACK_RATIONALE]

        named = [genre for genre in profile.top_genres if genre.name]
        if not named:
            raise MissingGenreMetadata(profile.top_genres[0].id)

        overlap = [genre for genre in named if genre.id in candidate.genres]
        if overlap:
            return [f"Because you love {genre.name}" for genre in overlap[:MAX_RATIONALE_LINES]]

        return [f"Because you're into {named[0].name}"]

    @staticmethod
    def fallback() -> list[str]:
        return [FALLBACK_RATIONALE]
