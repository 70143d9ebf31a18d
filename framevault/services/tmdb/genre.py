movie_genres = {
    28: "Action",
    12: "Adventure",
    16: "Animation",
    35: "Comedy",
    80: "Crime",
    99: "Documentary",
    18: "Drama",
    10751: "Family",
    14: "Fantasy",
    36: "History",
    27: "Horror",
    10402: "Music",
    9648: "Mystery",
    10749: "Romance",
    878: "Science Fiction",
    10770: "TV Movie",
    53: "Thriller",
    10752: "War",
    37: "Western",
}


class UnknownGenre(LookupError):
    def __init__(self, genre_id: int):
        super().__init__(f"Unknown TMDB genre id {genre_id}")
        self.genre_id = genre_id


def movie_genre_name(genre_id: int) -> str:
    """Human readable name for a TMDB movie genre id."""
    try:
        return movie_genres[genre_id]
    except KeyError:
        raise UnknownGenre(genre_id) from None
