"""
Movie records shared by the rating, selection and search components.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional, Tuple

from utils import MIN_RATING, MAX_RATING, clamp
from ranking_errors import CatalogError

MAX_GENRES = 3

@dataclass(frozen=True)
class Movie:
    """A catalog fact. Never mutated once built."""
    id: int
    title: str
    genre_ids: Tuple[int, ...] = field(default_factory=tuple)
    release_date: Optional[date] = None
    poster_path: Optional[str] = None
    overview: str = ""
    vote_average: float = 0.0
    vote_count: int = 0

    @property
    def release_year(self):
        return self.release_date.year if self.release_date else None

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "genre_ids": list(self.genre_ids),
            "release_date": self.release_date.isoformat() if self.release_date else None,
            "poster_path": self.poster_path,
            "overview": self.overview,
            "vote_average": self.vote_average,
            "vote_count": self.vote_count
        }


@dataclass(frozen=True)
class RatedMovie:
    """
    A movie together with the user's judgment of it.

    The rating is clamped into [1, 10] on construction; elo_rating is derived
    from it so the two scales always agree.
    """
    movie: Movie
    user_rating: float

    def __post_init__(self):
        object.__setattr__(self, "user_rating", clamp(float(self.user_rating), MIN_RATING, MAX_RATING))

    @property
    def elo_rating(self):
        return self.user_rating * 10

    @property
    def id(self):
        return self.movie.id

    @property
    def title(self):
        return self.movie.title

    @property
    def genre_ids(self):
        return self.movie.genre_ids

    @property
    def release_year(self):
        return self.movie.release_year

    def with_rating(self, rating):
        return replace(self, user_rating=rating)

    def to_dict(self):
        data = self.movie.to_dict()
        data["user_rating"] = self.user_rating
        return data


def _field(payload, name, default=None):
    """Read a field from either a dict payload or a tmdbv3api attribute object."""
    if isinstance(payload, dict):
        value = payload.get(name, default)
    else:
        try:
            value = getattr(payload, name)
        except (AttributeError, KeyError):
            value = default
    return default if value is None else value

def parse_release_date(value):
    """Parse a TMDB 'YYYY-MM-DD' date; anything else becomes None."""
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except ValueError:
        return None

def _extract_genre_ids(payload):
    genre_ids = _field(payload, "genre_ids")
    if genre_ids is None:
        # Detail payloads carry full genre objects instead of ids
        genre_ids = []
        for g in _field(payload, "genres", []) or []:
            gid = _field(g, "id")
            if gid is not None:
                genre_ids.append(gid)

    result = []
    for gid in genre_ids:
        try:
            result.append(int(gid))
        except (TypeError, ValueError):
            continue
    return tuple(result[:MAX_GENRES])

def movie_from_tmdb(payload):
    """
    Normalize a TMDB movie payload into a Movie.

    Args:
        payload: dict from the REST API or an object returned by tmdbv3api

    Returns:
        Movie

    Raises:
        CatalogError: if the payload has no usable id or title
    """
    movie_id = _field(payload, "id")
    title = _field(payload, "title")
    if isinstance(movie_id, bool) or not isinstance(movie_id, int):
        raise CatalogError(f"Malformed catalog record: bad id {movie_id!r}")
    if not isinstance(title, str) or not title.strip():
        raise CatalogError(f"Malformed catalog record {movie_id}: missing title")

    try:
        vote_average = float(_field(payload, "vote_average", 0.0))
        vote_count = max(0, int(_field(payload, "vote_count", 0)))
    except (TypeError, ValueError):
        raise CatalogError(f"Malformed catalog record {movie_id}: bad vote data")

    return Movie(
        id=movie_id,
        title=title,
        genre_ids=_extract_genre_ids(payload),
        release_date=parse_release_date(_field(payload, "release_date")),
        poster_path=_field(payload, "poster_path") or None,
        overview=_field(payload, "overview", "") or "",
        vote_average=vote_average,
        vote_count=vote_count
    )

def movie_from_dict(data):
    """Rebuild a Movie from Movie.to_dict() output."""
    return Movie(
        id=int(data["id"]),
        title=data["title"],
        genre_ids=_extract_genre_ids(data),
        release_date=parse_release_date(data.get("release_date")),
        poster_path=data.get("poster_path"),
        overview=data.get("overview") or "",
        vote_average=float(data.get("vote_average") or 0.0),
        vote_count=int(data.get("vote_count") or 0)
    )

def rated_movie_from_dict(data):
    return RatedMovie(movie=movie_from_dict(data), user_rating=float(data["user_rating"]))

def seed_rating(movie):
    """Starting rating for a movie entering a comparison: its catalog score."""
    return RatedMovie(movie=movie, user_rating=movie.vote_average)
