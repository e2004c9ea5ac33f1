"""
Typed failures raised by the preference engine.

All of them are expected, user-facing conditions: the caller can recover by
rating more movies, loosening the genre filter or retrying the catalog call.
"""


class RankingError(Exception):
    """Base class for every engine failure."""


class InsufficientHistory(RankingError):
    """Not enough rated movies for the requested comparison."""


class GenreUnderpopulated(RankingError):
    """The active genre filter leaves too few rated movies to compare."""

    def __init__(self, genre_id, required, available):
        self.genre_id = genre_id
        self.required = required
        self.available = available
        super().__init__(
            f"Genre {genre_id} has {available} rated movies, {required} needed"
        )


class NoCandidateFound(RankingError):
    """The catalog produced nothing usable after filtering and the fallback pass."""


class CatalogError(RankingError):
    """The movie catalog failed (network, HTTP status or malformed payload)."""


class AlreadyRated(RankingError):
    """The movie is already in the rated set."""


class InvalidRating(RankingError, ValueError):
    """An explicit rating outside [1, 10]."""


class NoActivePairing(RankingError):
    """resolve() was called without an outstanding comparison."""


class StalePairing(RankingError):
    """The outstanding candidate was rated or watchlisted outside the comparison."""


class NotRated(RankingError, KeyError):
    """The movie id is not in the rated set."""
