"""
The user's rated movies and watchlist.
"""

import json
import logging

from movie_models import RatedMovie, rated_movie_from_dict, movie_from_dict
from ranking_errors import AlreadyRated, InvalidRating, NotRated
from utils import MIN_RATING, MAX_RATING

logger = logging.getLogger(__name__)

RATED_MOVIES_KEY = "rated_movies"
WATCHLIST_KEY = "watchlist"


class MovieLibrary:
    """
    Rated set and watchlist, both keyed by movie id in insertion order.

    A movie id lives in at most one of the two.
    """

    def __init__(self, rated=None, watchlist=None):
        self.rated = {m.id: m for m in (rated or [])}
        self.watchlist = {m.id: m for m in (watchlist or [])}
        overlap = set(self.rated) & set(self.watchlist)
        for movie_id in overlap:
            del self.watchlist[movie_id]

    def __len__(self):
        return len(self.rated)

    def is_rated(self, movie_id):
        return movie_id in self.rated

    def in_watchlist(self, movie_id):
        return movie_id in self.watchlist

    def rated_movies(self):
        return list(self.rated.values())

    def watchlist_movies(self):
        return list(self.watchlist.values())

    def top_rated(self, limit=10):
        return sorted(self.rated.values(), key=lambda m: m.user_rating, reverse=True)[:limit]

    def rate(self, movie, rating):
        """
        Explicitly rate a movie, replacing any previous rating.

        Raises:
            InvalidRating: if rating is not a number within [1, 10]
        """
        try:
            rating = float(rating)
        except (TypeError, ValueError):
            raise InvalidRating(f"Rating must be a number, got {rating!r}")
        if not MIN_RATING <= rating <= MAX_RATING:
            raise InvalidRating("Please enter a valid rating between 1 and 10")

        rated = RatedMovie(movie=movie, user_rating=rating)
        self.rated[movie.id] = rated
        self.watchlist.pop(movie.id, None)
        logger.info("Rated %s (%s) at %.1f", movie.title, movie.id, rating)
        return rated

    def put_rated(self, rated_movie):
        """Store a RatedMovie as-is (no validation), keeping its position if already rated."""
        self.rated[rated_movie.id] = rated_movie
        self.watchlist.pop(rated_movie.id, None)

    def rerate(self, movie_id, rating):
        """
        Replace the rating of an already rated movie.

        Raises:
            NotRated: if movie_id has no rating yet
            InvalidRating: if rating is not a number within [1, 10]
        """
        existing = self.rated.get(movie_id)
        if existing is None:
            raise NotRated(f"Movie {movie_id} has not been rated")
        return self.rate(existing.movie, rating)

    def add_to_watchlist(self, movie):
        if movie.id in self.rated:
            raise AlreadyRated(f"{movie.title} is already rated")
        self.watchlist[movie.id] = movie
        return movie

    def remove_rated(self, movie_id):
        return self.rated.pop(movie_id, None)

    def remove_from_watchlist(self, movie_id):
        return self.watchlist.pop(movie_id, None)

    def snapshot(self):
        """Copy of both collections, for exact-state comparisons."""
        return dict(self.rated), dict(self.watchlist)

    def save(self, store):
        store.set(RATED_MOVIES_KEY, json.dumps([m.to_dict() for m in self.rated.values()]))
        store.set(WATCHLIST_KEY, json.dumps([m.to_dict() for m in self.watchlist.values()]))

    @classmethod
    def load(cls, store):
        """Rebuild a library from a store, skipping records that cannot be parsed."""
        rated = []
        for data in _load_records(store, RATED_MOVIES_KEY):
            try:
                rated.append(rated_movie_from_dict(data))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping stored rated movie %r: %s", data, e)

        watchlist = []
        for data in _load_records(store, WATCHLIST_KEY):
            try:
                watchlist.append(movie_from_dict(data))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping stored watchlist movie %r: %s", data, e)

        return cls(rated=rated, watchlist=watchlist)


def _load_records(store, key):
    raw = store.get(key)
    if not raw:
        return []
    try:
        records = json.loads(raw)
    except ValueError:
        logger.warning("Ignoring malformed stored value for %s", key)
        return []
    if not isinstance(records, list):
        return []
    return [r for r in records if isinstance(r, dict)]
