"""
Movie catalog access: the interface the engine consumes and its TMDB implementation.
"""

import logging
import requests
from dataclasses import dataclass
from typing import Optional, Tuple
from tmdbv3api import TMDb, Movie as TmdbMovie
from tmdbv3api.exceptions import TMDbException

from movie_models import movie_from_tmdb
from ranking_errors import CatalogError
from utils import get_tmdb_api_key

logger = logging.getLogger(__name__)

SORT_BY_QUALITY = "vote_average.desc"
SORT_BY_POPULARITY = "popularity.desc"


@dataclass(frozen=True)
class DiscoverFilters:
    genre_id: Optional[int] = None
    year_range: Optional[Tuple[int, int]] = None
    min_vote_count: Optional[int] = None
    min_score: Optional[float] = None
    sort_by: str = SORT_BY_POPULARITY
    page: int = 1


class MovieCatalog:
    """Query interface over an external movie catalog."""

    def search_by_title(self, query, page=1):
        raise NotImplementedError

    def discover(self, filters):
        raise NotImplementedError

    def get_by_id(self, movie_id):
        raise NotImplementedError

    def now_playing(self, page=1):
        raise NotImplementedError


def _normalize_results(results):
    """Turn raw result payloads into Movies, dropping malformed entries."""
    movies = []
    for payload in results:
        try:
            movies.append(movie_from_tmdb(payload))
        except CatalogError as e:
            logger.warning("Skipping catalog record: %s", e)
    return movies


class TmdbCatalog(MovieCatalog):
    """
    MovieCatalog backed by The Movie Database v3 API.

    Search and discover go straight to the REST endpoints; single-movie
    details go through tmdbv3api.
    """

    BASE_URL = "https://api.themoviedb.org/3"

    def __init__(self, api_key=None, timeout=10, language="en-US"):
        self.api_key = api_key or get_tmdb_api_key()
        self.timeout = timeout
        self.language = language
        if not self.api_key:
            logger.warning("TMDB_API_KEY not set")

        tmdb = TMDb()
        tmdb.api_key = self.api_key
        tmdb.language = language
        self._movie_api = TmdbMovie()

    def _get(self, endpoint, params=None):
        """GET a TMDB endpoint and return its decoded JSON body."""
        url = f"{self.BASE_URL}{endpoint}"
        params = dict(params or {})
        params["api_key"] = self.api_key
        params["language"] = self.language

        try:
            response = requests.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"TMDB request to {endpoint} failed: {e}")
            raise CatalogError(f"TMDB request failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"TMDB {endpoint} returned HTTP {response.status_code}")
            raise CatalogError(f"TMDB returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise CatalogError("TMDB returned a non-JSON body") from e

        if not isinstance(data, dict):
            raise CatalogError("TMDB returned an unexpected payload")
        return data

    def _results(self, data):
        results = data.get("results")
        if not isinstance(results, list):
            raise CatalogError("Invalid API response format")
        return _normalize_results(results)

    def search_by_title(self, query, page=1):
        data = self._get("/search/movie", {
            "query": query,
            "page": page,
            "include_adult": "false"
        })
        return self._results(data)

    def now_playing(self, page=1):
        data = self._get("/movie/now_playing", {"page": page})
        return self._results(data)

    def discover(self, filters):
        params = {
            "sort_by": filters.sort_by,
            "page": filters.page,
            "include_adult": "false"
        }
        if filters.genre_id is not None:
            params["with_genres"] = str(filters.genre_id)
        if filters.year_range:
            start_year, end_year = filters.year_range
            params["primary_release_date.gte"] = f"{start_year}-01-01"
            params["primary_release_date.lte"] = f"{end_year}-12-31"
        if filters.min_vote_count is not None:
            params["vote_count.gte"] = filters.min_vote_count
        if filters.min_score is not None:
            params["vote_average.gte"] = filters.min_score

        data = self._get("/discover/movie", params)
        return self._results(data)

    def get_by_id(self, movie_id):
        try:
            details = self._movie_api.details(movie_id)
        except TMDbException as e:
            logger.error(f"TMDB details for {movie_id} failed: {e}")
            raise CatalogError(f"TMDB details failed for {movie_id}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise CatalogError(f"TMDB request failed: {e}") from e
        return movie_from_tmdb(details)
