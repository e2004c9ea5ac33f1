"""
Personalized candidate discovery for the comparison flow.
"""

import logging
import random

from movie_catalog import DiscoverFilters, SORT_BY_QUALITY, SORT_BY_POPULARITY
from ranking_errors import NoCandidateFound
from taste_profile import top_rated, genre_affinity, preferred_year
from utils import (
    TOP_K_RATED, YEAR_WINDOW, MAX_DISCOVER_PAGE, DEFAULT_SELECTIVITY,
    calculate_min_requirements
)

logger = logging.getLogger(__name__)


class RecommendationCandidateProvider:
    """
    Finds an unseen movie that fits the user's taste.

    The taste signal is the favourite genre and the preferred release era of
    the user's top-rated movies. Results are filtered for quality using the
    selectivity thresholds.
    """

    def __init__(self, catalog, rng=None, selectivity=DEFAULT_SELECTIVITY):
        self.catalog = catalog
        self.rng = rng or random.Random()
        self.set_selectivity(selectivity)

    def set_selectivity(self, selectivity):
        self.selectivity = selectivity
        self.min_vote_count, self.min_score = calculate_min_requirements(selectivity)

    def build_filters(self, rated_movies, genre_filter=None):
        """
        Build the discover query for the preferred genre and era.

        Args:
            rated_movies: Iterable of RatedMovie
            genre_filter: Explicit genre id chosen by the user, overrides the preferred genre

        Returns:
            DiscoverFilters
        """
        top = top_rated(list(rated_movies), TOP_K_RATED)
        scores = genre_affinity(top)
        genre_id = genre_filter
        if genre_id is None and scores:
            genre_id = max(scores, key=scores.get)

        year = preferred_year(top)
        year_range = None
        if year is not None:
            center = int(round(year))
            year_range = (center - YEAR_WINDOW, center + YEAR_WINDOW)

        return DiscoverFilters(
            genre_id=genre_id,
            year_range=year_range,
            min_vote_count=self.min_vote_count,
            min_score=self.min_score,
            sort_by=SORT_BY_QUALITY,
            page=self.rng.randint(1, MAX_DISCOVER_PAGE)
        )

    def _passes_quality(self, movie):
        return (
            bool(movie.poster_path)
            and movie.vote_count >= self.min_vote_count
            and movie.vote_average >= self.min_score
        )

    def next(self, rated_movies, watchlist, excluded_ids, genre_filter=None):
        """
        Pick the next candidate movie.

        Args:
            rated_movies: Iterable of RatedMovie
            watchlist: Iterable of Movie the user has not seen yet
            excluded_ids: Ids that must not be offered (rated, watchlisted, compared)
            genre_filter: Optional genre id chosen by the user

        Returns:
            Movie

        Raises:
            NoCandidateFound: if nothing survives filtering, fallback included
            CatalogError: if the catalog fails
        """
        rated_movies = list(rated_movies)
        excluded = set(excluded_ids)
        excluded.update(m.id for m in rated_movies)
        excluded.update(m.id for m in watchlist)

        filters = self.build_filters(rated_movies, genre_filter)
        logger.debug("Discovering candidates with %s", filters)

        pool = [
            m for m in self.catalog.discover(filters)
            if m.id not in excluded and self._passes_quality(m)
        ]

        if not pool:
            fallback = DiscoverFilters(
                sort_by=SORT_BY_POPULARITY,
                page=self.rng.randint(1, MAX_DISCOVER_PAGE)
            )
            logger.debug("No personalized candidates, falling back to %s", fallback)
            pool = [m for m in self.catalog.discover(fallback) if m.id not in excluded]

        if not pool:
            raise NoCandidateFound("No unseen movies matched the current filters")

        return self.rng.choice(pool)
