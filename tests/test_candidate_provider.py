"""
Unit tests for personalized candidate discovery.
"""

import random
import unittest
from datetime import date
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from candidate_provider import RecommendationCandidateProvider
from movie_catalog import MovieCatalog, SORT_BY_QUALITY, SORT_BY_POPULARITY
from movie_models import Movie, RatedMovie
from ranking_errors import NoCandidateFound

def make_movie(movie_id, genres=(28,), year=2000, poster="/poster.jpg", vote_average=7.5, vote_count=10000):
    return Movie(
        id=movie_id,
        title=f"Movie {movie_id}",
        genre_ids=tuple(genres),
        release_date=date(year, 6, 1),
        poster_path=poster,
        vote_average=vote_average,
        vote_count=vote_count
    )

class FakeCatalog(MovieCatalog):
    """Returns one canned result list per discover() call."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.filters = []

    def discover(self, filters):
        self.filters.append(filters)
        if not self.responses:
            return []
        return self.responses.pop(0)

HISTORY = [
    RatedMovie(make_movie(1, genres=(28,), year=1995), 9.0),
    RatedMovie(make_movie(2, genres=(28, 12), year=2005), 8.0),
    RatedMovie(make_movie(3, genres=(18,), year=1980), 4.0),
]

class TestBuildFilters(unittest.TestCase):

    def setUp(self):
        self.provider = RecommendationCandidateProvider(FakeCatalog(), rng=random.Random(1))

    def test_preferred_genre_and_era(self):
        filters = self.provider.build_filters(HISTORY)
        self.assertEqual(filters.genre_id, 28)
        # Weighted year of the 9 (1995) and the 8 (2005) is 1998.3
        self.assertEqual(filters.year_range, (1988, 2008))
        self.assertEqual(filters.sort_by, SORT_BY_QUALITY)
        self.assertGreaterEqual(filters.page, 1)
        self.assertLessEqual(filters.page, 5)

    def test_quality_thresholds_follow_selectivity(self):
        filters = self.provider.build_filters(HISTORY)
        self.assertEqual(filters.min_vote_count, 8200)
        self.assertAlmostEqual(filters.min_score, 5.9)

        self.provider.set_selectivity(1.0)
        filters = self.provider.build_filters(HISTORY)
        self.assertEqual(filters.min_vote_count, 25000)
        self.assertAlmostEqual(filters.min_score, 8.0)

    def test_genre_filter_overrides_preference(self):
        filters = self.provider.build_filters(HISTORY, genre_filter=35)
        self.assertEqual(filters.genre_id, 35)

    def test_no_high_ratings_means_no_year_window(self):
        history = [RatedMovie(make_movie(i), 5.0) for i in range(1, 4)]
        filters = self.provider.build_filters(history)
        self.assertIsNone(filters.year_range)

class TestNextCandidate(unittest.TestCase):

    def test_filters_quality_and_exclusions(self):
        good = make_movie(40)
        catalog = FakeCatalog([
            make_movie(10, poster=None),
            make_movie(11, vote_count=50),
            make_movie(12, vote_average=4.0),
            make_movie(1),
            make_movie(13),
            good,
        ])
        provider = RecommendationCandidateProvider(catalog, rng=random.Random(3))
        watchlist = [make_movie(13)]

        movie = provider.next(HISTORY, watchlist, excluded_ids={99})
        self.assertEqual(movie, good)
        self.assertEqual(len(catalog.filters), 1)

    def test_fallback_to_popular(self):
        catalog = FakeCatalog(
            [make_movie(10, poster=None)],
            [make_movie(1), make_movie(50, vote_count=10)]
        )
        provider = RecommendationCandidateProvider(catalog, rng=random.Random(3))

        movie = provider.next(HISTORY, [], excluded_ids=set())
        self.assertEqual(movie.id, 50)
        fallback = catalog.filters[1]
        self.assertEqual(fallback.sort_by, SORT_BY_POPULARITY)
        self.assertIsNone(fallback.genre_id)
        self.assertIsNone(fallback.min_vote_count)

    def test_nothing_found(self):
        provider = RecommendationCandidateProvider(FakeCatalog([], [make_movie(1)]))
        with self.assertRaises(NoCandidateFound):
            provider.next(HISTORY, [], excluded_ids=set())

    def test_deterministic_with_seeded_rng(self):
        results = [make_movie(i) for i in range(20, 30)]
        picks = []
        for _ in range(2):
            provider = RecommendationCandidateProvider(FakeCatalog(list(results)), rng=random.Random(42))
            picks.append(provider.next(HISTORY, [], excluded_ids=set()).id)
        self.assertEqual(picks[0], picks[1])

if __name__ == '__main__':
    unittest.main()
