"""
Unit tests for utility functions and constants.
"""

import unittest
from unittest.mock import patch
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from utils import (
    SEARCH_WEIGHTS,
    BASELINE_MOVIES,
    GENRE_NAMES,
    clamp,
    calculate_min_requirements,
    get_poster_url,
    get_genre_name,
    get_tmdb_api_key
)

class TestUtilsConstants(unittest.TestCase):
    """Test utility constants and configurations."""

    def test_search_weights(self):
        self.assertEqual(set(SEARCH_WEIGHTS), {"similarity", "preference", "popularity"})
        self.assertAlmostEqual(sum(SEARCH_WEIGHTS.values()), 1.0)

    def test_baseline_movies(self):
        ids = [m["id"] for m in BASELINE_MOVIES]
        self.assertEqual(len(ids), 20)
        self.assertEqual(len(set(ids)), 20)
        for movie in BASELINE_MOVIES:
            self.assertIsInstance(movie["title"], str)

    def test_genre_names(self):
        self.assertEqual(GENRE_NAMES[28], "Action")
        self.assertEqual(get_genre_name(878), "Science Fiction")
        self.assertEqual(get_genre_name(-1), "Unknown")

class TestUtilsFunctions(unittest.TestCase):

    def test_clamp(self):
        self.assertEqual(clamp(1.5), 1.0)
        self.assertEqual(clamp(-0.2), 0.0)
        self.assertEqual(clamp(11, 1, 10), 10)

    def test_calculate_min_requirements(self):
        self.assertEqual(calculate_min_requirements(0.0), (1000, 5.0))
        self.assertEqual(calculate_min_requirements(1.0), (25000, 8.0))
        votes, score = calculate_min_requirements(0.5)
        self.assertEqual(votes, 13000)
        self.assertAlmostEqual(score, 6.5)
        # Out-of-range slider values are clamped
        self.assertEqual(calculate_min_requirements(2.0), (25000, 8.0))

    def test_get_poster_url(self):
        self.assertEqual(get_poster_url("/abc.jpg"), "https://image.tmdb.org/t/p/w342/abc.jpg")
        self.assertEqual(get_poster_url("/abc.jpg", "w92"), "https://image.tmdb.org/t/p/w92/abc.jpg")
        self.assertIsNone(get_poster_url(None))
        self.assertIsNone(get_poster_url(""))

    @patch('utils.st.secrets', {"TMDB_API_KEY": "from_secrets"})
    def test_api_key_from_secrets(self):
        self.assertEqual(get_tmdb_api_key(), "from_secrets")

    @patch.dict(os.environ, {"TMDB_API_KEY": "from_env"})
    @patch('utils.st.secrets', {})
    def test_api_key_from_environment(self):
        self.assertEqual(get_tmdb_api_key(), "from_env")

if __name__ == '__main__':
    unittest.main()
