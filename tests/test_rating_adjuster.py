"""
Unit tests for pairwise rating updates.
"""

import unittest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from movie_models import Movie, RatedMovie
from rating_adjuster import (
    MAX_DELTA, MIN_DELTA,
    expected_win_probability, rating_deltas, adjust, tough_choice, tough_choice_known
)

def rated(movie_id, rating):
    return RatedMovie(Movie(id=movie_id, title=f"Movie {movie_id}"), rating)

class TestExpectedWinProbability(unittest.TestCase):

    def test_equal_ratings_are_even(self):
        self.assertAlmostEqual(expected_win_probability(5.0, 5.0), 0.5)

    def test_favorite_is_expected_to_win(self):
        self.assertGreater(expected_win_probability(8.0, 4.0), 0.9)
        self.assertLess(expected_win_probability(4.0, 8.0), 0.1)

class TestAdjust(unittest.TestCase):

    def test_upset_win(self):
        """A 6 beating an 8 gains more than the 8 loses (upset bonus)."""
        winner, loser = adjust(rated(1, 6.0), rated(2, 8.0))
        self.assertAlmostEqual(winner.user_rating, 6.48, places=2)
        self.assertAlmostEqual(loser.user_rating, 7.62, places=2)

    def test_even_match(self):
        winner, loser = adjust(rated(1, 5.0), rated(2, 5.0))
        self.assertAlmostEqual(winner.user_rating, 5.25)
        self.assertAlmostEqual(loser.user_rating, 4.75)

    def test_expected_win_moves_at_least_min_delta(self):
        winner, loser = adjust(rated(1, 9.0), rated(2, 3.0))
        self.assertAlmostEqual(winner.user_rating, 9.0 + MIN_DELTA)
        self.assertAlmostEqual(loser.user_rating, 3.0 - MIN_DELTA)

    def test_ratings_stay_in_range(self):
        winner, loser = adjust(rated(1, 10.0), rated(2, 9.5))
        self.assertEqual(winner.user_rating, 10.0)

        winner, loser = adjust(rated(1, 1.5), rated(2, 1.0))
        self.assertEqual(loser.user_rating, 1.0)

    def test_deltas_never_exceed_cap(self):
        for winner_rating in (1.0, 3.0, 5.0, 7.0, 10.0):
            for loser_rating in (1.0, 3.0, 5.0, 7.0, 10.0):
                gain, loss = rating_deltas(winner_rating, loser_rating)
                self.assertGreaterEqual(gain, MIN_DELTA)
                self.assertGreaterEqual(loss, MIN_DELTA)
                self.assertLessEqual(gain, MAX_DELTA)
                self.assertLessEqual(loss, MAX_DELTA)

    def test_upset_gains_at_least_expected_win(self):
        grid = (1.0, 2.5, 4.0, 5.5, 7.0, 8.5, 10.0)
        for lo in grid:
            for hi in grid:
                if lo >= hi:
                    continue
                with self.subTest(lo=lo, hi=hi):
                    self.assertGreaterEqual(rating_deltas(lo, hi)[0], rating_deltas(hi, lo)[0])

    def test_returns_new_values(self):
        """Inputs are never mutated."""
        original = rated(1, 6.0)
        adjust(original, rated(2, 8.0))
        self.assertEqual(original.user_rating, 6.0)

    def test_elo_tracks_user_rating(self):
        winner, _ = adjust(rated(1, 6.0), rated(2, 8.0))
        self.assertAlmostEqual(winner.elo_rating, winner.user_rating * 10)

class TestToughChoice(unittest.TestCase):

    def test_lower_candidate_nudged_above_midpoint(self):
        candidate, known = tough_choice(rated(1, 6.0), rated(2, 8.0))
        self.assertAlmostEqual(candidate.user_rating, 7.1)
        self.assertAlmostEqual(known.user_rating, 6.9)

    def test_lower_known_nudged_above_midpoint(self):
        candidate, known = tough_choice(rated(1, 8.0), rated(2, 6.0))
        self.assertAlmostEqual(candidate.user_rating, 6.9)
        self.assertAlmostEqual(known.user_rating, 7.1)

    def test_tie_favors_candidate(self):
        candidate, known = tough_choice(rated(1, 7.0), rated(2, 7.0))
        self.assertAlmostEqual(candidate.user_rating, 7.1)
        self.assertAlmostEqual(known.user_rating, 6.9)

    def test_clamped_at_top(self):
        candidate, known = tough_choice(rated(1, 10.0), rated(2, 10.0))
        self.assertEqual(candidate.user_rating, 10.0)
        self.assertAlmostEqual(known.user_rating, 9.9)

class TestToughChoiceKnown(unittest.TestCase):

    def test_order_preserved(self):
        first, second = tough_choice_known(rated(1, 8.0), rated(2, 6.0))
        self.assertAlmostEqual(first.user_rating, 7.05)
        self.assertAlmostEqual(second.user_rating, 6.95)

        first, second = tough_choice_known(rated(1, 6.0), rated(2, 8.0))
        self.assertAlmostEqual(first.user_rating, 6.95)
        self.assertAlmostEqual(second.user_rating, 7.05)

    def test_tie_keeps_first_on_top(self):
        first, second = tough_choice_known(rated(1, 7.0), rated(2, 7.0))
        self.assertGreater(first.user_rating, second.user_rating)

if __name__ == '__main__':
    unittest.main()
