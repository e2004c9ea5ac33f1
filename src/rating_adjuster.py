"""
Pairwise rating updates (Elo family) for the comparison flow.

Ratings live on the user's 1-10 scale. Every function here is pure: it takes
RatedMovie values and returns new ones.
"""

from utils import MIN_RATING, MAX_RATING, clamp

K_FACTOR = 0.5
MIN_DELTA = 0.1
UPSET_BONUS = 0.1
MAX_DELTA = 0.7
RATING_SCALE = 4.0

TOUGH_OFFSET = 0.1
KNOWN_TOUGH_OFFSET = 0.05

def expected_win_probability(winner_rating, loser_rating):
    """
    Probability that the winner was expected to win, given both ratings.

    A four-point rating gap corresponds to 10:1 odds.
    """
    return 1.0 / (1.0 + 10 ** ((loser_rating - winner_rating) / RATING_SCALE))

def rating_deltas(winner_rating, loser_rating):
    """
    Compute (winner_increase, loser_decrease) for a decided comparison.

    Args:
        winner_rating: Current rating of the preferred movie
        loser_rating: Current rating of the other movie

    Returns:
        Tuple of non-negative floats, each at most MAX_DELTA
    """
    p = expected_win_probability(winner_rating, loser_rating)
    delta = K_FACTOR * (1 - p)

    winner_increase = max(MIN_DELTA, delta)
    loser_decrease = max(MIN_DELTA, delta)

    # Beating a higher-rated movie earns a little extra
    if winner_rating < loser_rating:
        winner_increase += UPSET_BONUS

    return min(MAX_DELTA, winner_increase), min(MAX_DELTA, loser_decrease)

def adjust(winner, loser):
    """
    Apply the outcome of a comparison.

    Args:
        winner: RatedMovie the user preferred
        loser: RatedMovie the user did not prefer

    Returns:
        Tuple of (new_winner, new_loser)
    """
    winner_increase, loser_decrease = rating_deltas(winner.user_rating, loser.user_rating)
    new_winner = winner.with_rating(clamp(winner.user_rating + winner_increase, MIN_RATING, MAX_RATING))
    new_loser = loser.with_rating(clamp(loser.user_rating - loser_decrease, MIN_RATING, MAX_RATING))
    return new_winner, new_loser

def tough_choice(candidate, known):
    """
    Resolve a "too tough to decide" between a new movie and a rated one.

    Both land next to the midpoint of their ratings, with the lower-rated side
    nudged above it.

    Returns:
        Tuple of (new_candidate, new_known)
    """
    midpoint = (candidate.user_rating + known.user_rating) / 2
    if candidate.user_rating <= known.user_rating:
        candidate_rating = midpoint + TOUGH_OFFSET
        known_rating = midpoint - TOUGH_OFFSET
    else:
        candidate_rating = midpoint - TOUGH_OFFSET
        known_rating = midpoint + TOUGH_OFFSET

    return (
        candidate.with_rating(clamp(candidate_rating, MIN_RATING, MAX_RATING)),
        known.with_rating(clamp(known_rating, MIN_RATING, MAX_RATING))
    )

def tough_choice_known(first, second):
    """
    Resolve a "too tough to decide" between two rated movies.

    The pair closes in on its midpoint but keeps its order, so the two ratings
    stay distinct. On a tie the first movie stays on top.

    Returns:
        Tuple of (new_first, new_second)
    """
    midpoint = (first.user_rating + second.user_rating) / 2
    if first.user_rating >= second.user_rating:
        first_rating = midpoint + KNOWN_TOUGH_OFFSET
        second_rating = midpoint - KNOWN_TOUGH_OFFSET
    else:
        first_rating = midpoint - KNOWN_TOUGH_OFFSET
        second_rating = midpoint + KNOWN_TOUGH_OFFSET

    return (
        first.with_rating(clamp(first_rating, MIN_RATING, MAX_RATING)),
        second.with_rating(clamp(second_rating, MIN_RATING, MAX_RATING))
    )
