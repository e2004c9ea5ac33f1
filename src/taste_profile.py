"""
Taste signals derived from the user's rating history.

Used by candidate discovery (preferred genre and year), search ranking
(per-genre bias) and the ranking overview (top genres, watchlist picks, new releases).
"""

import numpy as np

from utils import TOP_K_RATED, HIGH_RATING, get_genre_name

HIGH_RATING_WEIGHT = 3

def top_rated(rated_movies, k=TOP_K_RATED):
    """Return the k highest-rated movies (all of them if fewer)."""
    return sorted(rated_movies, key=lambda m: m.user_rating, reverse=True)[:k]

def genre_affinity(rated_movies):
    """
    Sum of ratings per genre.

    Returns:
        Dict of genre_id -> summed rating, in first-seen order
    """
    scores = {}
    for movie in rated_movies:
        for genre_id in movie.genre_ids:
            scores[genre_id] = scores.get(genre_id, 0.0) + movie.user_rating
    return scores

def preferred_genre(rated_movies, k=TOP_K_RATED):
    """Genre with the highest affinity among the top-k movies, or None."""
    scores = genre_affinity(top_rated(rated_movies, k))
    if not scores:
        return None
    # max() keeps the first maximum, so ties go to the genre seen first
    return max(scores, key=scores.get)

def preferred_year(rated_movies):
    """
    Rating-weighted average release year of highly rated movies.

    Only movies rated HIGH_RATING or above count, weighted by how far above
    that line they sit. Returns None when no movie carries any weight.
    """
    years = []
    weights = []
    for movie in rated_movies:
        year = movie.release_year
        if year is None or movie.user_rating < HIGH_RATING:
            continue
        years.append(year)
        weights.append((movie.user_rating - HIGH_RATING) * HIGH_RATING_WEIGHT)

    if not weights or sum(weights) <= 0:
        return None
    return float(np.average(years, weights=weights))

def genre_bias(rated_movies):
    """
    Per-genre preference on a signed scale.

    Each movie contributes (rating - 5) / 5 to every genre it carries, so a 10
    adds +1, a 5 is neutral and a 1 subtracts 0.8.
    """
    bias = {}
    for movie in rated_movies:
        factor = (movie.user_rating - 5) / 5
        for genre_id in movie.genre_ids:
            bias[genre_id] = bias.get(genre_id, 0.0) + factor
    return bias

def top_genres(rated_movies, limit=5):
    """
    Genres ranked by the average rating of the movies carrying them.

    Returns:
        List of dicts with genre_id, name, average_score and count
    """
    totals = {}
    for movie in rated_movies:
        for genre_id in movie.genre_ids:
            score, count = totals.get(genre_id, (0.0, 0))
            totals[genre_id] = (score + movie.user_rating, count + 1)

    ranked = [
        {
            "genre_id": genre_id,
            "name": get_genre_name(genre_id),
            "average_score": score / count,
            "count": count
        }
        for genre_id, (score, count) in totals.items()
    ]
    ranked.sort(key=lambda g: g["average_score"], reverse=True)
    return ranked[:limit]

def recommend_from_watchlist(rated_movies, watchlist, limit=30):
    """
    Order watchlist movies by how well their genres match the rating history.

    Returns:
        List of (movie, score) tuples, best first
    """
    if not rated_movies:
        return []
    affinity = genre_affinity(rated_movies)
    scored = [
        (movie, sum(affinity.get(g, 0.0) for g in movie.genre_ids))
        for movie in watchlist
    ]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:limit]

def new_releases(movies, popular_count=3):
    """
    Order a list of recent releases for the home feed.

    The popular_count most voted movies lead; the rest follow newest first,
    with undated movies last.
    """
    movies = list(movies)
    popular = sorted(movies, key=lambda m: m.vote_count, reverse=True)[:popular_count]
    popular_ids = {m.id for m in popular}
    rest = [m for m in movies if m.id not in popular_ids]
    dated = sorted((m for m in rest if m.release_date), key=lambda m: m.release_date, reverse=True)
    undated = [m for m in rest if not m.release_date]
    return popular + dated + undated
