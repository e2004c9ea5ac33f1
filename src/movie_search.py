"""
Movie search with fuzzy title matching and personalized ranking.
"""

import math
import logging
import threading
import concurrent.futures
from collections import Counter
from dataclasses import dataclass
from functools import lru_cache

import numpy as np

from movie_models import Movie
from taste_profile import genre_bias, preferred_year
from utils import (
    SEARCH_WEIGHTS, SIMILARITY_THRESHOLD, GENERIC_QUERY_LENGTH, MIN_QUERY_LENGTH,
    clamp, get_poster_url
)

logger = logging.getLogger(__name__)

# Strings this far apart in length skip the full edit distance
LENGTH_GAP_FOR_APPROXIMATION = 10
LONG_STRING_LENGTH = 20
MIN_RESULTS_BEFORE_FALLBACK = 3

def edit_distance(s1, s2):
    """Levenshtein distance (insert, delete and substitute all cost 1)."""
    rows = len(s2) + 1
    cols = len(s1) + 1
    track = np.zeros((rows, cols), dtype=int)
    track[0, :] = np.arange(cols)
    track[:, 0] = np.arange(rows)

    for j in range(1, rows):
        for i in range(1, cols):
            indicator = 0 if s1[i - 1] == s2[j - 1] else 1
            track[j, i] = min(
                track[j, i - 1] + 1,            # deletion
                track[j - 1, i] + 1,            # insertion
                track[j - 1, i - 1] + indicator # substitution
            )
    return int(track[rows - 1, cols - 1])

def char_frequency_similarity(s1, s2):
    """Overlap of character counts: sum of minimums over sum of maximums."""
    freq1 = Counter(s1)
    freq2 = Counter(s2)
    shared = 0
    total = 0
    for char in set(freq1) | set(freq2):
        shared += min(freq1[char], freq2[char])
        total += max(freq1[char], freq2[char])
    return shared / total if total > 0 else 0.0

def _significant_words(text):
    return [w for w in text.split() if len(w) > 1]

@lru_cache(maxsize=4096)
def _similarity(query, title):
    if not query or not title:
        return 0.0

    # Method 1: Exact match
    if query == title:
        return 1.0

    # Method 2: Substring matching
    if query in title or title in query:
        return 0.9

    # Method 3: Shared words (partial words count, e.g. "knight" / "knights")
    query_words = _significant_words(query)
    title_words = _significant_words(title)
    common = [w for w in query_words if any(w in t or t in w for t in title_words)]
    if common:
        return 0.5 + 0.4 * len(common) / max(len(query_words), len(title_words))

    # Method 4: Cheap approximation for long strings of very different length
    longest = max(len(query), len(title))
    if abs(len(query) - len(title)) > LENGTH_GAP_FOR_APPROXIMATION and longest > LONG_STRING_LENGTH:
        return char_frequency_similarity(query, title)

    # Method 5: Normalized edit distance
    return 1.0 - edit_distance(query, title) / longest

def calculate_title_similarity(query, title):
    """
    Calculate similarity between a search query and a movie title.

    Args:
        query: Search query
        title: Movie title to compare against

    Returns:
        Float similarity score between 0 and 1
    """
    return _similarity((query or "").lower().strip(), (title or "").lower().strip())

def preference_profile(history):
    """Genre bias and preferred year of a rating history, computed once per search."""
    history = list(history or [])
    return genre_bias(history), preferred_year(history)

def _preference_from_profile(movie, bias, year):
    score = 0.5

    genre_boost = sum(bias.get(g, 0.0) for g in movie.genre_ids)
    score += min(0.3, genre_boost / 10)

    if year is not None and movie.release_year is not None:
        year_diff = abs(movie.release_year - year)
        score += 0.1 - min(year_diff, 30) / 300

    return clamp(score)

def user_preference_score(movie, history):
    """
    Score how well a movie fits the user's rating history.

    Args:
        movie: Movie to score
        history: Iterable of RatedMovie

    Returns:
        Float between 0 and 1; 0.5 means no signal either way
    """
    history = list(history or [])
    if not history:
        return 0.5
    bias, year = preference_profile(history)
    return _preference_from_profile(movie, bias, year)

def popularity_score(movie):
    """Blend of log-scaled vote count and vote average, between 0 and 1."""
    if movie.vote_count > 0:
        normalized_votes = clamp(math.log10(movie.vote_count) / 4)
    else:
        normalized_votes = 0.0
    normalized_average = clamp((movie.vote_average - 1) / 9)
    return normalized_votes * 0.7 + normalized_average * 0.3


@dataclass(frozen=True)
class ScoredMovie:
    movie: Movie
    title_similarity: float
    preference_score: float
    popularity_score: float
    final_score: float


def score_candidates(query, candidates, history=(), weights=None,
                     similarity_threshold=SIMILARITY_THRESHOLD):
    """
    Rank candidate movies for a query.

    Candidates whose title is too far from the query are dropped, except for
    very short queries ("the", "up") where popularity decides the order.
    Duplicate ids keep their first occurrence; equal scores keep catalog order.

    Args:
        query: Free-text query
        candidates: Iterable of Movie, in catalog order
        history: Iterable of RatedMovie
        weights: Optional overrides for SEARCH_WEIGHTS
        similarity_threshold: Minimum title similarity for non-generic queries

    Returns:
        List of ScoredMovie, best first
    """
    weights = {**SEARCH_WEIGHTS, **(weights or {})}
    query = (query or "").strip()
    is_generic_query = len(query) <= GENERIC_QUERY_LENGTH

    history = list(history or [])
    bias, year = preference_profile(history)

    seen_ids = set()
    scored = []
    for movie in candidates:
        if movie.id in seen_ids:
            continue
        seen_ids.add(movie.id)

        similarity = calculate_title_similarity(query, movie.title)
        if similarity < similarity_threshold and not is_generic_query:
            continue

        preference = _preference_from_profile(movie, bias, year) if history else 0.5
        popularity = popularity_score(movie)

        if is_generic_query:
            final = popularity * 0.8 + similarity * 0.2
        else:
            final = (
                similarity * weights["similarity"]
                + preference * weights["preference"]
                + popularity * weights["popularity"]
            )

        scored.append(ScoredMovie(movie, similarity, preference, popularity, final))

    return sorted(scored, key=lambda s: s.final_score, reverse=True)


class SearchRelevanceScorer:
    """score_candidates() with fixed weights and threshold."""

    def __init__(self, weights=None, similarity_threshold=SIMILARITY_THRESHOLD):
        self.weights = {**SEARCH_WEIGHTS, **(weights or {})}
        self.similarity_threshold = similarity_threshold

    def score(self, query, candidates, history=()):
        return score_candidates(query, candidates, history, self.weights, self.similarity_threshold)


class MovieSearcher:
    """
    Catalog title search ranked by SearchRelevanceScorer.

    When a multi-word query finds fewer than three movies, a second search on
    its first word widens the candidate set.
    """

    def __init__(self, catalog, max_results=10, weights=None, similarity_threshold=SIMILARITY_THRESHOLD):
        self.catalog = catalog
        self.max_results = max_results
        self.scorer = SearchRelevanceScorer(weights, similarity_threshold)

    def fetch_candidates(self, query):
        results = list(self.catalog.search_by_title(query))

        if len(results) < MIN_RESULTS_BEFORE_FALLBACK and " " in query:
            first_word = query.split()[0]
            if len(first_word) > 2:
                existing_ids = {m.id for m in results}
                for movie in self.catalog.search_by_title(first_word):
                    if movie.id not in existing_ids:
                        existing_ids.add(movie.id)
                        results.append(movie)
        return results

    def search(self, query, history=()):
        """
        Search the catalog and rank the results for this user.

        Returns:
            List of at most max_results ScoredMovie; empty for queries under two characters

        Raises:
            CatalogError: if the catalog fails
        """
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []

        candidates = self.fetch_candidates(query)
        if not candidates:
            return []
        return self.scorer.score(query, candidates, history)[:self.max_results]

    def format_results(self, scored):
        """Process results into UI-friendly dictionaries."""
        return [
            {
                "id": s.movie.id,
                "title": s.movie.title,
                "year": s.movie.release_year,
                "poster": get_poster_url(s.movie.poster_path, "w342"),
                "thumbnail_poster": get_poster_url(s.movie.poster_path, "w92"),
                "vote_count": s.movie.vote_count,
                "score": s.movie.vote_average,
                "overview": s.movie.overview or "No overview available",
                "genre_ids": list(s.movie.genre_ids),
                "release_date": s.movie.release_date.isoformat() if s.movie.release_date else None,
                "similarity": s.title_similarity,
                "relevance": s.final_score
            }
            for s in scored
        ]


class SuggestionSession:
    """
    Typeahead suggestions for one search box.

    Each request supersedes the previous one: a request that has not started
    is cancelled, and one that is already running resolves to None instead of
    overwriting fresher results.
    """

    def __init__(self, searcher, executor=None):
        self.searcher = searcher
        self._owns_executor = executor is None
        self._executor = executor or concurrent.futures.ThreadPoolExecutor(max_workers=2)
        self._lock = threading.Lock()
        self._generation = 0
        self._pending = None

    def request(self, query, history=()):
        """
        Start fetching suggestions for query.

        Returns:
            concurrent.futures.Future resolving to a list of ScoredMovie, or
            None if a newer request superseded it
        """
        history = tuple(history or ())
        with self._lock:
            self._generation += 1
            generation = self._generation
            if self._pending is not None:
                self._pending.cancel()
            self._pending = self._executor.submit(self._run, generation, query, history)
            return self._pending

    def _is_current(self, generation):
        return generation == self._generation

    def _run(self, generation, query, history):
        if not self._is_current(generation):
            return None
        results = self.searcher.search(query, history)
        if not self._is_current(generation):
            logger.debug("Discarding stale suggestions for %r", query)
            return None
        return results

    def close(self):
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
