"""
Engine facade used by the app: comparisons, undo, search and the library.
"""

import logging
import random

from candidate_provider import RecommendationCandidateProvider
from comparison_selector import ComparisonSelector
from comparison_state import load_progress
from movie_library import MovieLibrary
from movie_search import MovieSearcher, SuggestionSession
from persistent_store import InMemoryStore
from taste_profile import top_genres, recommend_from_watchlist, new_releases
from utils import DEFAULT_SELECTIVITY

logger = logging.getLogger(__name__)


class PreferenceEngine:
    """
    Single-user movie preference engine.

    Loads the library and comparison progress from the store on construction
    and writes them back after every change.

    Args:
        catalog: MovieCatalog implementation
        store: PersistentStore (defaults to an in-memory store)
        rng: random.Random shared by the selector and the candidate provider
        selectivity: Quality threshold for personalized candidates, 0-1
        on_baseline_complete: Called once when baseline comparisons are done
        max_results: Number of search results to keep
    """

    def __init__(self, catalog, store=None, rng=None, selectivity=DEFAULT_SELECTIVITY,
                 on_baseline_complete=None, max_results=10, baseline_movies=None):
        self.catalog = catalog
        self.store = store if store is not None else InMemoryStore()
        self.rng = rng or random.Random()

        self.library = MovieLibrary.load(self.store)
        self.provider = RecommendationCandidateProvider(catalog, rng=self.rng, selectivity=selectivity)
        self.selector = ComparisonSelector(
            self.library,
            catalog,
            self.provider,
            progress=load_progress(self.store),
            store=self.store,
            rng=self.rng,
            baseline_movies=baseline_movies,
            on_baseline_complete=on_baseline_complete
        )
        self.searcher = MovieSearcher(catalog, max_results=max_results)
        self._suggestions = None

    # Comparisons

    def pick_next(self):
        return self.selector.pick_next()

    def resolve(self, outcome):
        return self.selector.resolve(outcome)

    def undo(self):
        return self.selector.undo()

    @property
    def progress(self):
        return self.selector.progress

    @property
    def current_pairing(self):
        return self.selector.current

    @property
    def can_undo(self):
        return self.selector.last_action is not None

    def set_genre_filter(self, genre_id):
        self.selector.genre_filter = genre_id

    def set_selectivity(self, selectivity):
        self.provider.set_selectivity(selectivity)

    # Search

    def search(self, query):
        return self.searcher.search(query, self.library.rated_movies())

    def score(self, query, candidates):
        """Rank an already-fetched candidate list against the rating history."""
        return self.searcher.scorer.score(query, candidates, self.library.rated_movies())

    def suggestions(self):
        if self._suggestions is None:
            self._suggestions = SuggestionSession(self.searcher)
        return self._suggestions

    def suggest(self, query):
        return self.suggestions().request(query, self.library.rated_movies())

    # Library edits. These are not undoable: they drop the pending undo, and
    # the outstanding pairing when it shows the edited movie.

    def rate_movie(self, movie, rating):
        rated = self.library.rate(movie, rating)
        self._library_changed(movie.id)
        return rated

    def rerate_movie(self, movie_id, rating):
        rated = self.library.rerate(movie_id, rating)
        self._library_changed(movie_id)
        return rated

    def add_to_watchlist(self, movie):
        added = self.library.add_to_watchlist(movie)
        self._library_changed(movie.id)
        return added

    def remove_from_watchlist(self, movie_id):
        removed = self.library.remove_from_watchlist(movie_id)
        self._library_changed(movie_id)
        return removed

    def _library_changed(self, movie_id):
        self.selector.forget_movie(movie_id)
        self.library.save(self.store)

    # Overview

    def ranking(self, limit=10):
        return self.library.top_rated(limit)

    def top_genres(self, limit=5):
        return top_genres(self.library.rated_movies(), limit)

    def recommendations(self, limit=30):
        return recommend_from_watchlist(self.library.rated_movies(), self.library.watchlist_movies(), limit)

    def new_releases(self):
        """
        Movies now in theaters: the three most voted first, then newest first.

        Raises:
            CatalogError: if the catalog fails
        """
        return new_releases(self.catalog.now_playing())

    def close(self):
        if self._suggestions is not None:
            self._suggestions.close()
