"""
Movie Preference Engine - Source Package

This package contains the core functionality for learning a user's movie taste:
- rating_adjuster: Pairwise (Elo-style) rating updates
- comparison_selector: Comparison selection state machine, resolution and undo
- comparison_state: Learning progress and undo records
- candidate_provider: Personalized candidate discovery
- movie_search: Fuzzy title matching and search ranking
- taste_profile: Genre and release-year preference signals
- movie_library: Rated movies and watchlist
- movie_catalog: TMDB catalog access
- persistent_store: Key/value persistence backends
- preference_engine: Facade used by the app
- utils: Utility functions and configuration constants
"""
