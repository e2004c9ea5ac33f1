"""
Utility functions and constants for the movie preference engine.
"""

import os
import streamlit as st

# Search ranking weights
SEARCH_WEIGHTS = {
    "similarity": 0.4,
    "preference": 0.3,
    "popularity": 0.3
}

SIMILARITY_THRESHOLD = 0.3
GENERIC_QUERY_LENGTH = 3
MIN_QUERY_LENGTH = 2

# Comparison pattern: every fifth comparison pits two rated movies against each other
PATTERN_LENGTH = 5
KNOWN_VS_KNOWN_POSITION = 4
MIN_RATED_FOR_COMPARISON = 3
MIN_RATED_FOR_KNOWN_PAIR = 5
MIN_GENRE_MOVIES = 2

# Baseline phase ends once this share of the seed list is left uncompared
BASELINE_COMPLETE_RATIO = 0.15

# Candidate discovery
TOP_K_RATED = 10
YEAR_WINDOW = 10
MAX_DISCOVER_PAGE = 5
HIGH_RATING = 7.0

# Selectivity slider bounds
MIN_VOTE_COUNT_LOW = 1000
MIN_VOTE_COUNT_HIGH = 25000
MIN_SCORE_LOW = 5.0
MIN_SCORE_HIGH = 8.0
DEFAULT_SELECTIVITY = 0.3

MIN_RATING = 1.0
MAX_RATING = 10.0

POSTER_BASE_URL = "https://image.tmdb.org/t/p"

BASELINE_MOVIES = [
    {"id": 238, "title": "The Godfather"},
    {"id": 278, "title": "The Shawshank Redemption"},
    {"id": 240, "title": "The Godfather Part II"},
    {"id": 155, "title": "The Dark Knight"},
    {"id": 603, "title": "The Matrix"},
    {"id": 680, "title": "Pulp Fiction"},
    {"id": 13, "title": "Forrest Gump"},
    {"id": 550, "title": "Fight Club"},
    {"id": 27205, "title": "Inception"},
    {"id": 122, "title": "The Lord of the Rings: The Return of the King"},
    {"id": 120, "title": "The Lord of the Rings: The Fellowship of the Ring"},
    {"id": 157336, "title": "Interstellar"},
    {"id": 424, "title": "Schindler's List"},
    {"id": 389, "title": "12 Angry Men"},
    {"id": 497, "title": "The Green Mile"},
    {"id": 769, "title": "GoodFellas"},
    {"id": 11, "title": "Star Wars"},
    {"id": 105, "title": "Back to the Future"},
    {"id": 274, "title": "The Silence of the Lambs"},
    {"id": 129, "title": "Spirited Away"}
]

GENRE_NAMES = {
    28: "Action",
    12: "Adventure",
    16: "Animation",
    35: "Comedy",
    80: "Crime",
    99: "Documentary",
    18: "Drama",
    10751: "Family",
    14: "Fantasy",
    36: "History",
    27: "Horror",
    10402: "Music",
    9648: "Mystery",
    10749: "Romance",
    878: "Science Fiction",
    10770: "TV Movie",
    53: "Thriller",
    10752: "War",
    37: "Western"
}

def clamp(value, low=0.0, high=1.0):
    """Clamp a value into the closed range [low, high]."""
    return max(low, min(high, value))

def calculate_min_requirements(selectivity):
    """
    Translate the selectivity slider into catalog quality thresholds.

    Args:
        selectivity: Value between 0 (least selective) and 1 (most selective)

    Returns:
        Tuple of (min_vote_count, min_score)
    """
    selectivity = clamp(selectivity)
    vote_count = round(MIN_VOTE_COUNT_LOW + (MIN_VOTE_COUNT_HIGH - MIN_VOTE_COUNT_LOW) * selectivity)
    score = MIN_SCORE_LOW + (MIN_SCORE_HIGH - MIN_SCORE_LOW) * selectivity
    return vote_count, score

def get_poster_url(poster_path, size="w342"):
    """Build a full TMDB image URL, or None when the movie has no poster."""
    if not poster_path:
        return None
    return f"{POSTER_BASE_URL}/{size}{poster_path}"

def get_genre_name(genre_id):
    return GENRE_NAMES.get(genre_id, "Unknown")

def get_tmdb_api_key():
    """
    Look up the TMDB API key.

    Streamlit secrets take precedence; the TMDB_API_KEY environment variable
    is used when no secrets file is configured.
    """
    try:
        if "TMDB_API_KEY" in st.secrets:
            return st.secrets["TMDB_API_KEY"]
    except FileNotFoundError:
        pass
    return os.environ.get("TMDB_API_KEY", "")
