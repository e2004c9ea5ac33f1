"""
Movie Ranker - Streamlit front end for the preference engine.
Compare movies head to head, search and rate new ones, and browse your ranking.
"""

import logging
import streamlit as st
import sys
import os

# =============================================================================
# IMPORTS AND SETUP
# =============================================================================

# Add src directory to path for imports
current_dir = os.path.dirname(os.path.abspath(__file__))
src_dir = os.path.join(current_dir, 'src')

if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from comparison_selector import Outcome
from comparison_state import ComparisonKind
from movie_catalog import TmdbCatalog
from persistent_store import CsvStore
from preference_engine import PreferenceEngine
from ranking_errors import (
    RankingError, InsufficientHistory, GenreUnderpopulated, CatalogError, InvalidRating, StalePairing
)
from utils import GENRE_NAMES, DEFAULT_SELECTIVITY, calculate_min_requirements, get_poster_url, get_genre_name

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

STATE_FILE = os.path.join(current_dir, "engine_state.csv")

# =============================================================================
# SESSION STATE MANAGEMENT
# =============================================================================

def initialize_session_state():
    """Initialize all required session state variables."""

    if "engine" not in st.session_state:
        st.session_state.engine = PreferenceEngine(
            TmdbCatalog(),
            store=CsvStore(STATE_FILE),
            on_baseline_complete=lambda: st.session_state.update(baseline_notice=True)
        )

    if "baseline_notice" not in st.session_state:
        st.session_state.baseline_notice = False

    if "comparison_error" not in st.session_state:
        st.session_state.comparison_error = None

    if "search_results" not in st.session_state:
        st.session_state.search_results = []

    if "selectivity" not in st.session_state:
        st.session_state.selectivity = DEFAULT_SELECTIVITY

# =============================================================================
# COMPARISON SCREEN
# =============================================================================

def load_next_pairing(engine):
    """Ask the engine for a new pairing, keeping any error for display."""
    st.session_state.comparison_error = None
    try:
        engine.pick_next()
    except InsufficientHistory as e:
        st.session_state.comparison_error = f"{e}. Go to the Add Movies tab to rate more movies."
    except GenreUnderpopulated as e:
        st.session_state.comparison_error = (
            f"Not enough movies in the \"{get_genre_name(e.genre_id)}\" genre. "
            "Please rate more movies in this genre or select a different genre."
        )
    except RankingError as e:
        st.session_state.comparison_error = f"Failed to load movie: {e}"

def handle_outcome(engine, outcome):
    try:
        engine.resolve(outcome)
    except StalePairing as e:
        st.warning(f"{e}. Loading a new comparison.")
    except RankingError as e:
        st.error(f"❌ {e}")
        return
    load_next_pairing(engine)
    st.rerun()

def render_movie_card(rated_movie, caption):
    poster_url = get_poster_url(rated_movie.movie.poster_path)
    if poster_url:
        st.image(poster_url, use_container_width=True)
    st.markdown(f"**{rated_movie.title}**")
    st.caption(caption)
    genres = ", ".join(get_genre_name(g) for g in rated_movie.genre_ids)
    if genres:
        st.caption(genres)

def render_filters(engine):
    """Sidebar genre filter and selectivity slider."""
    st.sidebar.header("Comparison filters")

    genre_options = [None] + sorted(GENRE_NAMES, key=GENRE_NAMES.get)
    selected_genre = st.sidebar.selectbox(
        "Genre",
        genre_options,
        format_func=lambda g: "All genres" if g is None else GENRE_NAMES[g]
    )
    selectivity = st.sidebar.slider("Selectivity", 0.0, 1.0, st.session_state.selectivity, 0.05)
    min_votes, min_score = calculate_min_requirements(selectivity)
    st.sidebar.caption(f"At least {min_votes:,} votes and a {min_score:.1f} TMDB score")

    changed = selected_genre != engine.selector.genre_filter or selectivity != st.session_state.selectivity
    engine.set_genre_filter(selected_genre)
    engine.set_selectivity(selectivity)
    st.session_state.selectivity = selectivity
    if changed:
        load_next_pairing(engine)

def render_comparison(engine):
    """Render the head-to-head comparison."""
    if st.session_state.baseline_notice:
        st.success("🎉 Baseline complete! Comparisons are now personalized to your taste.")
        st.session_state.baseline_notice = False

    if engine.current_pairing is None and st.session_state.comparison_error is None:
        with st.spinner("Loading comparison..."):
            load_next_pairing(engine)

    if st.session_state.comparison_error:
        st.info(st.session_state.comparison_error)
        if st.button("Try Again", key="retry_comparison"):
            load_next_pairing(engine)
            st.rerun()
        return

    pairing = engine.current_pairing
    if pairing is None:
        return

    progress = engine.progress
    st.markdown("### Which movie was better?")
    st.caption(f"{progress.comparison_count} comparisons so far")

    known_col, vs_col, candidate_col = st.columns([5, 1, 5])
    with known_col:
        render_movie_card(pairing.known, f"Your rating: {pairing.known.user_rating:.1f}")
        if st.button("This one", key="known_wins", use_container_width=True):
            handle_outcome(engine, Outcome.WIN)
    with vs_col:
        st.markdown("## VS")
    with candidate_col:
        if pairing.kind is ComparisonKind.KNOWN_VS_KNOWN:
            caption = f"Your rating: {pairing.candidate.user_rating:.1f}"
        else:
            caption = f"TMDb: {pairing.candidate.movie.vote_average:.1f} ({pairing.candidate.movie.vote_count} votes)"
        render_movie_card(pairing.candidate, caption)
        if st.button("This one", key="candidate_wins", use_container_width=True):
            handle_outcome(engine, Outcome.LOSS)

    tough_col, unseen_col, skip_col, undo_col = st.columns(4)
    with tough_col:
        if st.button("Too tough to decide", key="tough"):
            handle_outcome(engine, Outcome.TOUGH)
    with unseen_col:
        if pairing.kind is ComparisonKind.KNOWN_VS_CANDIDATE:
            if st.button("Add to watchlist", key="unseen"):
                handle_outcome(engine, Outcome.MARK_UNSEEN)
    with skip_col:
        if st.button("Skip", key="skip"):
            handle_outcome(engine, Outcome.SKIP)
    with undo_col:
        if engine.can_undo and st.button("↩️ Undo", key="undo"):
            engine.undo()
            st.rerun()

# =============================================================================
# ADD MOVIE SCREEN
# =============================================================================

def render_search(engine):
    """Search the catalog and rate or watchlist results."""
    query = st.text_input("Search for a movie", key="movie_search")

    if query and len(query.strip()) >= 2:
        try:
            st.session_state.search_results = engine.search(query)
        except CatalogError as e:
            st.error(f"Failed to search for movies. Please try again. ({e})")
            st.session_state.search_results = []

    for idx, scored in enumerate(st.session_state.search_results):
        movie = scored.movie
        poster_col, info_col = st.columns([1, 4])
        with poster_col:
            thumbnail = get_poster_url(movie.poster_path, "w92")
            if thumbnail:
                st.image(thumbnail)
        with info_col:
            year = f" ({movie.release_year})" if movie.release_year else ""
            st.markdown(f"**{movie.title}**{year}")
            st.caption(f"{scored.title_similarity:.0%} match · TMDb {movie.vote_average:.1f}")

            rated = engine.library.rated.get(movie.id)
            default_rating = rated.user_rating if rated else 7.0
            rating = st.number_input(
                "Your rating", min_value=1.0, max_value=10.0, value=default_rating,
                step=0.1, key=f"rating_{movie.id}"
            )
            rate_col, watch_col = st.columns(2)
            with rate_col:
                label = "Re-rate" if rated else "Seen it"
                if st.button(label, key=f"rate_{idx}_{movie.id}"):
                    try:
                        engine.rate_movie(movie, rating)
                        st.success(f"✅ Rated {movie.title} {rating:.1f}")
                    except InvalidRating as e:
                        st.warning(str(e))
            with watch_col:
                if not rated and st.button("Watchlist", key=f"watch_{idx}_{movie.id}"):
                    engine.add_to_watchlist(movie)
                    st.success(f"✅ Added {movie.title} to your watchlist")

# =============================================================================
# RANKING SCREEN
# =============================================================================

def render_ranking(engine):
    st.markdown("### Your Top 10")
    for position, rated in enumerate(engine.ranking(10), start=1):
        st.write(f"{position}. **{rated.title}** · {rated.user_rating:.1f}")

    st.markdown("### Your Favorite Genres")
    genres = engine.top_genres()
    if genres:
        for genre in genres:
            st.write(f"{genre['name']}: {genre['average_score']:.1f}")
    else:
        st.info("Rate more movies to see your favorite genres")

    st.markdown("### Recommended For You")
    for movie, _ in engine.recommendations(10):
        st.write(f"- {movie.title}")

    st.markdown("### New Releases")
    try:
        releases = engine.new_releases()
    except CatalogError as e:
        st.warning(f"Could not load new releases. ({e})")
        return

    popular, recent = releases[:3], releases[3:]
    if popular:
        columns = st.columns(len(popular))
        for column, movie in zip(columns, popular):
            with column:
                poster_url = get_poster_url(movie.poster_path)
                if poster_url:
                    st.image(poster_url, use_container_width=True)
                st.caption(f"**{movie.title}** · {movie.vote_count:,} votes")
    for movie in recent:
        released = movie.release_date.isoformat() if movie.release_date else "TBA"
        st.write(f"- {movie.title} ({released})")

# =============================================================================
# MAIN APPLICATION
# =============================================================================

def main():
    """Main application function."""
    st.set_page_config(
        page_title="Movie Ranker",
        page_icon="🎬",
        layout="wide"
    )

    initialize_session_state()
    engine = st.session_state.engine

    st.title("🎬 Movie Ranker")
    render_filters(engine)

    compare_tab, add_tab, ranking_tab = st.tabs(["Compare", "Add Movies", "Ranking"])
    with compare_tab:
        render_comparison(engine)
    with add_tab:
        render_search(engine)
    with ranking_tab:
        render_ranking(engine)

if __name__ == "__main__":
    main()
