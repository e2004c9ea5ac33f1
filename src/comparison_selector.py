"""
Comparison selection state machine.

Decides which two movies the user judges next, applies the judgment to the
library and the learning progress, and keeps a single-step undo.

Two phases: while in BASELINE the candidate side is drawn from a fixed seed
list of well-known movies; once that list is (nearly) used up the selector
moves to PERSONALIZED and asks the candidate provider instead. Independently,
every fifth comparison pits two already-rated movies against each other.
"""

import logging
import random
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from comparison_state import (
    ComparisonKind, ComparisonProgress, ComparisonAction, ToughAction,
    KnownComparisonAction, SkipAction, UnseenAction, save_progress
)
from movie_models import RatedMovie, seed_rating
from rating_adjuster import adjust, tough_choice, tough_choice_known
from ranking_errors import (
    InsufficientHistory, GenreUnderpopulated, NoCandidateFound,
    AlreadyRated, NoActivePairing, StalePairing
)
from utils import (
    BASELINE_MOVIES, BASELINE_COMPLETE_RATIO, KNOWN_VS_KNOWN_POSITION,
    MIN_RATED_FOR_COMPARISON, MIN_RATED_FOR_KNOWN_PAIR, MIN_GENRE_MOVIES
)

logger = logging.getLogger(__name__)


class SelectorState(Enum):
    BASELINE = "baseline"
    PERSONALIZED = "personalized"


class Outcome(Enum):
    """User decision, seen from the known (left-hand) movie."""
    WIN = "win"
    LOSS = "loss"
    TOUGH = "tough"
    SKIP = "skip"
    MARK_UNSEEN = "mark_unseen"


@dataclass(frozen=True)
class Pairing:
    known: RatedMovie
    candidate: RatedMovie
    kind: ComparisonKind


@dataclass(frozen=True)
class UpdatedState:
    rated: Tuple[RatedMovie, ...]
    watchlist: tuple
    progress: ComparisonProgress
    baseline_completed: bool = False
    pairing: Optional[Pairing] = None


class ComparisonSelector:
    """
    Owns the comparison progress and drives the library through comparisons.

    Args:
        library: MovieLibrary holding the rated set and watchlist
        catalog: MovieCatalog used to fetch baseline movies
        provider: RecommendationCandidateProvider for the personalized phase
        progress: Initial ComparisonProgress (usually loaded from the store)
        store: Optional PersistentStore; written after every change
        rng: random.Random used for every draw
        baseline_movies: Seed list of {"id", "title"} dicts
        on_baseline_complete: Called once when the baseline phase ends
    """

    def __init__(self, library, catalog, provider, progress=None, store=None, rng=None,
                 baseline_movies=None, on_baseline_complete=None):
        self.library = library
        self.catalog = catalog
        self.provider = provider
        self.progress = progress or ComparisonProgress()
        self.store = store
        self.rng = rng or random.Random()
        self.baseline_ids = [m["id"] for m in (baseline_movies or BASELINE_MOVIES)]
        self.on_baseline_complete = on_baseline_complete

        self.genre_filter = None
        self.current = None
        self.last_action = None
        self._fetch_lock = threading.Lock()

    # ------------------------------------------------------------------
    # State inspection
    # ------------------------------------------------------------------

    @property
    def state(self):
        return SelectorState.PERSONALIZED if self.progress.baseline_phase else SelectorState.BASELINE

    @property
    def fetch_in_flight(self):
        return self._fetch_lock.locked()

    def next_kind(self):
        if (self.progress.pattern_position == KNOWN_VS_KNOWN_POSITION
                and len(self.library) >= MIN_RATED_FOR_KNOWN_PAIR):
            return ComparisonKind.KNOWN_VS_KNOWN
        return ComparisonKind.KNOWN_VS_CANDIDATE

    def remaining_baseline(self, progress=None):
        """Baseline ids that have been neither compared nor rated."""
        progress = progress or self.progress
        return [
            movie_id for movie_id in self.baseline_ids
            if movie_id not in progress.compared_ids and not self.library.is_rated(movie_id)
        ]

    def baseline_exhausted(self, progress=None):
        remaining = len(self.remaining_baseline(progress))
        return remaining == 0 or remaining <= BASELINE_COMPLETE_RATIO * len(self.baseline_ids)

    def excluded_ids(self):
        excluded = set(self.progress.compared_ids)
        excluded.update(self.library.rated)
        excluded.update(self.library.watchlist)
        return excluded

    def snapshot(self):
        return self._state()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def pick_next(self):
        """
        Choose the next pair of movies to compare.

        Returns:
            Pairing, or None when another fetch is already in flight

        Raises:
            InsufficientHistory, GenreUnderpopulated, NoCandidateFound, CatalogError
        """
        if not self._fetch_lock.acquire(blocking=False):
            logger.debug("Fetch already in flight, ignoring pick_next")
            return None
        try:
            pairing, entering_personalized = self._select()
            if entering_personalized:
                self.progress = replace(self.progress, baseline_phase=True)
                self._persist()
            self.current = pairing
        finally:
            self._fetch_lock.release()

        if entering_personalized:
            self._notify_baseline_complete()
        logger.debug("Next comparison: %s vs %s (%s)",
                     pairing.known.title, pairing.candidate.title, pairing.kind.value)
        return pairing

    def _eligible_known(self, kind):
        rated = self.library.rated_movies()
        if len(rated) < MIN_RATED_FOR_COMPARISON:
            raise InsufficientHistory(
                f"You must have at least {MIN_RATED_FOR_COMPARISON} movies ranked to compare"
            )
        if self.genre_filter is None:
            return rated

        required = MIN_RATED_FOR_KNOWN_PAIR if kind is ComparisonKind.KNOWN_VS_KNOWN else MIN_GENRE_MOVIES
        eligible = [m for m in rated if self.genre_filter in m.genre_ids]
        if len(eligible) < required:
            raise GenreUnderpopulated(self.genre_filter, required, len(eligible))
        return eligible

    def _select(self):
        kind = self.next_kind()
        eligible = self._eligible_known(kind)
        known = self.rng.choice(eligible)

        if kind is ComparisonKind.KNOWN_VS_KNOWN:
            others = [m for m in eligible if m.id != known.id]
            if not others:
                raise InsufficientHistory("Need two distinct rated movies to compare")
            return Pairing(known, self.rng.choice(others), kind), False

        entering_personalized = not self.progress.baseline_phase and self.baseline_exhausted()
        if self.progress.baseline_phase or entering_personalized:
            candidate = self._personalized_candidate(known)
        else:
            candidate = self._baseline_candidate(known)

        if candidate.id == known.id:
            raise NoCandidateFound("Candidate matched the known movie")
        return Pairing(known, seed_rating(candidate), kind), entering_personalized

    def _personalized_candidate(self, known):
        excluded = self.excluded_ids() | {known.id}
        return self.provider.next(
            self.library.rated_movies(),
            self.library.watchlist_movies(),
            excluded,
            self.genre_filter
        )

    def _baseline_candidate(self, known):
        """
        Draw an uncompared baseline movie.

        A draw that collides with the known movie or comes back without a
        poster gets one retry against the personalized pool.
        """
        excluded = self.excluded_ids()
        pool = [movie_id for movie_id in self.baseline_ids if movie_id not in excluded]
        if pool:
            movie_id = self.rng.choice(pool)
            if movie_id != known.id:
                movie = self.catalog.get_by_id(movie_id)
                if movie.poster_path and movie.id != known.id:
                    return movie
            logger.debug("Baseline draw %s unusable, retrying with the personalized pool", movie_id)
        return self._personalized_candidate(known)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, outcome):
        """
        Apply the user's decision on the current pairing.

        Returns:
            UpdatedState, or None when a fetch is in flight

        Raises:
            NoActivePairing: if there is nothing to resolve
            AlreadyRated: on MARK_UNSEEN for two rated movies
            StalePairing: if the candidate was rated or watchlisted since it was offered
        """
        outcome = Outcome(outcome)
        if not self._fetch_lock.acquire(blocking=False):
            logger.debug("Fetch in flight, ignoring resolve(%s)", outcome.value)
            return None
        try:
            pairing = self.current
            if pairing is None:
                raise NoActivePairing("No comparison is waiting for a decision")

            if pairing.kind is ComparisonKind.KNOWN_VS_KNOWN:
                action, progress = self._resolve_known_pair(pairing, outcome)
                completed = False
            else:
                action, progress = self._resolve_candidate_pair(pairing, outcome)
                completed = not progress.baseline_phase and self.baseline_exhausted(progress)
                if completed:
                    progress = replace(progress, baseline_phase=True)
                    action = replace(action, entered_personalized=True)

            self.progress = progress
            self.last_action = action
            self.current = None
            self._persist()
        finally:
            self._fetch_lock.release()

        if completed:
            self._notify_baseline_complete()
        return self._state(baseline_completed=completed)

    def _current_known(self, movie):
        return self.library.rated.get(movie.id, movie)

    def _resolve_known_pair(self, pairing, outcome):
        if outcome is Outcome.MARK_UNSEEN:
            raise AlreadyRated("Both movies are already rated")

        first = self._current_known(pairing.known)
        second = self._current_known(pairing.candidate)
        progress = self.progress.advance()

        if outcome is Outcome.SKIP:
            return SkipAction(known=first, candidate=second, kind=pairing.kind), progress

        if outcome is Outcome.WIN:
            new_first, new_second = adjust(first, second)
        elif outcome is Outcome.LOSS:
            new_second, new_first = adjust(second, first)
        else:
            new_first, new_second = tough_choice_known(first, second)

        self.library.put_rated(new_first)
        self.library.put_rated(new_second)
        action = KnownComparisonAction(first=first, second=second, tough=outcome is Outcome.TOUGH)
        return action, progress

    def _resolve_candidate_pair(self, pairing, outcome):
        candidate = pairing.candidate
        if self.library.is_rated(candidate.id) or self.library.in_watchlist(candidate.id):
            self.current = None
            raise StalePairing(f"{candidate.title} was added to the library since it was offered")

        known = self._current_known(pairing.known)
        progress = self.progress.count_candidate(candidate.id).advance()

        if outcome is Outcome.SKIP:
            return SkipAction(known=known, candidate=candidate, kind=pairing.kind), progress

        if outcome is Outcome.MARK_UNSEEN:
            self.library.add_to_watchlist(candidate.movie)
            return UnseenAction(known=known, candidate=candidate), progress

        if outcome is Outcome.WIN:
            new_known, new_candidate = adjust(known, candidate)
            action = ComparisonAction(known=known, candidate=candidate)
        elif outcome is Outcome.LOSS:
            new_candidate, new_known = adjust(candidate, known)
            action = ComparisonAction(known=known, candidate=candidate)
        else:
            new_candidate, new_known = tough_choice(candidate, known)
            action = ToughAction(known=known, candidate=candidate)

        self.library.put_rated(new_known)
        self.library.put_rated(new_candidate)
        return action, progress

    # ------------------------------------------------------------------
    # Undo
    # ------------------------------------------------------------------

    def undo(self):
        """
        Reverse the last resolved comparison and offer the same pair again.

        Returns:
            UpdatedState, or None if there is nothing to undo or a fetch is in flight
        """
        action = self.last_action
        if action is None:
            return None
        if not self._fetch_lock.acquire(blocking=False):
            logger.debug("Fetch in flight, ignoring undo")
            return None
        try:
            progress = self.progress.rewind()

            if isinstance(action, KnownComparisonAction):
                self.library.put_rated(action.first)
                self.library.put_rated(action.second)
                pairing = Pairing(action.first, action.second, ComparisonKind.KNOWN_VS_KNOWN)
            elif isinstance(action, SkipAction):
                if action.counted:
                    progress = progress.uncount_candidate(action.candidate.id)
                pairing = Pairing(action.known, action.candidate, action.kind)
            else:
                if isinstance(action, UnseenAction):
                    self.library.remove_from_watchlist(action.candidate.id)
                else:
                    self.library.remove_rated(action.candidate.id)
                    self.library.put_rated(action.known)
                progress = progress.uncount_candidate(action.candidate.id)
                pairing = Pairing(action.known, action.candidate, ComparisonKind.KNOWN_VS_CANDIDATE)

            if getattr(action, "entered_personalized", False):
                progress = replace(progress, baseline_phase=False)

            self.progress = progress
            self.current = pairing
            self.last_action = None
            self._persist()
        finally:
            self._fetch_lock.release()

        logger.info("Undid %s", type(action).__name__)
        return self._state()

    def clear_undo(self):
        self.last_action = None

    def forget_movie(self, movie_id):
        """
        Drop the pending undo, and the outstanding pairing if it shows movie_id.

        Called after an explicit library edit, which the buffered action and
        the offered pair no longer describe.
        """
        self.clear_undo()
        pairing = self.current
        if pairing is not None and movie_id in (pairing.known.id, pairing.candidate.id):
            logger.debug("Dropping pairing %s vs %s after a library edit",
                         pairing.known.title, pairing.candidate.title)
            self.current = None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _persist(self):
        if self.store is None:
            return
        save_progress(self.store, self.progress)
        self.library.save(self.store)

    def _notify_baseline_complete(self):
        logger.info("Baseline comparisons complete, switching to personalized candidates")
        if self.on_baseline_complete:
            self.on_baseline_complete()

    def _state(self, baseline_completed=False):
        return UpdatedState(
            rated=tuple(self.library.rated_movies()),
            watchlist=tuple(self.library.watchlist_movies()),
            progress=self.progress,
            baseline_completed=baseline_completed,
            pairing=self.current
        )
