"""
Learning progress of the comparison flow and the single-slot undo record.
"""

import json
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet

from utils import PATTERN_LENGTH
from movie_models import RatedMovie

logger = logging.getLogger(__name__)

COMPARED_IDS_KEY = "compared_ids"
BASELINE_COMPLETE_KEY = "baseline_complete"
COMPARISON_COUNT_KEY = "comparison_count"
PATTERN_POSITION_KEY = "pattern_position"


@dataclass(frozen=True)
class ComparisonProgress:
    compared_ids: FrozenSet[int] = field(default_factory=frozenset)
    comparison_count: int = 0
    pattern_position: int = 0
    baseline_phase: bool = False

    def advance(self):
        return replace(self, pattern_position=(self.pattern_position + 1) % PATTERN_LENGTH)

    def rewind(self):
        return replace(self, pattern_position=(self.pattern_position - 1) % PATTERN_LENGTH)

    def count_candidate(self, movie_id):
        """Record that movie_id has been used as the candidate side."""
        return replace(
            self,
            compared_ids=self.compared_ids | {movie_id},
            comparison_count=self.comparison_count + 1
        )

    def uncount_candidate(self, movie_id):
        return replace(
            self,
            compared_ids=self.compared_ids - {movie_id},
            comparison_count=max(0, self.comparison_count - 1)
        )


class ComparisonKind(Enum):
    KNOWN_VS_CANDIDATE = "known_vs_candidate"
    KNOWN_VS_KNOWN = "known_vs_known"


# Undo record variants. Each one keeps the two movies exactly as they were
# offered, plus the flags needed to roll the progress counters back. For
# candidate pairings the candidate is the seeded RatedMovie shown to the user.

@dataclass(frozen=True)
class ComparisonAction:
    known: RatedMovie
    candidate: RatedMovie
    entered_personalized: bool = False


@dataclass(frozen=True)
class ToughAction:
    known: RatedMovie
    candidate: RatedMovie
    entered_personalized: bool = False


@dataclass(frozen=True)
class KnownComparisonAction:
    first: RatedMovie
    second: RatedMovie
    tough: bool = False


@dataclass(frozen=True)
class SkipAction:
    known: RatedMovie
    candidate: RatedMovie
    kind: ComparisonKind
    entered_personalized: bool = False

    @property
    def counted(self):
        # Skipping two rated movies does not use up a candidate
        return self.kind is ComparisonKind.KNOWN_VS_CANDIDATE


@dataclass(frozen=True)
class UnseenAction:
    known: RatedMovie
    candidate: RatedMovie
    entered_personalized: bool = False


def _load_json(store, key, default):
    raw = store.get(key)
    if raw is None or raw == "":
        return default
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed stored value for %s: %r", key, raw)
        return default

def load_progress(store):
    """
    Read ComparisonProgress from a PersistentStore.

    Missing or malformed keys fall back to their defaults.
    """
    compared = _load_json(store, COMPARED_IDS_KEY, [])
    baseline = _load_json(store, BASELINE_COMPLETE_KEY, False)
    count = _load_json(store, COMPARISON_COUNT_KEY, 0)
    position = _load_json(store, PATTERN_POSITION_KEY, 0)

    if not isinstance(compared, list):
        logger.warning("Stored compared ids are not a list, resetting")
        compared = []
    compared_ids = frozenset(i for i in compared if isinstance(i, int) and not isinstance(i, bool))

    if not isinstance(count, int) or count < 0:
        count = 0
    if not isinstance(position, int):
        position = 0

    return ComparisonProgress(
        compared_ids=compared_ids,
        comparison_count=count,
        pattern_position=position % PATTERN_LENGTH,
        baseline_phase=baseline is True
    )

def save_progress(store, progress):
    """Write every ComparisonProgress field to the store as JSON."""
    store.set(COMPARED_IDS_KEY, json.dumps(sorted(progress.compared_ids)))
    store.set(BASELINE_COMPLETE_KEY, json.dumps(progress.baseline_phase))
    store.set(COMPARISON_COUNT_KEY, json.dumps(progress.comparison_count))
    store.set(PATTERN_POSITION_KEY, json.dumps(progress.pattern_position))
