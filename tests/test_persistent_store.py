"""
Unit tests for persistence backends and the progress codec.
"""

import json
import tempfile
import unittest
from unittest.mock import patch
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from comparison_state import ComparisonProgress, load_progress, save_progress
from persistent_store import InMemoryStore, CsvStore, SessionStateStore

class TestInMemoryStore(unittest.TestCase):

    def test_get_and_set(self):
        store = InMemoryStore()
        self.assertIsNone(store.get("missing"))
        self.assertEqual(store.get("missing", "x"), "x")
        store.set("count", 3)
        self.assertEqual(store.get("count"), "3")
        self.assertEqual(store.snapshot(), {"count": "3"})

class TestCsvStore(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "state.csv")

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_creates_file(self):
        CsvStore(self.path)
        self.assertTrue(os.path.exists(self.path))

    def test_values_survive_reopen(self):
        store = CsvStore(self.path)
        store.set("comparison_count", "4")
        store.set("compared_ids", json.dumps([155, 603]))
        store.set("comparison_count", "5")

        reopened = CsvStore(self.path)
        self.assertEqual(reopened.get("comparison_count"), "5")
        self.assertEqual(json.loads(reopened.get("compared_ids")), [155, 603])
        self.assertIsNone(reopened.get("missing"))

    def test_text_values_kept_verbatim(self):
        store = CsvStore(self.path)
        value = json.dumps([{"title": "Crouching Tiger, Hidden Dragon", "overview": "Line one\nline \"two\""}])
        store.set("rated_movies", value)
        store.set("empty", "")
        self.assertEqual(store.get("rated_movies"), value)
        self.assertEqual(store.get("empty"), "")

class TestSessionStateStore(unittest.TestCase):

    @patch('persistent_store.st')
    def test_namespaced_keys(self, mock_st):
        mock_st.session_state = {}
        store = SessionStateStore(namespace="ranker")
        store.set("watchlist", "[]")
        self.assertEqual(mock_st.session_state, {"ranker:watchlist": "[]"})
        self.assertEqual(store.get("watchlist"), "[]")
        self.assertIsNone(store.get("rated_movies"))

class TestProgressCodec(unittest.TestCase):

    def test_round_trip(self):
        store = InMemoryStore()
        progress = ComparisonProgress(
            compared_ids=frozenset({238, 278}),
            comparison_count=7,
            pattern_position=2,
            baseline_phase=True
        )
        save_progress(store, progress)
        self.assertEqual(json.loads(store.get("compared_ids")), [238, 278])
        self.assertEqual(load_progress(store), progress)

    def test_defaults_when_empty(self):
        self.assertEqual(load_progress(InMemoryStore()), ComparisonProgress())

    def test_malformed_values_fall_back(self):
        store = InMemoryStore({
            "compared_ids": "not json",
            "baseline_complete": "true",
            "comparison_count": "-3",
            "pattern_position": "7"
        })
        progress = load_progress(store)
        self.assertEqual(progress.compared_ids, frozenset())
        self.assertTrue(progress.baseline_phase)
        self.assertEqual(progress.comparison_count, 0)
        self.assertEqual(progress.pattern_position, 2)

    def test_advance_wraps(self):
        progress = ComparisonProgress(pattern_position=4)
        self.assertEqual(progress.advance().pattern_position, 0)
        self.assertEqual(progress.advance().rewind(), progress)

    def test_uncount_floors_at_zero(self):
        progress = ComparisonProgress().uncount_candidate(5)
        self.assertEqual(progress.comparison_count, 0)

if __name__ == '__main__':
    unittest.main()
