"""
Test cases for session records and result stores.
"""
import tempfile
import unittest
from pathlib import Path

from pydantic import ValidationError

from motionplay.storage import InMemoryResultStore, JsonlResultStore, SessionRecord
from motionplay.types import HistoryStore, ResultSink


def record(elapsed, player="p1", level="ADVANCED", game="shape_sense", **kwargs):
    return SessionRecord(game=game, player_id=player, level=level, elapsed_seconds=elapsed,
                         total_distance=120, attempts=4, score=3, **kwargs)


class TestSessionRecord(unittest.TestCase):
    """Test record validation."""

    def test_defaults(self):
        r = record(12)
        self.assertIsNone(r.consistency)
        self.assertEqual(r.boundary_hits, 0)
        self.assertEqual(r.ratios, {})
        self.assertIsNotNone(r.created_at)

    def test_consistency_bounds(self):
        self.assertEqual(record(1, consistency=100).consistency, 100)
        with self.assertRaises(ValidationError):
            record(1, consistency=100.5)
        with self.assertRaises(ValidationError):
            record(1, consistency=-1)

    def test_negative_counters_rejected(self):
        with self.assertRaises(ValidationError):
            SessionRecord(game="g", player_id="p", level="L", elapsed_seconds=1,
                          total_distance=0, attempts=-1, score=0)


class TestInMemoryResultStore(unittest.TestCase):
    """Test the in-memory sink and history."""

    def test_implements_protocols(self):
        store = InMemoryResultStore()
        self.assertIsInstance(store, ResultSink)
        self.assertIsInstance(store, HistoryStore)

    def test_recent_durations_newest_first(self):
        store = InMemoryResultStore()
        for elapsed in (1, 2, 3, 4, 5, 6, 7):
            store.save(record(elapsed))
        store.save(record(100, player="other"))
        store.save(record(200, game="buzz_tap"))

        self.assertEqual(store.recent_durations("shape_sense", "p1", "ADVANCED"), [7, 6, 5, 4, 3])
        self.assertEqual(store.recent_durations("shape_sense", "p1", "ADVANCED", limit=2), [7, 6])
        self.assertEqual(store.recent_durations("shape_sense", "p1", "BEGINNER"), [])


class TestJsonlResultStore(unittest.TestCase):
    """Test the append-only JSON-lines store."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "results" / "sessions.jsonl"
        self.store = JsonlResultStore(self.path)

    def tearDown(self):
        self.tmp.cleanup()

    def test_missing_file_is_empty(self):
        self.assertEqual(self.store.load(), [])
        self.assertEqual(self.store.recent_durations("shape_sense", "p1", "ADVANCED"), [])

    def test_round_trip_keeps_fields(self):
        original = record(42, consistency=87.5, ratios={"precision": 75.0}, details={"successes": 3})
        self.store.save(original)

        loaded = JsonlResultStore(self.path).load()
        self.assertEqual(len(loaded), 1)
        self.assertEqual(loaded[0], original)

    def test_append_only_and_recency(self):
        for elapsed in (10, 20, 30):
            self.store.save(record(elapsed))

        lines = self.path.read_text(encoding="utf-8").splitlines()
        self.assertEqual(len(lines), 3)
        self.assertEqual(self.store.recent_durations("shape_sense", "p1", "ADVANCED"), [30, 20, 10])

    def test_unreadable_lines_are_skipped(self):
        self.store.save(record(10))
        with open(self.path, "a", encoding="utf-8") as f:
            f.write("not json\n\n")
        self.store.save(record(20))

        with self.assertLogs("motionplay.storage", level="WARNING"):
            records = self.store.load()
        self.assertEqual([r.elapsed_seconds for r in records], [10, 20])


if __name__ == '__main__':
    unittest.main()
