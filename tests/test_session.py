"""
Test cases for the game session driver.
"""
import dataclasses
import random
import unittest

from handutil import hand_at, make_hand

from motionplay.config import load_config
from motionplay.errors import SessionFinalizedError, SessionNotStartedError
from motionplay.games import build_game
from motionplay.session import GameSession
from motionplay.storage import InMemoryResultStore, SessionRecord
from motionplay.types import HANDEDNESS_LABELS, EventKind, LandmarkFrame

TICK = 0.125


class ScriptedSource:
    """Synchronous source replaying one frame per call, then repeating the last."""

    def __init__(self, frames):
        self.frames = list(frames)
        self.calls = 0

    def __call__(self, frame, timestamp_ms):
        result = self.frames[min(self.calls, len(self.frames) - 1)]
        self.calls += 1
        return result


def frame_of(*hands):
    return LandmarkFrame(hands=tuple(hands))


class TestGameSession(unittest.TestCase):
    """Test the session lifecycle on the shape placement game."""

    def setUp(self):
        self.cfg = load_config()
        game = build_game("shape_sense", self.cfg, random.Random(11))
        # exact pointers: no smoothing, wrist reference
        self.game = dataclasses.replace(game, smoothing=1.0, reference="wrist")
        self.obj = self.game.controller.objects[0]
        self.zone = self.game.controller.nearest_zone(self.obj)
        self.store = InMemoryResultStore()

    def session(self, frames, **kwargs):
        self.source = ScriptedSource(frames)
        return GameSession(self.game, self.source, "p1", interval_s=TICK, sink=self.store, **kwargs)

    def run_ticks(self, session, count):
        events = []
        for i in range(count):
            events.extend(session.tick(None, i * TICK).events)
        return events

    def test_tick_before_start(self):
        session = self.session([frame_of()])
        with self.assertRaises(SessionNotStartedError):
            session.tick(None, 0.0)
        with self.assertRaises(SessionNotStartedError):
            session.finish(1.0)

    def test_drag_and_place(self):
        ox, oy = self.obj.position
        zx, zy = self.zone.position
        session = self.session([
            frame_of(hand_at(ox, oy, pinch=0.2)),
            frame_of(hand_at(ox, oy, pinch=0.0)),
            frame_of(hand_at(zx, zy, pinch=0.0)),
            frame_of(hand_at(zx, zy, pinch=0.2)),
        ])
        session.start(0.0)

        events = self.run_ticks(session, 4)

        self.assertEqual([e.kind for e in events], [EventKind.PICKED_UP, EventKind.PLACED])
        self.assertTrue(self.obj.resolved)
        self.assertEqual(session.score, 1)
        self.assertEqual(self.source.calls, 4)

    def test_finish_builds_and_saves_record(self):
        ox, oy = self.obj.position
        zx, zy = self.zone.position
        session = self.session([
            frame_of(hand_at(ox, oy, pinch=0.2)),
            frame_of(hand_at(ox, oy, pinch=0.0)),
            frame_of(hand_at(zx, zy, pinch=0.0)),
            frame_of(hand_at(zx, zy, pinch=0.2)),
        ])
        session.start(2.0)
        for i in range(4):
            session.tick(None, 2.0 + i * TICK)

        record = session.finish(12.6)

        self.assertIsInstance(record, SessionRecord)
        self.assertEqual(self.store.records, [record])
        self.assertEqual(record.game, "shape_sense")
        self.assertEqual(record.player_id, "p1")
        self.assertEqual(record.level, "ADVANCED")
        self.assertEqual(record.elapsed_seconds, 10)
        self.assertEqual(record.attempts, 1)
        self.assertEqual(record.score, 1)
        self.assertEqual(record.total_distance, round(((zx - ox) ** 2 + (zy - oy) ** 2) ** 0.5))
        self.assertEqual(record.ratios, {"precision": 100.0})
        self.assertEqual(record.details["successes_by_category"], {self.obj.category: 1})
        self.assertEqual(record.details["objects_manipulated"], 1)
        self.assertIsNone(record.consistency)

    def test_finish_only_once(self):
        session = self.session([frame_of()])
        session.start(0.0)
        session.finish(1.0)

        with self.assertRaises(SessionFinalizedError):
            session.finish(2.0)
        with self.assertRaises(SessionFinalizedError):
            session.tick(None, 2.0)
        self.assertTrue(session.scheduler.stopped)

    def test_tracking_loss_drops_object(self):
        ox, oy = self.obj.position
        session = self.session([
            frame_of(hand_at(ox, oy, pinch=0.2)),
            frame_of(hand_at(ox, oy, pinch=0.0)),
            frame_of(hand_at(ox + 20, oy, pinch=0.0)),
            frame_of(),
        ])
        session.start(0.0)

        events = self.run_ticks(session, 4)

        self.assertEqual([e.kind for e in events], [EventKind.PICKED_UP, EventKind.RELEASED])
        self.assertFalse(self.obj.held)
        self.assertEqual(self.obj.position, self.obj.origin)
        self.assertEqual(session.ctx.metrics.attempts, 0)
        self.assertEqual(session.pointers, [])

    def test_pointer_follows_hand(self):
        session = self.session([frame_of(hand_at(480, 270))])
        session.start(0.0)

        result = session.tick(None, 0.0)

        self.assertTrue(result.detected)
        self.assertEqual(len(result.pointers), 1)
        self.assertAlmostEqual(result.pointers[0].x_px, 480.0)
        self.assertAlmostEqual(result.pointers[0].y_px, 270.0)

    def test_detection_is_rate_limited(self):
        session = self.session([frame_of(hand_at(480, 270))])
        session.start(0.0)

        for i in range(16):
            session.tick(None, i * TICK / 4)

        self.assertEqual(self.source.calls, 4)

    def test_consistency_from_history(self):
        for _ in range(5):
            self.store.save(SessionRecord(game="shape_sense", player_id="p1", level="ADVANCED",
                                          elapsed_seconds=30, total_distance=0, attempts=0, score=0))
        session = self.session([frame_of()], history=self.store)
        session.start(0.0)

        record = session.finish(45.0)

        self.assertEqual(record.consistency, 100.0)
        self.assertEqual(len(self.store.records), 6)


class TestTwoHandedSession(unittest.TestCase):
    """Test hand assignment for the paired matching game."""

    def setUp(self):
        game = build_game("fruit_sync", load_config(), random.Random(5))
        self.session = GameSession(game, ScriptedSource([frame_of()]), "p1")

    def test_actors(self):
        self.assertEqual(tuple(self.session.actors), ("left", "right"))
        self.assertEqual(set(self.session.classifiers), {"left", "right"})

    def test_actors_are_handedness_labels(self):
        for actor in self.session.actors:
            self.assertIn(actor, HANDEDNESS_LABELS)
        self.assertEqual(tuple(self.session.controller.actors), tuple(self.session.actors))

    def test_assign_by_handedness(self):
        first_left = make_hand(0.2, 0.5, handedness="Left")
        right = make_hand(0.8, 0.5, handedness="right")
        second_left = make_hand(0.4, 0.5, handedness="left")

        assigned = self.session.assign_hands(frame_of(first_left, right, second_left))

        self.assertIs(assigned["left"], first_left)
        self.assertIs(assigned["right"], right)

    def test_unknown_handedness_ignored(self):
        assigned = self.session.assign_hands(frame_of(make_hand(handedness="unknown")))
        self.assertEqual(assigned, {})


class TestReachSession(unittest.TestCase):
    """Test a gesture-free game built from configuration."""

    def test_touch_target(self):
        source = ScriptedSource([frame_of(hand_at(0, 0))])
        session = GameSession.from_config(load_config(), "buzz_tap", source, "p1", rng=random.Random(2))
        session.mappers["primary"].smoothing = 1.0
        self.assertEqual(session.classifiers, {})
        session.start(0.0)

        first = session.tick(None, 0.0)
        self.assertIn(EventKind.SPAWNED, [e.kind for e in first.events])

        target = session.controller.target
        source.frames.append(frame_of(hand_at(target.x, target.y)))
        second = session.tick(None, 0.1)

        self.assertIn(EventKind.TARGET_TOUCHED, [e.kind for e in second.events])
        self.assertEqual(session.score, 1)
        self.assertEqual(session.finish(5.0).score, 1)


if __name__ == '__main__':
    unittest.main()
