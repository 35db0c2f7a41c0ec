"""
Game-loop driver: owns the detection scheduler, the per-hand pointer and
gesture state, the interaction controller and the session metrics.
"""
import logging
import math
import random
from typing import Any, Dict, List, Optional, Sequence

from .config import Cfg
from .consistency import ConsistencyEstimator
from .context import SessionContext
from .errors import SessionFinalizedError, SessionNotStartedError
from .games import Game, build_game
from .gestures import GestureClassifier
from .metrics import SessionMetricsAccumulator
from .pointer import PointerMapper
from .scheduler import DetectionScheduler
from .storage import SessionRecord
from .types import (LEFT, RIGHT, ActorInput, GestureTransition, GestureUpdate, Hand, HistoryStore,
                    InteractionEvent, LandmarkFrame, LandmarkSource, PointerState, ResultSink, TickResult)

logger = logging.getLogger(__name__)

PRIMARY = "primary"
TWO_HAND_ACTORS = (LEFT, RIGHT)

_IDLE_GESTURE = GestureUpdate(engaged=False, transition=GestureTransition.NONE, closeness=math.inf)


class GameSession:
    """
    One play session of one game.

    Call start() once, then tick() every render frame until is_complete,
    then finish() to finalize the metrics and save the record.
    """

    def __init__(self, game: Game, source: LandmarkSource, player_id: str, viewport_wh=(960, 540),
                 interval_s: float = 0.1, sink: Optional[ResultSink] = None,
                 history: Optional[HistoryStore] = None, estimator: Optional[ConsistencyEstimator] = None,
                 max_expected_rate: float = 1.0):
        """
        Initialize the session.

        Args:
            game: Game preset with a fresh controller
            source: Landmark source called by the scheduler
            player_id: Player identity saved with the record
            viewport_wh: Viewport dimensions (width, height) in pixels
            interval_s: Minimum seconds between detection calls
            sink: Where the finished record is saved
            history: Past records used for the consistency score
            estimator: Consistency estimator (default window of 5)
            max_expected_rate: Boundary hits per second treated as zero stability
        """
        self.game = game
        self.controller = game.controller
        self.scheduler = DetectionScheduler(source, interval_s)
        self.sink = sink
        self.history = history
        self.estimator = estimator or ConsistencyEstimator()

        metrics = SessionMetricsAccumulator(subtract_boundary_hits=game.subtract_boundary_hits,
                                            max_expected_rate=max_expected_rate)
        self.ctx = SessionContext(game=game.name, player_id=player_id, level=game.level, metrics=metrics)

        self.actors: Sequence[str] = TWO_HAND_ACTORS if game.two_handed else (PRIMARY,)
        self.mappers: Dict[str, PointerMapper] = {
            actor: PointerMapper(viewport_wh, actor=actor, smoothing=game.smoothing, reference=game.reference)
            for actor in self.actors
        }
        self.classifiers: Dict[str, GestureClassifier] = {}
        if game.metric is not None:
            self.classifiers = {
                actor: GestureClassifier(metric=game.metric, threshold=game.threshold, actor=actor)
                for actor in self.actors
            }
        self._tracked: Dict[str, bool] = {actor: False for actor in self.actors}
        self.record: Optional[SessionRecord] = None
        self.last_detection: Optional[LandmarkFrame] = None

    @classmethod
    def from_config(cls, cfg: Cfg, game_name: str, source: LandmarkSource, player_id: str,
                    sink: Optional[ResultSink] = None, history: Optional[HistoryStore] = None,
                    rng: Optional[random.Random] = None) -> "GameSession":
        """Build a session for a named game from loaded configuration."""
        return cls(
            build_game(game_name, cfg, rng),
            source,
            player_id,
            viewport_wh=(cfg.viewport.width, cfg.viewport.height),
            interval_s=cfg.detection.interval_ms / 1000.0,
            sink=sink,
            history=history,
            estimator=ConsistencyEstimator(cfg.metrics.consistency_window),
            max_expected_rate=cfg.metrics.max_expected_boundary_rate,
        )

    @property
    def started(self) -> bool:
        return self.ctx.started_at is not None

    @property
    def finished(self) -> bool:
        return self.record is not None

    @property
    def score(self) -> int:
        return self.controller.score(self.ctx)

    @property
    def is_complete(self) -> bool:
        return self.controller.is_complete(self.ctx)

    @property
    def pointers(self) -> List[PointerState]:
        return [m.state for m in self.mappers.values() if m.state is not None]

    def start(self, now: float) -> None:
        """Start the session clock."""
        if self.finished:
            raise SessionFinalizedError("Session already finished")
        self.ctx.started_at = now
        self.ctx.now = now
        logger.info(f"▶️ {self.game.name} started for {self.ctx.player_id}")

    def tick(self, frame: Any, now: float, dt: float = 0.0) -> TickResult:
        """
        Run one render tick.

        Args:
            frame: Current video frame handed to the landmark source
            now: Monotonic time in seconds
            dt: Seconds since the previous render tick

        Returns:
            TickResult with the events of this tick and the current pointers
        """
        if not self.started:
            raise SessionNotStartedError("Call start() before tick()")
        if self.finished:
            raise SessionFinalizedError("Session already finished")

        self.ctx.now = now
        result = TickResult()

        detection = self.scheduler.tick(frame, now)
        if detection is not None:
            result.detected = True
            self.last_detection = detection
            result.events.extend(self.apply_detection(detection))

        if not self.is_complete:
            result.events.extend(self.controller.advance(self.ctx, dt))

        result.pointers = self.pointers
        return result

    def assign_hands(self, frame: LandmarkFrame) -> Dict[str, Hand]:
        """Map detected hands to actors: first hand in single mode, by handedness in two-hand mode."""
        if not self.game.two_handed:
            return {PRIMARY: frame.hands[0]} if frame.hands else {}

        assigned: Dict[str, Hand] = {}
        for hand in frame.hands:
            label = hand.handedness.lower()
            if label in self.actors and label not in assigned:
                assigned[label] = hand
        return assigned

    def apply_detection(self, frame: LandmarkFrame) -> List[InteractionEvent]:
        """Feed a completed detection result through pointers, gestures and the controller."""
        events: List[InteractionEvent] = []
        inputs: Dict[str, ActorInput] = {}
        assigned = self.assign_hands(frame)

        for actor in self.actors:
            hand = assigned.get(actor)
            if hand is None:
                if self._tracked[actor]:
                    events.extend(self._lose(actor))
                continue

            self._tracked[actor] = True
            pointer = self.mappers[actor].update(hand)
            classifier = self.classifiers.get(actor)
            gesture = classifier.update(hand) if classifier is not None else _IDLE_GESTURE
            inputs[actor] = ActorInput(pointer=pointer, gesture=gesture)

        if inputs:
            events.extend(self.controller.step(self.ctx, inputs))
        return events

    def _lose(self, actor: str) -> List[InteractionEvent]:
        self._tracked[actor] = False
        self.mappers[actor].reset()
        classifier = self.classifiers.get(actor)
        if classifier is not None:
            classifier.reset()
        logger.debug(f"👻 Lost tracking of {actor} hand")
        return self.controller.release_actor(self.ctx, actor)

    def finish(self, now: float) -> SessionRecord:
        """
        End the session: stop detection, finalize metrics, score consistency
        from earlier sessions and save the record.

        Args:
            now: Monotonic time in seconds

        Returns:
            The saved SessionRecord
        """
        if self.finished:
            raise SessionFinalizedError("Session already finished")
        if not self.started:
            raise SessionNotStartedError("Call start() before finish()")

        self.scheduler.stop()
        self.ctx.now = now
        score = self.controller.score(self.ctx)
        final = self.ctx.metrics.finalize(math.floor(self.ctx.elapsed))

        consistency = None
        if self.history is not None:
            consistency = self.estimator.estimate_for(self.history, self.ctx.game, self.ctx.player_id,
                                                      self.ctx.level)

        self.record = SessionRecord(
            game=self.ctx.game,
            player_id=self.ctx.player_id,
            level=self.ctx.level,
            elapsed_seconds=final.elapsed_seconds,
            total_distance=round(final.total_distance),
            attempts=final.attempts,
            score=score,
            consistency=consistency,
            boundary_hits=final.boundary_hits,
            losses=final.losses,
            ratios=self.game.ratios(final, self.controller, self.ctx),
            details={
                "successes": final.successes,
                "successes_by_category": dict(final.successes_by_category),
                "objects_manipulated": final.objects_manipulated,
                "grabs_by_actor": dict(final.grabs_by_actor),
            },
        )

        if self.sink is not None:
            self.sink.save(self.record)
        logger.info(f"🏆 {self.game.name} finished: score={score} time={final.elapsed_seconds:.0f}s "
                    f"consistency={consistency}")
        return self.record
