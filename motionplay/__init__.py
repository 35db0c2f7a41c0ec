"""
MotionPlay

Camera-driven hand exercise mini-games: hand landmarks become pointer and
gesture events, which pick up, drag and place on-screen objects while each
session's performance is measured, scored and saved.
"""

__version__ = "0.1.0"

from .types import (Hand, LandmarkFrame, PointerState, GestureState, GestureUpdate, GestureTransition,
                    ManipulableObject, TargetZone, RegionKind, EventKind, InteractionEvent, ActorInput,
                    LandmarkSource, ResultSink, HistoryStore)
from .errors import MotionPlayError, ConfigError, SessionFinalizedError, SessionNotStartedError
from .config import load_config, Cfg
from .pointer import PointerMapper
from .gestures import GestureClassifier
from .context import SessionContext
from .interaction import (InteractionController, PlacementController, PairedMatchController,
                          RegionTrackingController, ReachController)
from .metrics import SessionMetrics, SessionMetricsAccumulator
from .consistency import ConsistencyEstimator
from .scheduler import DetectionScheduler
from .storage import SessionRecord, InMemoryResultStore, JsonlResultStore
from .games import Game, build_game
from .session import GameSession

__all__ = [
    "Hand",
    "LandmarkFrame",
    "PointerState",
    "GestureState",
    "GestureUpdate",
    "GestureTransition",
    "ManipulableObject",
    "TargetZone",
    "RegionKind",
    "EventKind",
    "InteractionEvent",
    "ActorInput",
    "LandmarkSource",
    "ResultSink",
    "HistoryStore",
    "MotionPlayError",
    "ConfigError",
    "SessionFinalizedError",
    "SessionNotStartedError",
    "load_config",
    "Cfg",
    "PointerMapper",
    "GestureClassifier",
    "SessionContext",
    "InteractionController",
    "PlacementController",
    "PairedMatchController",
    "RegionTrackingController",
    "ReachController",
    "SessionMetrics",
    "SessionMetricsAccumulator",
    "ConsistencyEstimator",
    "DetectionScheduler",
    "SessionRecord",
    "InMemoryResultStore",
    "JsonlResultStore",
    "Game",
    "build_game",
    "GameSession",
]
