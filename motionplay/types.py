"""
Type definitions for the gesture interaction engine.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import (TYPE_CHECKING, Any, Awaitable, List, Optional, Protocol,
                    Sequence, Tuple, Union, runtime_checkable)

if TYPE_CHECKING:
    from .storage import SessionRecord


Point = Tuple[float, float]
Landmark = Tuple[float, float, float]  # normalized (x, y, z)

LEFT, RIGHT, UNKNOWN = "left", "right", "unknown"
HANDEDNESS_LABELS = (LEFT, RIGHT, UNKNOWN)


def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two 2-D points."""
    return math.hypot(a[0] - b[0], a[1] - b[1])


@dataclass(frozen=True)
class Hand:
    """One detected hand: handedness label plus 21 normalized keypoints."""
    handedness: str
    landmarks: Sequence[Landmark]
    score: Optional[float] = None


@dataclass(frozen=True)
class LandmarkFrame:
    """Snapshot of every hand detected in one detection tick."""
    hands: Sequence[Hand] = ()
    timestamp_ms: float = 0.0

    @property
    def empty(self) -> bool:
        return len(self.hands) == 0


@dataclass
class PointerState:
    """Smoothed on-screen pointer owned by one hand."""
    x_px: float
    y_px: float
    hand: str

    @property
    def position(self) -> Point:
        return (self.x_px, self.y_px)


class GestureTransition(Enum):
    """Edge reported by the gesture state machine for one update."""
    NONE = "none"
    STARTED = "started"
    ENDED = "ended"


@dataclass
class GestureState:
    """Current engaged/released state of one hand's gesture."""
    engaged: bool = False
    hand: Optional[str] = None


@dataclass(frozen=True)
class GestureUpdate:
    """Result of feeding one hand into a gesture classifier."""
    engaged: bool
    transition: GestureTransition
    closeness: float

    @property
    def started(self) -> bool:
        return self.transition is GestureTransition.STARTED

    @property
    def ended(self) -> bool:
        return self.transition is GestureTransition.ENDED


@dataclass
class ManipulableObject:
    """
    An on-screen object the player can pick up and move.

    The bounding region is an axis-aligned box of width x height centred on
    (x, y). origin is where the object returns to after an unsuccessful
    release; it defaults to the spawn position.
    """
    object_id: str
    category: str
    x: float
    y: float
    width: float = 90.0
    height: float = 90.0
    origin: Optional[Point] = None
    held: bool = False
    held_by: Optional[str] = None
    resolved: bool = False
    distance: float = 0.0

    def __post_init__(self):
        if self.origin is None:
            self.origin = (self.x, self.y)

    @property
    def position(self) -> Point:
        return (self.x, self.y)

    def contains(self, point: Point) -> bool:
        """Check whether a point lies strictly inside the bounding box."""
        px, py = point
        return (self.x - self.width / 2 < px < self.x + self.width / 2 and
                self.y - self.height / 2 < py < self.y + self.height / 2)

    def move_to(self, point: Point) -> None:
        self.x, self.y = point


@dataclass(frozen=True)
class TargetZone:
    """Placement target matched against objects of the same category."""
    zone_id: str
    category: str
    x: float
    y: float
    capture_radius: float

    @property
    def position(self) -> Point:
        return (self.x, self.y)


class RegionKind(Enum):
    """Classification of a point on the play field."""
    FORBIDDEN = "forbidden"
    PERMITTED = "permitted"
    GOAL = "goal"


class EventKind(Enum):
    """Things an interaction controller reports back to the game loop."""
    PICKED_UP = "picked_up"
    PLACED = "placed"
    MISSED = "missed"
    RELEASED = "released"
    LOST = "lost"
    SPAWNED = "spawned"
    SELECTED = "selected"
    MATCHED = "matched"
    MISMATCHED = "mismatched"
    ROUND_COMPLETED = "round_completed"
    BOUNDARY_HIT = "boundary_hit"
    GOAL_REACHED = "goal_reached"
    TARGET_TOUCHED = "target_touched"


@dataclass(frozen=True)
class InteractionEvent:
    """One-shot event produced by a controller step."""
    kind: EventKind
    actor: Optional[str] = None
    object_id: Optional[str] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class ActorInput:
    """Pointer and gesture update of one tracked hand for a detection tick."""
    pointer: PointerState
    gesture: GestureUpdate


@dataclass
class TickResult:
    """What one render tick of a game session produced."""
    detected: bool = False
    events: List[InteractionEvent] = field(default_factory=list)
    pointers: List[PointerState] = field(default_factory=list)


@runtime_checkable
class LandmarkSource(Protocol):
    """Black-box hand pose estimator."""

    def __call__(self, frame: Any, timestamp_ms: float) -> Union[LandmarkFrame, Awaitable[LandmarkFrame]]:
        """Detect hands in a video frame, synchronously or as an awaitable."""
        ...


@runtime_checkable
class ResultSink(Protocol):
    """Append-only consumer of finished session records."""

    def save(self, record: "SessionRecord") -> None:
        """Persist one session record."""
        ...


@runtime_checkable
class HistoryStore(Protocol):
    """Read access to previously persisted sessions."""

    def recent_durations(self, game: str, player_id: str, level: str, limit: int = 5) -> List[float]:
        """Elapsed seconds of the most recent sessions, newest first."""
        ...
