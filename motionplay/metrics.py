"""
Per-session metric accumulation and derived performance ratios.
"""
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import SessionFinalizedError

logger = logging.getLogger(__name__)


def _round2(value: float) -> float:
    return round(value * 100) / 100


def _clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def percentage(numerator: float, denominator: float) -> float:
    """numerator / denominator * 100, rounded to 2 decimals; 0 when denominator <= 0."""
    if denominator <= 0:
        return 0.0
    return _round2(numerator / denominator * 100)


def precision_ratio(successes: int, attempts: int, boundary_hits: int = 0,
                    subtract_boundary_hits: bool = False) -> float:
    """
    Successful attempts as a percentage of attempts.

    Args:
        successes: Number of successful attempts
        attempts: Number of attempts
        boundary_hits: Disqualifying events
        subtract_boundary_hits: Remove boundary hits from the denominator first

    Returns:
        Percentage in [0, 100]; 0 when there are no valid attempts
    """
    valid = attempts - boundary_hits if subtract_boundary_hits else attempts
    return _clamp(percentage(successes, valid))


def stability_ratio(boundary_hits: int, elapsed_seconds: float, max_expected_rate: float = 1.0) -> float:
    """
    (1 - min(hit_rate / max_expected_rate, 1)) * 100 where hit_rate is hits per second.

    Zero elapsed time gives a hit rate of 0.
    """
    rate = boundary_hits / elapsed_seconds if elapsed_seconds > 0 else 0.0
    normalized = min(rate / max_expected_rate, 1.0) if max_expected_rate > 0 else 1.0
    return max(0.0, _round2((1 - normalized) * 100))


def average_per(total: float, count: int) -> float:
    """total / count rounded to 2 decimals, 0 when count is 0."""
    if count <= 0:
        return 0.0
    return _round2(total / count)


def movement_stability(deviation_ratios: Sequence[float]) -> float:
    """100 minus the mean path deviation (as a percentage), clamped to [0, 100]."""
    if not deviation_ratios:
        return 0.0
    mean_pct = sum(deviation_ratios) / len(deviation_ratios) * 100
    return _round2(_clamp(100 - mean_pct))


@dataclass(frozen=True)
class SessionMetrics:
    """Immutable end-of-session snapshot of every counter plus derived ratios."""
    elapsed_seconds: float
    total_distance: float
    attempts: int
    successes: int
    successes_by_category: Mapping[str, int]
    boundary_hits: int
    losses: int
    distance_by_object: Mapping[str, float]
    distance_by_actor: Mapping[str, float]
    grabs_by_actor: Mapping[str, int]
    reaction_times: Tuple[float, ...]
    path_deviations: Tuple[float, ...]
    precision: float
    stability: float
    average_distance: float

    @property
    def objects_manipulated(self) -> int:
        return len(self.distance_by_object)

    @property
    def total_grabs(self) -> int:
        return sum(self.grabs_by_actor.values())

    @property
    def average_reaction_time(self) -> float:
        return average_per(sum(self.reaction_times), len(self.reaction_times))


class SessionMetricsAccumulator:
    """
    Monotonic counters for one session.

    All mutation happens from the game loop; finalize() may be called exactly
    once, after which every recording call raises SessionFinalizedError.
    """

    def __init__(self, subtract_boundary_hits: bool = False, max_expected_rate: float = 1.0):
        """
        Initialize counters.

        Args:
            subtract_boundary_hits: Precision policy, remove boundary hits from attempts
            max_expected_rate: Boundary hits per second treated as zero stability
        """
        self.subtract_boundary_hits = subtract_boundary_hits
        self.max_expected_rate = max_expected_rate

        self.total_distance = 0.0
        self.attempts = 0
        self.successes = 0
        self.boundary_hits = 0
        self.losses = 0
        self.successes_by_category: Dict[str, int] = {}
        self.distance_by_object: Dict[str, float] = {}
        self.distance_by_actor: Dict[str, float] = {}
        self.grabs_by_actor: Dict[str, int] = {}
        self.reaction_times: List[float] = []
        self.path_deviations: List[float] = []
        self._final: Optional[SessionMetrics] = None

    @property
    def finalized(self) -> bool:
        return self._final is not None

    def _check_open(self) -> None:
        if self._final is not None:
            raise SessionFinalizedError("Session metrics are already finalized")

    def record_attempt(self) -> None:
        self._check_open()
        self.attempts += 1

    def record_success(self, category: Optional[str] = None) -> None:
        self._check_open()
        self.successes += 1
        if category is not None:
            self.successes_by_category[category] = self.successes_by_category.get(category, 0) + 1

    def record_boundary_hit(self) -> None:
        self._check_open()
        self.boundary_hits += 1
        logger.debug(f"🚧 Boundary hit! Total: {self.boundary_hits}")

    def record_loss(self) -> None:
        """Count an object that was lost without being placed."""
        self._check_open()
        self.losses += 1

    def record_pickup(self, object_id: str) -> None:
        """Register an object as manipulated in this session."""
        self._check_open()
        self.distance_by_object.setdefault(object_id, 0.0)

    def record_grab(self, actor: str) -> None:
        self._check_open()
        self.grabs_by_actor[actor] = self.grabs_by_actor.get(actor, 0) + 1

    def add_distance(self, delta: float, object_id: Optional[str] = None, actor: Optional[str] = None) -> None:
        """
        Add movement to the session total and, optionally, to an object and an actor.

        Args:
            delta: Non-negative distance in pixels
            object_id: Object that moved
            actor: Hand that moved
        """
        self._check_open()
        if delta < 0:
            raise ValueError(f"distance delta must be non-negative, got {delta}")
        self.total_distance += delta
        if object_id is not None:
            self.distance_by_object[object_id] = self.distance_by_object.get(object_id, 0.0) + delta
        if actor is not None:
            self.distance_by_actor[actor] = self.distance_by_actor.get(actor, 0.0) + delta

    def record_reaction_time(self, seconds: float) -> None:
        self._check_open()
        self.reaction_times.append(max(0.0, seconds))

    def record_path_deviation(self, ratio: float) -> None:
        """Record the mean perpendicular deviation ratio of one reach movement."""
        self._check_open()
        self.path_deviations.append(max(0.0, ratio))

    def finalize(self, elapsed_seconds: float) -> SessionMetrics:
        """
        Freeze the counters and compute derived ratios.

        Args:
            elapsed_seconds: Session duration

        Returns:
            Immutable SessionMetrics snapshot
        """
        self._check_open()
        elapsed = max(0.0, elapsed_seconds)

        self._final = SessionMetrics(
            elapsed_seconds=elapsed,
            total_distance=self.total_distance,
            attempts=self.attempts,
            successes=self.successes,
            successes_by_category=MappingProxyType(dict(self.successes_by_category)),
            boundary_hits=self.boundary_hits,
            losses=self.losses,
            distance_by_object=MappingProxyType(dict(self.distance_by_object)),
            distance_by_actor=MappingProxyType(dict(self.distance_by_actor)),
            grabs_by_actor=MappingProxyType(dict(self.grabs_by_actor)),
            reaction_times=tuple(self.reaction_times),
            path_deviations=tuple(self.path_deviations),
            precision=precision_ratio(self.successes, self.attempts, self.boundary_hits,
                                      self.subtract_boundary_hits),
            stability=stability_ratio(self.boundary_hits, elapsed, self.max_expected_rate),
            average_distance=average_per(self.total_distance, len(self.distance_by_object)),
        )
        logger.info(f"📊 Session finalized: {self.successes}/{self.attempts} in {elapsed:.0f}s, "
                    f"distance={self.total_distance:.0f}px")
        return self._final
