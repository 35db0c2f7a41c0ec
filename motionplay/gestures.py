"""
Gesture classification: turns hand keypoint geometry into engaged/released
events.
"""
import logging
from typing import Optional

from .landmarks import CLOSENESS_METRICS
from .types import GestureState, GestureTransition, GestureUpdate, Hand

logger = logging.getLogger(__name__)


class GestureClassifier:
    """
    Two-state {released, engaged} machine driven by a closeness metric.

    Features:
    - "pinch": thumb tip to index tip distance
    - "grasp": mean fingertip to palm distance
    - Enter engaged when closeness < threshold while released
    - Leave engaged when closeness >= threshold while engaged
    - No extra debounce; the detection interval already sub-samples the signal
    """

    def __init__(self, metric: str = "pinch", threshold: float = 0.07, actor: str = "primary"):
        """
        Initialize the classifier.

        Args:
            metric: Closeness metric name ("pinch" or "grasp")
            threshold: Normalized distance below which the gesture is engaged
            actor: Identity of the hand this classifier follows
        """
        if metric not in CLOSENESS_METRICS:
            raise ValueError(f"Unknown gesture metric '{metric}'. Available: {list(CLOSENESS_METRICS)}")
        if threshold <= 0:
            raise ValueError(f"threshold must be positive, got {threshold}")
        self.metric = metric
        self.threshold = threshold
        self._closeness = CLOSENESS_METRICS[metric]
        self.state = GestureState(engaged=False, hand=actor)

    @property
    def engaged(self) -> bool:
        return self.state.engaged

    def classify(self, closeness: float) -> GestureUpdate:
        """
        Apply one closeness sample to the state machine.

        Args:
            closeness: Scalar distance produced by the metric

        Returns:
            GestureUpdate with the new state and the transition, if any
        """
        transition = GestureTransition.NONE

        if not self.state.engaged and closeness < self.threshold:
            self.state.engaged = True
            transition = GestureTransition.STARTED
        elif self.state.engaged and closeness >= self.threshold:
            self.state.engaged = False
            transition = GestureTransition.ENDED

        if transition is not GestureTransition.NONE:
            logger.debug(f"✋ {self.state.hand} {self.metric} {transition.value} (closeness={closeness:.3f})")

        return GestureUpdate(engaged=self.state.engaged, transition=transition, closeness=closeness)

    def update(self, hand: Hand) -> GestureUpdate:
        """Compute the closeness metric of a detected hand and classify it."""
        return self.classify(self._closeness(hand.landmarks))

    def reset(self) -> Optional[GestureUpdate]:
        """
        Drop back to released after tracking loss.

        Returns:
            The ended update if the gesture was engaged, None otherwise
        """
        if not self.state.engaged:
            return None
        self.state.engaged = False
        return GestureUpdate(engaged=False, transition=GestureTransition.ENDED, closeness=float("inf"))
