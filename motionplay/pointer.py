"""
Maps one hand's reference keypoint to a smoothed on-screen pointer.
"""
from typing import Optional, Tuple

from .landmarks import reference_point
from .types import Hand, Point, PointerState


class PointerMapper:
    """
    Exponentially smoothed, mirrored pointer for a single hand.

    Features:
    - First sample passes through unsmoothed
    - smoothed = weight * raw + (1 - weight) * previous
    - Horizontal mirroring, since the camera feed is laterally inverted
    - Scaling from normalized model coordinates to the viewport
    """

    def __init__(self, viewport_wh: Tuple[int, int], actor: str = "primary",
                 smoothing: float = 0.5, reference: str = "wrist", mirror: bool = True):
        """
        Initialize the mapper.

        Args:
            viewport_wh: Viewport dimensions (width, height) in pixels
            actor: Identity of the hand that owns the pointer
            smoothing: Weight of the newest sample, in (0, 1]
            reference: Keypoint used as the pointer ("wrist", "palm_center", "pinch_midpoint")
            mirror: Mirror the horizontal axis
        """
        if not 0.0 < smoothing <= 1.0:
            raise ValueError(f"smoothing must be in (0, 1], got {smoothing}")
        self.viewport_wh = viewport_wh
        self.actor = actor
        self.smoothing = smoothing
        self.reference = reference
        self.mirror = mirror
        self._last_norm: Optional[Point] = None
        self.state: Optional[PointerState] = None

    def smooth(self, raw: Point) -> Point:
        """Blend a raw normalized point with the previous smoothed one."""
        prev = self._last_norm
        if prev is None:
            smoothed = raw
        else:
            w = self.smoothing
            smoothed = (w * raw[0] + (1 - w) * prev[0], w * raw[1] + (1 - w) * prev[1])
        self._last_norm = smoothed
        return smoothed

    def to_screen(self, norm: Point) -> Point:
        width, height = self.viewport_wh
        x = (1 - norm[0]) if self.mirror else norm[0]
        return (x * width, norm[1] * height)

    def update(self, hand: Optional[Hand]) -> Optional[PointerState]:
        """
        Feed the hand detected this tick.

        Args:
            hand: Detected hand, or None if the hand was not found

        Returns:
            New pointer state, or None when there is no pointer this tick
        """
        if hand is None:
            self.reset()
            return None

        raw = reference_point(hand.landmarks, self.reference)
        x_px, y_px = self.to_screen(self.smooth(raw))
        self.state = PointerState(x_px=x_px, y_px=y_px, hand=self.actor)
        return self.state

    def reset(self) -> None:
        """Forget smoothing state and report no pointer."""
        self._last_norm = None
        self.state = None
