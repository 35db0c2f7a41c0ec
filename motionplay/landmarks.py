"""
Hand landmark geometry: reference points and closeness metrics.

All functions take the 21 normalized MediaPipe keypoints of one hand and
work on the (x, y) components only.
"""
import math
from typing import Callable, Dict, Sequence, Tuple

from .types import Landmark

WRIST = 0
THUMB_CMC = 1
THUMB_TIP = 4
INDEX_MCP = 5
INDEX_TIP = 8
MIDDLE_MCP = 9
MIDDLE_TIP = 12
RING_MCP = 13
RING_TIP = 16
PINKY_MCP = 17
PINKY_TIP = 20

NUM_LANDMARKS = 21
FINGERTIPS = (THUMB_TIP, INDEX_TIP, MIDDLE_TIP, RING_TIP, PINKY_TIP)
PALM_INDICES = (WRIST, THUMB_CMC, INDEX_MCP, MIDDLE_MCP, RING_MCP, PINKY_MCP)


def _dist(a: Landmark, b: Landmark) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def wrist(landmarks: Sequence[Landmark]) -> Tuple[float, float]:
    return (landmarks[WRIST][0], landmarks[WRIST][1])


def palm_center(landmarks: Sequence[Landmark]) -> Tuple[float, float]:
    """
    Calculate the center of the palm.

    Args:
        landmarks: List of 21 hand landmarks

    Returns:
        (x, y) mean of the wrist, thumb base and the four finger MCP joints
    """
    x_sum = sum(landmarks[i][0] for i in PALM_INDICES)
    y_sum = sum(landmarks[i][1] for i in PALM_INDICES)

    return (x_sum / len(PALM_INDICES), y_sum / len(PALM_INDICES))


def pinch_midpoint(landmarks: Sequence[Landmark]) -> Tuple[float, float]:
    """Midpoint between the thumb tip and the index tip."""
    thumb, index = landmarks[THUMB_TIP], landmarks[INDEX_TIP]
    return ((thumb[0] + index[0]) / 2, (thumb[1] + index[1]) / 2)


def pinch_distance(landmarks: Sequence[Landmark]) -> float:
    """Distance between thumb tip and index tip (pinch closeness)."""
    return _dist(landmarks[THUMB_TIP], landmarks[INDEX_TIP])


def grasp_distance(landmarks: Sequence[Landmark]) -> float:
    """
    Mean distance from each fingertip to the palm keypoint (grasp closeness).

    The wrist is used as the palm keypoint; a closed fist brings every tip
    towards it.
    """
    palm = landmarks[WRIST]
    distances = [_dist(landmarks[tip], palm) for tip in FINGERTIPS]
    return sum(distances) / len(distances)


REFERENCE_POINTS: Dict[str, Callable[[Sequence[Landmark]], Tuple[float, float]]] = {
    "wrist": wrist,
    "palm_center": palm_center,
    "pinch_midpoint": pinch_midpoint,
}

CLOSENESS_METRICS: Dict[str, Callable[[Sequence[Landmark]], float]] = {
    "pinch": pinch_distance,
    "grasp": grasp_distance,
}


def reference_point(landmarks: Sequence[Landmark], name: str) -> Tuple[float, float]:
    """Normalized pointer reference point of a hand by name."""
    try:
        fn = REFERENCE_POINTS[name]
    except KeyError:
        raise ValueError(f"Unknown reference point '{name}'. Available: {list(REFERENCE_POINTS)}")
    return fn(landmarks)


def validate_landmarks(landmarks: Sequence[Landmark]) -> None:
    if len(landmarks) != NUM_LANDMARKS:
        raise ValueError(f"Expected {NUM_LANDMARKS} landmarks, got {len(landmarks)}")
