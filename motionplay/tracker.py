"""
Hand landmark detection using MediaPipe, exposed as a landmark source.
"""
import logging
from typing import List, Optional, Sequence

import cv2
import mediapipe as mp
import numpy as np

from .landmarks import validate_landmarks
from .types import HANDEDNESS_LABELS, UNKNOWN, Hand, Landmark, LandmarkFrame

logger = logging.getLogger(__name__)


def _label(raw: Optional[str]) -> str:
    label = (raw or "").strip().lower()
    return label if label in HANDEDNESS_LABELS else UNKNOWN


class HandsTracker:
    """
    Hand landmark tracker using MediaPipe Hands.

    Uses the legacy `mp.solutions.hands` API when the installed MediaPipe
    provides it and the Tasks HandLandmarker otherwise (which needs a
    `.task` model file on disk). Calling the tracker with a BGR frame and a
    timestamp returns a LandmarkFrame, so it plugs straight into the
    detection scheduler.
    """

    def __init__(self, max_num_hands: int = 2, min_detection_conf: float = 0.5, min_tracking_conf: float = 0.5,
                 tasks_model_path: str = "models/hand_landmarker.task"):
        """
        Initialize the hands tracker.

        Args:
            max_num_hands: Maximum number of hands to detect
            min_detection_conf: Minimum confidence for hand detection
            min_tracking_conf: Minimum confidence for hand tracking
            tasks_model_path: HandLandmarker model, only used without `mp.solutions`
        """
        self.hands = None
        self.landmarker = None
        self._last_ts_ms = -1

        if hasattr(mp, "solutions"):
            self.hands = mp.solutions.hands.Hands(
                static_image_mode=False,
                max_num_hands=max_num_hands,
                min_detection_confidence=min_detection_conf,
                min_tracking_confidence=min_tracking_conf
            )
            logger.info("🖐️ MediaPipe Hands initialized")
        else:
            self.landmarker = self._create_landmarker(tasks_model_path, max_num_hands,
                                                      min_detection_conf, min_tracking_conf)
            logger.info("🖐️ HandLandmarker initialized")

    @staticmethod
    def _create_landmarker(model_path: str, max_num_hands: int, min_detection_conf: float,
                           min_tracking_conf: float):
        from mediapipe.tasks.python import BaseOptions
        from mediapipe.tasks.python.vision import HandLandmarker, HandLandmarkerOptions, RunningMode

        try:
            options = HandLandmarkerOptions(
                base_options=BaseOptions(model_asset_path=model_path),
                running_mode=RunningMode.VIDEO,
                num_hands=max_num_hands,
                min_hand_detection_confidence=min_detection_conf,
                min_tracking_confidence=min_tracking_conf,
            )
            return HandLandmarker.create_from_options(options)
        except (FileNotFoundError, RuntimeError, ValueError) as e:
            raise RuntimeError(f"Could not create HandLandmarker from {model_path}: {e}") from e

    def __call__(self, frame_bgr: np.ndarray, timestamp_ms: float) -> LandmarkFrame:
        return self.process(frame_bgr, timestamp_ms)

    def process(self, frame_bgr: np.ndarray, timestamp_ms: float = 0.0) -> LandmarkFrame:
        """
        Process a frame and return every detected hand.

        Args:
            frame_bgr: Input frame in BGR format
            timestamp_ms: Frame timestamp, must increase between calls

        Returns:
            LandmarkFrame with 21 normalized (x, y, z) points per hand
        """
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)

        if self.hands is not None:
            results = self.hands.process(frame_rgb)
            hand_list = results.multi_hand_landmarks or []
            handedness = results.multi_handedness or []
            hands = []
            for i, hand_landmarks in enumerate(hand_list):
                label, score = None, None
                if i < len(handedness) and handedness[i].classification:
                    c = handedness[i].classification[0]
                    label, score = c.label, float(c.score)
                hands.append(self._build_hand(hand_landmarks.landmark, label, score))
            return LandmarkFrame(hands=tuple(hands), timestamp_ms=timestamp_ms)

        # VIDEO mode needs strictly increasing timestamps
        ts = max(int(timestamp_ms), self._last_ts_ms + 1)
        self._last_ts_ms = ts
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)
        result = self.landmarker.detect_for_video(image, ts)

        hands = []
        for i, landmarks in enumerate(result.hand_landmarks or []):
            label, score = None, None
            if i < len(result.handedness) and result.handedness[i]:
                category = result.handedness[i][0]
                label, score = category.category_name, float(category.score)
            hands.append(self._build_hand(landmarks, label, score))
        return LandmarkFrame(hands=tuple(hands), timestamp_ms=timestamp_ms)

    @staticmethod
    def _build_hand(landmarks, label: Optional[str], score: Optional[float]) -> Hand:
        points: List[Landmark] = [(float(lm.x), float(lm.y), float(getattr(lm, "z", 0.0))) for lm in landmarks]
        validate_landmarks(points)
        return Hand(handedness=_label(label), landmarks=tuple(points), score=score)

    def draw_landmarks(self, frame: np.ndarray, landmarks: Sequence[Landmark]) -> np.ndarray:
        """
        Draw hand landmarks on the frame.

        Args:
            frame: Input frame
            landmarks: 21 normalized points

        Returns:
            Frame with landmarks drawn
        """
        height, width = frame.shape[:2]
        for x, y, _ in landmarks:
            cv2.circle(frame, (int(x * width), int(y * height)), 3, (0, 255, 0), -1)
        return frame

    def close(self) -> None:
        if self.hands is not None:
            self.hands.close()
        if self.landmarker is not None:
            self.landmarker.close()
