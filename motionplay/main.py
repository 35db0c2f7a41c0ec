"""
Camera entry point: runs one mini-game session with an OpenCV debug overlay.
"""
import argparse
import asyncio
import logging
import time
from typing import Optional

import cv2
import numpy as np

from .config import load_config
from .games import GAMES
from .interaction import PairedMatchController, PlacementController, ReachController, RegionTrackingController
from .session import GameSession
from .storage import InMemoryResultStore, JsonlResultStore
from .tracker import HandsTracker
from .types import LandmarkFrame

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255)
GREEN = (0, 255, 0)
RED = (0, 0, 255)
YELLOW = (0, 255, 255)


class MotionPlayApp:
    """Webcam game loop for one session."""

    def __init__(self, game: str, player_id: str, results_path: Optional[str] = None,
                 config_path: Optional[str] = None):
        """Initialize the application with configuration."""
        self.config = load_config(config_path)
        self.tracker = HandsTracker(
            max_num_hands=self.config.mediapipe.max_num_hands,
            min_detection_conf=self.config.mediapipe.min_detection_confidence,
            min_tracking_conf=self.config.mediapipe.min_tracking_confidence
        )
        self.store = JsonlResultStore(results_path) if results_path else InMemoryResultStore()
        self.session = GameSession.from_config(self.config, game, self.detect, player_id,
                                               sink=self.store, history=self.store)
        self.viewport_wh = (self.config.viewport.width, self.config.viewport.height)

        # Initialize camera
        self.cap = cv2.VideoCapture(self.config.camera.index)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.camera.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.camera.height)
        self.cap.set(cv2.CAP_PROP_FPS, self.config.camera.fps)

        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open camera {self.config.camera.index}")

    async def detect(self, frame: np.ndarray, timestamp_ms: float) -> LandmarkFrame:
        """Run inference off the render loop."""
        return await asyncio.to_thread(self.tracker, frame.copy(), timestamp_ms)

    async def run(self):
        """Run the main application loop."""
        logger.info(f"Starting {self.config.display.window_name}: {self.session.game.name}")
        logger.info("Press 'q' to quit")

        last = time.monotonic()
        self.session.start(last)

        try:
            while not self.session.is_complete:
                ret, frame = self.cap.read()
                if not ret:
                    logger.error("Failed to read frame from camera")
                    break

                frame = cv2.resize(frame, self.viewport_wh)
                now = time.monotonic()
                result = self.session.tick(frame, now, now - last)
                last = now

                for event in result.events:
                    logger.debug(f"{event.kind.value}: {event.object_id}")

                if self.config.display.show_landmarks and self.session.last_detection is not None:
                    for hand in self.session.last_detection.hands:
                        self.tracker.draw_landmarks(frame, hand.landmarks)

                view = cv2.flip(frame, 1)
                self.draw(view)
                cv2.imshow(self.config.display.window_name, view)

                if cv2.waitKey(1) & 0xFF == ord('q'):
                    break

                # let the detection task make progress
                await asyncio.sleep(0)
        finally:
            record = self.session.finish(time.monotonic())
            logger.info(f"Score {record.score} in {record.elapsed_seconds:.0f}s, ratios={record.ratios}")
            self.close()

    def draw(self, frame: np.ndarray) -> None:
        """Minimal debug overlay: objects, zones, pointers and score."""
        controller = self.session.controller

        zones = getattr(controller, "zones", [])
        for zone in zones:
            cv2.circle(frame, (int(zone.x), int(zone.y)), int(zone.capture_radius), YELLOW, 2)
            cv2.putText(frame, zone.category, (int(zone.x) - 20, int(zone.y)), cv2.FONT_HERSHEY_SIMPLEX,
                        0.4, YELLOW, 1)

        if isinstance(controller, ReachController) and controller.target is not None:
            t = controller.target
            cv2.circle(frame, (int(t.x), int(t.y)), int(t.capture_radius), YELLOW, -1)

        if isinstance(controller, (PlacementController, PairedMatchController, RegionTrackingController)):
            for obj in controller.objects:
                if obj.resolved and not isinstance(controller, PlacementController):
                    continue
                top_left = (int(obj.x - obj.width / 2), int(obj.y - obj.height / 2))
                bottom_right = (int(obj.x + obj.width / 2), int(obj.y + obj.height / 2))
                color = GREEN if obj.resolved else (RED if obj.held else WHITE)
                cv2.rectangle(frame, top_left, bottom_right, color, 2)
                cv2.putText(frame, obj.category, (top_left[0] + 4, top_left[1] + 16), cv2.FONT_HERSHEY_SIMPLEX,
                            0.4, color, 1)

        for pointer in self.session.pointers:
            cv2.circle(frame, (int(pointer.x_px), int(pointer.y_px)), 8, RED, -1)

        status = f"{self.session.game.name}  score: {self.session.score}"
        cv2.putText(frame, status, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, WHITE, 2)
        cv2.putText(frame, "Press 'q' to quit", (10, frame.shape[0] - 20), cv2.FONT_HERSHEY_SIMPLEX, 0.5, WHITE, 1)

    def close(self):
        """Cleanup resources."""
        self.cap.release()
        self.tracker.close()
        cv2.destroyAllWindows()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Camera-driven hand exercise games")
    parser.add_argument("--game", choices=sorted(GAMES), default="shape_sense")
    parser.add_argument("--player", default="guest", help="Player identity saved with the results")
    parser.add_argument("--results", help="JSON-lines file for session records (in memory if omitted)")
    parser.add_argument("--config", help="YAML config file (packaged defaults if omitted)")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser.parse_args(argv)


async def main(argv=None):
    """Entry point for the application."""
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = MotionPlayApp(args.game, args.player, results_path=args.results, config_path=args.config)
    try:
        await app.run()
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
