"""
Configuration management for the motion game suite.
"""
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass, field

from .errors import ConfigError


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int
    width: int
    height: int
    fps: int


@dataclass
class MediaPipeConfig:
    """MediaPipe Hands configuration settings."""
    max_num_hands: int
    min_detection_confidence: float
    min_tracking_confidence: float


@dataclass
class DetectionConfig:
    """Hand detection cadence."""
    interval_ms: int


@dataclass
class ViewportConfig:
    """Play field size in pixels."""
    width: int
    height: int


@dataclass
class MetricsConfig:
    """Session scoring calibration."""
    consistency_window: int
    max_expected_boundary_rate: float


@dataclass
class GameConfig:
    """Per-game gesture and scoring settings."""
    level: str
    metric: Optional[str]
    threshold: float
    reference: str
    smoothing: float
    capture_radius: float
    target_score: Optional[int]
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DisplayConfig:
    """Display configuration settings."""
    show_landmarks: bool
    window_name: str


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig
    mediapipe: MediaPipeConfig
    detection: DetectionConfig
    viewport: ViewportConfig
    metrics: MetricsConfig
    games: Dict[str, GameConfig]
    display: DisplayConfig

    def game(self, name: str) -> GameConfig:
        """Look up one game's settings."""
        if name not in self.games:
            raise ConfigError(f"Unknown game '{name}'. Available: {list(self.games)}")
        return self.games[name]


def default_config_path() -> Path:
    return Path(__file__).parent / "config.default.yaml"


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses the packaged config.default.yaml

    Returns:
        Configuration object with all settings
    """
    config_path = Path(path) if path is not None else default_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} does not contain a mapping")

    return _dict_to_config(data)


def _game_to_config(name: str, game_data: Dict[str, Any]) -> GameConfig:
    game = GameConfig(
        level=game_data['level'],
        metric=game_data.get('metric'),
        threshold=float(game_data.get('threshold', 0.07)),
        reference=game_data.get('reference', 'wrist'),
        smoothing=float(game_data.get('smoothing', 0.5)),
        capture_radius=float(game_data.get('capture_radius', 0.0)),
        target_score=game_data.get('target_score'),
        options=dict(game_data.get('options') or {})
    )
    if not 0.0 < game.smoothing <= 1.0:
        raise ConfigError(f"games.{name}.smoothing must be in (0, 1], got {game.smoothing}")
    if game.metric is not None and game.threshold <= 0:
        raise ConfigError(f"games.{name}.threshold must be positive, got {game.threshold}")
    return game


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    try:
        camera_data = data['camera']
        camera = CameraConfig(
            index=camera_data['index'],
            width=camera_data['width'],
            height=camera_data['height'],
            fps=camera_data['fps']
        )

        mp_data = data['mediapipe']
        mediapipe = MediaPipeConfig(
            max_num_hands=mp_data['max_num_hands'],
            min_detection_confidence=mp_data['min_detection_confidence'],
            min_tracking_confidence=mp_data['min_tracking_confidence']
        )

        detection = DetectionConfig(interval_ms=data['detection']['interval_ms'])

        viewport_data = data['viewport']
        viewport = ViewportConfig(
            width=viewport_data['width'],
            height=viewport_data['height']
        )

        metrics_data = data['metrics']
        metrics = MetricsConfig(
            consistency_window=metrics_data['consistency_window'],
            max_expected_boundary_rate=metrics_data['max_expected_boundary_rate']
        )

        games = {name: _game_to_config(name, game_data) for name, game_data in data['games'].items()}

        display_data = data['display']
        display = DisplayConfig(
            show_landmarks=display_data['show_landmarks'],
            window_name=display_data['window_name']
        )
    except KeyError as e:
        raise ConfigError(f"Missing config key: {e}") from e
    except (TypeError, AttributeError) as e:
        raise ConfigError(f"Malformed config: {e}") from e

    if detection.interval_ms < 0:
        raise ConfigError(f"detection.interval_ms must be non-negative, got {detection.interval_ms}")
    if metrics.consistency_window < 1:
        raise ConfigError(f"metrics.consistency_window must be at least 1, got {metrics.consistency_window}")

    return Cfg(
        camera=camera,
        mediapipe=mediapipe,
        detection=detection,
        viewport=viewport,
        metrics=metrics,
        games=games,
        display=display
    )
