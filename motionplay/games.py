"""
Presets for the five mini-games: layouts, controller wiring and the
game-specific ratios saved with each session.

Layouts are defined on a 960x540 base field and scaled to the viewport.
"""
import itertools
import logging
import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .config import Cfg, GameConfig
from .context import SessionContext
from .errors import ConfigError
from .interaction import (InteractionController, PairedMatchController, PlacementController,
                          ReachController, RegionTrackingController)
from .metrics import SessionMetrics, average_per, movement_stability, percentage
from .regions import Band, Rect, RegionMap
from .types import ManipulableObject, Point, RegionKind, TargetZone

logger = logging.getLogger(__name__)

BASE_WIDTH = 960
BASE_HEIGHT = 540

SHAPE_NAMES = ["circle", "square", "star", "triangle", "love", "moon", "semicircle", "octagon"]
FRUIT_CARDS = ["A", "A", "I", "I", "H", "H", "B", "D"]
ORB_COLORS = ["green", "purple"]

RatioFn = Callable[[SessionMetrics, InteractionController, SessionContext], Dict[str, float]]


@dataclass
class Game:
    """Everything a session needs to run one mini-game."""
    name: str
    level: str
    controller: InteractionController
    metric: Optional[str]
    threshold: float
    reference: str
    smoothing: float
    two_handed: bool
    subtract_boundary_hits: bool
    ratios: RatioFn


class _Scale:
    def __init__(self, viewport_wh: Tuple[int, int]):
        self.sx = viewport_wh[0] / BASE_WIDTH
        self.sy = viewport_wh[1] / BASE_HEIGHT

    def point(self, x: float, y: float) -> Point:
        return (x * self.sx, y * self.sy)

    def length(self, value: float) -> float:
        return value * min(self.sx, self.sy)


def _grid(box: Tuple[float, float, float, float], size: float, count: int, layout: str,
          rng: random.Random, gap: float = 20) -> List[Point]:
    """Centres of `count` items laid out inside box = (x, y, width, height), shuffled."""
    bx, by, bw, bh = box
    positions = []

    if layout == "center":
        cols, rows = 4, 2
        start_x = bx + (bw - (cols * size + (cols - 1) * gap)) / 2 + size / 2
        start_y = by + (bh - (rows * size + (rows - 1) * gap)) / 2 + size / 2
        for r in range(rows):
            for c in range(cols):
                positions.append((start_x + c * (size + gap), start_y + r * (size + gap)))
    elif layout == "vertical":
        start_y = by + (bh - (count * size + (count - 1) * gap)) / 2 + size / 2
        positions = [(bx + bw / 2, start_y + i * (size + gap)) for i in range(count)]
    else:
        start_x = bx + (bw - (count * size + (count - 1) * gap)) / 2 + size / 2
        positions = [(start_x + i * (size + gap), by + bh / 2) for i in range(count)]

    rng.shuffle(positions)
    return positions


def _shape_sense(gc: GameConfig, scale: _Scale, rng: random.Random) -> Game:
    size = gc.options.get('object_size', 90)
    boards = [
        ((30, 150, 150, 250), "vertical"),
        ((780, 150, 150, 250), "vertical"),
        ((280, 20, 400, 120), "horizontal"),
        ((280, 410, 400, 120), "horizontal"),
    ]

    names = list(SHAPE_NAMES)
    rng.shuffle(names)
    zones = []
    for i, (box, layout) in enumerate(boards):
        for name, (x, y) in zip(names[i * 2:i * 2 + 2], _grid(box, size, 2, layout, rng)):
            zx, zy = scale.point(x, y)
            zones.append(TargetZone(f"target-{name}", name, zx, zy, scale.length(gc.capture_radius)))

    objects = []
    for name, (x, y) in zip(SHAPE_NAMES, _grid((230, 150, 500, 250), size, 8, "center", rng)):
        ox, oy = scale.point(x, y)
        objects.append(ManipulableObject(f"shape-{name}", name, ox, oy,
                                         width=scale.length(size), height=scale.length(size)))

    controller = PlacementController(objects, zones, return_to_origin=True, target_score=gc.target_score)

    def ratios(final: SessionMetrics, ctl: InteractionController, ctx: SessionContext) -> Dict[str, float]:
        return {"precision": final.precision}

    return Game("shape_sense", gc.level, controller, gc.metric, gc.threshold, gc.reference, gc.smoothing,
                two_handed=False, subtract_boundary_hits=False, ratios=ratios)


def _orb_catcher(gc: GameConfig, scale: _Scale, rng: random.Random) -> Game:
    size = scale.length(gc.options.get('object_size', 55))
    radius = scale.length(gc.capture_radius)
    zones = [
        TargetZone("basket-green", "green", *scale.point(260, BASE_HEIGHT - 70), radius),
        TargetZone("basket-purple", "purple", *scale.point(BASE_WIDTH - 260, BASE_HEIGHT - 70), radius),
    ]
    counter = itertools.count(1)
    cloud_half_width = 90

    def spawn_orb() -> ManipulableObject:
        color = rng.choice(ORB_COLORS)
        x = rng.uniform(cloud_half_width, BASE_WIDTH - cloud_half_width)
        ox, oy = scale.point(x, 115)
        return ManipulableObject(f"orb-{next(counter)}", color, ox, oy, width=size, height=size)

    controller = PlacementController(
        [], zones,
        return_to_origin=False,
        target_score=gc.target_score,
        spawner=spawn_orb,
        spawn_interval_s=gc.options.get('spawn_interval_s', 3.0),
        fall_speed=gc.options.get('fall_speed_px_s', 18.0) * scale.sy,
        floor_y=(BASE_HEIGHT - gc.options.get('floor_margin', 50)) * scale.sy,
        penalize_losses=True,
    )

    def ratios(final: SessionMetrics, ctl: InteractionController, ctx: SessionContext) -> Dict[str, float]:
        return {
            "grasp_stability": percentage(final.successes, final.successes + final.losses),
            "av_distance": final.average_distance,
        }

    return Game("orb_catcher", gc.level, controller, gc.metric, gc.threshold, gc.reference, gc.smoothing,
                two_handed=False, subtract_boundary_hits=False, ratios=ratios)


def _fruit_sync(gc: GameConfig, scale: _Scale, rng: random.Random) -> Game:
    card_w = gc.options.get('card_width', 106)
    card_h = gc.options.get('card_height', 141)
    matches_per_round = gc.options.get('matches_per_round', 3)
    target_rounds = gc.target_score or 3
    rounds = itertools.count(1)

    spacing = 38 * 1.5
    start_x = BASE_WIDTH / 2 - (card_w * 2 + spacing * 1.5)
    rows_y = (80, BASE_HEIGHT - 60 - card_h - 20)

    def deal() -> List[ManipulableObject]:
        n = next(rounds)
        cards = list(FRUIT_CARDS)
        rng.shuffle(cards)
        objects = []
        for i, card in enumerate(cards):
            col, row = i % 4, i // 4
            x, y = scale.point(start_x + col * (card_w + spacing) + card_w / 2, rows_y[row] + card_h / 2)
            objects.append(ManipulableObject(f"card-{n}-{i}", card, x, y,
                                             width=card_w * scale.sx, height=card_h * scale.sy))
        return objects

    controller = PairedMatchController(deal, matches_per_round=matches_per_round, target_rounds=target_rounds)

    def ratios(final: SessionMetrics, ctl: InteractionController, ctx: SessionContext) -> Dict[str, float]:
        expected_grabs = 2 * matches_per_round * target_rounds
        grasp_precision = percentage(expected_grabs, final.total_grabs)
        return {
            "grasp_precision": max(0.0, min(100.0, grasp_precision)),
            "left_distance": round(final.distance_by_actor.get("left", 0.0)),
            "right_distance": round(final.distance_by_actor.get("right", 0.0)),
        }

    return Game("fruit_sync", gc.level, controller, gc.metric, gc.threshold, gc.reference, gc.smoothing,
                two_handed=True, subtract_boundary_hits=False, ratios=ratios)


ROAD_PATH = ((80, 150), (380, 150), (480, 390), (700, 390), (800, 200), (940, 200))
ROAD_GOAL = (870, 130, 960, 270)


def road_regions(scale: _Scale, half_width: float) -> RegionMap:
    """Winding road corridor from the start area to a finish block on the right."""
    gx0, gy0 = scale.point(ROAD_GOAL[0], ROAD_GOAL[1])
    gx1, gy1 = scale.point(ROAD_GOAL[2], ROAD_GOAL[3])
    path = tuple(scale.point(x, y) for x, y in ROAD_PATH)
    return RegionMap([
        (Rect(gx0, gy0, gx1, gy1), RegionKind.GOAL),
        (Band(path, scale.length(half_width)), RegionKind.PERMITTED),
    ], default=RegionKind.FORBIDDEN)


def _road_tracer(gc: GameConfig, scale: _Scale, rng: random.Random) -> Game:
    grab = scale.length(gc.options.get('grab_radius', 60))
    regions = road_regions(scale, gc.options.get('road_half_width', 60))
    car = ManipulableObject("car", "car", *scale.point(150, BASE_HEIGHT / 2 - 120), width=grab * 2, height=grab * 2)
    controller = RegionTrackingController(car, regions, target_score=gc.target_score)

    def ratios(final: SessionMetrics, ctl: InteractionController, ctx: SessionContext) -> Dict[str, float]:
        return {"pinch_accuracy": final.precision, "trace_stability": final.stability}

    return Game("road_tracer", gc.level, controller, gc.metric, gc.threshold, gc.reference, gc.smoothing,
                two_handed=False, subtract_boundary_hits=True, ratios=ratios)


def _buzz_tap(gc: GameConfig, scale: _Scale, rng: random.Random) -> Game:
    radius = scale.length(gc.capture_radius or 30)
    counter = itertools.count(1)

    def spawn_bee() -> TargetZone:
        x, y = scale.point(rng.uniform(40, BASE_WIDTH - 40), rng.uniform(40, BASE_HEIGHT - 40))
        return TargetZone(f"bee-{next(counter)}", "bee", x, y, radius)

    controller = ReachController(
        spawn_bee,
        target_score=gc.target_score,
        touch_tolerance=scale.length(gc.options.get('touch_tolerance', 10)),
        move_threshold=scale.length(gc.options.get('move_threshold', 10)),
        respawn_delay_s=gc.options.get('respawn_delay_s', 0.7),
    )

    def ratios(final: SessionMetrics, ctl: InteractionController, ctx: SessionContext) -> Dict[str, float]:
        return {
            "average_reaction_time": final.average_reaction_time,
            "movement_stability": movement_stability(final.path_deviations),
            "normalized_distance": average_per(final.total_distance, ctl.score(ctx)),
        }

    return Game("buzz_tap", gc.level, controller, gc.metric, gc.threshold, gc.reference, gc.smoothing,
                two_handed=False, subtract_boundary_hits=False, ratios=ratios)


GAMES: Dict[str, Callable[[GameConfig, _Scale, random.Random], Game]] = {
    "shape_sense": _shape_sense,
    "orb_catcher": _orb_catcher,
    "fruit_sync": _fruit_sync,
    "road_tracer": _road_tracer,
    "buzz_tap": _buzz_tap,
}


def build_game(name: str, cfg: Cfg, rng: Optional[random.Random] = None) -> Game:
    """
    Build a mini-game preset.

    Args:
        name: Game name, one of GAMES
        cfg: Loaded configuration
        rng: Random source for layouts and spawns (seed it for reproducible rounds)

    Returns:
        Game bundle with a fresh controller
    """
    if name not in GAMES:
        raise ConfigError(f"Unknown game '{name}'. Available: {list(GAMES)}")
    scale = _Scale((cfg.viewport.width, cfg.viewport.height))
    game = GAMES[name](cfg.game(name), scale, rng or random.Random())
    logger.info(f"🎮 Built {name} ({game.level})")
    return game
