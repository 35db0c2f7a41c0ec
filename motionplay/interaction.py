"""
Interaction controllers: pick-up, drag and resolution of on-screen objects
driven by pointer positions and gesture transitions.

Variants:
- PlacementController: drag one object onto a target zone of its category
- PairedMatchController: two hands each select an object, same category matches
- RegionTrackingController: a controlled object is classified against field regions
- ReachController: touch a target with the pointer as quickly and directly as possible
"""
import logging
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from .context import SessionContext
from .regions import RegionMap, segment_distance
from .types import (LEFT, RIGHT, ActorInput, EventKind, InteractionEvent, ManipulableObject,
                    Point, RegionKind, TargetZone, distance)

logger = logging.getLogger(__name__)


class InteractionController:
    """
    Common state and behaviour of every controller variant.

    The game loop calls step() once per completed detection with the inputs
    of every tracked hand, release_actor() for each hand that stopped being
    tracked, and advance() once per render tick.
    """

    def __init__(self, objects: Sequence[ManipulableObject] = (), target_score: Optional[int] = None):
        self.objects: List[ManipulableObject] = list(objects)
        self.target_score = target_score
        self._holds: Dict[str, ManipulableObject] = {}
        self._grab_offsets: Dict[str, Point] = {}

    def step(self, ctx: SessionContext, inputs: Mapping[str, ActorInput]) -> List[InteractionEvent]:
        raise NotImplementedError

    def release_actor(self, ctx: SessionContext, actor: str) -> List[InteractionEvent]:
        """Tracking loss: let go of whatever the hand held, without scoring."""
        obj = self._holds.pop(actor, None)
        if obj is None:
            return []
        self._let_go(obj)
        logger.debug(f"👋 {actor} lost tracking, released {obj.object_id}")
        return [InteractionEvent(EventKind.RELEASED, actor, obj.object_id, obj.category)]

    def advance(self, ctx: SessionContext, dt: float) -> List[InteractionEvent]:
        """Per render tick housekeeping."""
        return []

    def score(self, ctx: SessionContext) -> int:
        return ctx.metrics.successes

    def is_complete(self, ctx: SessionContext) -> bool:
        if self.target_score is not None:
            return self.score(ctx) >= self.target_score
        return bool(self.objects) and all(obj.resolved for obj in self.objects)

    def held_by(self, actor: str) -> Optional[ManipulableObject]:
        return self._holds.get(actor)

    def _grab(self, actor: str, obj: ManipulableObject, point: Optional[Point] = None) -> None:
        obj.held = True
        obj.held_by = actor
        self._holds[actor] = obj
        # where on the object it was grabbed; drags keep this offset
        if point is None:
            self._grab_offsets[obj.object_id] = (0.0, 0.0)
        else:
            self._grab_offsets[obj.object_id] = (point[0] - obj.x, point[1] - obj.y)

    def _let_go(self, obj: ManipulableObject) -> None:
        obj.held = False
        obj.held_by = None
        self._grab_offsets.pop(obj.object_id, None)

    def _drag(self, ctx: SessionContext, obj: ManipulableObject, point: Point) -> float:
        """Move a held object with the pointer and account for the distance moved."""
        dx, dy = self._grab_offsets.get(obj.object_id, (0.0, 0.0))
        target = (point[0] - dx, point[1] - dy)
        step = distance(obj.position, target)
        obj.move_to(target)
        obj.distance += step
        ctx.metrics.add_distance(step, object_id=obj.object_id)
        return step


class PlacementController(InteractionController):
    """
    Single object to target zone placement.

    Features:
    - Pick-up scans free objects, most recently interacted first
    - Release is an attempt; success when the nearest zone of the same
      category is closer than its capture radius
    - Unsuccessful release returns the object to its origin or leaves it in place
    - Optional spawning and falling of objects, with losses at the floor line
    """

    def __init__(self, objects: Sequence[ManipulableObject], zones: Sequence[TargetZone],
                 return_to_origin: bool = True, target_score: Optional[int] = None,
                 spawner: Optional[Callable[[], ManipulableObject]] = None, spawn_interval_s: float = 3.0,
                 fall_speed: float = 0.0, floor_y: Optional[float] = None, penalize_losses: bool = False):
        """
        Initialize the controller.

        Args:
            objects: Objects present at round start
            zones: Target zones, immutable for the round
            return_to_origin: Move objects back to their origin after a miss or a drop
            target_score: Score that completes the game (None means all objects resolved)
            spawner: Factory for a new object when none is live
            spawn_interval_s: Minimum seconds between spawns
            fall_speed: Pixels per second unheld objects move down
            floor_y: Objects below this line are lost
            penalize_losses: Lost objects reduce the score
        """
        super().__init__(objects, target_score)
        self.zones: List[TargetZone] = list(zones)
        self.return_to_origin = return_to_origin
        self.spawner = spawner
        self.spawn_interval_s = spawn_interval_s
        self.fall_speed = fall_speed
        self.floor_y = floor_y
        self.penalize_losses = penalize_losses
        self._last_spawn_at: Optional[float] = None
        self.points = 0

    def step(self, ctx: SessionContext, inputs: Mapping[str, ActorInput]) -> List[InteractionEvent]:
        events: List[InteractionEvent] = []

        for actor, actor_input in inputs.items():
            point = actor_input.pointer.position
            gesture = actor_input.gesture

            if gesture.started:
                events.extend(self._pick_up(ctx, actor, point))
            elif gesture.ended:
                events.extend(self._release(ctx, actor))

            held = self._holds.get(actor)
            if gesture.engaged and held is not None:
                self._drag(ctx, held, point)

        return events

    def _pick_up(self, ctx: SessionContext, actor: str, point: Point) -> List[InteractionEvent]:
        if actor in self._holds:
            return []

        for i in range(len(self.objects) - 1, -1, -1):
            obj = self.objects[i]
            if obj.resolved or obj.held or not obj.contains(point):
                continue
            self._grab(actor, obj, point)
            # most recently interacted objects are scanned first next time
            self.objects.append(self.objects.pop(i))
            ctx.metrics.record_pickup(obj.object_id)
            return [InteractionEvent(EventKind.PICKED_UP, actor, obj.object_id, obj.category)]

        return []

    def nearest_zone(self, obj: ManipulableObject) -> Optional[TargetZone]:
        matching = [zone for zone in self.zones if zone.category == obj.category]
        if not matching:
            return None
        return min(matching, key=lambda zone: distance(zone.position, obj.position))

    def _release(self, ctx: SessionContext, actor: str) -> List[InteractionEvent]:
        obj = self._holds.pop(actor, None)
        if obj is None:
            return []

        self._let_go(obj)
        ctx.metrics.record_attempt()

        zone = self.nearest_zone(obj)
        if zone is not None and distance(zone.position, obj.position) < zone.capture_radius:
            obj.move_to(zone.position)
            obj.resolved = True
            ctx.metrics.record_success(obj.category)
            self.points += 1
            logger.info(f"✅ {obj.object_id} placed on {zone.zone_id}")
            return [InteractionEvent(EventKind.PLACED, actor, obj.object_id, obj.category)]

        if self.return_to_origin:
            obj.move_to(obj.origin)
        return [InteractionEvent(EventKind.MISSED, actor, obj.object_id, obj.category)]

    def release_actor(self, ctx: SessionContext, actor: str) -> List[InteractionEvent]:
        held = self._holds.get(actor)
        events = super().release_actor(ctx, actor)
        if held is not None and self.return_to_origin:
            held.move_to(held.origin)
        return events

    def advance(self, ctx: SessionContext, dt: float) -> List[InteractionEvent]:
        events: List[InteractionEvent] = []

        if self.fall_speed > 0:
            for obj in self.objects:
                if obj.resolved or obj.held:
                    continue
                obj.y += self.fall_speed * dt
                if self.floor_y is not None and obj.y > self.floor_y:
                    obj.resolved = True
                    ctx.metrics.record_loss()
                    if self.penalize_losses:
                        self.points = max(0, self.points - 1)
                    logger.info(f"💥 {obj.object_id} lost")
                    events.append(InteractionEvent(EventKind.LOST, None, obj.object_id, obj.category))

        if self.spawner is not None:
            # spawned objects leave the field once placed or lost
            self.objects = [obj for obj in self.objects if not obj.resolved]

        if self.spawner is not None and not self.is_complete(ctx):
            if self._last_spawn_at is None:
                self._last_spawn_at = ctx.now
            live = bool(self.objects)
            if not live and ctx.now - self._last_spawn_at >= self.spawn_interval_s:
                obj = self.spawner()
                self.objects.append(obj)
                self._last_spawn_at = ctx.now
                events.append(InteractionEvent(EventKind.SPAWNED, None, obj.object_id, obj.category))

        return events

    def score(self, ctx: SessionContext) -> int:
        return self.points


class PairedMatchController(InteractionController):
    """
    Two-hand matching: each hand selects one object, and when both hands are
    engaged at once the pair matches if it shares a category.

    A mismatch clears both selections without counting an attempt; selections
    are counted per hand as grabs instead. Pointer travel is tracked per hand.
    """

    def __init__(self, layout: Callable[[], List[ManipulableObject]], matches_per_round: int = 3,
                 target_rounds: int = 3, actors: Sequence[str] = (LEFT, RIGHT)):
        super().__init__(layout(), target_rounds)
        self.layout = layout
        self.matches_per_round = matches_per_round
        self.actors = tuple(actors)
        self.round_matches = 0
        self.rounds_completed = 0
        self._engaged: Dict[str, bool] = {}
        self._last_pointer: Dict[str, Point] = {}

    def object_at(self, point: Point) -> Optional[ManipulableObject]:
        for obj in self.objects:
            if not obj.resolved and not obj.held and obj.contains(point):
                return obj
        return None

    def step(self, ctx: SessionContext, inputs: Mapping[str, ActorInput]) -> List[InteractionEvent]:
        events: List[InteractionEvent] = []

        for actor, actor_input in inputs.items():
            if actor not in self.actors:
                continue
            point = actor_input.pointer.position
            gesture = actor_input.gesture

            prev = self._last_pointer.get(actor)
            if prev is not None:
                ctx.metrics.add_distance(distance(prev, point), actor=actor)
            self._last_pointer[actor] = point
            self._engaged[actor] = gesture.engaged

            if gesture.started:
                obj = self.object_at(point)
                if obj is not None:
                    self._clear(actor)
                    self._grab(actor, obj)
                    ctx.metrics.record_grab(actor)
                    events.append(InteractionEvent(EventKind.SELECTED, actor, obj.object_id, obj.category))
            elif not gesture.engaged:
                self._clear(actor)

        if len(self._holds) == len(self.actors) and all(self._engaged.get(a) for a in self.actors):
            events.extend(self._resolve(ctx))

        return events

    def _clear(self, actor: str) -> None:
        obj = self._holds.pop(actor, None)
        if obj is not None:
            self._let_go(obj)

    def _resolve(self, ctx: SessionContext) -> List[InteractionEvent]:
        first, second = (self._holds[a] for a in self.actors)
        for actor in self.actors:
            self._clear(actor)

        if first.category != second.category or first is second:
            return [InteractionEvent(EventKind.MISMATCHED, None, None, None)]

        first.resolved = True
        second.resolved = True
        ctx.metrics.record_success(first.category)
        self.round_matches += 1
        logger.info(f"🍓 Matched {first.category} ({self.round_matches}/{self.matches_per_round})")
        events = [InteractionEvent(EventKind.MATCHED, None, first.object_id, first.category),
                  InteractionEvent(EventKind.MATCHED, None, second.object_id, second.category)]

        if self.round_matches >= self.matches_per_round:
            self.rounds_completed += 1
            self.round_matches = 0
            events.append(InteractionEvent(EventKind.ROUND_COMPLETED))
            if not self.is_complete(ctx):
                self.objects = self.layout()

        return events

    def release_actor(self, ctx: SessionContext, actor: str) -> List[InteractionEvent]:
        self._engaged[actor] = False
        self._last_pointer.pop(actor, None)
        return super().release_actor(ctx, actor)

    def score(self, ctx: SessionContext) -> int:
        return self.rounds_completed


class RegionTrackingController(InteractionController):
    """
    Continuous control of one object classified against field regions.

    Entering a forbidden region records a boundary hit; entering the goal
    records a success. Both are edge-triggered and send the object back to
    its start position with control relinquished. Taking control counts as
    an attempt.
    """

    def __init__(self, obj: ManipulableObject, regions: RegionMap, target_score: Optional[int] = None,
                 reset_on_boundary: bool = True):
        super().__init__([obj], target_score)
        self.obj = obj
        self.regions = regions
        self.start = obj.origin
        self.reset_on_boundary = reset_on_boundary
        self.region = regions.classify(obj.position)

    def step(self, ctx: SessionContext, inputs: Mapping[str, ActorInput]) -> List[InteractionEvent]:
        events: List[InteractionEvent] = []

        for actor, actor_input in inputs.items():
            point = actor_input.pointer.position
            gesture = actor_input.gesture

            if gesture.started and not self.obj.held and self.obj.contains(point):
                self._grab(actor, self.obj, point)
                ctx.metrics.record_attempt()
                ctx.metrics.record_pickup(self.obj.object_id)
                events.append(InteractionEvent(EventKind.PICKED_UP, actor, self.obj.object_id, self.obj.category))
            elif gesture.ended and self._holds.get(actor) is self.obj:
                self._holds.pop(actor)
                self._let_go(self.obj)
                events.append(InteractionEvent(EventKind.RELEASED, actor, self.obj.object_id, self.obj.category))

            if gesture.engaged and self._holds.get(actor) is self.obj:
                self._drag(ctx, self.obj, point)

        events.extend(self.classify(ctx))
        return events

    def classify(self, ctx: SessionContext) -> List[InteractionEvent]:
        """Classify the object's position and fire events on region entry."""
        kind = self.regions.classify(self.obj.position)
        if kind is self.region:
            return []
        self.region = kind

        if kind is RegionKind.FORBIDDEN:
            ctx.metrics.record_boundary_hit()
            logger.info(f"🚧 {self.obj.object_id} hit the boundary")
            events = [InteractionEvent(EventKind.BOUNDARY_HIT, self.obj.held_by, self.obj.object_id,
                                       self.obj.category)]
            if self.reset_on_boundary:
                self._reset_to_start()
            return events

        if kind is RegionKind.GOAL:
            ctx.metrics.record_success(self.obj.category)
            logger.info(f"🏁 {self.obj.object_id} reached the goal")
            events = [InteractionEvent(EventKind.GOAL_REACHED, self.obj.held_by, self.obj.object_id,
                                       self.obj.category)]
            self._reset_to_start()
            return events

        return []

    def _reset_to_start(self) -> None:
        for actor in [a for a, o in self._holds.items() if o is self.obj]:
            self._holds.pop(actor)
        self._let_go(self.obj)
        self.obj.move_to(self.start)

    def advance(self, ctx: SessionContext, dt: float) -> List[InteractionEvent]:
        return self.classify(ctx)


class ReachController(InteractionController):
    """
    Reach-and-touch: one target at a time, touched by the pointer.

    Records reaction time per target, the mean perpendicular deviation of the
    pointer from the straight start-to-target line, and pointer travel above a
    movement threshold.
    """

    def __init__(self, spawn_target: Callable[[], TargetZone], target_score: Optional[int] = 20,
                 touch_tolerance: float = 10.0, move_threshold: float = 10.0, respawn_delay_s: float = 0.0):
        super().__init__((), target_score)
        self.spawn_target = spawn_target
        self.touch_tolerance = touch_tolerance
        self.move_threshold = move_threshold
        self.respawn_delay_s = respawn_delay_s
        self.target: Optional[TargetZone] = None
        self._spawned_at = 0.0
        self._respawn_at = 0.0
        self._path_start: Optional[Point] = None
        self._deviations: List[float] = []
        self._last_counted: Dict[str, Point] = {}

    def _spawn(self, ctx: SessionContext) -> List[InteractionEvent]:
        self.target = self.spawn_target()
        self._spawned_at = ctx.now
        self._path_start = None
        self._deviations = []
        return [InteractionEvent(EventKind.SPAWNED, None, self.target.zone_id, self.target.category)]

    def advance(self, ctx: SessionContext, dt: float) -> List[InteractionEvent]:
        if self.target is None and ctx.now >= self._respawn_at and not self.is_complete(ctx):
            return self._spawn(ctx)
        return []

    def step(self, ctx: SessionContext, inputs: Mapping[str, ActorInput]) -> List[InteractionEvent]:
        events = self.advance(ctx, 0.0)

        for actor, actor_input in inputs.items():
            point = actor_input.pointer.position
            self._count_travel(ctx, actor, point)

            target = self.target
            if target is None:
                continue

            if self._path_start is None and distance(point, target.position) > self.move_threshold:
                self._path_start = point
                self._deviations = []
            if self._path_start is not None:
                path_length = distance(self._path_start, target.position)
                if path_length > 0:
                    self._deviations.append(segment_distance(point, self._path_start, target.position) / path_length)

            if distance(point, target.position) < target.capture_radius + self.touch_tolerance:
                events.extend(self._touch(ctx, actor, target))

        return events

    def _count_travel(self, ctx: SessionContext, actor: str, point: Point) -> None:
        last = self._last_counted.get(actor)
        if last is None:
            self._last_counted[actor] = point
            return
        moved = distance(last, point)
        if moved > self.move_threshold:
            ctx.metrics.add_distance(moved, actor=actor)
            self._last_counted[actor] = point

    def _touch(self, ctx: SessionContext, actor: str, target: TargetZone) -> List[InteractionEvent]:
        ctx.metrics.record_success(target.category)
        ctx.metrics.record_reaction_time(ctx.now - self._spawned_at)
        if self._deviations:
            ctx.metrics.record_path_deviation(sum(self._deviations) / len(self._deviations))
        self.target = None
        self._respawn_at = ctx.now + self.respawn_delay_s
        logger.debug(f"🐝 Target touched after {ctx.now - self._spawned_at:.2f}s")
        return [InteractionEvent(EventKind.TARGET_TOUCHED, actor, target.zone_id, target.category)]

    def release_actor(self, ctx: SessionContext, actor: str) -> List[InteractionEvent]:
        self._last_counted.pop(actor, None)
        return []
