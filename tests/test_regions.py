"""
Test cases for play-field geometry.
"""
import unittest

from handutil import hold, press

from motionplay.context import SessionContext
from motionplay.interaction import RegionTrackingController
from motionplay.metrics import SessionMetricsAccumulator
from motionplay.regions import Band, Circle, Polygon, Rect, RegionMap, segment_distance
from motionplay.types import EventKind, ManipulableObject, RegionKind

# L-shaped field: a 100x100 square with the top-right 60x60 notch removed
L_SHAPE = Polygon(((0, 0), (100, 0), (100, 40), (40, 40), (40, 100), (0, 100)))


class TestSegmentDistance(unittest.TestCase):
    """Test point to segment distance."""

    def test_projection_inside_segment(self):
        self.assertEqual(segment_distance((5, 3), (0, 0), (10, 0)), 3.0)

    def test_projection_beyond_endpoints(self):
        self.assertEqual(segment_distance((-3, 4), (0, 0), (10, 0)), 5.0)
        self.assertEqual(segment_distance((13, 4), (0, 0), (10, 0)), 5.0)

    def test_degenerate_segment(self):
        self.assertEqual(segment_distance((3, 4), (0, 0), (0, 0)), 5.0)


class TestShapes(unittest.TestCase):
    """Test containment of each shape."""

    def test_concave_polygon(self):
        self.assertTrue(L_SHAPE.contains((20, 80)))
        self.assertTrue(L_SHAPE.contains((70, 20)))
        self.assertFalse(L_SHAPE.contains((70, 70)))
        self.assertFalse(L_SHAPE.contains((150, 20)))
        self.assertFalse(L_SHAPE.contains((-1, 50)))

    def test_polygon_vertices_and_edges_are_inside(self):
        for vertex in L_SHAPE.vertices:
            self.assertTrue(L_SHAPE.contains(vertex), vertex)
        self.assertTrue(L_SHAPE.contains((50, 0)))
        self.assertTrue(L_SHAPE.contains((70, 40)))
        self.assertTrue(L_SHAPE.contains((40, 70)))

    def test_ray_through_vertex_height(self):
        # a horizontal ray at y=40 passes the reflex vertex (40, 40)
        self.assertTrue(L_SHAPE.contains((20, 40)))
        self.assertFalse(L_SHAPE.contains((150, 40)))

    def test_circle(self):
        circle = Circle(200, 200, 50)
        self.assertTrue(circle.contains((230, 230)))
        self.assertTrue(circle.contains((250, 200)))
        self.assertFalse(circle.contains((240, 240)))

    def test_rect_is_inclusive(self):
        rect = Rect(0, 0, 10, 20)
        self.assertTrue(rect.contains((10, 20)))
        self.assertFalse(rect.contains((10.5, 5)))

    def test_band_around_polyline(self):
        band = Band(((0, 0), (100, 0), (100, 100)), 10)
        self.assertTrue(band.contains((50, 10)))
        self.assertTrue(band.contains((108, 60)))
        self.assertFalse(band.contains((50, 11)))
        self.assertFalse(band.contains((50, 50)))

    def test_single_point_band(self):
        self.assertTrue(Band(((5, 5),), 2).contains((6, 6)))
        self.assertFalse(Band(((5, 5),), 2).contains((8, 5)))


class TestRegionMap(unittest.TestCase):
    """Test ordered classification."""

    def setUp(self):
        self.regions = RegionMap([
            (Circle(20, 20, 10), RegionKind.GOAL),
            (Circle(200, 200, 50), RegionKind.GOAL),
            (L_SHAPE, RegionKind.PERMITTED),
        ])

    def test_classify(self):
        self.assertEqual(self.regions.classify((230, 230)), RegionKind.GOAL)
        self.assertEqual(self.regions.classify((20, 80)), RegionKind.PERMITTED)
        self.assertEqual(self.regions.classify((70, 70)), RegionKind.FORBIDDEN)

    def test_first_matching_shape_wins(self):
        # inside both the small circle and the polygon
        self.assertEqual(self.regions.classify((20, 20)), RegionKind.GOAL)

    def test_default_kind(self):
        regions = RegionMap([(L_SHAPE, RegionKind.FORBIDDEN)], default=RegionKind.PERMITTED)
        self.assertEqual(regions.classify((500, 500)), RegionKind.PERMITTED)

    def test_tracking_through_polygon_to_circle_goal(self):
        ctx = SessionContext(game="test", player_id="p1", level="BEGINNER",
                             metrics=SessionMetricsAccumulator(), started_at=0.0)
        regions = RegionMap([
            (Circle(20, 20, 10), RegionKind.GOAL),
            (L_SHAPE, RegionKind.PERMITTED),
        ])
        token = ManipulableObject("token", "token", 20, 80, width=20, height=20)
        controller = RegionTrackingController(token, regions)

        controller.step(ctx, {"primary": press(20, 80)})
        self.assertEqual(controller.step(ctx, {"primary": hold(20, 50)}), [])
        events = controller.step(ctx, {"primary": hold(20, 25)})

        self.assertEqual([e.kind for e in events], [EventKind.GOAL_REACHED])
        self.assertEqual(ctx.metrics.successes, 1)
        self.assertEqual(token.position, (20, 80))


if __name__ == '__main__':
    unittest.main()
