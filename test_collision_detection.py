import unittest
from celestial import (BARYCENTER_ID, CelestialObject, CelestialProperties, CollisionAdjustment, OrbitData,
                       ScalingResult)
from collision_detection import CollisionDetectionService
from hierarchy_manager import HierarchyManager
from layout_config import LayoutConfig
from layout_utils import ConstraintExhaustion
from orbit_position_calculator import OrbitPositionCalculator
from sample_systems import load_sample_system
from view_mode_registry import ViewModeRegistry
from view_mode_strategy import create_calculation_context
from visual_size_calculator import VisualSizeCalculator


def body(object_id, classification, parent=None, sma=1.0):
    orbit = OrbitData(parent, sma) if parent is not None else None
    return CelestialObject(object_id, object_id.title(), classification, CelestialProperties(1000.0), orbit)


def fixed(radius):
    return ScalingResult(visual_radius=radius, is_fixed_size=True, scaling_method='fixed', relative_scale=1.0)


class CollisionTestCase(unittest.TestCase):
    view_mode = 'navigational'  # safety factor 3.0

    def setUp(self):
        self.config = LayoutConfig()
        self.service = CollisionDetectionService(self.config)
        self.registry = ViewModeRegistry(self.config)

    def context(self, objects, view_mode=None):
        view_mode = view_mode or self.view_mode
        return create_calculation_context(objects, view_mode, self.registry.get_strategy(view_mode), self.config)


class TestDetection(CollisionTestCase):

    def test_child_inside_parent_safe_zone(self):
        objects = [body('star', 'star'), body('p', 'planet', 'star')]
        sizes = {'star': fixed(2.0), 'p': fixed(1.2)}
        collisions = self.service.detect_collisions(objects, sizes, {'star': 0.0, 'p': 0.5}, self.context(objects))
        self.assertEqual(len(collisions), 1)
        collision = collisions[0]
        self.assertEqual(collision.object_id, 'p')
        self.assertAlmostEqual(collision.original_distance, 0.5)
        self.assertAlmostEqual(collision.adjusted_distance, 7.2)
        self.assertEqual(collision.reason, 'Child p colliding with parent star')

    def test_child_clear_of_parent(self):
        objects = [body('star', 'star'), body('p', 'planet', 'star')]
        sizes = {'star': fixed(2.0), 'p': fixed(1.2)}
        self.assertEqual(self.service.detect_collisions(objects, sizes, {'star': 0.0, 'p': 7.3},
                                                        self.context(objects)), [])

    def test_adjacent_siblings(self):
        objects = [body('star', 'star'), body('a', 'planet', 'star'), body('b', 'planet', 'star')]
        sizes = {'star': fixed(0.1), 'a': fixed(1.0), 'b': fixed(1.0)}
        collisions = self.service.detect_collisions(objects, sizes, {'star': 0.0, 'a': 10.0, 'b': 11.0},
                                                    self.context(objects))
        self.assertEqual(len(collisions), 1)
        self.assertEqual(collisions[0].object_id, 'b')
        self.assertAlmostEqual(collisions[0].adjusted_distance, 12.001)
        self.assertEqual(collisions[0].reason, 'Sibling collision between a and b')

    def test_parents_below_the_root_are_checked(self):
        objects = [body('star', 'star'), body('p', 'planet', 'star'), body('m', 'moon', 'p')]
        sizes = {'star': fixed(0.1), 'p': fixed(1.0), 'm': fixed(0.5)}
        collisions = self.service.detect_collisions(objects, sizes, {'star': 0.0, 'p': 50.0, 'm': 1.0},
                                                    self.context(objects))
        self.assertEqual([c.object_id for c in collisions], ['m'])

    def test_effective_radii_widen_overlap_tests(self):
        objects = [body('star', 'star'), body('a', 'planet', 'star'), body('b', 'planet', 'star')]
        sizes = {'star': fixed(0.1), 'a': fixed(1.0), 'b': fixed(1.0)}
        positions = {'star': 0.0, 'a': 10.0, 'b': 13.0}
        ctx = self.context(objects)
        self.assertEqual(self.service.detect_collisions(objects, sizes, positions, ctx), [])
        collisions = self.service.detect_collisions(objects, sizes, positions, ctx,
                                                    radii={'star': 0.1, 'a': 2.5, 'b': 1.0})
        self.assertEqual(len(collisions), 1)

    def test_empty_input(self):
        with self.assertLogs(level='WARNING'):
            self.assertEqual(self.service.detect_collisions([], {}, {}, self.context([])), [])


class TestResolution(CollisionTestCase):

    def test_inside_out_resolution(self):
        objects = [body('star', 'star'), body('a', 'planet', 'star'), body('b', 'planet', 'star')]
        sizes = {'star': fixed(2.0), 'a': fixed(1.2), 'b': fixed(1.2)}
        positions = {'star': 0.0, 'a': 0.5, 'b': 1.0}
        ctx = self.context(objects)
        collisions = self.service.detect_collisions(objects, sizes, positions, ctx)
        resolved = self.service.resolve_collisions(collisions, objects, sizes, positions, ctx)
        self.assertAlmostEqual(resolved['a'], 6.0 + 1.2 + 0.001)
        self.assertAlmostEqual(resolved['b'], resolved['a'] + 1.2 + 1.2 + 0.001)
        self.assertEqual(positions['a'], 0.5)

    def test_exhaustion_raises_with_last_position(self):
        config = LayoutConfig({'Orbital': {'MAX_ITERATIONS': 1}})
        service = CollisionDetectionService(config)
        objects = [body('star', 'star'), body('a', 'planet', 'star'), body('b', 'planet', 'star'),
                   body('c', 'planet', 'star')]
        radii = {'a': 1.0, 'b': 1.0, 'c': 1.0}
        positions = {'a': 10.0, 'b': 12.5, 'c': 10.0}
        with self.assertRaises(ConstraintExhaustion) as raised:
            service.find_next_available_position(objects[3], 10.0, objects, radii, positions)
        self.assertEqual(raised.exception.object_id, 'c')
        self.assertAlmostEqual(raised.exception.last_distance, 12.001)

    def test_exhaustion_becomes_warning(self):
        config = LayoutConfig({'Orbital': {'MAX_ITERATIONS': 1}})
        service = CollisionDetectionService(config)
        objects = [body('star', 'star'), body('a', 'planet', 'star'), body('b', 'planet', 'star'),
                   body('c', 'planet', 'star')]
        sizes = {'star': fixed(0.1), 'a': fixed(1.0), 'b': fixed(1.0), 'c': fixed(1.0)}
        positions = {'star': 0.0, 'a': 10.0, 'b': 12.5, 'c': 10.5}
        ctx = create_calculation_context(objects, 'navigational', self.registry.get_strategy('navigational'), config)
        collisions = [CollisionAdjustment('c', 10.5, 10.5, 'Sibling collision between a and c')]
        warnings = []
        with self.assertLogs(level='WARNING'):
            resolved = service.resolve_collisions(collisions, objects, sizes, positions, ctx, warnings=warnings)
        self.assertEqual(len(warnings), 1)
        self.assertIn("'c'", warnings[0])
        self.assertAlmostEqual(resolved['c'], 12.001)

    def test_binary_stars_separated(self):
        objects = [body('a', 'star', BARYCENTER_ID, 10.0), body('b', 'star', BARYCENTER_ID, 12.0)]
        sizes = {'a': fixed(2.0), 'b': fixed(2.0)}
        positions, applied = self.service.resolve_layout(objects, sizes, {'a': 1.0, 'b': 2.0}, self.context(objects))
        self.assertAlmostEqual(positions['a'], 1.0)
        self.assertAlmostEqual(positions['b'], 5.001)
        self.assertEqual(len(applied), 1)
        self.assertAlmostEqual(applied[0].adjusted_distance, 5.001)


    def test_parentless_stars_stay_at_origin(self):
        objects = [body('a', 'star'), body('b', 'star'), body('p', 'planet', 'a', 1.0)]
        sizes = {'a': fixed(2.0), 'b': fixed(2.0), 'p': fixed(1.2)}
        positions = {'a': 0.0, 'b': 0.0, 'p': 10.0}
        self.assertEqual(self.service.check_sibling_collisions(objects, positions, {'a': 2.0, 'b': 2.0, 'p': 1.2}), [])
        resolved, applied = self.service.resolve_layout(objects, sizes, positions, self.context(objects))
        self.assertEqual(resolved['a'], 0.0)
        self.assertEqual(resolved['b'], 0.0)
        self.assertEqual(applied, [])


class TestPhasedLayout(CollisionTestCase):

    def pipeline(self, objects, view_mode):
        ctx = self.context(objects, view_mode)
        sizes = VisualSizeCalculator(self.config).calculate_visual_sizes(objects, ctx)
        sizes = HierarchyManager(self.config).enforce_hierarchy(objects, sizes)
        positions = OrbitPositionCalculator(self.config).calculate_orbital_positions(objects, sizes, ctx)
        warnings = []
        final, applied = self.service.resolve_layout(objects, sizes, positions, ctx, warnings)
        return ctx, sizes, final, applied, warnings

    def assert_no_overlaps(self, objects, sizes, positions, ctx):
        radii = self.service.effective_radii(objects, sizes, positions)
        safety = ctx.strategy.get_safety_factor()
        by_parent = {}
        for obj in objects:
            if obj.parent_id and obj.id in positions:
                by_parent.setdefault(obj.parent_id, []).append(obj)
        for parent_id, children in by_parent.items():
            children.sort(key=lambda obj: positions[obj.id])
            if parent_id in sizes:
                zone = sizes[parent_id].visual_radius * safety
                for child in children:
                    self.assertGreaterEqual(positions[child.id] - radii[child.id], zone - 1e-9, child.id)
            for inner, outer in zip(children, children[1:]):
                gap = (positions[outer.id] - radii[outer.id]) - (positions[inner.id] + radii[inner.id])
                self.assertGreaterEqual(gap, 0.001 - 1e-9, f"{inner.id}/{outer.id}")

    def test_navigational_sol_is_collision_free(self):
        objects = load_sample_system('sol')
        ctx, sizes, positions, applied, warnings = self.pipeline(objects, 'navigational')
        self.assertEqual(warnings, [])
        self.assertTrue(applied)
        self.assert_no_overlaps(objects, sizes, positions, ctx)

    def test_explorational_sol_is_collision_free(self):
        objects = load_sample_system('sol')
        ctx, sizes, positions, applied, warnings = self.pipeline(objects, 'explorational')
        self.assertEqual(warnings, [])
        self.assert_no_overlaps(objects, sizes, positions, ctx)
        self.assertAlmostEqual(positions['earth'], 1.00000261 * 50.0)

    def test_moons_settle_before_planets(self):
        objects = load_sample_system('sol')
        ctx, sizes, positions, applied, warnings = self.pipeline(objects, 'navigational')
        jupiter_system = max(positions[m] + sizes[m].visual_radius for m in ('io', 'europa', 'ganymede', 'callisto'))
        self.assertGreaterEqual(positions['jupiter'] - jupiter_system, sizes['sol'].visual_radius * 3.0 - 1e-9)

    def test_positions_only_move_outwards(self):
        objects = load_sample_system('sol')
        ctx = self.context(objects, 'profile')
        sizes = VisualSizeCalculator(self.config).calculate_visual_sizes(objects, ctx)
        original = OrbitPositionCalculator(self.config).calculate_orbital_positions(objects, sizes, ctx)
        final, _ = self.service.resolve_layout(objects, sizes, original, ctx)
        for object_id, distance in original.items():
            self.assertGreaterEqual(final[object_id], distance)

    def test_effective_radii(self):
        objects = [body('p', 'planet'), body('m', 'moon', 'p')]
        radii = self.service.effective_radii(objects, {'p': fixed(1.0), 'm': fixed(0.5)}, {'m': 4.0})
        self.assertAlmostEqual(radii['p'], 4.5)
        self.assertAlmostEqual(radii['m'], 0.5)


if __name__ == '__main__':
    unittest.main(argv=['first-arg-is-ignored'], exit=False)
