import math
import unittest
from celestial import BARYCENTER_ID, CelestialObject, CelestialProperties, OrbitData, ScalingResult
from hierarchy_manager import HierarchyManager
from layout_config import LayoutConfig
from layout_utils import InputError
from orbit_position_calculator import OrbitPositionCalculator
from sample_systems import load_sample_system
from view_mode_registry import ViewModeRegistry
from view_mode_strategy import create_calculation_context
from visual_size_calculator import VisualSizeCalculator


def body(object_id, classification, radius_km, parent=None, sma=None):
    orbit = OrbitData(parent, sma) if parent is not None else None
    return CelestialObject(object_id, object_id.title(), classification, CelestialProperties(radius_km), orbit)


def fixed(radius):
    return ScalingResult(visual_radius=radius, is_fixed_size=True, scaling_method='fixed', relative_scale=1.0)


class OrbitTestCase(unittest.TestCase):

    def setUp(self):
        self.config = LayoutConfig()
        self.registry = ViewModeRegistry(self.config)
        self.calculator = OrbitPositionCalculator(self.config)

    def context(self, objects, view_mode):
        return create_calculation_context(objects, view_mode, self.registry.get_strategy(view_mode), self.config)

    def sizes(self, objects, context):
        sizes = VisualSizeCalculator(self.config).calculate_visual_sizes(objects, context)
        return HierarchyManager(self.config).enforce_hierarchy(objects, sizes)


class TestScaledPlacement(OrbitTestCase):

    def setUp(self):
        super().setUp()
        self.objects = [body('sol', 'star', 695700.0), body('earth', 'planet', 6371.0, 'sol', 1.0),
                        body('luna', 'moon', 1737.4, 'earth', 0.00257)]
        self.ctx = self.context(self.objects, 'explorational')
        self.visual_sizes = self.sizes(self.objects, self.ctx)

    def test_sol_earth_luna(self):
        positions = self.calculator.calculate_orbital_positions(self.objects, self.visual_sizes, self.ctx)
        self.assertEqual(positions['sol'], 0.0)
        self.assertAlmostEqual(positions['earth'], 50.0)
        self.assertGreater(positions['earth'], 0)
        self.assertLess(positions['luna'], positions['earth'] / 10)

    def test_moon_pushed_to_safe_distance(self):
        positions = self.calculator.calculate_moon_orbits(self.objects, self.visual_sizes, self.ctx)
        luna_radius = math.log2(1737.4 / 6371.0 + 1)
        self.assertAlmostEqual(positions['luna'], 1.0 * 2.5 + luna_radius + 0.001)

    def test_effective_planet_size_includes_moons(self):
        moons = self.calculator.calculate_moon_orbits(self.objects, self.visual_sizes, self.ctx)
        effective = self.calculator.calculate_effective_planet_size(
            self.objects[1], self.objects, self.visual_sizes, moons)
        self.assertAlmostEqual(effective, moons['luna'] + self.visual_sizes['luna'].visual_radius)

    def test_effective_size_without_moons_is_own_radius(self):
        effective = self.calculator.calculate_effective_planet_size(self.objects[1], self.objects,
                                                                     self.visual_sizes, {})
        self.assertAlmostEqual(effective, self.visual_sizes['earth'].visual_radius)

    def test_close_planet_respects_effective_size(self):
        objects = self.objects + [body('vulcan', 'planet', 6371.0, 'sol', 0.01)]
        ctx = self.context(objects, 'explorational')
        sizes = self.sizes(objects, ctx)
        positions = self.calculator.calculate_orbital_positions(objects, sizes, ctx)
        minimum = sizes['sol'].visual_radius * 2.5 + sizes['vulcan'].visual_radius + 0.001
        self.assertAlmostEqual(positions['vulcan'], minimum)

    def test_skipped_objects_are_reported(self):
        objects = self.objects + [body('ghost', 'moon', 100.0, 'nowhere', 0.01),
                                  CelestialObject('stray', 'Stray', 'planet', CelestialProperties(3000.0),
                                                  OrbitData('sol'))]
        ctx = self.context(objects, 'explorational')
        warnings = []
        with self.assertLogs(level='WARNING'):
            positions = self.calculator.calculate_orbital_positions(objects, self.sizes(objects, ctx), ctx, warnings)
        self.assertNotIn('ghost', positions)
        self.assertNotIn('stray', positions)
        self.assertEqual(len(warnings), 2)
        self.assertIn('ghost', warnings[0])


class TestEquidistantPlacement(OrbitTestCase):

    def test_ladder_follows_semi_major_axis(self):
        objects = [body('sol', 'star', 695700.0), body('c', 'planet', 6000.0, 'sol', 5.0),
                   body('a', 'planet', 6000.0, 'sol', 0.5), body('b', 'planet', 6000.0, 'sol', 1.5)]
        ctx = self.context(objects, 'navigational')
        positions = self.calculator.calculate_orbital_positions(objects, self.sizes(objects, ctx), ctx)
        self.assertAlmostEqual(positions['a'], 0.5)
        self.assertAlmostEqual(positions['b'], 1.0)
        self.assertAlmostEqual(positions['c'], 1.5)

    def test_moons_have_their_own_ladder(self):
        objects = load_sample_system('sol')
        ctx = self.context(objects, 'profile')
        positions = self.calculator.calculate_moon_orbits(objects, self.sizes(objects, ctx), ctx)
        self.assertEqual([positions[m] for m in ('io', 'europa', 'ganymede', 'callisto')], [0.5, 1.0, 1.5, 2.0])
        self.assertAlmostEqual(positions['luna'], 0.5)

    def test_belt_takes_a_ladder_slot(self):
        objects = load_sample_system('sol')
        ctx = self.context(objects, 'navigational')
        positions = self.calculator.calculate_orbital_positions(objects, self.sizes(objects, ctx), ctx)
        self.assertLess(positions['mars'], positions['asteroid_belt'])
        self.assertLess(positions['asteroid_belt'], positions['jupiter'])


class TestBeltData(OrbitTestCase):

    def test_belt_geometry(self):
        belt = body('belt', 'belt', 500.0, 'sol', 2.7)
        ctx = self.context([body('sol', 'star', 695700.0), belt], 'explorational')
        data = self.calculator.calculate_belt_data(belt, ctx)
        self.assertAlmostEqual(data.center_radius, 135.0)
        self.assertAlmostEqual(data.width, 27.0)
        self.assertAlmostEqual(data.inner_radius, 121.5)
        self.assertAlmostEqual(data.outer_radius, 148.5)

    def test_explicit_center(self):
        belt = body('belt', 'belt', 500.0, 'sol', 2.7)
        ctx = self.context([body('sol', 'star', 695700.0), belt], 'navigational')
        data = self.calculator.calculate_belt_data(belt, ctx, center_radius=10.0)
        self.assertAlmostEqual(data.width, 2.0)
        self.assertAlmostEqual(data.inner_radius, 9.0)

    def test_belt_without_axis_raises(self):
        belt = CelestialObject('belt', 'Belt', 'belt', CelestialProperties(500.0), OrbitData('sol'))
        ctx = self.context([body('sol', 'star', 695700.0), belt], 'explorational')
        with self.assertRaises(InputError):
            self.calculator.calculate_belt_data(belt, ctx)

    def test_scaled_belt_sits_at_its_center(self):
        objects = load_sample_system('sol')
        ctx = self.context(objects, 'explorational')
        positions = self.calculator.calculate_orbital_positions(objects, self.sizes(objects, ctx), ctx)
        self.assertAlmostEqual(positions['asteroid_belt'], 2.7 * 50.0)


class TestBarycenterStars(OrbitTestCase):

    def setUp(self):
        super().setUp()
        self.objects = load_sample_system('alpha-centauri')

    def test_scaled_modes(self):
        ctx = self.context(self.objects, 'explorational')
        positions = self.calculator.calculate_orbital_positions(self.objects, self.sizes(self.objects, ctx), ctx)
        self.assertAlmostEqual(positions['alpha_centauri_a'], 10.7 * 50.0 * 0.1)
        self.assertAlmostEqual(positions['alpha_centauri_b'], 12.8 * 50.0 * 0.1)
        self.assertEqual(positions['proxima_centauri'], 0.0)

    def test_equidistant_modes(self):
        ctx = self.context(self.objects, 'navigational')
        positions = self.calculator.calculate_orbital_positions(self.objects, self.sizes(self.objects, ctx), ctx)
        self.assertAlmostEqual(positions['alpha_centauri_a'], 1.0)
        self.assertAlmostEqual(positions['alpha_centauri_b'], 2.0)

    def test_minimum_distance_floor(self):
        objects = [body('a', 'star', 700000.0, BARYCENTER_ID, 0.1), body('b', 'star', 600000.0, BARYCENTER_ID, 0.2)]
        ctx = self.context(objects, 'explorational')
        self.assertAlmostEqual(self.calculator.calculate_barycenter_orbit_distance(objects[0], ctx), 5.0)


class TestOrbitScaling(OrbitTestCase):

    def test_per_mode_scaling(self):
        objects = load_sample_system('sol')
        self.assertEqual(self.calculator.get_orbit_scaling(self.context(objects, 'navigational')), 40.0)
        self.assertEqual(self.calculator.get_orbit_scaling(self.context(objects, 'profile')), 0.05)
        self.assertAlmostEqual(self.calculator.get_orbit_scaling(self.context(objects, 'scientific')), 50.0)

    def test_safety_factor_comes_from_strategy(self):
        objects = load_sample_system('sol')
        self.assertEqual(self.calculator.get_safety_factor(self.context(objects, 'scientific')), 1.1)

    def test_fixed_sizes_drive_minimum_distance(self):
        objects = [body('sol', 'star', 695700.0), body('p', 'planet', 6371.0, 'sol', 0.01)]
        ctx = self.context(objects, 'explorational')
        positions = self.calculator.calculate_planet_orbits(objects, {'sol': fixed(4.0), 'p': fixed(1.0)}, {}, ctx)
        self.assertAlmostEqual(positions['p'], 4.0 * 2.5 + 1.0 + 0.001)


if __name__ == '__main__':
    unittest.main(argv=['first-arg-is-ignored'], exit=False)
