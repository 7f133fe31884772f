import unittest
from celestial import CelestialObject, CelestialProperties, OrbitData, ScalingResult
from layout_config import LayoutConfig
from view_mode_registry import ViewModeRegistry
from view_mode_strategy import create_calculation_context
from visual_size_calculator import VisualSizeCalculator


def body(object_id, classification, radius_km, parent=None, sma=1.0):
    orbit = OrbitData(parent, sma) if parent is not None else None
    return CelestialObject(object_id, object_id.title(), classification, CelestialProperties(radius_km, 1.0e22), orbit)


SYSTEM = [
    body('sol', 'star', 695700.0),
    body('earth', 'planet', 6371.0, 'sol', 1.0),
    body('luna', 'moon', 1737.4, 'earth', 0.00257),
]


class TestVisualSizes(unittest.TestCase):

    def setUp(self):
        self.config = LayoutConfig()
        self.registry = ViewModeRegistry(self.config)
        self.calculator = VisualSizeCalculator(self.config)

    def context(self, view_mode):
        return create_calculation_context(SYSTEM, view_mode, self.registry.get_strategy(view_mode), self.config)

    def test_sizes_come_from_the_strategy(self):
        sizes = self.calculator.calculate_visual_sizes(SYSTEM, self.context('explorational'))
        self.assertEqual(set(sizes), {'sol', 'earth', 'luna'})
        # log2(1 + 1) for an Earth-sized body
        self.assertAlmostEqual(sizes['earth'].visual_radius, 1.0)
        self.assertEqual(sizes['earth'].scaling_method, 'logarithmic')
        self.assertGreater(sizes['sol'].visual_radius, sizes['earth'].visual_radius)

    def test_fixed_sizes(self):
        sizes = self.calculator.calculate_visual_sizes(SYSTEM, self.context('navigational'))
        self.assertEqual(sizes['sol'].visual_radius, self.config.Visual.FIXED_SIZES['star'])
        self.assertEqual(sizes['luna'].visual_radius, self.config.Visual.FIXED_SIZES['moon'])
        self.assertTrue(sizes['luna'].is_fixed_size)

    def test_unusable_sizes_are_skipped(self):
        context = self.context('navigational')
        context.strategy.calculate_object_scale = lambda obj, system: ScalingResult(
            0.0 if obj.id == 'luna' else 1.0, True, 'fixed', 1.0)
        with self.assertLogs(level='WARNING'):
            sizes = self.calculator.calculate_visual_sizes(SYSTEM, context)
        self.assertEqual(set(sizes), {'sol', 'earth'})

    def test_effective_radius(self):
        sizes = {'earth': ScalingResult(1.2, True, 'fixed', 1.0), 'luna': ScalingResult(0.6, True, 'fixed', 1.0)}
        earth, luna = SYSTEM[1], SYSTEM[2]
        self.assertAlmostEqual(self.calculator.calculate_effective_radius(earth, [luna], sizes, {'luna': 4.0}), 4.6)
        # Unplaced children leave the visual radius unchanged
        self.assertAlmostEqual(self.calculator.calculate_effective_radius(earth, [luna], sizes, {}), 1.2)
        with self.assertRaises(KeyError):
            self.calculator.calculate_effective_radius(SYSTEM[0], [earth], sizes, {})


if __name__ == '__main__':
    unittest.main(argv=['first-arg-is-ignored'], exit=False)
