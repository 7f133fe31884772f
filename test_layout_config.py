import unittest
from layout_config import VIEW_MODES, ConfigurationError, LayoutConfig, config


class TestLayoutConfig(unittest.TestCase):

    def test_defaults(self):
        cfg = LayoutConfig()
        self.assertEqual(cfg.Orbital.MAX_ITERATIONS, 10)
        self.assertEqual(cfg.Performance.MAX_CACHE_SIZE, 1000)
        self.assertEqual(cfg.Performance.CACHE_TIMEOUT_MS, 300000)
        self.assertEqual(cfg.Visual.FIXED_SIZES['star'], 2.0)
        for mode in VIEW_MODES:
            self.assertIn(mode, cfg.Camera.ELEVATION_ANGLES)

    def test_module_default_instance(self):
        self.assertIsInstance(config, LayoutConfig)
        self.assertEqual(config.fingerprint(), LayoutConfig().fingerprint())

    def test_overrides(self):
        cfg = LayoutConfig({'Orbital': {'MAX_ITERATIONS': 20}, 'Visual': {'FIXED_SIZES': {'moon': 0.5}}})
        self.assertEqual(cfg.Orbital.MAX_ITERATIONS, 20)
        # Dict settings are merged, not replaced
        self.assertEqual(cfg.Visual.FIXED_SIZES['moon'], 0.5)
        self.assertEqual(cfg.Visual.FIXED_SIZES['star'], 2.0)

    def test_instances_are_independent(self):
        first = LayoutConfig()
        second = LayoutConfig()
        first.Visual.FIXED_SIZES['star'] = 9.0
        self.assertEqual(second.Visual.FIXED_SIZES['star'], 2.0)
        self.assertEqual(LayoutConfig.Visual.FIXED_SIZES['star'], 2.0)

    def test_unknown_section_or_setting(self):
        with self.assertRaises(ConfigurationError):
            LayoutConfig({'Rendering': {'FPS': 60}})
        with self.assertRaises(ConfigurationError):
            LayoutConfig({'Orbital': {'WARP_FACTOR': 9}})

    def test_validation_failures(self):
        bad_overrides = [
            {'Camera': {'DISTANCE_MULTIPLIERS': {'minimum': 20.0}}},
            {'Camera': {'ELEVATION_ANGLES': {'profile': 95.0}}},
            {'Orbital': {'BASE_SCALING': {'navigational': 0.0}}},
            {'Orbital': {'SAFETY_FACTORS': {'explorational': 0.5}}},
            {'Orbital': {'MAX_ITERATIONS': 0}},
            {'Orbital': {'DEFAULT_BELT_WIDTH': 1.5}},
            {'Visual': {'MIN_VISUAL_SIZE': 50.0}},
            {'Visual': {'LOGARITHMIC_BASE': 1.0}},
            {'Visual': {'MIN_CHILD_TO_PARENT_RATIO': 0.9}},
            {'Scaling': {'MIN_VISUAL_RADIUS': 0.0}},
            {'Performance': {'MAX_CACHE_SIZE': 0}},
            {'Performance': {'CACHE_TIMEOUT_MS': -1}},
        ]
        for overrides in bad_overrides:
            with self.subTest(overrides=overrides):
                with self.assertRaises(ConfigurationError):
                    LayoutConfig(overrides)

    def test_validate_logs_success(self):
        cfg = LayoutConfig()
        with self.assertLogs(level='INFO') as logs:
            cfg.validate()
        self.assertTrue(any('validated successfully' in line for line in logs.output))

    def test_fingerprint(self):
        base = LayoutConfig().fingerprint()
        self.assertEqual(base, LayoutConfig().fingerprint())
        self.assertNotEqual(base, LayoutConfig({'Orbital': {'BASE_SPACING': 0.75}}).fingerprint())

    def test_lookup_fallbacks(self):
        cfg = LayoutConfig()
        self.assertEqual(cfg.get_safety_factor('navigational'), 3.0)
        self.assertEqual(cfg.get_safety_factor('holographic'), cfg.Orbital.SAFETY_FACTORS['minimum'])
        self.assertEqual(cfg.get_base_scaling('explorational'), 50.0)
        self.assertEqual(cfg.get_base_scaling('holographic'), cfg.Orbital.BASE_SCALING['default'])

    def test_to_dict(self):
        data = LayoutConfig().to_dict()
        self.assertEqual(set(data), {'Camera', 'Orbital', 'Visual', 'Scaling', 'Performance', 'Animation', 'Debug'})
        data['Orbital']['MAX_ITERATIONS'] = 99
        self.assertEqual(LayoutConfig().Orbital.MAX_ITERATIONS, 10)


if __name__ == '__main__':
    unittest.main(argv=['first-arg-is-ignored'], exit=False)
