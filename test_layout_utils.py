import unittest
import numpy as np
from layout_utils import (safe_divide, normalize_vector, clamp, LayoutError, InputError,
                          ObjectReferenceError, ConstraintExhaustion)


class TestSafeDivide(unittest.TestCase):

    def test_typical_division_scalar(self):
        self.assertAlmostEqual(safe_divide(10, 2), 5.0)
        self.assertAlmostEqual(safe_divide(7, 3), 7/3)
        self.assertAlmostEqual(safe_divide(-10, 2), -5.0)
        self.assertAlmostEqual(safe_divide(0, 5), 0.0)

    def test_division_by_zero_scalar_default_zero(self):
        self.assertAlmostEqual(safe_divide(5, 0), 0.0)
        self.assertAlmostEqual(safe_divide(5, 1e-13), 0.0)  # Denominator below default epsilon
        self.assertAlmostEqual(safe_divide(0, 0), 0.0)

    def test_division_by_zero_scalar_custom_default(self):
        self.assertAlmostEqual(safe_divide(5, 0, default_on_zero_denom=1.0), 1.0)

    def test_division_by_zero_scalar_default_inf(self):
        self.assertEqual(safe_divide(5, 0, default_on_zero_denom=float('inf')), float('inf'))
        self.assertEqual(safe_divide(-5, 0, default_on_zero_denom=float('inf')), float('-inf'))
        self.assertEqual(safe_divide(0, 0, default_on_zero_denom=float('inf')), 0.0)

    def test_radius_ratios_numpy_array(self):
        radii = np.array([695700.0, 6371.0, 1737.4])
        reference = np.array([6371.0, 6371.0, 0.0])
        expected = np.array([695700.0 / 6371.0, 1.0, 0.0])
        np.testing.assert_array_almost_equal(safe_divide(radii, reference), expected)

    def test_division_by_zero_numpy_array_default_inf(self):
        num = np.array([5.0, -5.0, 0.0])
        den = np.array([0.0, 0.0, 0.0])
        expected = np.array([float('inf'), float('-inf'), 0.0])
        np.testing.assert_array_equal(safe_divide(num, den, default_on_zero_denom=float('inf')), expected)


class TestNormalizeVector(unittest.TestCase):

    def test_normalize_typical_vector(self):
        np.testing.assert_array_almost_equal(normalize_vector(np.array([3.0, 0.0, 4.0])), np.array([0.6, 0.0, 0.8]))

    def test_normalize_list_input(self):
        result = normalize_vector([1, 1, 1])
        np.testing.assert_array_almost_equal(result, np.ones(3) / np.sqrt(3))

    def test_normalize_zero_vector(self):
        np.testing.assert_array_almost_equal(normalize_vector(np.zeros(3)), np.zeros(3))

    def test_normalize_tiny_vector(self):
        np.testing.assert_array_almost_equal(normalize_vector(np.array([1e-15, 0.0, 1e-15])), np.zeros(3))


class TestClamp(unittest.TestCase):

    def test_clamp(self):
        self.assertEqual(clamp(15.0, 1.0, 8.0), 8.0)
        self.assertEqual(clamp(0.5, 1.0, 8.0), 1.0)
        self.assertEqual(clamp(4.0, 1.0, 8.0), 4.0)


class TestErrorTaxonomy(unittest.TestCase):

    def test_hierarchy(self):
        self.assertTrue(issubclass(InputError, LayoutError))
        self.assertTrue(issubclass(ObjectReferenceError, LayoutError))
        self.assertTrue(issubclass(ConstraintExhaustion, LayoutError))

    def test_reference_error_carries_ids(self):
        err = ObjectReferenceError('luna', 'earth')
        self.assertEqual(err.object_id, 'luna')
        self.assertEqual(err.parent_id, 'earth')
        self.assertIn('earth', str(err))

    def test_constraint_exhaustion_message(self):
        err = ConstraintExhaustion('mars', 12.5, 10)
        self.assertEqual(err.last_distance, 12.5)
        self.assertIn('10 iterations', str(err))


if __name__ == '__main__':
    unittest.main(argv=['first-arg-is-ignored'], exit=False)
