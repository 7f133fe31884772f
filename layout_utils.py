# layout_utils.py

import numpy as np


class LayoutError(Exception):
    """Base exception for orbital layout calculation errors."""
    pass


class InputError(LayoutError):
    """Raised when the object list itself cannot be laid out (e.g. it is empty)."""
    pass


class ObjectReferenceError(LayoutError):
    """Raised when an object refers to a parent that is missing, unsized or unplaced.

    The pipeline never lets this abort a calculation: the affected object is
    skipped and a warning is recorded instead.
    """

    def __init__(self, object_id, parent_id, message=None):
        self.object_id = object_id
        self.parent_id = parent_id
        super().__init__(message or f"Object '{object_id}' references unresolved parent '{parent_id}'")


class ConstraintExhaustion(LayoutError):
    """Raised when the collision resolver runs out of iterations for an object.

    Attributes:
        object_id (str): The object whose position could not be freed.
        last_distance (float): The last attempted orbit distance, which is kept.
        iterations (int): The iteration budget that was exhausted.
    """

    def __init__(self, object_id, last_distance, iterations):
        self.object_id = object_id
        self.last_distance = last_distance
        self.iterations = iterations
        super().__init__(
            f"Collision resolution for '{object_id}' exhausted {iterations} iterations; "
            f"keeping best-effort distance {last_distance:.4f}")


def safe_divide(numerator, denominator, epsilon=1e-12, default_on_zero_denom=0.0):
    """
    Safely divides two numbers, handling potential division by zero.

    Args:
        numerator (float or np.ndarray): The number(s) to be divided.
        denominator (float or np.ndarray): The number(s) to divide by.
        epsilon (float): Threshold below which the denominator is considered zero.
        default_on_zero_denom (float): Value to return if denominator is effectively zero.
                                       float('inf') or float('-inf') yields a signed infinity
                                       following the numerator's sign (0/0 stays 0).

    Returns:
        float or np.ndarray: The result of the division, or default_on_zero_denom if denominator is near zero.
    """
    if isinstance(denominator, np.ndarray):
        is_zero = np.abs(denominator) < epsilon
        if default_on_zero_denom == float('inf') or default_on_zero_denom == float('-inf'):
            default_vals = np.where(numerator > 0, float('inf'),
                                    np.where(numerator < 0, float('-inf'), 0.0))
        else:
            default_vals = np.full_like(denominator, default_on_zero_denom, dtype=np.float64)

        result = np.divide(numerator, denominator, out=np.zeros_like(denominator, dtype=np.float64), where=~is_zero)
        result[is_zero] = default_vals[is_zero] if isinstance(default_vals, np.ndarray) else default_vals
        return result
    else:  # Scalar case
        if abs(denominator) < epsilon:
            if default_on_zero_denom == float('inf') or default_on_zero_denom == float('-inf'):
                if abs(numerator) < epsilon:  # 0/0 case
                    return 0.0
                return float('inf') if numerator > 0 else float('-inf')
            return default_on_zero_denom
        return numerator / denominator


def normalize_vector(vector, epsilon=1e-12):
    """
    Normalizes a vector to unit length.

    Args:
        vector (np.ndarray): The vector to normalize.
        epsilon (float): Threshold below which the vector's magnitude is considered zero.

    Returns:
        np.ndarray: The normalized vector, or a zero vector of the same shape
                    if its magnitude is close to zero.
    """
    if not isinstance(vector, np.ndarray):
        vector = np.array(vector, dtype=float)

    norm = np.linalg.norm(vector)
    if norm < epsilon:
        return np.zeros_like(vector, dtype=float)
    return vector / norm


def clamp(value, lower, upper):
    """Clamps a scalar into [lower, upper]."""
    return max(lower, min(value, upper))
