# orbital_prediction.py
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Sequence

import numpy as np

from celestial import CelestialObject, SystemLayout
from layout_utils import InputError, safe_divide
from view_mode_strategy import OrbitalBehavior

DEFAULT_ORBITAL_PERIOD_DAYS = 365.25
SECONDS_PER_DAY = 86400.0
CACHE_VALIDITY_MS = 16.0  # One frame at 60 fps
CACHE_MAX_AGE_FACTOR = 5


def solve_kepler_equation(mean_anomaly: float, e: float, tolerance: float = 1e-8, max_iterations: int = 50) -> float:
    """
    Solves Kepler's Equation M = E - e * sin(E) for eccentric anomaly E using Newton-Raphson.

    Args:
        mean_anomaly: Mean anomaly in radians.
        e: Eccentricity (0 <= e < 1).
        tolerance: Convergence tolerance on the Newton step.
        max_iterations: Maximum number of iterations. The last estimate is
            returned when the budget runs out.

    Returns:
        Eccentric anomaly E in radians.

    Raises:
        InputError: If the eccentricity does not describe an ellipse.
    """
    if not (0.0 <= e < 1.0):
        raise InputError(f"Eccentricity e={e} is out of bounds [0, 1) for Kepler's equation solver.")
    if e == 0.0:
        return mean_anomaly

    # pi is a better start than M for very eccentric orbits
    eccentric_anomaly = math.pi if e > 0.8 else mean_anomaly
    for _ in range(max_iterations):
        f_e = eccentric_anomaly - e * math.sin(eccentric_anomaly) - mean_anomaly
        f_prime_e = 1.0 - e * math.cos(eccentric_anomaly)
        correction = safe_divide(f_e, f_prime_e, epsilon=1e-14)
        eccentric_anomaly -= correction
        if abs(correction) < tolerance:
            break
    return eccentric_anomaly


@dataclass
class PredictedPosition:
    position: np.ndarray  # scene units, relative to the parent
    velocity: np.ndarray  # scene units per day
    time_stamp: float  # milliseconds, from the service clock
    confidence: float  # 0-1

    def __post_init__(self):
        if not isinstance(self.position, np.ndarray):
            self.position = np.array(self.position, dtype=np.float64)
        if not isinstance(self.velocity, np.ndarray):
            self.velocity = np.array(self.velocity, dtype=np.float64)


class OrbitalPredictionService:
    """Places bodies on their laid-out orbits at a given simulation time.

    The semi-major axis of each predicted orbit is the body's orbit distance in
    the layout, so predictions agree with the static snapshot the renderer
    draws. Eccentricity and inclination are only honoured when the view mode's
    `OrbitalBehavior` allows them. Results are memoized for one frame.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._cache: Dict[tuple, PredictedPosition] = {}

    def predict_position(self, object_id: str, layout: SystemLayout, objects: Sequence[CelestialObject],
                         current_time_s: float, behavior: OrbitalBehavior) -> PredictedPosition:
        """Position of `object_id` relative to its parent at `current_time_s` seconds.

        Parentless objects are static (confidence 1.0). Objects without a laid-out
        orbit distance, or whose orbit cannot be solved, sit at the parent with
        confidence 0.0.
        """
        now_ms = self.clock() * 1000.0
        key = (object_id, current_time_s, layout.metadata.view_mode)
        cached = self._cache.get(key)
        if cached is not None and now_ms - cached.time_stamp < CACHE_VALIDITY_MS:
            return cached

        obj = next((o for o in objects if o.id == object_id), None)
        result = layout.results.get(object_id)
        if obj is not None and obj.parent_id is None:
            position, velocity, confidence = np.zeros(3), np.zeros(3), 1.0
        elif obj is None or obj.orbit is None or result is None or result.orbit_distance is None:
            position, velocity, confidence = np.zeros(3), np.zeros(3), 0.0
        else:
            try:
                position, velocity = self.calculate_orbital_state(obj, result.orbit_distance, current_time_s, behavior)
                confidence = 0.95
            except InputError as e:
                logging.warning(f"Cannot predict position of {object_id}: {e}")
                position, velocity, confidence = np.zeros(3), np.zeros(3), 0.0

        prediction = PredictedPosition(position=position, velocity=velocity, time_stamp=now_ms,
                                       confidence=confidence)
        self._cache[key] = prediction
        self._cleanup_cache(now_ms)
        return prediction

    def predict_multiple_positions(self, object_ids: Iterable[str], layout: SystemLayout,
                                   objects: Sequence[CelestialObject], current_time_s: float,
                                   behavior: OrbitalBehavior) -> Dict[str, PredictedPosition]:
        return {object_id: self.predict_position(object_id, layout, objects, current_time_s, behavior)
                for object_id in object_ids}

    def predict_world_position(self, object_id: str, layout: SystemLayout, objects: Sequence[CelestialObject],
                               current_time_s: float, behavior: OrbitalBehavior) -> np.ndarray:
        """Sum of the predicted offsets along the parent chain of `object_id`."""
        by_id = {obj.id: obj for obj in objects}
        world = np.zeros(3)
        visited = set()
        current = object_id
        while current in by_id and current not in visited:
            visited.add(current)
            world = world + self.predict_position(current, layout, objects, current_time_s, behavior).position
            current = by_id[current].parent_id
        return world

    def clear_predictions(self):
        self._cache.clear()

    @staticmethod
    def calculate_orbital_state(obj: CelestialObject, semi_major_axis: float, current_time_s: float,
                                behavior: OrbitalBehavior):
        """Position and velocity on the orbit of `obj`, with y as the up axis.

        Returns:
            Tuple of (position, velocity) numpy 3-vectors.
        """
        orbit = obj.orbit
        use_eccentricity = behavior.use_eccentricity and not behavior.enforce_circular_orbits
        e = orbit.eccentricity if use_eccentricity else 0.0
        inclination = math.radians(orbit.inclination) if behavior.allow_vertical_offset else 0.0
        node = math.radians(orbit.longitude_of_ascending_node)
        periapsis = math.radians(orbit.argument_of_periapsis)
        period = orbit.orbital_period or DEFAULT_ORBITAL_PERIOD_DAYS

        mean_motion = 2.0 * math.pi / period  # radians per day
        mean_anomaly = (mean_motion * current_time_s / SECONDS_PER_DAY) % (2.0 * math.pi)
        eccentric_anomaly = solve_kepler_equation(mean_anomaly, e)
        true_anomaly = 2.0 * math.atan2(math.sqrt(1.0 + e) * math.sin(eccentric_anomaly / 2.0),
                                        math.sqrt(1.0 - e) * math.cos(eccentric_anomaly / 2.0))
        radius = semi_major_axis * (1.0 - e * e) / (1.0 + e * math.cos(true_anomaly))

        perifocal_position = np.array([radius * math.cos(true_anomaly), radius * math.sin(true_anomaly), 0.0])
        speed = safe_divide(mean_motion * semi_major_axis * semi_major_axis, radius)
        perifocal_velocity = np.array([-speed * math.sin(true_anomaly), speed * (e + math.cos(true_anomaly)), 0.0])

        rotation = _perifocal_to_scene(node, periapsis, inclination)
        return rotation @ perifocal_position, rotation @ perifocal_velocity

    def _cleanup_cache(self, now_ms: float):
        max_age = CACHE_VALIDITY_MS * CACHE_MAX_AGE_FACTOR
        stale = [key for key, prediction in self._cache.items() if now_ms - prediction.time_stamp > max_age]
        for key in stale:
            del self._cache[key]


def _perifocal_to_scene(node: float, periapsis: float, inclination: float) -> np.ndarray:
    """Rotation R_z(node) R_x(inclination) R_z(periapsis), with the ecliptic normal mapped to scene y."""
    cos_o, sin_o = math.cos(node), math.sin(node)
    cos_w, sin_w = math.cos(periapsis), math.sin(periapsis)
    cos_i, sin_i = math.cos(inclination), math.sin(inclination)
    ecliptic = np.array([
        [cos_o * cos_w - sin_o * sin_w * cos_i, -cos_o * sin_w - sin_o * cos_w * cos_i, sin_o * sin_i],
        [sin_o * cos_w + cos_o * sin_w * cos_i, -sin_o * sin_w + cos_o * cos_w * cos_i, -cos_o * sin_i],
        [sin_w * sin_i, cos_w * sin_i, cos_i],
    ])
    # Ecliptic (x, y, z) -> scene (x, z, -y), still a proper rotation
    return ecliptic[[0, 2, 1]] * np.array([[1.0], [1.0], [-1.0]])
