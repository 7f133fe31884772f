# sample_systems.py
"""Reference systems used by the command line tool and the test-suite.

Records use the plain loader format accepted by
`celestial.celestial_objects_from_records`. Radii are in km, masses in kg,
semi-major axes in AU, angles in degrees and periods in days.
"""
from typing import Dict, List

from celestial import BARYCENTER_ID, CelestialObject, celestial_objects_from_records
from layout_utils import InputError


def _body(object_id, name, classification, radius, mass, orbit=None):
    record = {
        'id': object_id,
        'name': name,
        'classification': classification,
        'properties': {'radius': radius, 'mass': mass},
    }
    if orbit is not None:
        record['orbit'] = orbit
    return record


def _orbit(parent, semi_major_axis, eccentricity, inclination, period, node=0.0, periapsis=0.0):
    return {
        'parent': parent,
        'semi_major_axis': semi_major_axis,
        'eccentricity': eccentricity,
        'inclination': inclination,
        'orbital_period': period,
        'longitude_of_ascending_node': node,
        'argument_of_periapsis': periapsis,
    }


SOL_SYSTEM = [
    _body('sol', 'Sun', 'star', 695700.0, 1.9885e30),
    _body('mercury', 'Mercury', 'planet', 2439.7, 0.33011e24,
          _orbit('sol', 0.387098, 0.205630, 7.005, 87.969, 48.331, 29.124)),
    _body('venus', 'Venus', 'planet', 6051.8, 4.8675e24,
          _orbit('sol', 0.723332, 0.006772, 3.39458, 224.701, 76.680, 54.884)),
    _body('earth', 'Earth', 'planet', 6371.0, 5.97237e24,
          _orbit('sol', 1.00000261, 0.01671123, 0.00005, 365.256, -11.26064, 114.20783)),
    _body('luna', 'Moon', 'moon', 1737.4, 0.07346e24,
          _orbit('earth', 0.00257, 0.0549, 5.145, 27.322, 125.08, 318.15)),
    _body('mars', 'Mars', 'planet', 3389.5, 0.64171e24,
          _orbit('sol', 1.523679, 0.09340, 1.850, 686.980, 49.558, 286.502)),
    _body('asteroid_belt', 'Main Belt', 'belt', 500.0, 2.39e21,
          _orbit('sol', 2.7, 0.0, 0.0, 1681.6)),
    _body('jupiter', 'Jupiter', 'planet', 69911.0, 1898.19e24,
          _orbit('sol', 5.2044, 0.0489, 1.303, 4332.59, 100.464, 273.867)),
    _body('io', 'Io', 'moon', 1821.6, 0.089319e24,
          _orbit('jupiter', 0.002819, 0.0041, 0.050, 1.769)),
    _body('europa', 'Europa', 'moon', 1560.8, 0.04800e24,
          _orbit('jupiter', 0.004486, 0.0094, 0.470, 3.551)),
    _body('ganymede', 'Ganymede', 'moon', 2634.1, 0.14819e24,
          _orbit('jupiter', 0.007155, 0.0013, 0.204, 7.155)),
    _body('callisto', 'Callisto', 'moon', 2410.3, 0.10759e24,
          _orbit('jupiter', 0.012585, 0.0074, 0.205, 16.689)),
    _body('saturn', 'Saturn', 'planet', 58232.0, 568.34e24,
          _orbit('sol', 9.5826, 0.0565, 2.485, 10759.22, 113.665, 339.392)),
    _body('titan', 'Titan', 'moon', 2574.7, 0.13452e24,
          _orbit('saturn', 0.008168, 0.0288, 0.34854, 15.945)),
    _body('uranus', 'Uranus', 'planet', 25362.0, 86.813e24,
          _orbit('sol', 19.2184, 0.0457, 0.772, 30688.5, 74.006, 96.999)),
    _body('neptune', 'Neptune', 'planet', 24622.0, 102.413e24,
          _orbit('sol', 30.110, 0.0113, 1.770, 60182.0, 131.783, 276.336)),
    _body('pluto', 'Pluto', 'dwarf_planet', 1188.3, 0.01303e24,
          _orbit('sol', 39.482, 0.2488, 17.16, 90560.0, 110.299, 113.834)),
]

# Alpha Centauri A and B share a barycenter; Proxima is an unbound third star
# with its own planet, so the system has two independent roots.
ALPHA_CENTAURI_SYSTEM = [
    _body('alpha_centauri_a', 'Alpha Centauri A', 'star', 847000.0, 2.188e30,
          _orbit(BARYCENTER_ID, 10.7, 0.5179, 79.2, 29187.0)),
    _body('alpha_centauri_b', 'Alpha Centauri B', 'star', 597700.0, 1.804e30,
          _orbit(BARYCENTER_ID, 12.8, 0.5179, 79.2, 29187.0, 0.0, 180.0)),
    _body('proxima_centauri', 'Proxima Centauri', 'star', 107280.0, 2.428e29),
    _body('proxima_b', 'Proxima Centauri b', 'planet', 7160.0, 6.4e24,
          _orbit('proxima_centauri', 0.04857, 0.02, 0.0, 11.186)),
]

SAMPLE_SYSTEMS: Dict[str, List[dict]] = {
    'sol': SOL_SYSTEM,
    'alpha-centauri': ALPHA_CENTAURI_SYSTEM,
}


def load_sample_system(name: str) -> List[CelestialObject]:
    """Returns a fresh object list for a named sample system.

    Raises:
        InputError: If the name is not a known sample system.
    """
    if name not in SAMPLE_SYSTEMS:
        raise InputError(f"Unknown sample system '{name}'. Available: {', '.join(sorted(SAMPLE_SYSTEMS))}")
    return celestial_objects_from_records(SAMPLE_SYSTEMS[name])
