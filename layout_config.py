# layout_config.py
import copy
import hashlib
import json
import logging
from types import SimpleNamespace
from typing import Any, Dict, Optional

# Configure basic logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(module)s - %(message)s')

# Fundamental astronomical constants (used across different config sections)
AU_KM = 149597870.7  # Astronomical Unit in kilometers
EARTH_RADIUS_KM = 6371.0
SUN_RADIUS_KM = 695700.0

VIEW_MODES = ('explorational', 'navigational', 'profile', 'scientific')
DEFAULT_VIEW_MODE = 'explorational'

SECTION_NAMES = ('Camera', 'Orbital', 'Visual', 'Scaling', 'Performance', 'Animation', 'Debug')


class ConfigurationError(Exception):
    """Custom exception for layout configuration errors.

    Raised by `LayoutConfig.validate()` and by `LayoutConfig.__init__` when an
    override names an unknown section or setting. An invalid table must never
    reach the calculation pipeline, so this is raised before any layout work
    starts.

    Attributes:
        message (str): A human-readable explanation of the configuration error.
                       This is the first argument passed to the exception constructor.
    """
    pass


class LayoutConfig:
    """Centralized, hierarchical configuration for the orbital layout engine.

    Parameters are grouped into nested static classes (`Camera`, `Orbital`,
    `Visual`, `Scaling`, `Performance`, `Animation`, `Debug`). Each instance
    receives its own copy of every section, so two configurations never share
    mutable state and a configuration can be handed explicitly to each
    service. A default instance named `config` is created at the end of this
    module for callers that do not build their own.

    Overrides are applied per section before validation:

        >>> cfg = LayoutConfig({'Orbital': {'MAX_ITERATIONS': 20}})
        >>> cfg.Orbital.MAX_ITERATIONS
        20

    Once constructed the table is treated as read-only by every service.
    """

    # --- Camera Configuration ---
    class Camera:
        """Camera framing constants.

        Attributes:
            DISTANCE_MULTIPLIERS (Dict[str, float]): Multiples of the focused object's
                visual radius. `consistent` is the preferred framing distance,
                `minimum`/`maximum` bound it and `profile_layout` scales the span
                of a profile diagram.
            ELEVATION_ANGLES (Dict[str, float]): Camera elevation per view mode in degrees.
            ABSOLUTE_LIMITS (Dict[str, float]): Hard distance limits in scene units plus
                the radius safety margin.
            DETECTION_THRESHOLDS (Dict[str, float]): Thresholds used when framing a
                profile layout or choosing a horizontal camera direction.
        """
        DISTANCE_MULTIPLIERS = {
            'consistent': 4.0,
            'minimum': 2.5,
            'maximum': 15.0,
            'profile_layout': 1.2,
        }
        ELEVATION_ANGLES = {
            'explorational': 30.0,
            'navigational': 35.0,
            'profile': 22.5,
            'scientific': 15.0,
        }
        ABSOLUTE_LIMITS = {
            'min_distance': 0.1,
            'max_distance': 10000.0,
            'safety_margin': 2.0,
        }
        DETECTION_THRESHOLDS = {
            'fake_offset_max': 20.0,
            'single_object_distance': 15.0,
            'min_horizontal_direction': 0.1,
            'fake_offset_multiplier': 3.0,
        }

    # --- Orbital Configuration ---
    class Orbital:
        """Orbit placement and collision constants.

        Attributes:
            BASE_SCALING (Dict[str, float]): Scene units per AU for each view mode.
                The scientific entry is a placeholder; scientific scaling is derived
                per system.
            SAFETY_FACTORS (Dict[str, float]): Multiplier on a parent's visual radius
                defining the minimum clearance of its children.
            MAX_ITERATIONS (int): Search budget of the collision resolver per object.
            CONVERGENCE_THRESHOLD (float): Minimum edge gap between neighbours.
            DEFAULT_BELT_WIDTH (float): Belt width as a fraction of its center radius.
            BASE_SPACING (float): First slot of the equidistant ladder.
            SPACING_MULTIPLIER (float): Step of the equidistant ladder in units of BASE_SPACING.
            BARYCENTER_SPACING_FACTOR (float): Ladder widening for stars around a barycenter.
            BARYCENTER_SCALE_FACTOR (float): Reduction of the AU scaling for barycenter stars.
            BARYCENTER_MIN_DISTANCE (float): Floor for scaled barycenter star distances.
        """
        BASE_SCALING = {
            'explorational': 50.0,
            'navigational': 40.0,
            'profile': 0.05,
            'scientific': 1.0,
            'default': 50.0,
        }
        SAFETY_FACTORS = {
            'minimum': 2.0,
            'explorational': 2.5,
            'navigational': 3.0,
            'profile': 1.05,
            'scientific': 1.1,
        }
        MAX_ITERATIONS = 10
        CONVERGENCE_THRESHOLD = 0.001
        DEFAULT_BELT_WIDTH = 0.2
        BASE_SPACING = 0.5
        SPACING_MULTIPLIER = 1.0
        BARYCENTER_SPACING_FACTOR = 2.0
        BARYCENTER_SCALE_FACTOR = 0.1
        BARYCENTER_MIN_DISTANCE = 5.0

    # --- Visual Configuration ---
    class Visual:
        """Visual size constraints shared by the fixed-size and logarithmic strategies.

        Attributes:
            MIN_VISUAL_SIZE (float): Smallest visual radius a strategy may produce.
            MAX_VISUAL_SIZE (float): Largest visual radius a strategy may produce.
            EARTH_REFERENCE_RADIUS_KM (float): Reference radius used when a system has
                no Earth-like object.
            LOGARITHMIC_BASE (float): Base of the explorational logarithm.
            PROPORTIONALITY_CONSTANT (float): Multiplier on the logarithmic scale.
            FIXED_SIZES (Dict[str, float]): Per-classification radii for fixed-size modes.
            MAX_CHILD_TO_PARENT_RATIO (float): Upper bound of child/parent visual radius.
            MIN_CHILD_TO_PARENT_RATIO (float): Lower bound of child/parent visual radius.
            ENFORCE_HIERARCHY (bool): Whether the ratio bounds are applied at all.
        """
        MIN_VISUAL_SIZE = 0.03
        MAX_VISUAL_SIZE = 40.0
        EARTH_REFERENCE_RADIUS_KM = EARTH_RADIUS_KM
        LOGARITHMIC_BASE = 2.0
        PROPORTIONALITY_CONSTANT = 1.0
        FIXED_SIZES = {
            'star': 2.0,
            'planet': 1.2,
            'moon': 0.6,
            'asteroid': 0.3,
            'belt': 1.0,
        }
        MAX_CHILD_TO_PARENT_RATIO = 0.8
        MIN_CHILD_TO_PARENT_RATIO = 0.1
        ENFORCE_HIERARCHY = True

    # --- Astronomical Scaling Configuration ---
    class Scaling:
        """Defaults of the real-unit astronomical scaling service.

        Attributes:
            TARGET_EARTH_RADIUS (float): Visual radius of an Earth-sized body.
            TARGET_EARTH_ORBIT (float): Scene distance of 1 AU.
            USE_LOGARITHMIC_FOR_EXTREMES (bool): Compress bodies beyond the threshold.
            EXTREME_THRESHOLD_RATIO (float): Size ratio to Earth above which compression starts.
            MAINTAIN_VISIBILITY (bool): Raise tiny bodies to MIN_VISUAL_RADIUS.
            MIN_VISUAL_RADIUS (float): Visibility floor.
            MAX_VISUAL_RADIUS (float): Usability cap.
            MIN_ORBIT_DISTANCE (float): Minimum clickable orbit distance.
            STELLAR_EARTH_RADIUS (float): Earth radius used when a system contains stars.
            STELLAR_EXTREME_THRESHOLD (float): Threshold used when a system contains stars.
            MOON_SYSTEM_EARTH_ORBIT (float): 1 AU distance used when a system contains moons.
            LOG_SIZE_RANGE_THRESHOLD (float): Size range above which compression is enabled.
        """
        TARGET_EARTH_RADIUS = 1.0
        TARGET_EARTH_ORBIT = 100.0
        USE_LOGARITHMIC_FOR_EXTREMES = True
        EXTREME_THRESHOLD_RATIO = 1000.0
        MAINTAIN_VISIBILITY = True
        MIN_VISUAL_RADIUS = 0.001
        MAX_VISUAL_RADIUS = 1000.0
        MIN_ORBIT_DISTANCE = 1.0
        STELLAR_EARTH_RADIUS = 0.1
        STELLAR_EXTREME_THRESHOLD = 10.0
        MOON_SYSTEM_EARTH_ORBIT = 50.0
        LOG_SIZE_RANGE_THRESHOLD = 100.0

    # --- Performance Configuration ---
    class Performance:
        """Caching and statistics settings.

        Attributes:
            ENABLE_CACHING (bool): Memoize full layouts.
            MAX_CACHE_SIZE (int): Maximum number of cached layouts.
            CACHE_TIMEOUT_MS (int): Age after which a cached layout is discarded.
            STATISTICS_WINDOW (int): Number of timings kept for the rolling average.
            LARGE_SYSTEM_THRESHOLD (int): Object count that triggers a performance warning.
        """
        ENABLE_CACHING = True
        MAX_CACHE_SIZE = 1000
        CACHE_TIMEOUT_MS = 300000
        STATISTICS_WINDOW = 100
        LARGE_SYSTEM_THRESHOLD = 1000

    # --- Animation Configuration ---
    class Animation:
        """Transition timings handed to the rendering layer with camera framings."""
        DURATIONS_MS = {
            'quick': 600,
            'standard': 800,
            'extended': 1200,
        }
        EASING_FUNCTIONS = {
            'leap': 'easeOutQuart',
            'smooth': 'easeInOutCubic',
            'quick': 'easeOutQuad',
        }
        ANIMATION_SPEED = {
            'explorational': 1.0,
            'navigational': 1.0,
            'profile': 0.5,
            'scientific': 1.0,
        }

    # --- Debug Configuration ---
    class Debug:
        LAYOUT_PIPELINE = False  # Trace each pipeline step
        COLLISIONS = False  # Trace every detected collision and resolver step

    def __init__(self, overrides: Optional[Dict[str, Dict[str, Any]]] = None):
        """Copies every section onto the instance, applies overrides and validates.

        Args:
            overrides: Optional mapping of section name to {SETTING: value}.

        Raises:
            ConfigurationError: If an override targets an unknown section or setting,
                or if the resulting table fails validation.
        """
        for section_name in SECTION_NAMES:
            section_cls = getattr(type(self), section_name)
            values = {key: copy.deepcopy(value) for key, value in vars(section_cls).items() if key.isupper()}
            setattr(self, section_name, SimpleNamespace(**values))

        for section_name, settings in (overrides or {}).items():
            if section_name not in SECTION_NAMES:
                raise ConfigurationError(f"Unknown configuration section '{section_name}'.")
            section = getattr(self, section_name)
            for key, value in settings.items():
                if not hasattr(section, key):
                    raise ConfigurationError(f"Unknown setting '{section_name}.{key}'.")
                current = getattr(section, key)
                if isinstance(current, dict) and isinstance(value, dict):
                    merged = dict(current)
                    merged.update(value)
                    value = merged
                setattr(section, key, value)

        self.validate()

    def get_safety_factor(self, view_mode: str) -> float:
        return self.Orbital.SAFETY_FACTORS.get(view_mode, self.Orbital.SAFETY_FACTORS['minimum'])

    def get_base_scaling(self, view_mode: str) -> float:
        return self.Orbital.BASE_SCALING.get(view_mode, self.Orbital.BASE_SCALING['default'])

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {name: copy.deepcopy(vars(getattr(self, name))) for name in SECTION_NAMES}

    def fingerprint(self) -> str:
        """Stable digest of every setting, used to key cached layouts."""
        payload = json.dumps(self.to_dict(), sort_keys=True, default=str)
        return hashlib.md5(payload.encode('utf-8')).hexdigest()

    def validate(self):
        """Performs validation of all layout configuration settings.

        This method checks:
        -   **Camera**: distance multipliers are positive and ordered
            (minimum < maximum), elevation angles lie within [0, 90] degrees and
            the absolute distance limits are ordered.
        -   **Orbital**: every base scaling is positive, every safety factor is at
            least 1.0, the resolver budget is at least one iteration, the
            convergence threshold and spacings are positive and the belt width
            fraction lies within (0, 1].
        -   **Visual**: 0 < MIN_VISUAL_SIZE < MAX_VISUAL_SIZE, the logarithmic base
            exceeds 1 and the hierarchy ratios satisfy 0 < min < max <= 1.
        -   **Scaling**: target sizes and thresholds are positive.
        -   **Performance**: cache size is at least 1 and the timeout is positive.

        Raises:
            ConfigurationError: If any configuration setting is found to be invalid.
        """
        # Camera
        multipliers = self.Camera.DISTANCE_MULTIPLIERS
        for name, value in multipliers.items():
            if value <= 0:
                raise ConfigurationError(f"Camera.DISTANCE_MULTIPLIERS['{name}'] must be positive, got {value}.")
        if multipliers['minimum'] >= multipliers['maximum']:
            raise ConfigurationError(
                f"Camera.DISTANCE_MULTIPLIERS minimum ({multipliers['minimum']}) must be less than maximum ({multipliers['maximum']}).")
        for mode in VIEW_MODES:
            if mode not in self.Camera.ELEVATION_ANGLES:
                raise ConfigurationError(f"Camera.ELEVATION_ANGLES is missing an entry for view mode '{mode}'.")
        for mode, angle in self.Camera.ELEVATION_ANGLES.items():
            if not (0.0 <= angle <= 90.0):
                raise ConfigurationError(f"Camera.ELEVATION_ANGLES['{mode}'] ({angle}) must be between 0 and 90 degrees inclusive.")
        limits = self.Camera.ABSOLUTE_LIMITS
        if limits['min_distance'] <= 0 or limits['min_distance'] >= limits['max_distance']:
            raise ConfigurationError(
                f"Camera.ABSOLUTE_LIMITS must satisfy 0 < min_distance < max_distance, got {limits['min_distance']} and {limits['max_distance']}.")
        if limits['safety_margin'] < 1.0:
            raise ConfigurationError(f"Camera.ABSOLUTE_LIMITS['safety_margin'] ({limits['safety_margin']}) must be at least 1.0.")

        # Orbital
        for mode in VIEW_MODES + ('default',):
            scaling = self.Orbital.BASE_SCALING.get(mode)
            if scaling is None or scaling <= 0:
                raise ConfigurationError(f"Orbital.BASE_SCALING['{mode}'] must be defined and positive, got {scaling}.")
        for name, factor in self.Orbital.SAFETY_FACTORS.items():
            if factor < 1.0:
                raise ConfigurationError(f"Orbital.SAFETY_FACTORS['{name}'] ({factor}) must be at least 1.0.")
        if 'minimum' not in self.Orbital.SAFETY_FACTORS:
            raise ConfigurationError("Orbital.SAFETY_FACTORS must define a 'minimum' entry.")
        if int(self.Orbital.MAX_ITERATIONS) < 1:
            raise ConfigurationError(f"Orbital.MAX_ITERATIONS must be at least 1, got {self.Orbital.MAX_ITERATIONS}.")
        if self.Orbital.CONVERGENCE_THRESHOLD <= 0:
            raise ConfigurationError("Orbital.CONVERGENCE_THRESHOLD must be positive.")
        if not (0.0 < self.Orbital.DEFAULT_BELT_WIDTH <= 1.0):
            raise ConfigurationError(f"Orbital.DEFAULT_BELT_WIDTH ({self.Orbital.DEFAULT_BELT_WIDTH}) must be within (0, 1].")
        if self.Orbital.BASE_SPACING <= 0 or self.Orbital.SPACING_MULTIPLIER <= 0:
            raise ConfigurationError("Orbital.BASE_SPACING and Orbital.SPACING_MULTIPLIER must be positive.")
        if self.Orbital.BARYCENTER_SPACING_FACTOR <= 0 or self.Orbital.BARYCENTER_SCALE_FACTOR <= 0:
            raise ConfigurationError("Orbital barycenter spacing and scale factors must be positive.")
        if self.Orbital.BARYCENTER_MIN_DISTANCE < 0:
            raise ConfigurationError("Orbital.BARYCENTER_MIN_DISTANCE cannot be negative.")

        # Visual
        if self.Visual.MIN_VISUAL_SIZE <= 0:
            raise ConfigurationError("Visual.MIN_VISUAL_SIZE must be positive.")
        if self.Visual.MIN_VISUAL_SIZE >= self.Visual.MAX_VISUAL_SIZE:
            raise ConfigurationError(
                f"Visual.MIN_VISUAL_SIZE ({self.Visual.MIN_VISUAL_SIZE}) must be less than Visual.MAX_VISUAL_SIZE ({self.Visual.MAX_VISUAL_SIZE}).")
        if self.Visual.EARTH_REFERENCE_RADIUS_KM <= 0:
            raise ConfigurationError("Visual.EARTH_REFERENCE_RADIUS_KM must be positive.")
        if self.Visual.LOGARITHMIC_BASE <= 1.0:
            raise ConfigurationError(f"Visual.LOGARITHMIC_BASE ({self.Visual.LOGARITHMIC_BASE}) must be greater than 1.")
        if self.Visual.PROPORTIONALITY_CONSTANT <= 0:
            raise ConfigurationError("Visual.PROPORTIONALITY_CONSTANT must be positive.")
        for classification, size in self.Visual.FIXED_SIZES.items():
            if size <= 0:
                raise ConfigurationError(f"Visual.FIXED_SIZES['{classification}'] must be positive, got {size}.")
        min_ratio = self.Visual.MIN_CHILD_TO_PARENT_RATIO
        max_ratio = self.Visual.MAX_CHILD_TO_PARENT_RATIO
        if not (0.0 < min_ratio < max_ratio <= 1.0):
            raise ConfigurationError(
                f"Visual child/parent ratios must satisfy 0 < min < max <= 1, got min={min_ratio}, max={max_ratio}.")

        # Scaling
        if self.Scaling.TARGET_EARTH_RADIUS <= 0 or self.Scaling.TARGET_EARTH_ORBIT <= 0:
            raise ConfigurationError("Scaling target Earth radius and orbit must be positive.")
        if self.Scaling.EXTREME_THRESHOLD_RATIO <= 0 or self.Scaling.STELLAR_EXTREME_THRESHOLD <= 0:
            raise ConfigurationError("Scaling extreme thresholds must be positive.")
        if not (0.0 < self.Scaling.MIN_VISUAL_RADIUS < self.Scaling.MAX_VISUAL_RADIUS):
            raise ConfigurationError(
                f"Scaling.MIN_VISUAL_RADIUS ({self.Scaling.MIN_VISUAL_RADIUS}) must be positive and less than Scaling.MAX_VISUAL_RADIUS ({self.Scaling.MAX_VISUAL_RADIUS}).")
        if self.Scaling.MIN_ORBIT_DISTANCE < 0:
            raise ConfigurationError("Scaling.MIN_ORBIT_DISTANCE cannot be negative.")
        if self.Scaling.STELLAR_EARTH_RADIUS <= 0 or self.Scaling.MOON_SYSTEM_EARTH_ORBIT <= 0:
            raise ConfigurationError("Scaling stellar Earth radius and moon-system orbit must be positive.")

        # Performance
        if int(self.Performance.MAX_CACHE_SIZE) < 1:
            raise ConfigurationError(f"Performance.MAX_CACHE_SIZE must be at least 1, got {self.Performance.MAX_CACHE_SIZE}.")
        if self.Performance.CACHE_TIMEOUT_MS <= 0:
            raise ConfigurationError("Performance.CACHE_TIMEOUT_MS must be positive.")
        if int(self.Performance.STATISTICS_WINDOW) < 1:
            raise ConfigurationError("Performance.STATISTICS_WINDOW must be at least 1.")

        # Animation
        for name, duration in self.Animation.DURATIONS_MS.items():
            if duration < 0:
                raise ConfigurationError(f"Animation.DURATIONS_MS['{name}'] cannot be negative.")

        logging.info("Layout configuration validated successfully.")


# --- Instantiate the default configuration ---
# Services that are not handed a configuration use this instance.
try:
    config = LayoutConfig()
except ConfigurationError as e:
    logging.error(f"FATAL CONFIGURATION ERROR: {e}", exc_info=True)
    raise
