# astronomical_scaling.py
import functools
import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

from celestial import CelestialObject, find_earth_reference
from layout_config import AU_KM, EARTH_RADIUS_KM, SUN_RADIUS_KM, LayoutConfig
from layout_config import config as default_config
from layout_utils import safe_divide

FALLBACK_RADII_KM = {
    'star': SUN_RADIUS_KM,
    'planet': EARTH_RADIUS_KM,
    'moon': EARTH_RADIUS_KM * 0.27,  # Luna-like
}
DEFAULT_FALLBACK_RADIUS_KM = 1000.0


@dataclass(frozen=True)
class ScientificScaleConfiguration:
    target_earth_radius: float  # Visual radius of an Earth-sized body
    target_earth_orbit: float  # Scene distance of 1 AU
    use_logarithmic_for_extremes: bool
    extreme_threshold_ratio: float
    maintain_visibility: bool

    @classmethod
    def from_config(cls, layout_config: LayoutConfig) -> 'ScientificScaleConfiguration':
        scaling = layout_config.Scaling
        return cls(
            target_earth_radius=scaling.TARGET_EARTH_RADIUS,
            target_earth_orbit=scaling.TARGET_EARTH_ORBIT,
            use_logarithmic_for_extremes=scaling.USE_LOGARITHMIC_FOR_EXTREMES,
            extreme_threshold_ratio=scaling.EXTREME_THRESHOLD_RATIO,
            maintain_visibility=scaling.MAINTAIN_VISIBILITY,
        )


@dataclass(frozen=True)
class AstronomicalScaleResult:
    visual_radius: float
    real_radius_km: float
    scale_factor_used: float
    is_to_scale: bool
    scaling_method: str  # 'proportional' | 'logarithmic' | 'hybrid'
    relative_to_earth: float


@dataclass(frozen=True)
class AstronomicalOrbitResult:
    orbit_radius: float
    real_orbit_km: float
    real_orbit_au: float
    scale_factor_used: float
    is_to_scale: bool
    relative_to_earth: float


@dataclass(frozen=True)
class SystemScaling:
    object_sizes: Dict[str, AstronomicalScaleResult]
    orbit_distances: Dict[str, AstronomicalOrbitResult]
    total_size_range: float
    total_orbit_range: float
    average_scale_factor: float
    is_fully_to_scale: bool


ZERO_ORBIT = AstronomicalOrbitResult(
    orbit_radius=0.0, real_orbit_km=0.0, real_orbit_au=0.0,
    scale_factor_used=0.0, is_to_scale=True, relative_to_earth=0.0)


class AstronomicalScalingService:
    """Converts real radii (km) and orbit distances (AU) into scene units.

    Sizes scale proportionally to an Earth-like reference until the ratio to
    that reference exceeds `extreme_threshold_ratio`; beyond it the radius is
    compressed logarithmically (`log10(ratio + 1) * 2` Earth units) and the
    result is flagged as not to scale. A visibility floor and a usability cap
    (`Scaling.MIN_VISUAL_RADIUS` / `Scaling.MAX_VISUAL_RADIUS`) are applied
    afterwards and also clear the to-scale flag.
    """

    def __init__(self, scale_config: Optional[ScientificScaleConfiguration] = None,
                 layout_config: Optional[LayoutConfig] = None):
        self.layout_config = layout_config or default_config
        self.scale_config = scale_config or ScientificScaleConfiguration.from_config(self.layout_config)

    def extract_radius_km(self, obj: CelestialObject) -> float:
        radius = obj.properties.radius_km if obj.properties else 0.0
        if radius and radius > 0:
            return radius
        fallback = FALLBACK_RADII_KM.get(obj.classification, DEFAULT_FALLBACK_RADIUS_KM)
        logging.debug(f"No radius for '{obj.id}', using {obj.classification} fallback of {fallback} km.")
        return fallback

    def calculate_object_size(self, obj: CelestialObject,
                              earth_reference: Optional[CelestialObject] = None) -> AstronomicalScaleResult:
        """Scales a body's real radius into scene units.

        Args:
            obj: The body to scale.
            earth_reference: Body treated as "Earth"; the standard Earth radius is
                used when omitted.

        Returns:
            AstronomicalScaleResult describing the visual radius and how it was obtained.
        """
        cfg = self.scale_config
        scaling = self.layout_config.Scaling
        object_radius_km = self.extract_radius_km(obj)
        earth_radius_km = self.extract_radius_km(earth_reference) if earth_reference else EARTH_RADIUS_KM

        real_ratio = safe_divide(object_radius_km, earth_radius_km, default_on_zero_denom=1.0)
        base_visual_radius = real_ratio * cfg.target_earth_radius

        if cfg.use_logarithmic_for_extremes and real_ratio > cfg.extreme_threshold_ratio:
            visual_radius = cfg.target_earth_radius * math.log10(real_ratio + 1) * 2
            scaling_method = 'logarithmic'
            is_to_scale = False
        elif base_visual_radius < scaling.MIN_VISUAL_RADIUS:
            visual_radius = scaling.MIN_VISUAL_RADIUS if cfg.maintain_visibility else base_visual_radius
            scaling_method = 'hybrid'
            is_to_scale = not cfg.maintain_visibility
        elif base_visual_radius > scaling.MAX_VISUAL_RADIUS:
            visual_radius = scaling.MAX_VISUAL_RADIUS
            scaling_method = 'hybrid'
            is_to_scale = False
        else:
            visual_radius = base_visual_radius
            scaling_method = 'proportional'
            is_to_scale = True

        return AstronomicalScaleResult(
            visual_radius=visual_radius,
            real_radius_km=object_radius_km,
            scale_factor_used=safe_divide(visual_radius, object_radius_km),
            is_to_scale=is_to_scale,
            scaling_method=scaling_method,
            relative_to_earth=real_ratio,
        )

    def calculate_orbit_distance(self, obj: CelestialObject) -> AstronomicalOrbitResult:
        """Maps a semi-major axis in AU linearly onto `target_earth_orbit` units per AU."""
        if obj.orbit is None or obj.orbit.semi_major_axis_au is None:
            return ZERO_ORBIT

        orbit_au = obj.orbit.semi_major_axis_au
        orbit_km = orbit_au * AU_KM
        orbit_radius = orbit_au * self.scale_config.target_earth_orbit
        is_to_scale = True

        min_distance = self.layout_config.Scaling.MIN_ORBIT_DISTANCE
        if orbit_radius < min_distance and self.scale_config.maintain_visibility:
            orbit_radius = min_distance
            is_to_scale = False

        return AstronomicalOrbitResult(
            orbit_radius=orbit_radius,
            real_orbit_km=orbit_km,
            real_orbit_au=orbit_au,
            scale_factor_used=safe_divide(orbit_radius, orbit_km),
            is_to_scale=is_to_scale,
            relative_to_earth=orbit_au,  # Earth's orbit is 1 AU
        )

    def units_per_au(self) -> float:
        """Scene units corresponding to 1 AU under this configuration."""
        return self.scale_config.target_earth_orbit

    def calculate_system_scaling(self, objects: Sequence[CelestialObject],
                                 earth_reference: Optional[CelestialObject] = None) -> SystemScaling:
        earth_reference = earth_reference or find_earth_reference(objects)
        object_sizes = {}
        orbit_distances = {}
        min_size, max_size = math.inf, 0.0
        min_orbit, max_orbit = math.inf, 0.0
        total_scale_factor = 0.0
        all_to_scale = True

        for obj in objects:
            size = self.calculate_object_size(obj, earth_reference)
            object_sizes[obj.id] = size
            min_size = min(min_size, size.visual_radius)
            max_size = max(max_size, size.visual_radius)
            total_scale_factor += size.scale_factor_used
            all_to_scale = all_to_scale and size.is_to_scale

            orbit = self.calculate_orbit_distance(obj)
            orbit_distances[obj.id] = orbit
            if orbit.orbit_radius > 0:
                min_orbit = min(min_orbit, orbit.orbit_radius)
                max_orbit = max(max_orbit, orbit.orbit_radius)
                all_to_scale = all_to_scale and orbit.is_to_scale

        return SystemScaling(
            object_sizes=object_sizes,
            orbit_distances=orbit_distances,
            total_size_range=safe_divide(max_size, min_size) if object_sizes else 0.0,
            total_orbit_range=max_orbit / (1.0 if min_orbit == math.inf else min_orbit),
            average_scale_factor=total_scale_factor / max(len(objects), 1),
            is_fully_to_scale=all_to_scale,
        )

    @staticmethod
    def get_optimal_configuration(objects: Iterable[CelestialObject],
                                  layout_config: Optional[LayoutConfig] = None) -> ScientificScaleConfiguration:
        """Derives a scale configuration from the composition of a system.

        Systems with stars get a smaller Earth unit and a much lower extremity
        threshold so stellar radii are compressed early; systems with moons get
        tighter orbits. Logarithmic compression is enabled for any system with
        stars or a real size range above `Scaling.LOG_SIZE_RANGE_THRESHOLD`.
        """
        layout_config = layout_config or default_config
        return _optimal_configuration(tuple(objects), layout_config)


@functools.lru_cache(maxsize=64)
def _optimal_configuration(objects: Tuple[CelestialObject, ...],
                           layout_config: LayoutConfig) -> ScientificScaleConfiguration:
    scaling = layout_config.Scaling
    has_stars = any(obj.classification == 'star' for obj in objects)
    has_moons = any(obj.classification == 'moon' for obj in objects)

    radii = [obj.properties.radius_km for obj in objects if obj.properties and obj.properties.radius_km > 0]
    size_range = 1.0
    if len(radii) > 1:
        size_range = max(radii) / min(radii)

    return ScientificScaleConfiguration(
        target_earth_radius=scaling.STELLAR_EARTH_RADIUS if has_stars else scaling.TARGET_EARTH_RADIUS,
        target_earth_orbit=scaling.MOON_SYSTEM_EARTH_ORBIT if has_moons else scaling.TARGET_EARTH_ORBIT,
        use_logarithmic_for_extremes=has_stars or size_range > scaling.LOG_SIZE_RANGE_THRESHOLD,
        extreme_threshold_ratio=scaling.STELLAR_EXTREME_THRESHOLD if has_stars else scaling.EXTREME_THRESHOLD_RATIO,
        maintain_visibility=True,
    )
