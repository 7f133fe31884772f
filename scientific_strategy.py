# scientific_strategy.py
import logging
import math
from typing import Optional

from astronomical_scaling import AstronomicalScalingService
from celestial import CelestialObject, ScalingResult
from view_mode_strategy import (CameraPosition, CompatibilityResult, LayoutInfo, OrbitalBehavior, SystemContext,
                                TransitionResult, ViewModeStrategy, VisibilityConfig)

SCIENTIFIC_PRIORITY_BONUS = {'star': 30, 'planet': 25, 'moon': 15, 'asteroid': 10}
LARGE_RADIUS = 5.0
SMALL_RADIUS = 0.1


class ScientificStrategy(ViewModeStrategy):
    """True-proportion view backed by the astronomical scaling service."""
    id = 'scientific'
    name = 'Scientific'
    description = 'Real astronomical proportions with logarithmic compression only where unavoidable'
    category = 'scientific'

    def scaling_service(self, context: SystemContext) -> AstronomicalScalingService:
        """Scaling service configured once per system from the system's composition."""
        optimal = AstronomicalScalingService.get_optimal_configuration(context.objects, self.config)
        return AstronomicalScalingService(optimal, self.config)

    def calculate_object_scale(self, obj: CelestialObject, context: SystemContext) -> ScalingResult:
        result = self.scaling_service(context).calculate_object_size(obj, context.earth_reference)
        if self.config.Debug.LAYOUT_PIPELINE:
            logging.debug(f"Scientific scaling {obj.id}: real {result.real_radius_km:.1f} km -> "
                          f"{result.visual_radius:.4f} units ({result.scaling_method}, to scale: {result.is_to_scale})")
        return ScalingResult(
            visual_radius=result.visual_radius,
            is_fixed_size=False,
            scaling_method='scientific',
            relative_scale=result.relative_to_earth,
        )

    def get_orbit_scaling(self, context: SystemContext) -> float:
        """Units per AU taken from the Earth reference's 1-AU mapping.

        Without an Earth-like body the optimal configuration's target orbit is used.
        """
        service = self.scaling_service(context)
        earth = context.earth_reference
        if earth is not None and earth.orbit is not None and earth.orbit.semi_major_axis_au:
            orbit = service.calculate_orbit_distance(earth)
            return orbit.orbit_radius / orbit.real_orbit_au
        return service.units_per_au()

    def get_orbital_behavior(self) -> OrbitalBehavior:
        return OrbitalBehavior(
            use_eccentricity=True,
            allow_vertical_offset=True,
            animation_speed=self.config.Animation.ANIMATION_SPEED[self.id],
            use_equidistant_spacing=False,
            enforce_circular_orbits=False,
        )

    def determine_object_visibility(self, obj: CelestialObject, focus_object_id: Optional[str],
                                    context: SystemContext) -> VisibilityConfig:
        is_focused = obj.id == focus_object_id
        priority = 60 + (40 if is_focused else 0) + SCIENTIFIC_PRIORITY_BONUS.get(obj.classification, 5)
        if context.earth_reference is not None and obj.id == context.earth_reference.id:
            priority += 20
        return VisibilityConfig(
            show_object=True,
            show_label=True,
            show_orbit=True,
            show_children=True,
            opacity=1.0 if is_focused else 0.85,
            priority=min(priority, 100),
        )

    def calculate_camera_position(self, layout_info: LayoutInfo, context: SystemContext) -> CameraPosition:
        radius = layout_info.visual_radius
        distance = self.calculate_base_camera_distance(radius)
        if radius > LARGE_RADIUS:
            distance *= math.log(radius + 1)
        if radius < SMALL_RADIUS:
            distance = max(distance, 1.0)
        return self.orbit_camera(layout_info, distance, self.config.Camera.ELEVATION_ANGLES[self.id],
                                 'extended', 'smooth')

    def on_view_mode_enter(self, previous_mode: Optional[ViewModeStrategy],
                           context: SystemContext) -> TransitionResult:
        result = super().on_view_mode_enter(previous_mode, context)
        result.warnings.append(
            'Scientific mode uses true astronomical proportions - objects may appear very large or very small')
        result.warnings.append('Camera zoom range is extended to accommodate extreme scales')
        if previous_mode is not None and previous_mode.id in ('navigational', 'profile'):
            result.warnings.append(
                'Switching from fixed sizes to scientific proportions - size relationships will change dramatically')
        return result

    def validate_system_compatibility(self, context: SystemContext) -> CompatibilityResult:
        result = super().validate_system_compatibility(context)
        if not result.compatible:
            return result
        if context.earth_reference is None:
            result.warnings.append('No Earth reference found - scientific scaling may not be accurate')
        if context.has_multiple_stars:
            result.warnings.append('Multiple star systems may have extreme size ranges in scientific mode')
        if context.system_complexity == 'complex':
            result.warnings.append(
                'Complex systems in scientific mode may have objects that are too small to see or too large to navigate around')
        if len(result.warnings) > 2:
            result.suggested_alternatives.append('explorational')
        return result
