# navigational_strategy.py
from typing import Optional

from celestial import CelestialObject, ScalingResult
from layout_config import EARTH_RADIUS_KM
from view_mode_strategy import (CameraPosition, CompatibilityResult, LayoutInfo, OrbitalBehavior, SystemContext,
                                TransitionResult, ViewModeStrategy, VisibilityConfig)

GAS_GIANT_EARTH_RADII = 3.0
MAJOR_MOON_EARTH_FRACTION = 0.1


class NavigationalStrategy(ViewModeStrategy):
    """Navigation view: uniform fixed sizes, evenly spaced circular orbits, decluttered labels."""
    id = 'navigational'
    name = 'Navigational'
    description = 'Fixed sizes and equidistant orbits optimized for moving around a system'
    category = 'navigation'

    def calculate_object_scale(self, obj: CelestialObject, context: SystemContext) -> ScalingResult:
        visual = self.config.Visual
        if obj.classification == 'planet' and self.is_gas_giant(obj):
            visual_radius = visual.FIXED_SIZES['planet'] * 1.5
        else:
            visual_radius = self.fixed_size(obj.classification)
        visual_radius = max(visual_radius, visual.MIN_VISUAL_SIZE)
        return ScalingResult(visual_radius=visual_radius, is_fixed_size=True,
                             scaling_method='fixed', relative_scale=1.0)

    def get_orbital_behavior(self) -> OrbitalBehavior:
        return OrbitalBehavior(
            use_eccentricity=False,
            allow_vertical_offset=False,
            animation_speed=self.config.Animation.ANIMATION_SPEED[self.id],
            use_equidistant_spacing=True,
            enforce_circular_orbits=True,
        )

    def determine_object_visibility(self, obj: CelestialObject, focus_object_id: Optional[str],
                                    context: SystemContext) -> VisibilityConfig:
        is_focused = obj.id == focus_object_id
        major_moon = self.is_major_moon(obj, context)

        show_label = is_focused or obj.classification in ('star', 'planet') or major_moon
        show_orbit = is_focused or obj.classification == 'planet' or major_moon

        priority = 50 + (50 if is_focused else 0)
        if obj.classification == 'star':
            priority += 25
        elif obj.classification == 'planet':
            priority += 20
        elif obj.classification == 'moon':
            priority += 15 if major_moon else 5
        elif obj.classification == 'asteroid':
            priority += 2

        return VisibilityConfig(
            show_object=True,
            show_label=show_label,
            show_orbit=show_orbit,
            show_children=True,
            opacity=1.0 if is_focused else 0.8,
            priority=min(priority, 100),
        )

    def calculate_camera_position(self, layout_info: LayoutInfo, context: SystemContext) -> CameraPosition:
        distance = self.calculate_base_camera_distance(layout_info.visual_radius)
        return self.orbit_camera(layout_info, distance, self.config.Camera.ELEVATION_ANGLES[self.id],
                                 'quick', 'quick')

    def on_view_mode_enter(self, previous_mode: Optional[ViewModeStrategy],
                           context: SystemContext) -> TransitionResult:
        result = super().on_view_mode_enter(previous_mode, context)
        if previous_mode is not None and previous_mode.id == 'explorational':
            result.warnings.append('Switching from logarithmic to fixed sizing - objects will appear more uniform')
        elif previous_mode is not None and previous_mode.id == 'scientific':
            result.warnings.append(
                'Switching from scientific accuracy to navigation optimization - sizes and distances are no longer to scale')
        return result

    def validate_system_compatibility(self, context: SystemContext) -> CompatibilityResult:
        result = super().validate_system_compatibility(context)
        if not result.compatible:
            return result
        if context.system_complexity == 'simple':
            result.warnings.append('Simple system might be better suited for explorational mode for educational content')
        elif context.system_complexity == 'complex':
            result.warnings.append('Complex system is well-suited for navigational mode - consider this for initial exploration')
        return result

    @staticmethod
    def is_gas_giant(obj: CelestialObject) -> bool:
        return obj.properties.radius_km > EARTH_RADIUS_KM * GAS_GIANT_EARTH_RADII

    @staticmethod
    def is_major_moon(obj: CelestialObject, context: SystemContext) -> bool:
        if obj.classification != 'moon':
            return False
        earth = context.earth_reference
        if earth is None:
            return True  # Show all moons without a reference
        earth_radius = earth.properties.radius_km or EARTH_RADIUS_KM
        return obj.properties.radius_km > earth_radius * MAJOR_MOON_EARTH_FRACTION
