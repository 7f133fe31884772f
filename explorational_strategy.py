# explorational_strategy.py
import math
from typing import Optional

from celestial import CelestialObject, ScalingResult
from layout_utils import clamp, safe_divide
from view_mode_strategy import (CameraPosition, CompatibilityResult, LayoutInfo, OrbitalBehavior, SystemContext,
                                TransitionResult, ViewModeStrategy, VisibilityConfig)

PRIORITY_BONUS = {'star': 30, 'planet': 20, 'moon': 10, 'asteroid': 5}


class ExplorationalStrategy(ViewModeStrategy):
    """Educational view: real data, logarithmically compressed sizes, scaled real distances."""
    id = 'explorational'
    name = 'Explorational'
    description = 'Educational content with real astronomical data, optimized for exploration and learning'
    category = 'educational'

    def calculate_object_scale(self, obj: CelestialObject, context: SystemContext) -> ScalingResult:
        """Sizes a body by `log(ratio + 1) / log(base)` of its radius relative to Earth.

        Falls back to per-classification fixed sizes when the system has no
        Earth-like reference or either radius is unknown.
        """
        visual = self.config.Visual
        earth = context.earth_reference
        if earth is None:
            return self._fallback_scale(obj)

        object_radius = obj.properties.radius_km if obj.properties else 0.0
        earth_radius = earth.properties.radius_km or visual.EARTH_REFERENCE_RADIUS_KM
        if object_radius <= 0 or earth_radius <= 0:
            return self._fallback_scale(obj)

        ratio = safe_divide(object_radius, earth_radius)
        log_scale = math.log(ratio + 1) / math.log(visual.LOGARITHMIC_BASE)
        visual_radius = abs(log_scale) * visual.PROPORTIONALITY_CONSTANT
        visual_radius = clamp(visual_radius, visual.MIN_VISUAL_SIZE, visual.MAX_VISUAL_SIZE)

        return ScalingResult(
            visual_radius=visual_radius,
            is_fixed_size=False,
            scaling_method='logarithmic',
            relative_scale=ratio,
        )

    def _fallback_scale(self, obj: CelestialObject) -> ScalingResult:
        visual = self.config.Visual
        if obj.classification == 'star':
            visual_radius = visual.FIXED_SIZES['star'] * 1.2
        elif obj.classification in ('planet', 'moon', 'asteroid'):
            visual_radius = visual.FIXED_SIZES[obj.classification]
        else:
            visual_radius = 1.0
        visual_radius = clamp(visual_radius, visual.MIN_VISUAL_SIZE, visual.MAX_VISUAL_SIZE)
        return ScalingResult(visual_radius=visual_radius, is_fixed_size=True,
                             scaling_method='proportional', relative_scale=1.0)

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
        priority = 50 + (50 if is_focused else 0) + PRIORITY_BONUS.get(obj.classification, 0)
        if context.earth_reference is not None and obj.id == context.earth_reference.id:
            priority += 25
        return VisibilityConfig(
            show_object=True,
            show_label=True,
            show_orbit=True,
            show_children=True,
            opacity=1.0 if is_focused else 0.9,
            priority=min(priority, 100),
        )

    def calculate_camera_position(self, layout_info: LayoutInfo, context: SystemContext) -> CameraPosition:
        distance = self.calculate_base_camera_distance(layout_info.visual_radius)
        return self.orbit_camera(layout_info, distance, self.config.Camera.ELEVATION_ANGLES[self.id],
                                 'standard', 'leap')

    def on_view_mode_enter(self, previous_mode: Optional[ViewModeStrategy],
                           context: SystemContext) -> TransitionResult:
        result = super().on_view_mode_enter(previous_mode, context)
        if previous_mode is not None and previous_mode.id in ('navigational', 'profile'):
            result.warnings.append(
                'Switching from fixed sizes to logarithmic scaling - object sizes will change significantly')
        return result

    def validate_system_compatibility(self, context: SystemContext) -> CompatibilityResult:
        result = super().validate_system_compatibility(context)
        if not result.compatible:
            return result
        if context.earth_reference is None:
            result.warnings.append('No Earth reference found - using fallback scaling which may not be optimal for education')
        if context.system_complexity == 'complex':
            result.warnings.append(
                'Complex system may be overwhelming for educational exploration - consider using navigational mode first')
        return result
