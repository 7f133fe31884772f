# profile_strategy.py
import math
from typing import Optional

import numpy as np

from celestial import CelestialObject, ScalingResult
from view_mode_strategy import (CameraPosition, CompatibilityResult, LayoutInfo, OrbitalBehavior, SystemContext,
                                TransitionResult, ViewModeStrategy, VisibilityConfig)

# Multiples of Visual.MIN_VISUAL_SIZE
PROFILE_SIZE_MULTIPLIERS = {'star': 5.0, 'planet': 3.0, 'moon': 2.0, 'asteroid': 1.5, 'belt': 2.0}
DEFAULT_SIZE_MULTIPLIER = 2.0
PROFILE_PRIORITY_BONUS = {'star': 15, 'planet': 10, 'moon': 8}


class ProfileStrategy(ViewModeStrategy):
    """Diagram view of one subsystem: tiny fixed sizes, evenly spaced orbits, focus-limited visibility."""
    id = 'profile'
    name = 'Profile'
    description = 'Top-down diagram of the focused object and its direct relations'
    category = 'educational'

    def calculate_object_scale(self, obj: CelestialObject, context: SystemContext) -> ScalingResult:
        min_size = self.config.Visual.MIN_VISUAL_SIZE
        multiplier = PROFILE_SIZE_MULTIPLIERS.get(obj.classification, DEFAULT_SIZE_MULTIPLIER)
        return ScalingResult(visual_radius=max(min_size * multiplier, min_size), is_fixed_size=True,
                             scaling_method='fixed', relative_scale=1.0)

    def get_orbital_behavior(self) -> OrbitalBehavior:
        return OrbitalBehavior(
            use_eccentricity=False,
            allow_vertical_offset=False,
            animation_speed=self.config.Animation.ANIMATION_SPEED[self.id],
            use_equidistant_spacing=True,
            enforce_circular_orbits=True,
        )

    def is_relevant_to_focus(self, obj: CelestialObject, focus_object_id: Optional[str],
                             context: SystemContext) -> bool:
        """True for the focused body, its direct children and its direct parent."""
        if focus_object_id is None or obj.id == focus_object_id:
            return True
        if obj.parent_id == focus_object_id:
            return True
        focused = context.find(focus_object_id)
        return focused is not None and focused.parent_id == obj.id

    def determine_object_visibility(self, obj: CelestialObject, focus_object_id: Optional[str],
                                    context: SystemContext) -> VisibilityConfig:
        is_focused = obj.id == focus_object_id
        relevant = self.is_relevant_to_focus(obj, focus_object_id, context)

        priority = 30 + (50 if is_focused else 0) + (20 if relevant else 0)
        priority += PROFILE_PRIORITY_BONUS.get(obj.classification, 5)

        return VisibilityConfig(
            show_object=is_focused or relevant,
            show_label=is_focused or relevant,
            show_orbit=is_focused or relevant,
            show_children=is_focused,
            opacity=1.0 if is_focused else 0.7,
            priority=min(priority, 100),
        )

    def calculate_camera_position(self, layout_info: LayoutInfo, context: SystemContext) -> CameraPosition:
        """Frames the span from the focused body to its outermost child.

        A body without children is framed as if a child sat a few radii away,
        so single bodies get the same framing as small subsystems.
        """
        camera = self.config.Camera
        thresholds = camera.DETECTION_THRESHOLDS
        focal_center = np.asarray(layout_info.focus_position, dtype=float)

        if not layout_info.child_positions:
            fake_offset = (layout_info.visual_radius or 1.0) * thresholds['fake_offset_multiplier']
            outermost = focal_center + np.array([fake_offset, 0.0, 0.0])
        else:
            distances = [np.linalg.norm(np.asarray(child) - focal_center) for child in layout_info.child_positions]
            outermost = np.asarray(layout_info.child_positions[int(np.argmax(distances))], dtype=float)

        midpoint = (focal_center + outermost) * 0.5
        span = float(np.linalg.norm(outermost - focal_center))

        if 0 < span < thresholds['fake_offset_max']:
            distance = thresholds['single_object_distance']
        else:
            distance = max(span * camera.DISTANCE_MULTIPLIERS['profile_layout'], thresholds['single_object_distance'])

        elevation = camera.ELEVATION_ANGLES[self.id]
        angle = math.radians(elevation)
        position = midpoint + np.array([0.0, distance * math.sin(angle), distance * math.cos(angle)])

        return CameraPosition(
            position=position,
            target=midpoint.copy(),
            distance=distance,
            elevation=elevation,
            animation_duration=self.config.Animation.DURATIONS_MS['standard'],
            easing_function=self.config.Animation.EASING_FUNCTIONS['smooth'],
        )

    def on_view_mode_enter(self, previous_mode: Optional[ViewModeStrategy],
                           context: SystemContext) -> TransitionResult:
        result = super().on_view_mode_enter(previous_mode, context)
        result.warnings.extend([
            'Profile mode shows a top-down diagrammatic view - objects may appear much smaller',
            'Only objects related to the focused object are visible in this mode',
        ])
        return result

    def validate_system_compatibility(self, context: SystemContext) -> CompatibilityResult:
        result = super().validate_system_compatibility(context)
        if not result.compatible:
            return result
        if context.total_objects < 3:
            result.warnings.append(
                'Profile mode is most useful for systems with multiple objects and orbital relationships')
            result.suggested_alternatives.extend(['explorational', 'navigational'])
        if context.total_objects > 50:
            result.warnings.append(
                'Large system may appear cluttered in profile view - consider focusing on specific subsystems')
        return result
