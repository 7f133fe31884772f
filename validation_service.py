# validation_service.py
"""Input and result checks for the calculation pipeline.

Nothing here raises: every problem becomes a warning string that ends up in
`SystemLayout.warnings`, so the rendering layer can still draw a partial
layout.
"""
from typing import List, Mapping, Optional, Sequence

from celestial import BeltData, CalculationResult, CelestialObject
from hierarchy_manager import HierarchyManager
from layout_config import LayoutConfig
from layout_config import config as default_config
from view_mode_strategy import CalculationContext, ViewModeStrategy, create_system_context

SCIENTIFIC_OBJECT_LIMIT = 20
PROFILE_MAX_ECCENTRICITY = 0.1


class ValidationService:

    def __init__(self, layout_config: Optional[LayoutConfig] = None,
                 hierarchy_manager: Optional[HierarchyManager] = None):
        self.config = layout_config or default_config
        self.hierarchy_manager = hierarchy_manager or HierarchyManager(self.config)

    def validate_context(self, context: CalculationContext) -> List[str]:
        """All input warnings for one pipeline run: objects, view mode and configuration."""
        warnings = self.validate_objects(context.objects)
        warnings.extend(self.validate_view_mode_compatibility(context.objects, context.view_mode, context.strategy))
        warnings.extend(self.validate_configuration(context))
        return warnings

    def validate_objects(self, objects: Sequence[CelestialObject]) -> List[str]:
        if not objects:
            return ['No objects provided for calculation']

        warnings = []
        star_count = sum(1 for obj in objects if obj.classification == 'star')
        if star_count == 0:
            warnings.append('No star objects found - system may not render correctly')
        elif star_count > 1:
            warnings.append('Multiple stars detected - some view modes may not handle this correctly')

        seen = set()
        for obj in objects:
            if obj.id in seen:
                warnings.append(f"Duplicate object id: {obj.id}")
            seen.add(obj.id)
            warnings.extend(self._validate_single_object(obj))

        warnings.extend(self.hierarchy_manager.validate_hierarchy(objects))
        return warnings

    def validate_view_mode_compatibility(self, objects: Sequence[CelestialObject], view_mode: str,
                                         strategy: ViewModeStrategy) -> List[str]:
        warnings = []
        compatibility = strategy.validate_system_compatibility(create_system_context(objects))
        if not compatibility.compatible:
            warnings.append(f"View mode '{view_mode}' not compatible with current system")
            warnings.extend(compatibility.errors)
        warnings.extend(compatibility.warnings)

        if view_mode == 'scientific' and len(objects) > SCIENTIFIC_OBJECT_LIMIT:
            warnings.append('Scientific mode may perform poorly with large object counts')
        elif view_mode == 'profile' and any(obj.orbit is not None and obj.orbit.eccentricity > PROFILE_MAX_ECCENTRICITY
                                            for obj in objects):
            warnings.append('Profile mode works best with circular orbits')
        return warnings

    def validate_configuration(self, context: CalculationContext) -> List[str]:
        warnings = []
        layout_config = context.config
        if layout_config.Camera.DISTANCE_MULTIPLIERS['consistent'] <= 0:
            warnings.append('Invalid camera distance multiplier in configuration')
        if layout_config.Orbital.SAFETY_FACTORS['minimum'] <= 0:
            warnings.append('Invalid safety factor minimum in configuration')
        if layout_config.Visual.MIN_VISUAL_SIZE <= 0:
            warnings.append('Invalid minimum visual size in configuration')
        if layout_config.Visual.MAX_VISUAL_SIZE <= layout_config.Visual.MIN_VISUAL_SIZE:
            warnings.append('Maximum visual size must be greater than minimum visual size')
        return warnings

    def validate_results(self, results: Mapping[str, CalculationResult], context: CalculationContext) -> List[str]:
        if not results:
            return ['No calculation results produced']

        warnings = [f"Missing calculation result for object: {obj.id}"
                    for obj in context.objects if obj.id not in results]
        for object_id, result in results.items():
            warnings.extend(self._validate_single_result(object_id, result, context.config))
        return warnings

    # --- Per-item checks ---

    @staticmethod
    def _validate_single_object(obj: CelestialObject) -> List[str]:
        warnings = []
        if not obj.properties.radius_km > 0:
            warnings.append(f"Object {obj.id} has invalid radius: {obj.properties.radius_km}")
        if obj.properties.mass < 0:
            warnings.append(f"Object {obj.id} has invalid mass: {obj.properties.mass}")

        orbit = obj.orbit
        if orbit is None:
            if obj.classification != 'star':
                warnings.append(f"Non-star object {obj.id} missing orbital data")
            return warnings

        # Dangling parents are reported by the hierarchy check
        if not orbit.parent_id and obj.classification != 'star':
            warnings.append(f"Object {obj.id} missing orbit parent")

        if orbit.semi_major_axis_au is not None and orbit.semi_major_axis_au <= 0:
            warnings.append(f"Object {obj.id} has invalid semi-major axis: {orbit.semi_major_axis_au}")
        if not 0.0 <= orbit.eccentricity < 1.0:
            warnings.append(f"Object {obj.id} has invalid eccentricity: {orbit.eccentricity}")
        return warnings

    @staticmethod
    def _validate_single_result(object_id: str, result: CalculationResult, layout_config: LayoutConfig) -> List[str]:
        warnings = []
        radius = result.visual_radius
        if radius <= 0:
            warnings.append(f"Object {object_id} has invalid visual radius: {radius}")
        elif result.scaling_method != 'scientific':
            if radius < layout_config.Visual.MIN_VISUAL_SIZE:
                warnings.append(f"Object {object_id} below minimum visual size: {radius}")
            if radius > layout_config.Visual.MAX_VISUAL_SIZE:
                warnings.append(f"Object {object_id} above maximum visual size: {radius}")

        if result.orbit_distance is not None and result.orbit_distance < 0:
            warnings.append(f"Object {object_id} has negative orbit distance: {result.orbit_distance}")
        if result.belt_data is not None:
            warnings.extend(_validate_belt_data(object_id, result.belt_data))
        return warnings


def _validate_belt_data(object_id: str, belt_data: BeltData) -> List[str]:
    warnings = []
    if belt_data.inner_radius >= belt_data.outer_radius:
        warnings.append(f"Object {object_id} has invalid belt data: inner radius >= outer radius")
    if belt_data.width <= 0:
        warnings.append(f"Object {object_id} has invalid belt width: {belt_data.width}")
    return warnings
