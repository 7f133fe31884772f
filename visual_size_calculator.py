# visual_size_calculator.py
import logging
from typing import Dict, Mapping, Optional, Sequence

from celestial import CelestialObject, ScalingResult
from layout_config import LayoutConfig
from layout_config import config as default_config
from view_mode_strategy import CalculationContext


class VisualSizeCalculator:
    """Delegates every object's visual radius to the active strategy."""

    def __init__(self, layout_config: Optional[LayoutConfig] = None):
        self.config = layout_config or default_config

    def calculate_visual_size(self, obj: CelestialObject, context: CalculationContext) -> ScalingResult:
        return context.strategy.calculate_object_scale(obj, context.system)

    def calculate_visual_sizes(self, objects: Sequence[CelestialObject],
                               context: CalculationContext) -> Dict[str, ScalingResult]:
        sizes = {}
        for obj in objects:
            size = self.calculate_visual_size(obj, context)
            if size is None or not size.visual_radius > 0:
                logging.warning(f"Strategy '{context.strategy.id}' produced no usable size for '{obj.id}'; skipping it.")
                continue
            sizes[obj.id] = size
        return sizes

    def calculate_effective_radius(self, parent: CelestialObject, children: Sequence[CelestialObject],
                                   sizes: Mapping[str, ScalingResult],
                                   orbit_distances: Mapping[str, float]) -> float:
        """Parent radius extended to the outer edge of its farthest placed child.

        Raises:
            KeyError: If the parent has no visual size.
        """
        if parent.id not in sizes:
            raise KeyError(f"Visual size not found for parent object: {parent.id}")
        max_extent = 0.0
        for child in children:
            child_size = sizes.get(child.id)
            distance = orbit_distances.get(child.id)
            if child_size is None or distance is None:
                continue
            max_extent = max(max_extent, distance + child_size.visual_radius)
        return max(sizes[parent.id].visual_radius, max_extent)

