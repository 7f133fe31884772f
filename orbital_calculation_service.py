# orbital_calculation_service.py
"""End-to-end layout pipeline.

    cache lookup -> validate -> visual sizes -> hierarchy enforcement
      -> orbit placement -> collision resolution -> results -> validate -> cache

The public operations are coroutines so a caller's event loop can interleave
them with rendering work. The computation itself is synchronous and keeps all
intermediate size and position maps private to one call.
"""
import logging
import time
from collections import deque
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np

from cache_manager import CalculationCacheManager
from celestial import (CalculationResult, CelestialObject, CollisionAdjustment, LayoutMetadata, ScalingResult,
                       SystemBounds, SystemLayout)
from collision_detection import CollisionDetectionService
from hierarchy_manager import HierarchyManager
from layout_config import ConfigurationError, LayoutConfig
from layout_config import config as default_config
from layout_utils import InputError
from orbit_position_calculator import OrbitPositionCalculator
from validation_service import ValidationService
from view_mode_registry import ViewModeRegistry
from view_mode_strategy import CalculationContext, SystemContext, ViewModeStrategy, create_calculation_context
from visual_size_calculator import VisualSizeCalculator


class OrbitalCalculationService:
    """Runs the layout pipeline and keeps running statistics.

    Every collaborator is injected; `create_calculation_service` wires the
    default set around a single configuration.

    Attributes:
        total_calculations (int): Calls to `calculate_system_layout`, cache hits included.
        error_count (int): Calls that ended in an exception.
        last_calculation_time (Optional[float]): Epoch seconds of the most recent call.
    """

    def __init__(self, layout_config: LayoutConfig, registry: ViewModeRegistry,
                 visual_size_calculator: VisualSizeCalculator, hierarchy_manager: HierarchyManager,
                 orbit_position_calculator: OrbitPositionCalculator,
                 collision_detection_service: CollisionDetectionService,
                 cache_manager: CalculationCacheManager, validation_service: ValidationService):
        self.config = layout_config
        self.registry = registry
        self.visual_size_calculator = visual_size_calculator
        self.hierarchy_manager = hierarchy_manager
        self.orbit_position_calculator = orbit_position_calculator
        self.collision_detection_service = collision_detection_service
        self.cache_manager = cache_manager
        self.validation_service = validation_service

        self.total_calculations = 0
        self.error_count = 0
        self.last_calculation_time: Optional[float] = None
        self._calculation_times = deque(maxlen=int(layout_config.Performance.STATISTICS_WINDOW))

    # --- Public operations ---

    async def calculate_system_layout(self, objects: Sequence[CelestialObject], view_mode: str,
                                      strategy: Optional[ViewModeStrategy] = None,
                                      system: Optional[SystemContext] = None) -> SystemLayout:
        """Computes (or fetches from the cache) the layout of `objects` in `view_mode`.

        Args:
            objects: The whole system, as produced by the data loader.
            view_mode: View-mode id. Unknown ids fall back to the default mode
                when no `strategy` is given.
            strategy: Optional explicit strategy instance.
            system: Optional precomputed `SystemContext` for `objects`.

        Returns:
            The layout. `metadata.cache_hit` tells whether it came from the cache.

        Raises:
            InputError: If `objects` is empty.
            Exception: Anything unexpected raised by a pipeline step is logged,
                counted in `error_count` and re-raised.
        """
        start = time.perf_counter()
        self.total_calculations += 1
        self.last_calculation_time = time.time()

        try:
            if not objects:
                raise InputError("No objects provided for layout calculation")
            if strategy is None:
                strategy = self.registry.get_strategy(view_mode)
                view_mode = strategy.id
            context = create_calculation_context(objects, view_mode, strategy, self.config, system)

            caching = self.config.Performance.ENABLE_CACHING
            cache_key = self.cache_manager.generate_key(context) if caching else None
            cached = self.cache_manager.get(cache_key) if caching else None
            if cached is not None:
                self._record_calculation_time(start)
                logging.debug(f"Layout cache hit for {view_mode} ({len(context.objects)} objects).")
                return cached.with_cache_hit()

            layout = self._compute_layout(context, start)
            if caching:
                self.cache_manager.set(cache_key, layout)
            self._record_calculation_time(start)
            logging.info(f"Layout calculated: mode={layout.metadata.view_mode}, objects={layout.metadata.object_count}, "
                         f"collisions={layout.metadata.collision_count}, "
                         f"time={layout.metadata.calculation_time:.2f} ms")
            return layout
        except Exception as e:
            self.error_count += 1
            self._record_calculation_time(start)
            logging.error(f"Orbital layout calculation failed for view mode '{view_mode}': {e}", exc_info=True)
            raise

    async def calculate_partial_layout(self, objects: Sequence[CelestialObject], target_object_ids: Iterable[str],
                                       view_mode: str, strategy: Optional[ViewModeStrategy] = None) -> SystemLayout:
        """Layout of the targets, their full parent chain and their direct children only."""
        relevant = self.find_relevant_objects(objects, target_object_ids)
        return await self.calculate_system_layout(relevant, view_mode, strategy)

    def invalidate_cache(self, view_mode: Optional[str] = None):
        if view_mode:
            removed = self.cache_manager.clear_for_view_mode(view_mode)
            logging.info(f"Invalidated {removed} cached layouts for view mode '{view_mode}'.")
        else:
            self.cache_manager.clear()
            logging.info("Invalidated all cached layouts.")

    async def preload_cache(self, objects: Sequence[CelestialObject], view_modes: Iterable[str]):
        """Warms the cache with the layout of `objects` in each of `view_modes`."""
        strategies = [self.registry.get_strategy(mode) for mode in view_modes]
        contexts = [create_calculation_context(objects, strategy.id, strategy, self.config) for strategy in strategies]

        async def compute(context: CalculationContext) -> SystemLayout:
            return self._compute_layout(context, time.perf_counter())

        await self.cache_manager.preload(contexts, compute)

    def get_statistics(self) -> Dict:
        times = np.array(self._calculation_times, dtype=np.float64)
        return {
            'total_calculations': self.total_calculations,
            'average_calculation_time': float(times.mean()) if times.size else 0.0,
            'cache_statistics': self.cache_manager.get_statistics(),
            'error_count': self.error_count,
            'last_calculation_time': self.last_calculation_time,
        }

    def get_performance_metrics(self) -> Dict:
        times = np.array(self._calculation_times, dtype=np.float64)
        return {
            'average_calculation_time': float(times.mean()) if times.size else 0.0,
            'min_calculation_time': float(times.min()) if times.size else 0.0,
            'max_calculation_time': float(times.max()) if times.size else 0.0,
            'recent_calculation_times': times.tolist(),
            'cache_statistics': self.cache_manager.get_statistics(),
        }

    async def health_check(self) -> Dict:
        services = {
            'registry': self.registry is not None,
            'visual_size_calculator': self.visual_size_calculator is not None,
            'hierarchy_manager': self.hierarchy_manager is not None,
            'orbit_position_calculator': self.orbit_position_calculator is not None,
            'collision_detection_service': self.collision_detection_service is not None,
            'cache_manager': self.cache_manager is not None,
            'validation_service': self.validation_service is not None,
        }
        errors = []
        try:
            self.config.validate()
        except ConfigurationError as e:
            errors.append(f"Configuration invalid: {e}")
        return {'healthy': all(services.values()) and not errors, 'services': services, 'errors': errors}

    # --- Pipeline ---

    def _compute_layout(self, context: CalculationContext, start: float) -> SystemLayout:
        debug = self.config.Debug.LAYOUT_PIPELINE
        warnings = self.validation_service.validate_context(context)
        objects = context.objects

        sizes = self.visual_size_calculator.calculate_visual_sizes(objects, context)
        sizes = self.hierarchy_manager.enforce_hierarchy(objects, sizes)
        if debug:
            logging.debug(f"Sized {len(sizes)} of {len(objects)} objects.")

        positions = self.orbit_position_calculator.calculate_orbital_positions(objects, sizes, context, warnings)
        positions, adjustments = self.collision_detection_service.resolve_layout(
            objects, sizes, positions, context, warnings)
        if debug:
            logging.debug(f"Resolved {len(adjustments)} collisions.")

        results = self._build_results(context, sizes, positions, adjustments)
        warnings.extend(self.validation_service.validate_results(results, context))

        return SystemLayout(
            results=results,
            system_bounds=self.calculate_system_bounds(results),
            metadata=LayoutMetadata(
                view_mode=context.view_mode,
                calculation_time=(time.perf_counter() - start) * 1000.0,
                object_count=len(objects),
                collision_count=sum(len(result.collision_adjustments) for result in results.values()),
                cache_hit=False,
            ),
            warnings=list(dict.fromkeys(warnings)),
        )

    def _build_results(self, context: CalculationContext, sizes: Mapping[str, ScalingResult],
                       positions: Mapping[str, float],
                       adjustments: Sequence[CollisionAdjustment]) -> Dict[str, CalculationResult]:
        results = {}
        for obj in context.objects:
            size = sizes.get(obj.id)
            if size is None:
                logging.warning(f"Missing visual size for object: {obj.id}")
                continue
            distance = positions.get(obj.id)

            belt_data = None
            if obj.classification == 'belt' and distance is not None:
                belt_data = self.orbit_position_calculator.calculate_belt_data(obj, context, center_radius=distance)

            effective_radius = None
            children = HierarchyManager.get_children(obj.id, context.objects)
            if children:
                effective_radius = self.visual_size_calculator.calculate_effective_radius(
                    obj, children, sizes, positions)

            results[obj.id] = CalculationResult(
                visual_radius=size.visual_radius,
                orbit_distance=distance,
                belt_data=belt_data,
                effective_radius=effective_radius,
                collision_adjustments=[adj for adj in adjustments if adj.object_id == obj.id],
                scaling_method=size.scaling_method,
                hierarchy_constrained=size.scaling_method == 'hierarchy-constrained',
            )
        return results

    @staticmethod
    def calculate_system_bounds(results: Mapping[str, CalculationResult]) -> SystemBounds:
        min_radius = None
        max_radius = 0.0
        for result in results.values():
            if result.orbit_distance is not None:
                inner_edge = max(0.0, result.orbit_distance - result.visual_radius)
                min_radius = inner_edge if min_radius is None else min(min_radius, inner_edge)
                max_radius = max(max_radius, result.orbit_distance + result.visual_radius)
            else:
                max_radius = max(max_radius, result.visual_radius)
        min_radius = min_radius or 0.0
        return SystemBounds(min=min_radius, max=max_radius, span=max_radius - min_radius)

    @staticmethod
    def find_relevant_objects(objects: Sequence[CelestialObject],
                              target_object_ids: Iterable[str]) -> List[CelestialObject]:
        by_id = {obj.id: obj for obj in objects}
        relevant = set()
        for target_id in target_object_ids:
            target = by_id.get(target_id)
            if target is None:
                logging.warning(f"Partial layout target '{target_id}' is not part of the system; ignoring it.")
                continue
            relevant.add(target_id)

            chain = {target_id}
            current = target
            while current.parent_id in by_id and current.parent_id not in chain:
                chain.add(current.parent_id)
                current = by_id[current.parent_id]
            relevant.update(chain)

            relevant.update(child.id for child in HierarchyManager.get_children(target_id, objects))
        return [obj for obj in objects if obj.id in relevant]

    def _record_calculation_time(self, start: float):
        self._calculation_times.append((time.perf_counter() - start) * 1000.0)


def create_calculation_service(layout_config: Optional[LayoutConfig] = None,
                               cache_manager: Optional[CalculationCacheManager] = None) -> OrbitalCalculationService:
    """Wires the default pipeline services around one configuration."""
    layout_config = layout_config or default_config
    hierarchy_manager = HierarchyManager(layout_config)
    return OrbitalCalculationService(
        layout_config=layout_config,
        registry=ViewModeRegistry(layout_config),
        visual_size_calculator=VisualSizeCalculator(layout_config),
        hierarchy_manager=hierarchy_manager,
        orbit_position_calculator=OrbitPositionCalculator(layout_config),
        collision_detection_service=CollisionDetectionService(layout_config),
        cache_manager=cache_manager or CalculationCacheManager(layout_config),
        validation_service=ValidationService(layout_config, hierarchy_manager),
    )
