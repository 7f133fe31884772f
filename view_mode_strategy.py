# view_mode_strategy.py
"""Interface and shared helpers for the four view-mode strategies.

A strategy decides, for one view mode, how large each body is drawn, whether
orbits follow real (scaled) distances or an evenly spaced ladder, which bodies
are visible and how the camera frames a focused body. The calculation
pipeline only talks to strategies through `ViewModeStrategy`.
"""
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from celestial import BARYCENTER_ID, CelestialObject, ScalingResult, SystemLayout, find_earth_reference
from layout_config import LayoutConfig
from layout_config import config as default_config
from layout_utils import ObjectReferenceError, normalize_vector

UP = np.array([0.0, 1.0, 0.0])


@dataclass(frozen=True)
class OrbitalBehavior:
    use_eccentricity: bool
    allow_vertical_offset: bool
    animation_speed: float
    use_equidistant_spacing: bool
    enforce_circular_orbits: bool


@dataclass(frozen=True)
class VisibilityConfig:
    show_object: bool
    show_label: bool
    show_orbit: bool
    show_children: bool
    opacity: float
    priority: int  # 0-100, higher is more likely to be shown


@dataclass
class CameraPosition:
    position: np.ndarray
    target: np.ndarray
    distance: float
    elevation: float  # degrees
    animation_duration: int  # milliseconds
    easing_function: str

    def __post_init__(self):
        if not isinstance(self.position, np.ndarray):
            self.position = np.array(self.position, dtype=np.float64)
        if not isinstance(self.target, np.ndarray):
            self.target = np.array(self.target, dtype=np.float64)

    def to_dict(self) -> Dict:
        return {
            'position': self.position.tolist(),
            'target': self.target.tolist(),
            'distance': self.distance,
            'elevation': self.elevation,
            'animation_duration': self.animation_duration,
            'easing_function': self.easing_function,
        }


@dataclass
class TransitionResult:
    success: bool = True
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    camera_reset_required: bool = False
    cache_invalidation_required: bool = False


@dataclass
class CompatibilityResult:
    compatible: bool
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    suggested_alternatives: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SystemContext:
    """Facts about the whole system that strategies need for per-object decisions."""
    objects: Tuple[CelestialObject, ...]
    earth_reference: Optional[CelestialObject]
    total_objects: int
    max_orbital_radius: float  # AU
    min_orbital_radius: float  # AU
    has_stars: bool
    has_multiple_stars: bool
    has_moons: bool
    system_complexity: str  # 'simple' | 'moderate' | 'complex'

    def find(self, object_id: Optional[str]) -> Optional[CelestialObject]:
        if object_id is None:
            return None
        for obj in self.objects:
            if obj.id == object_id:
                return obj
        return None


@dataclass
class LayoutInfo:
    """Spatial facts about a focused body, taken from a computed layout."""
    focus_object_id: str
    focus_object_name: str
    focus_position: np.ndarray
    visual_radius: float
    orbit_radius: Optional[float] = None
    parent_position: Optional[np.ndarray] = None
    child_positions: List[np.ndarray] = field(default_factory=list)
    sibling_positions: List[np.ndarray] = field(default_factory=list)
    bounds_min: np.ndarray = field(default_factory=lambda: np.zeros(3))
    bounds_max: np.ndarray = field(default_factory=lambda: np.zeros(3))

    @property
    def bounds_center(self) -> np.ndarray:
        return (self.bounds_min + self.bounds_max) * 0.5


def calculate_system_complexity(total_objects: int, has_multiple_stars: bool) -> str:
    if total_objects <= 5 and not has_multiple_stars:
        return 'simple'
    if total_objects <= 20 and not has_multiple_stars:
        return 'moderate'
    return 'complex'


def create_system_context(objects: Sequence[CelestialObject]) -> SystemContext:
    objects = tuple(objects)
    star_count = sum(1 for obj in objects if obj.classification == 'star')
    has_moons = any(obj.classification == 'moon' for obj in objects)

    axes = [obj.orbit.semi_major_axis_au for obj in objects
            if obj.orbit is not None and obj.orbit.semi_major_axis_au is not None]
    return SystemContext(
        objects=objects,
        earth_reference=find_earth_reference(objects),
        total_objects=len(objects),
        max_orbital_radius=max(axes) if axes else 0.0,
        min_orbital_radius=min(axes) if axes else 0.0,
        has_stars=star_count > 0,
        has_multiple_stars=star_count > 1,
        has_moons=has_moons,
        system_complexity=calculate_system_complexity(len(objects), star_count > 1),
    )


def compute_world_positions(layout: SystemLayout, objects: Sequence[CelestialObject]) -> Dict[str, np.ndarray]:
    """Flat placement of a layout: every body sits on +x of its parent at its orbit distance.

    Bodies whose parent is the barycenter, missing or unplaced are measured from
    the origin.
    """
    by_id = {obj.id: obj for obj in objects}
    positions: Dict[str, np.ndarray] = {}

    def resolve(object_id: str, chain: Tuple[str, ...]) -> np.ndarray:
        if object_id in positions:
            return positions[object_id]
        result = layout.results.get(object_id)
        offset = np.array([result.orbit_distance or 0.0, 0.0, 0.0]) if result else np.zeros(3)
        obj = by_id.get(object_id)
        parent_id = obj.parent_id if obj else None
        if parent_id is None or parent_id == BARYCENTER_ID or parent_id not in by_id or parent_id in chain:
            origin = np.zeros(3)
        else:
            origin = resolve(parent_id, chain + (object_id,))
        positions[object_id] = origin + offset
        return positions[object_id]

    for object_id in layout.results:
        resolve(object_id, ())
    return positions


def build_layout_info(layout: SystemLayout, objects: Sequence[CelestialObject], focus_object_id: str) -> LayoutInfo:
    """Collects the framing inputs for `focus_object_id` from a computed layout.

    Raises:
        ObjectReferenceError: If the focused body has no result in the layout.
    """
    if focus_object_id not in layout.results:
        raise ObjectReferenceError(focus_object_id, None, f"Focus object '{focus_object_id}' is not part of the layout")
    positions = compute_world_positions(layout, objects)
    focus = next(obj for obj in objects if obj.id == focus_object_id)
    result = layout.results[focus_object_id]

    children = [positions[obj.id] for obj in objects if obj.parent_id == focus_object_id and obj.id in positions]
    siblings = [positions[obj.id] for obj in objects
                if obj.id != focus_object_id and obj.parent_id == focus.parent_id and obj.id in positions]
    stacked = np.array(list(positions.values())) if positions else np.zeros((1, 3))

    return LayoutInfo(
        focus_object_id=focus.id,
        focus_object_name=focus.name,
        focus_position=positions[focus_object_id],
        visual_radius=result.visual_radius,
        orbit_radius=result.orbit_distance,
        parent_position=positions.get(focus.parent_id) if focus.parent_id else None,
        child_positions=children,
        sibling_positions=siblings,
        bounds_min=stacked.min(axis=0),
        bounds_max=stacked.max(axis=0),
    )


class ViewModeStrategy(ABC):
    """Base class of every view mode.

    Subclasses set `id`, `name`, `description` and `category` and implement
    the four abstract operations. Shared camera math, transition handling and
    the basic compatibility check live here.
    """
    id = ''
    name = ''
    description = ''
    category = ''

    def __init__(self, layout_config: Optional[LayoutConfig] = None):
        self.config = layout_config or default_config

    # --- Required operations ---

    @abstractmethod
    def calculate_object_scale(self, obj: CelestialObject, context: SystemContext) -> ScalingResult:
        pass

    @abstractmethod
    def get_orbital_behavior(self) -> OrbitalBehavior:
        pass

    @abstractmethod
    def determine_object_visibility(self, obj: CelestialObject, focus_object_id: Optional[str],
                                    context: SystemContext) -> VisibilityConfig:
        pass

    @abstractmethod
    def calculate_camera_position(self, layout_info: LayoutInfo, context: SystemContext) -> CameraPosition:
        pass

    # --- Orbit placement parameters ---

    def get_orbit_scaling(self, context: SystemContext) -> float:
        """Scene units per AU for scaled-distance placement."""
        return self.config.get_base_scaling(self.id)

    def get_safety_factor(self) -> float:
        return self.config.get_safety_factor(self.id)

    # --- Lifecycle ---

    def should_animate_orbits(self, is_paused: bool) -> bool:
        return not is_paused

    def on_view_mode_enter(self, previous_mode: Optional['ViewModeStrategy'],
                           context: SystemContext) -> TransitionResult:
        return TransitionResult(camera_reset_required=True, cache_invalidation_required=True)

    def on_view_mode_exit(self, next_mode: 'ViewModeStrategy', context: SystemContext) -> TransitionResult:
        return TransitionResult()

    def validate_system_compatibility(self, context: SystemContext) -> CompatibilityResult:
        result = CompatibilityResult(compatible=True)
        if context.total_objects == 0:
            result.errors.append('System contains no objects')
            result.compatible = False
        if context.total_objects > self.config.Performance.LARGE_SYSTEM_THRESHOLD:
            result.warnings.append('Large system may impact performance')
        return result

    # --- Shared helpers ---

    def fixed_size(self, classification: str, default: Optional[float] = None) -> float:
        sizes = self.config.Visual.FIXED_SIZES
        if classification in sizes:
            return sizes[classification]
        return sizes['planet'] if default is None else default

    def calculate_base_camera_distance(self, visual_radius: float) -> float:
        multipliers = self.config.Camera.DISTANCE_MULTIPLIERS
        limits = self.config.Camera.ABSOLUTE_LIMITS
        optimal = visual_radius * multipliers['consistent']
        minimum = visual_radius * multipliers['minimum']
        return max(
            min(max(optimal, limits['min_distance']), limits['max_distance']),
            max(minimum, visual_radius * limits['safety_margin']),
        )

    def calculate_horizontal_direction(self, camera_position: np.ndarray, target_position: np.ndarray) -> np.ndarray:
        direction = np.asarray(camera_position, dtype=float) - np.asarray(target_position, dtype=float)
        horizontal = np.array([direction[0], 0.0, direction[2]])
        threshold = self.config.Camera.DETECTION_THRESHOLDS['min_horizontal_direction']
        if np.linalg.norm(horizontal) < threshold:
            horizontal = np.array([1.0, 0.0, 0.0])
        return normalize_vector(horizontal)

    def orbit_camera(self, layout_info: LayoutInfo, distance: float, elevation: float,
                     duration_key: str, easing_key: str) -> CameraPosition:
        """Places the camera `distance` away from the focus, raised by `elevation` degrees."""
        focus = np.asarray(layout_info.focus_position, dtype=float)
        start = focus + np.array([distance, 0.0, 0.0])
        horizontal = self.calculate_horizontal_direction(start, focus)
        elevation_rad = math.radians(elevation)
        position = focus + horizontal * distance * math.cos(elevation_rad) + UP * distance * math.sin(elevation_rad)
        return CameraPosition(
            position=position,
            target=focus.copy(),
            distance=distance,
            elevation=elevation,
            animation_duration=self.config.Animation.DURATIONS_MS[duration_key],
            easing_function=self.config.Animation.EASING_FUNCTIONS[easing_key],
        )

    def __repr__(self):
        return f"{type(self).__name__}(id={self.id!r})"


@dataclass(frozen=True)
class CalculationContext:
    """Everything one pipeline run needs, passed explicitly to every pipeline service."""
    objects: Tuple[CelestialObject, ...]
    view_mode: str
    strategy: ViewModeStrategy
    system: SystemContext
    config: LayoutConfig

    def find(self, object_id: Optional[str]) -> Optional[CelestialObject]:
        return self.system.find(object_id)


def create_calculation_context(objects: Sequence[CelestialObject], view_mode: str, strategy: ViewModeStrategy,
                               layout_config: Optional[LayoutConfig] = None,
                               system: Optional[SystemContext] = None) -> CalculationContext:
    objects = tuple(objects)
    return CalculationContext(
        objects=objects,
        view_mode=view_mode,
        strategy=strategy,
        system=system if system is not None and system.objects == objects else create_system_context(objects),
        config=layout_config or strategy.config,
    )
