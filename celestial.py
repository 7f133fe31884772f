# celestial.py
import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional

from layout_utils import InputError

CLASSIFICATIONS = ('star', 'planet', 'moon', 'asteroid', 'belt', 'dwarf_planet')
BARYCENTER_ID = 'barycenter'  # Synthetic parent of co-orbiting stars


@dataclass(frozen=True)
class CelestialProperties:
    radius_km: float
    mass: float = 0.0  # kg


@dataclass(frozen=True)
class OrbitData:
    parent_id: str
    semi_major_axis_au: Optional[float] = None
    eccentricity: float = 0.0
    inclination: float = 0.0  # degrees
    orbital_period: Optional[float] = None  # days
    longitude_of_ascending_node: float = 0.0  # degrees
    argument_of_periapsis: float = 0.0  # degrees

    @property
    def is_complete(self) -> bool:
        return bool(self.parent_id) and self.semi_major_axis_au is not None


@dataclass(frozen=True)
class CelestialObject:
    """An immutable input record: one body of the system being laid out.

    An object without an orbit, or with an orbit whose parent id is empty, is a
    candidate for the root of the hierarchy.
    """
    id: str
    name: str
    classification: str
    properties: CelestialProperties
    orbit: Optional[OrbitData] = None

    def __post_init__(self):
        if not self.id:
            raise InputError("Celestial object requires a non-empty id.")
        if self.classification not in CLASSIFICATIONS:
            raise InputError(
                f"Celestial object '{self.id}' has unknown classification '{self.classification}'. "
                f"Expected one of {', '.join(CLASSIFICATIONS)}.")

    @property
    def parent_id(self) -> Optional[str]:
        if self.orbit is None or not self.orbit.parent_id:
            return None
        return self.orbit.parent_id

    @property
    def is_root_candidate(self) -> bool:
        return self.parent_id is None

    @property
    def orbits_barycenter(self) -> bool:
        return self.parent_id == BARYCENTER_ID

    @property
    def has_complete_orbit(self) -> bool:
        return self.orbit is not None and self.orbit.is_complete


@dataclass(frozen=True)
class ScalingResult:
    visual_radius: float
    is_fixed_size: bool
    scaling_method: str  # 'logarithmic' | 'proportional' | 'fixed' | 'scientific' | 'hierarchy-constrained'
    relative_scale: float  # Relative to Earth (1.0 = Earth size)


@dataclass
class HierarchyNode:
    object: CelestialObject
    children: List['HierarchyNode'] = field(default_factory=list)
    depth: int = 0
    is_root: bool = False


@dataclass(frozen=True)
class CollisionAdjustment:
    object_id: str
    original_distance: float
    adjusted_distance: float
    reason: str


@dataclass(frozen=True)
class BeltData:
    inner_radius: float
    outer_radius: float
    center_radius: float
    width: float


@dataclass
class CalculationResult:
    visual_radius: float
    orbit_distance: Optional[float] = None
    belt_data: Optional[BeltData] = None
    effective_radius: Optional[float] = None
    collision_adjustments: List[CollisionAdjustment] = field(default_factory=list)
    scaling_method: str = 'fixed'
    hierarchy_constrained: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'visual_radius': self.visual_radius,
            'orbit_distance': self.orbit_distance,
            'effective_radius': self.effective_radius,
            'scaling_method': self.scaling_method,
            'hierarchy_constrained': self.hierarchy_constrained,
            'collision_adjustments': [
                {'original_distance': adj.original_distance,
                 'adjusted_distance': adj.adjusted_distance,
                 'reason': adj.reason}
                for adj in self.collision_adjustments
            ],
        }
        if self.belt_data is not None:
            data['belt_data'] = {
                'inner_radius': self.belt_data.inner_radius,
                'outer_radius': self.belt_data.outer_radius,
                'center_radius': self.belt_data.center_radius,
                'width': self.belt_data.width,
            }
        return data


@dataclass(frozen=True)
class SystemBounds:
    min: float
    max: float
    span: float


@dataclass(frozen=True)
class LayoutMetadata:
    view_mode: str
    calculation_time: float  # milliseconds
    object_count: int
    collision_count: int
    cache_hit: bool


@dataclass
class SystemLayout:
    """The artifact handed to the rendering layer and stored in the cache."""
    results: Dict[str, CalculationResult]
    system_bounds: SystemBounds
    metadata: LayoutMetadata
    warnings: List[str] = field(default_factory=list)

    def with_cache_hit(self) -> 'SystemLayout':
        """Copy flagged as served from the cache; the cached results stay untouched by callers."""
        return SystemLayout(
            results={object_id: replace(result, collision_adjustments=list(result.collision_adjustments))
                     for object_id, result in self.results.items()},
            system_bounds=self.system_bounds,
            metadata=replace(self.metadata, cache_hit=True),
            warnings=list(self.warnings),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'results': {object_id: result.to_dict() for object_id, result in self.results.items()},
            'system_bounds': {'min': self.system_bounds.min, 'max': self.system_bounds.max,
                              'span': self.system_bounds.span},
            'metadata': {
                'view_mode': self.metadata.view_mode,
                'calculation_time': self.metadata.calculation_time,
                'object_count': self.metadata.object_count,
                'collision_count': self.metadata.collision_count,
                'cache_hit': self.metadata.cache_hit,
            },
            'warnings': list(self.warnings),
        }


def find_object(objects: Iterable[CelestialObject], object_id: str) -> Optional[CelestialObject]:
    for obj in objects:
        if obj.id == object_id:
            return obj
    return None


def find_earth_reference(objects: Iterable[CelestialObject]) -> Optional[CelestialObject]:
    """Returns the Earth-like reference body (id or name 'earth'), if the system has one."""
    for obj in objects:
        if obj.id.lower() == 'earth' or obj.name.lower() == 'earth':
            return obj
    return None


def _as_float(value, field_name, object_id, default=None):
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise InputError(f"Field '{field_name}' of '{object_id}' is not numeric: {value!r}") from e
    if math.isnan(number):
        raise InputError(f"Field '{field_name}' of '{object_id}' is NaN")
    return number


def celestial_objects_from_records(records: Iterable[Dict[str, Any]]) -> List[CelestialObject]:
    """Builds `CelestialObject`s from loader records.

    Records follow the loader's plain-dict format: `id`, `name`,
    `classification`, `properties` ({`radius` in km, `mass` in kg}) and an
    optional `orbit` ({`parent`, `semi_major_axis` in AU, `eccentricity`,
    `inclination`, `orbital_period`, `longitude_of_ascending_node`,
    `argument_of_periapsis`}).

    Raises:
        InputError: If a record is missing its id or classification, or carries
            non-numeric values.
    """
    objects = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise InputError(f"Record #{index} is not a mapping.")
        object_id = record.get('id')
        if not object_id:
            raise InputError(f"Record #{index} is missing an 'id'.")
        props = record.get('properties') or {}
        properties = CelestialProperties(
            radius_km=_as_float(props.get('radius', props.get('radius_km')), 'radius', object_id, 0.0),
            mass=_as_float(props.get('mass'), 'mass', object_id, 0.0),
        )
        orbit = None
        orbit_record = record.get('orbit')
        if orbit_record:
            orbit = OrbitData(
                parent_id=orbit_record.get('parent') or orbit_record.get('parent_id') or '',
                semi_major_axis_au=_as_float(
                    orbit_record.get('semi_major_axis', orbit_record.get('semi_major_axis_au')),
                    'semi_major_axis', object_id),
                eccentricity=_as_float(orbit_record.get('eccentricity'), 'eccentricity', object_id, 0.0),
                inclination=_as_float(orbit_record.get('inclination'), 'inclination', object_id, 0.0),
                orbital_period=_as_float(orbit_record.get('orbital_period'), 'orbital_period', object_id),
                longitude_of_ascending_node=_as_float(
                    orbit_record.get('longitude_of_ascending_node'), 'longitude_of_ascending_node', object_id, 0.0),
                argument_of_periapsis=_as_float(
                    orbit_record.get('argument_of_periapsis'), 'argument_of_periapsis', object_id, 0.0),
            )
        objects.append(CelestialObject(
            id=str(object_id),
            name=record.get('name') or str(object_id),
            classification=record.get('classification', ''),
            properties=properties,
            orbit=orbit,
        ))
    return objects
