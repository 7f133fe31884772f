# orbit_position_calculator.py
"""Two-pass orbit placement.

Pass one places moons around their (already sized) parents. Pass two places
planets, dwarf planets, asteroids and belts around their parents, reserving
room for each body's own moon system. Stars orbiting the synthetic barycenter
get a dedicated placement; every other star sits at the origin.
"""
import logging
from typing import Dict, List, Mapping, Optional, Sequence

from celestial import BeltData, CelestialObject, ScalingResult
from layout_config import LayoutConfig
from layout_config import config as default_config
from layout_utils import InputError
from view_mode_strategy import CalculationContext

SECOND_PASS_CLASSIFICATIONS = ('planet', 'dwarf_planet', 'asteroid', 'belt')


class OrbitPositionCalculator:

    def __init__(self, layout_config: Optional[LayoutConfig] = None):
        self.config = layout_config or default_config

    def calculate_orbital_positions(self, objects: Sequence[CelestialObject],
                                    visual_sizes: Mapping[str, ScalingResult],
                                    context: CalculationContext,
                                    warnings: Optional[List[str]] = None) -> Dict[str, float]:
        """Orbit distance of every placeable object, keyed by object id.

        Args:
            objects: Objects to place.
            visual_sizes: Visual sizes after hierarchy enforcement.
            context: The pipeline run being computed.
            warnings: Optional list that receives one message per skipped object.

        Returns:
            Orbit distances in scene units. Objects that could not be placed are absent.
        """
        moon_orbits = self.calculate_moon_orbits(objects, visual_sizes, context, warnings)
        planet_orbits = self.calculate_planet_orbits(objects, visual_sizes, moon_orbits, context, warnings)

        positions = dict(moon_orbits)
        positions.update(planet_orbits)

        for star in (obj for obj in objects if obj.classification == 'star'):
            if star.orbits_barycenter:
                positions[star.id] = self.calculate_barycenter_orbit_distance(star, context)
            else:
                positions[star.id] = 0.0

        if self.config.Debug.LAYOUT_PIPELINE:
            logging.debug(f"Placed {len(positions)} of {len(objects)} objects "
                          f"({len(moon_orbits)} moons, {len(planet_orbits)} planets/belts).")
        return positions

    def calculate_moon_orbits(self, objects: Sequence[CelestialObject], visual_sizes: Mapping[str, ScalingResult],
                              context: CalculationContext,
                              warnings: Optional[List[str]] = None) -> Dict[str, float]:
        moon_orbits = {}
        for moon in (obj for obj in objects if obj.classification == 'moon'):
            parent = self._resolve_parent(moon, objects, visual_sizes, warnings)
            if parent is None:
                continue
            moon_size = visual_sizes.get(moon.id)
            moon_radius = moon_size.visual_radius if moon_size is not None else 0.0
            moon_orbits[moon.id] = self._scaled_orbit_distance(
                moon, visual_sizes[parent.id], objects, context, moon_radius)
        return moon_orbits

    def calculate_planet_orbits(self, objects: Sequence[CelestialObject], visual_sizes: Mapping[str, ScalingResult],
                                moon_orbits: Mapping[str, float], context: CalculationContext,
                                warnings: Optional[List[str]] = None) -> Dict[str, float]:
        planet_orbits = {}
        for body in (obj for obj in objects if obj.classification in SECOND_PASS_CLASSIFICATIONS):
            parent = self._resolve_parent(body, objects, visual_sizes, warnings)
            if parent is None:
                continue

            if body.classification == 'belt' and not self._uses_equidistant_spacing(context):
                planet_orbits[body.id] = self.calculate_belt_data(body, context).center_radius
                continue

            effective_size = self.calculate_effective_planet_size(body, objects, visual_sizes, moon_orbits)
            planet_orbits[body.id] = self._scaled_orbit_distance(
                body, visual_sizes[parent.id], objects, context, effective_size)
        return planet_orbits

    def calculate_belt_data(self, belt: CelestialObject, context: CalculationContext,
                            center_radius: Optional[float] = None) -> BeltData:
        """Ring geometry of a belt.

        The center sits at `semi_major_axis * orbit scaling` unless an explicit
        `center_radius` is given (a belt moved by collision resolution or
        placed on the equidistant ladder).

        Raises:
            InputError: If the belt has no semi-major axis.
        """
        if center_radius is None:
            if belt.orbit is None or belt.orbit.semi_major_axis_au is None:
                raise InputError(f"Belt object {belt.id} missing orbital data")
            center_radius = belt.orbit.semi_major_axis_au * self.get_orbit_scaling(context)
        width = center_radius * self.config.Orbital.DEFAULT_BELT_WIDTH
        return BeltData(
            inner_radius=center_radius - width / 2,
            outer_radius=center_radius + width / 2,
            center_radius=center_radius,
            width=width,
        )

    def calculate_effective_planet_size(self, planet: CelestialObject, objects: Sequence[CelestialObject],
                                        visual_sizes: Mapping[str, ScalingResult],
                                        moon_orbits: Mapping[str, float]) -> float:
        """The larger of the planet's own radius and the outer edge of its moon system."""
        planet_size = visual_sizes.get(planet.id)
        if planet_size is None:
            return 0.0
        max_moon_extent = 0.0
        for moon in objects:
            if moon.classification != 'moon' or moon.parent_id != planet.id:
                continue
            moon_orbit = moon_orbits.get(moon.id)
            moon_size = visual_sizes.get(moon.id)
            if moon_orbit is not None and moon_size is not None:
                max_moon_extent = max(max_moon_extent, moon_orbit + moon_size.visual_radius)
        return max(planet_size.visual_radius, max_moon_extent)

    def calculate_barycenter_orbit_distance(self, star: CelestialObject, context: CalculationContext) -> float:
        if star.orbit is None or star.orbit.semi_major_axis_au is None:
            return 0.0
        orbital = self.config.Orbital

        if self._uses_equidistant_spacing(context):
            binary_stars = sorted(
                (obj for obj in context.objects if obj.classification == 'star' and obj.orbits_barycenter),
                key=lambda obj: (obj.orbit.semi_major_axis_au or 0.0, obj.id))
            index = next((i for i, obj in enumerate(binary_stars) if obj.id == star.id), None)
            if index is None:
                return 0.0
            base_spacing = orbital.BASE_SPACING * orbital.BARYCENTER_SPACING_FACTOR
            return base_spacing + index * base_spacing * orbital.SPACING_MULTIPLIER

        scaling = self.get_orbit_scaling(context) * orbital.BARYCENTER_SCALE_FACTOR
        return max(star.orbit.semi_major_axis_au * scaling, orbital.BARYCENTER_MIN_DISTANCE)

    def get_orbit_scaling(self, context: CalculationContext) -> float:
        return context.strategy.get_orbit_scaling(context.system)

    def get_safety_factor(self, context: CalculationContext) -> float:
        return context.strategy.get_safety_factor()

    # --- Internals ---

    @staticmethod
    def _uses_equidistant_spacing(context: CalculationContext) -> bool:
        return context.strategy.get_orbital_behavior().use_equidistant_spacing

    def _resolve_parent(self, obj: CelestialObject, objects: Sequence[CelestialObject],
                        visual_sizes: Mapping[str, ScalingResult],
                        warnings: Optional[List[str]]) -> Optional[CelestialObject]:
        """The sized parent of `obj`, or None (logged) when `obj` cannot be placed."""
        if not obj.has_complete_orbit:
            reason = "missing orbit or semi-major axis" if obj.parent_id else "no parent id"
        else:
            parent = next((o for o in objects if o.id == obj.parent_id), None)
            if parent is not None and parent.id in visual_sizes:
                return parent
            reason = f"parent '{obj.parent_id}' not found or has no size"
        message = f"Orbit skipped for {obj.name} ({obj.id}): {reason}"
        logging.warning(message)
        if warnings is not None:
            warnings.append(message)
        return None

    def _scaled_orbit_distance(self, obj: CelestialObject, parent_size: ScalingResult,
                               objects: Sequence[CelestialObject], context: CalculationContext,
                               object_size: float) -> float:
        if self._uses_equidistant_spacing(context):
            return self._equidistant_position(obj, objects)
        base_distance = obj.orbit.semi_major_axis_au * self.get_orbit_scaling(context)
        min_distance = (parent_size.visual_radius * self.get_safety_factor(context)
                        + object_size + self.config.Orbital.CONVERGENCE_THRESHOLD)
        return max(base_distance, min_distance)

    def _equidistant_position(self, obj: CelestialObject, objects: Sequence[CelestialObject]) -> float:
        """Slot of `obj` on its parent's evenly spaced ladder, ordered by semi-major axis."""
        siblings = sorted(
            (o for o in objects if o.parent_id == obj.parent_id and o.has_complete_orbit),
            key=lambda o: (o.orbit.semi_major_axis_au, o.id))
        index = next((i for i, o in enumerate(siblings) if o.id == obj.id), None)
        if index is None:
            return 0.0
        orbital = self.config.Orbital
        return orbital.BASE_SPACING + index * orbital.BASE_SPACING * orbital.SPACING_MULTIPLIER
