# collision_detection.py
"""Detection and best-effort resolution of overlapping orbits.

Two kinds of collision are found: a child whose inner edge reaches into its
parent's safety zone, and two adjacent siblings (ordered by orbit distance)
whose edges are closer than `Orbital.CONVERGENCE_THRESHOLD`. Resolution only
ever moves objects outwards and works inside-out, so an inner fix is never
undone by an outer one.
"""
import logging
from collections import defaultdict
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from celestial import CelestialObject, CollisionAdjustment, ScalingResult
from layout_config import LayoutConfig
from layout_config import config as default_config
from layout_utils import ConstraintExhaustion
from view_mode_strategy import CalculationContext

ROOT_GROUP = 'root'
EPSILON = 1e-9  # Float slack when re-checking freshly resolved positions


class CollisionDetectionService:

    def __init__(self, layout_config: Optional[LayoutConfig] = None):
        self.config = layout_config or default_config

    # --- Detection ---

    def detect_collisions(self, objects: Sequence[CelestialObject], visual_sizes: Mapping[str, ScalingResult],
                          orbital_positions: Mapping[str, float], context: CalculationContext,
                          radii: Optional[Mapping[str, float]] = None) -> List[CollisionAdjustment]:
        """Parent-child and sibling collisions among `objects`.

        Args:
            objects: Objects to check. Parents are looked up in `visual_sizes`,
                so they do not need to be part of `objects`.
            visual_sizes: Visual sizes of every object in the system.
            orbital_positions: Current orbit distances.
            context: The pipeline run being computed.
            radii: Extent of each object for overlap tests. Defaults to the visual
                radius; the effective radius is passed once moon systems are placed.
        """
        if not objects:
            logging.warning("No objects provided for collision detection")
            return []
        radii = self._radii(objects, visual_sizes, radii)

        collisions = []
        for parent_id, children in self._group_by_parent(objects).items():
            if parent_id != ROOT_GROUP:
                collisions.extend(self.check_parent_child_collisions(
                    parent_id, children, visual_sizes, orbital_positions, context, radii))
        collisions.extend(self.check_sibling_collisions(objects, orbital_positions, radii))

        if self.config.Debug.COLLISIONS:
            for collision in collisions:
                logging.debug(f"Collision: {collision.reason} ({collision.original_distance:.4f} -> "
                              f"{collision.adjusted_distance:.4f})")
        return collisions

    def check_parent_child_collisions(self, parent_id: str, children: Sequence[CelestialObject],
                                      visual_sizes: Mapping[str, ScalingResult],
                                      orbital_positions: Mapping[str, float], context: CalculationContext,
                                      radii: Mapping[str, float]) -> List[CollisionAdjustment]:
        parent_size = visual_sizes.get(parent_id)
        if parent_size is None:
            return []
        parent_safe_zone = parent_size.visual_radius * context.strategy.get_safety_factor()

        collisions = []
        for child in children:
            child_radius = radii.get(child.id)
            distance = orbital_positions.get(child.id)
            if child_radius is None or distance is None:
                continue
            if distance - child_radius < parent_safe_zone - EPSILON:
                collisions.append(CollisionAdjustment(
                    object_id=child.id,
                    original_distance=distance,
                    adjusted_distance=parent_safe_zone + child_radius,
                    reason=f"Child {child.id} colliding with parent {parent_id}",
                ))
        return collisions

    def check_sibling_collisions(self, objects: Sequence[CelestialObject], orbital_positions: Mapping[str, float],
                                 radii: Mapping[str, float]) -> List[CollisionAdjustment]:
        threshold = self.config.Orbital.CONVERGENCE_THRESHOLD
        collisions = []
        for parent_id, siblings in self._group_by_parent(objects).items():
            # Parentless bodies all sit at the origin
            if parent_id == ROOT_GROUP:
                continue
            placed = sorted((obj for obj in siblings if obj.id in orbital_positions and obj.id in radii),
                            key=lambda obj: orbital_positions[obj.id])
            for inner, outer in zip(placed, placed[1:]):
                inner_outer_edge = orbital_positions[inner.id] + radii[inner.id]
                outer_distance = orbital_positions[outer.id]
                gap = (outer_distance - radii[outer.id]) - inner_outer_edge
                if gap < threshold - EPSILON:
                    collisions.append(CollisionAdjustment(
                        object_id=outer.id,
                        original_distance=outer_distance,
                        adjusted_distance=inner_outer_edge + threshold + radii[outer.id],
                        reason=f"Sibling collision between {inner.id} and {outer.id}",
                    ))
        return collisions

    # --- Resolution ---

    def resolve_collisions(self, collisions: Sequence[CollisionAdjustment], objects: Sequence[CelestialObject],
                           visual_sizes: Mapping[str, ScalingResult], orbital_positions: Mapping[str, float],
                           context: CalculationContext, radii: Optional[Mapping[str, float]] = None,
                           warnings: Optional[List[str]] = None) -> Dict[str, float]:
        """Applies `collisions` inside-out and returns the adjusted positions.

        Each object is moved to at least its proposed distance and its parent's
        minimum safe distance, then stepped past any sibling it still overlaps.
        When the iteration budget runs out the last attempted position is kept
        and a warning is recorded.
        """
        adjusted = dict(orbital_positions)
        radii = self._radii(objects, visual_sizes, radii)
        by_id = {obj.id: obj for obj in objects}
        threshold = self.config.Orbital.CONVERGENCE_THRESHOLD
        safety_factor = context.strategy.get_safety_factor()
        resolved = set()

        for collision in sorted(collisions, key=lambda c: c.original_distance):
            obj = by_id.get(collision.object_id)
            radius = radii.get(collision.object_id)
            if obj is None or radius is None:
                continue

            parent_size = visual_sizes.get(obj.parent_id) if obj.parent_id else None
            parent_radius = parent_size.visual_radius if parent_size is not None else 0.0
            min_safe_distance = parent_radius * safety_factor + radius + threshold

            start = max(collision.adjusted_distance, min_safe_distance)
            if obj.id in resolved:
                start = max(start, adjusted[obj.id])
            try:
                position = self.find_next_available_position(obj, start, objects, radii, adjusted)
            except ConstraintExhaustion as e:
                logging.warning(str(e))
                if warnings is not None and str(e) not in warnings:
                    warnings.append(str(e))
                position = e.last_distance
            adjusted[obj.id] = position
            resolved.add(obj.id)
        return adjusted

    def find_next_available_position(self, obj: CelestialObject, start_position: float,
                                     objects: Sequence[CelestialObject], radii: Mapping[str, float],
                                     orbital_positions: Mapping[str, float]) -> float:
        """First position at or beyond `start_position` clear of every sibling.

        Raises:
            ConstraintExhaustion: If no clear position was found within
                `Orbital.MAX_ITERATIONS` steps. The exception carries the last
                attempted position.
        """
        radius = radii.get(obj.id)
        if radius is None:
            return start_position
        threshold = self.config.Orbital.CONVERGENCE_THRESHOLD
        max_iterations = int(self.config.Orbital.MAX_ITERATIONS)
        siblings = [o for o in objects if o.parent_id == obj.parent_id and o.id != obj.id
                    and o.id in radii and o.id in orbital_positions]

        position = start_position
        for _ in range(max_iterations):
            blocking = self._first_overlap(position, radius, siblings, radii, orbital_positions)
            if blocking is None:
                return position
            position = orbital_positions[blocking.id] + radii[blocking.id] + radius + threshold

        if self._first_overlap(position, radius, siblings, radii, orbital_positions) is None:
            return position
        raise ConstraintExhaustion(obj.id, position, max_iterations)

    @staticmethod
    def _first_overlap(position: float, radius: float, siblings: Sequence[CelestialObject],
                       radii: Mapping[str, float], orbital_positions: Mapping[str, float]):
        inner, outer = position - radius, position + radius
        for sibling in siblings:
            sibling_position = orbital_positions[sibling.id]
            sibling_radius = radii[sibling.id]
            if not (outer < sibling_position - sibling_radius or inner > sibling_position + sibling_radius):
                return sibling
        return None

    # --- Phased pipeline ---

    def resolve_layout(self, objects: Sequence[CelestialObject], visual_sizes: Mapping[str, ScalingResult],
                       orbital_positions: Mapping[str, float], context: CalculationContext,
                       warnings: Optional[List[str]] = None) -> Tuple[Dict[str, float], List[CollisionAdjustment]]:
        """Detects and resolves collisions in dependency order.

        Moons are settled first. Every parent's effective radius is then
        recomputed from its settled moons, and planets, belts and stars are
        settled using those effective radii. Each phase repeats detection until
        it is clean or `Orbital.MAX_ITERATIONS` rounds have run.

        Returns:
            The final positions and the applied adjustments, whose
            `adjusted_distance` is the position the object ended up at.
        """
        positions = dict(orbital_positions)
        applied: List[CollisionAdjustment] = []

        moons = [obj for obj in objects if obj.classification == 'moon']
        others = [obj for obj in objects if obj.classification != 'moon']

        positions = self._settle(moons, visual_sizes, positions, context, None, applied, warnings)
        effective = self.effective_radii(objects, visual_sizes, positions)
        positions = self._settle(others, visual_sizes, positions, context, effective, applied, warnings)
        return positions, applied

    def effective_radii(self, objects: Sequence[CelestialObject], visual_sizes: Mapping[str, ScalingResult],
                        orbital_positions: Mapping[str, float]) -> Dict[str, float]:
        """Visual radius of every sized object, widened to the outer edge of its placed children."""
        effective = {obj.id: visual_sizes[obj.id].visual_radius for obj in objects if obj.id in visual_sizes}
        for obj in objects:
            parent_id = obj.parent_id
            if parent_id not in effective or obj.id not in visual_sizes or obj.id not in orbital_positions:
                continue
            extent = orbital_positions[obj.id] + visual_sizes[obj.id].visual_radius
            effective[parent_id] = max(effective[parent_id], extent)
        return effective

    def _settle(self, objects, visual_sizes, positions, context, radii, applied, warnings):
        for _ in range(int(self.config.Orbital.MAX_ITERATIONS)):
            collisions = self.detect_collisions(objects, visual_sizes, positions, context, radii) if objects else []
            if not collisions:
                break
            positions = self.resolve_collisions(collisions, objects, visual_sizes, positions, context, radii, warnings)
            applied.extend(replace(c, adjusted_distance=positions[c.object_id]) for c in collisions)
        return positions

    @staticmethod
    def _radii(objects, visual_sizes, radii):
        if radii is not None:
            return radii
        return {obj.id: visual_sizes[obj.id].visual_radius for obj in objects if obj.id in visual_sizes}

    @staticmethod
    def _group_by_parent(objects: Sequence[CelestialObject]) -> Dict[str, List[CelestialObject]]:
        groups = defaultdict(list)
        for obj in objects:
            groups[obj.parent_id or ROOT_GROUP].append(obj)
        return groups
