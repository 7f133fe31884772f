# hierarchy_manager.py
"""Parent/child structure of a system and the child-to-parent size rules.

The tree is built over a flat arena: objects keep their input order, every
object has the index of its parent (or -1) and a list of child indices. The
`HierarchyNode` tree handed to callers is materialised from that arena, and
walks over it use a numpy visited-bitset so malformed (cyclic) inputs cannot
recurse forever.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from celestial import BARYCENTER_ID, CelestialObject, HierarchyNode, ScalingResult
from layout_config import LayoutConfig
from layout_config import config as default_config
from layout_utils import InputError

# Which classifications may orbit which
VALID_CHILDREN = {
    'star': ('planet', 'dwarf_planet', 'belt'),
    'planet': ('moon',),
    'dwarf_planet': ('moon',),
}


@dataclass
class HierarchyArena:
    objects: List[CelestialObject]
    index_of: Dict[str, int]
    parent_index: np.ndarray  # -1 when the parent is absent
    children: List[List[int]] = field(default_factory=list)

    @classmethod
    def from_objects(cls, objects: Sequence[CelestialObject]) -> 'HierarchyArena':
        objects = list(objects)
        index_of = {}
        for i, obj in enumerate(objects):
            # First occurrence wins for duplicated ids
            index_of.setdefault(obj.id, i)
        parent_index = np.full(len(objects), -1, dtype=np.int64)
        children: List[List[int]] = [[] for _ in objects]
        for i, obj in enumerate(objects):
            parent = index_of.get(obj.parent_id) if obj.parent_id else None
            if parent is not None and parent != i:
                parent_index[i] = parent
                children[parent].append(i)
        return cls(objects=objects, index_of=index_of, parent_index=parent_index, children=children)

    def forest_roots(self) -> List[int]:
        """Indices whose parent is absent from the arena, in input order."""
        return [i for i in range(len(self.objects)) if self.parent_index[i] < 0]

    def in_cycle(self, index: int) -> bool:
        visited = np.zeros(len(self.objects), dtype=bool)
        current = index
        while current >= 0:
            if visited[current]:
                return True
            visited[current] = True
            current = int(self.parent_index[current])
        return False


class HierarchyManager:
    """Builds the single-root hierarchy tree and enforces size ratios along it."""

    def __init__(self, layout_config: Optional[LayoutConfig] = None):
        self.config = layout_config or default_config

    def build_hierarchy(self, objects: Sequence[CelestialObject]) -> HierarchyNode:
        """Builds the tree under the first root candidate.

        Root candidates are objects without an orbit or with an empty parent id.
        Only the first candidate (input order) becomes the root; any others are
        logged and left out of the returned tree. With no candidate at all the
        first object is used.

        Raises:
            InputError: If `objects` is empty.
        """
        if not objects:
            raise InputError("No objects provided to build hierarchy")

        arena = HierarchyArena.from_objects(objects)
        candidates = [i for i, obj in enumerate(arena.objects) if obj.is_root_candidate]
        if not candidates:
            logging.warning(f"No clear root object found, using '{arena.objects[0].id}' as root.")
            root_index = 0
        else:
            root_index = candidates[0]
            if len(candidates) > 1:
                dropped = ', '.join(arena.objects[i].id for i in candidates[1:])
                logging.warning(f"Multiple root candidates; using '{arena.objects[root_index].id}' "
                                f"and leaving {dropped} outside the primary tree.")
        return self._materialise(arena, root_index)

    def _materialise(self, arena: HierarchyArena, root_index: int) -> HierarchyNode:
        visited = np.zeros(len(arena.objects), dtype=bool)
        root = HierarchyNode(object=arena.objects[root_index], depth=0, is_root=True)
        visited[root_index] = True
        stack = [(root, root_index)]
        while stack:
            node, index = stack.pop()
            for child_index in arena.children[index]:
                if visited[child_index]:
                    continue
                visited[child_index] = True
                child = HierarchyNode(object=arena.objects[child_index], depth=node.depth + 1)
                node.children.append(child)
                stack.append((child, child_index))
        return root

    def enforce_hierarchy(self, objects: Sequence[CelestialObject],
                          visual_sizes: Mapping[str, ScalingResult]) -> Dict[str, ScalingResult]:
        """Clamps every child's visual radius into the configured ratio band of its parent.

        Walks top-down from every object whose parent is not part of the system,
        so bodies outside the primary tree (barycenter stars, extra roots) are
        constrained too. Parents are adjusted before their children and the
        children are bounded by the adjusted parent size.

        Returns:
            A new size map; `visual_sizes` is left untouched.
        """
        adjusted = dict(visual_sizes)
        visual = self.config.Visual
        if not visual.ENFORCE_HIERARCHY or not objects:
            return adjusted

        arena = HierarchyArena.from_objects(objects)
        visited = np.zeros(len(arena.objects), dtype=bool)
        stack = list(reversed(arena.forest_roots()))
        while stack:
            index = stack.pop()
            if visited[index]:
                continue
            visited[index] = True
            parent_size = adjusted.get(arena.objects[index].id)
            for child_index in arena.children[index]:
                child_id = arena.objects[child_index].id
                child_size = adjusted.get(child_id)
                if parent_size is not None and child_size is not None:
                    constrained = self._constrain(child_size, parent_size.visual_radius)
                    if constrained is not child_size:
                        adjusted[child_id] = constrained
                        if self.config.Debug.LAYOUT_PIPELINE:
                            logging.debug(f"Hierarchy constrained {child_id}: "
                                          f"{child_size.visual_radius:.4f} -> {constrained.visual_radius:.4f}")
                stack.append(child_index)
        return adjusted

    def _constrain(self, child_size: ScalingResult, parent_radius: float) -> ScalingResult:
        visual = self.config.Visual
        max_child = parent_radius * visual.MAX_CHILD_TO_PARENT_RATIO
        min_child = parent_radius * visual.MIN_CHILD_TO_PARENT_RATIO

        if child_size.visual_radius > max_child:
            return replace(child_size, visual_radius=max_child, scaling_method='hierarchy-constrained')
        if child_size.visual_radius < min_child:
            target = min_child
            # The absolute floor wins only while it still fits under the upper bound
            if min_child < visual.MIN_VISUAL_SIZE <= max_child:
                target = visual.MIN_VISUAL_SIZE
            return replace(child_size, visual_radius=target, scaling_method='hierarchy-constrained')
        return child_size

    def validate_hierarchy(self, objects: Sequence[CelestialObject]) -> List[str]:
        warnings = []
        arena = HierarchyArena.from_objects(objects)

        candidates = [obj.id for obj in arena.objects if obj.is_root_candidate]
        if len(candidates) > 1:
            warnings.append(f"Multiple root objects found ({', '.join(candidates)}); "
                            f"'{candidates[0]}' is used as the hierarchy root")

        for index, obj in enumerate(arena.objects):
            parent_id = obj.parent_id
            if parent_id is None or parent_id == BARYCENTER_ID:
                continue
            parent_index = arena.index_of.get(parent_id)
            if parent_index is None:
                warnings.append(f"Object {obj.id} references non-existent parent {parent_id}")
                continue
            if parent_index == index or arena.in_cycle(index):
                warnings.append(f"Circular reference detected involving object {obj.id}")
            issue = self.validate_hierarchy_rules(obj, arena.objects[parent_index])
            if issue:
                warnings.append(issue)
        return warnings

    @staticmethod
    def validate_hierarchy_rules(child: CelestialObject, parent: CelestialObject) -> Optional[str]:
        allowed = VALID_CHILDREN.get(parent.classification)
        if allowed is None:
            return f"Parent classification '{parent.classification}' cannot have children"
        if child.classification not in allowed:
            return f"Invalid hierarchy: '{child.classification}' cannot orbit '{parent.classification}'"
        return None

    # --- Queries ---

    @staticmethod
    def get_children(parent_id: str, objects: Sequence[CelestialObject]) -> List[CelestialObject]:
        return [obj for obj in objects if obj.parent_id == parent_id]

    @staticmethod
    def get_parent(object_id: str, objects: Sequence[CelestialObject]) -> Optional[CelestialObject]:
        obj = next((o for o in objects if o.id == object_id), None)
        if obj is None or obj.parent_id is None:
            return None
        return next((o for o in objects if o.id == obj.parent_id), None)

    @staticmethod
    def find_node(hierarchy: HierarchyNode, object_id: str) -> Optional[HierarchyNode]:
        stack = [hierarchy]
        while stack:
            node = stack.pop()
            if node.object.id == object_id:
                return node
            stack.extend(reversed(node.children))
        return None

    @staticmethod
    def get_objects_at_depth(hierarchy: HierarchyNode, depth: int) -> List[CelestialObject]:
        found = []
        level = [hierarchy]
        while level:
            if level[0].depth == depth:
                found.extend(node.object for node in level)
                break
            level = [child for node in level for child in node.children]
        return found

    @staticmethod
    def get_max_depth(hierarchy: HierarchyNode) -> int:
        return max([hierarchy.depth] + [HierarchyManager.get_max_depth(child) for child in hierarchy.children])

    @staticmethod
    def get_all_descendants(node: HierarchyNode) -> List[CelestialObject]:
        descendants = []
        for child in node.children:
            descendants.append(child.object)
            descendants.extend(HierarchyManager.get_all_descendants(child))
        return descendants

    @staticmethod
    def get_path_to_object(hierarchy: HierarchyNode, object_id: str) -> List[CelestialObject]:
        """Objects from the root down to `object_id`, or an empty list if it is not in the tree."""
        if hierarchy.object.id == object_id:
            return [hierarchy.object]
        for child in hierarchy.children:
            path = HierarchyManager.get_path_to_object(child, object_id)
            if path:
                return [hierarchy.object] + path
        return []
