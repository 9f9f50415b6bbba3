"""
Topological ordering of the object nodes in a provenance tree.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Set, Tuple

from ..errors import ExtractionError
from ..utils.logging_utils import get_logger
from .nodes import OBJECT_KINDS, ObjectProvenance, ProvenanceKind, ProvenanceNode

logger = get_logger(__name__)


def compute_name(node: ObjectProvenance, index: int) -> str:
    """
    Deterministic component name for the node at ``index`` of an ordering.

    Args:
        node: Object provenance node
        index: Position of the node in the ordering

    Returns:
        Name of the form ``<class-name>-<index>``
    """
    return f"{node.class_name}-{index}"


@dataclass
class ProvenanceOrdering:
    """
    Object nodes of a provenance tree, each strictly after its dependencies.

    Attributes:
        traversal_order: Object nodes in dependency order
        dependencies: Index -> indices of the node's direct dependencies
    """
    traversal_order: List[ObjectProvenance] = field(default_factory=list)
    dependencies: Dict[int, List[int]] = field(default_factory=dict)
    _positions: Dict[int, int] = field(default_factory=dict, repr=False)

    def __len__(self) -> int:
        return len(self.traversal_order)

    def __iter__(self) -> Iterator[ObjectProvenance]:
        return iter(self.traversal_order)

    def __contains__(self, node: ProvenanceNode) -> bool:
        return id(node) in self._positions

    def index_of(self, node: ProvenanceNode) -> int:
        """Position of ``node`` (matched by identity) in the ordering."""
        try:
            return self._positions[id(node)]
        except KeyError:
            raise ExtractionError(f"Node {node!r} is not part of this ordering") from None

    def name_of(self, node: ObjectProvenance) -> str:
        return compute_name(node, self.index_of(node))

    def names(self) -> List[str]:
        return [compute_name(node, index) for index, node in enumerate(self.traversal_order)]

    def enumerate_kind(self, kind: ProvenanceKind) -> Iterator[Tuple[int, ObjectProvenance]]:
        """Yield ``(index, node)`` for every node of the given kind, in order."""
        for index, node in enumerate(self.traversal_order):
            if node.kind is kind:
                yield index, node

    def _append(self, node: ObjectProvenance, dependencies: List[ObjectProvenance]) -> None:
        index = len(self.traversal_order)
        self._positions[id(node)] = index
        self.traversal_order.append(node)

        dependency_indices = []
        for dependency in dependencies:
            parent = self._positions[id(dependency)]
            if parent not in dependency_indices:
                dependency_indices.append(parent)
        self.dependencies[index] = dependency_indices


def _expand(node: ProvenanceNode, path: str) -> Iterator[Tuple[str, ObjectProvenance]]:
    """Yield the object nodes reachable from ``node`` without crossing another object."""
    if node.kind in OBJECT_KINDS:
        yield path, node
    elif node.kind is ProvenanceKind.LIST:
        for index, item in enumerate(node.items):
            yield from _expand(item, f"{path}[{index}]")
    elif node.kind is ProvenanceKind.MAP:
        for key, value in node.entries.items():
            yield from _expand(value, f"{path}.{key}")
    elif node.kind is ProvenanceKind.PRIMITIVE:
        return
    else:
        raise ExtractionError(f"Unknown provenance kind at {path}: {node.kind}")


def direct_dependencies(node: ProvenanceNode, path: str = "$") -> List[Tuple[str, ObjectProvenance]]:
    """
    Object nodes ``node`` directly depends on, with their key paths.

    Lists and maps are looked through; nested objects are not.
    """
    if node.kind in OBJECT_KINDS or node.kind is ProvenanceKind.MAP:
        found = []
        for key, child in node.children():
            found.extend(_expand(child, f"{path}.{key}"))
        return found
    if node.kind is ProvenanceKind.LIST:
        return list(_expand(node, path))
    return []


def order_provenances(root: ProvenanceNode) -> ProvenanceOrdering:
    """
    Linearize the object nodes of a provenance tree.

    Depth-first post-order over children in recorded order, so every
    dependency precedes its dependents and ties keep discovery order. A node
    shared between several parents appears once.

    Args:
        root: Root of the provenance tree

    Returns:
        ProvenanceOrdering over every reachable object node

    Raises:
        ExtractionError: If the tree contains a cycle
    """
    ordering = ProvenanceOrdering()
    in_progress: Set[int] = set()

    def visit(node: ObjectProvenance, path: str) -> None:
        if node in ordering:
            return
        if id(node) in in_progress:
            raise ExtractionError(f"Provenance cycle detected at {path} ({node.class_name})")

        in_progress.add(id(node))
        dependencies = []
        for child_path, child in direct_dependencies(node, path):
            visit(child, child_path)
            dependencies.append(child)
        in_progress.discard(id(node))

        ordering._append(node, dependencies)

    if root.kind in OBJECT_KINDS:
        visit(root, "$")
    else:
        for child_path, child in direct_dependencies(root):
            visit(child, child_path)

    logger.debug(f"Ordered {len(ordering)} provenance objects")
    return ordering
