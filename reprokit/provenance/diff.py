"""
Structural diff of two provenance trees.

Only differences appear in the report. Keys are visited in sorted order so
the same pair of trees always yields a byte-identical report.
"""

import json
from typing import Any, Dict, List, Tuple

from ..errors import UnsupportedDiffError
from .nodes import KEYED_KINDS, ProvenanceKind, ProvenanceNode

# Labels denoting which value came from which tree
ORIGINAL = "original"
REPRODUCED = "reproduced"

# Key of the inline entry emitted for nodes that cannot be compared
UNRECOGNIZED = "unrecognized-provenance"


def _as_map(node: ProvenanceNode) -> Dict[str, ProvenanceNode]:
    """Immediate children of a keyed node, keyed by name."""
    return dict(node.children())


def _diff_lists(a: ProvenanceNode, b: ProvenanceNode, labels: Tuple[str, str], path: str) -> List[Any]:
    if len(a.items) != len(b.items):
        raise UnsupportedDiffError(
            f"Cannot align lists of different lengths at {path} ({len(a.items)} vs {len(b.items)})"
        )

    results = []
    for index, (item_a, item_b) in enumerate(zip(a.items, b.items)):
        entry = _diff_pair(item_a, item_b, labels, f"{path}[{index}]")
        if entry:
            results.append(entry)
    return results


def _diff_pair(a: ProvenanceNode, b: ProvenanceNode, labels: Tuple[str, str], path: str) -> Any:
    """Diff two nodes found under the same key; a falsy result means no difference."""
    old, new = labels

    if a.kind is ProvenanceKind.PRIMITIVE and b.kind is ProvenanceKind.PRIMITIVE:
        if a.stringify() == b.stringify():
            return None
        return {old: a.stringify(), new: b.stringify()}

    if a.kind is not b.kind:
        return {UNRECOGNIZED: f"{a.kind.value}/{b.kind.value}"}

    if a.kind is ProvenanceKind.LIST:
        return _diff_lists(a, b, labels, path)

    if a.kind in KEYED_KINDS:
        return _diff_maps(_as_map(a), _as_map(b), labels, path)

    return {UNRECOGNIZED: f"{a.kind.value}/{b.kind.value}"}


def _one_sided(node: ProvenanceNode, label: str) -> Any:
    """Render a node present in only one tree, tagging every leaf with ``label``."""
    if node.kind is ProvenanceKind.PRIMITIVE:
        return {label: node.stringify()}
    if node.kind is ProvenanceKind.LIST:
        items = [_one_sided(item, label) for item in node.items]
        return [item for item in items if item]
    if node.kind in KEYED_KINDS:
        children = _as_map(node)
        report = {}
        for key in sorted(children):
            rendered = _one_sided(children[key], label)
            if rendered:
                report[key] = rendered
        return report
    return {UNRECOGNIZED: node.kind.value}


def _diff_maps(
    map_a: Dict[str, ProvenanceNode],
    map_b: Dict[str, ProvenanceNode],
    labels: Tuple[str, str],
    path: str,
) -> Dict[str, Any]:
    old, new = labels
    report: Dict[str, Any] = {}

    for key in sorted(set(map_a) | set(map_b)):
        if key in map_a and key in map_b:
            entry = _diff_pair(map_a[key], map_b[key], labels, f"{path}.{key}")
        elif key in map_a:
            entry = _one_sided(map_a[key], old)
        else:
            entry = _one_sided(map_b[key], new)

        if entry:
            report[key] = entry

    return report


def diff_provenance_nodes(
    original: ProvenanceNode,
    reproduced: ProvenanceNode,
    labels: Tuple[str, str] = (ORIGINAL, REPRODUCED),
) -> Dict[str, Any]:
    """
    Diff two keyed provenance nodes.

    Args:
        original: Node from the first tree
        reproduced: Node from the second tree
        labels: Tags marking values from the first and second tree

    Returns:
        Nested dictionary containing only the differences

    Raises:
        UnsupportedDiffError: If the roots are not keyed nodes or lists
            of different lengths have to be paired
    """
    if labels[0] == labels[1]:
        raise ValueError(f"Diff labels must differ, got {labels!r}")
    if original.kind not in KEYED_KINDS or reproduced.kind not in KEYED_KINDS:
        raise UnsupportedDiffError(
            f"Can only diff keyed provenance, got {original.kind.value} and {reproduced.kind.value}"
        )
    return _diff_maps(_as_map(original), _as_map(reproduced), tuple(labels), "$")


def diff_provenance(
    original: ProvenanceNode,
    reproduced: ProvenanceNode,
    labels: Tuple[str, str] = (ORIGINAL, REPRODUCED),
) -> str:
    """
    Diff two provenance trees and format the report as indented JSON.

    Args:
        original: First provenance tree
        reproduced: Second provenance tree
        labels: Tags marking values from the first and second tree

    Returns:
        JSON report of the differences
    """
    return json.dumps(diff_provenance_nodes(original, reproduced, labels), indent=2)
