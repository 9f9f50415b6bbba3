"""
Conversion of a provenance tree into flat, named component configurations.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import ExtractionError
from ..utils.logging_utils import get_logger
from .nodes import OBJECT_KINDS, ObjectProvenance, ProvenanceKind, ProvenanceNode
from .ordering import ProvenanceOrdering, order_provenances

logger = get_logger(__name__)


@dataclass(frozen=True)
class ComponentRef:
    """Reference to another component by name."""
    name: str


@dataclass
class ComponentConfig:
    """
    Configuration sufficient to instantiate one component.

    Attributes:
        name: Component name, unique within one ordering
        class_name: Catalogue identifier of the component type
        properties: Constructor argument -> primitive, ComponentRef or list of either
    """
    name: str
    class_name: str
    properties: Dict[str, Any] = field(default_factory=dict)

    def references(self) -> List[str]:
        """Names of the components this configuration refers to."""
        names = []
        for value in self.properties.values():
            values = value if isinstance(value, list) else [value]
            names.extend(item.name for item in values if isinstance(item, ComponentRef))
        return names


def _convert_value(
    value: ProvenanceNode,
    ordering: ProvenanceOrdering,
    path: str,
) -> Any:
    if value.kind is ProvenanceKind.PRIMITIVE:
        return value.value

    if value.kind in OBJECT_KINDS:
        if not value.is_configured:
            raise ExtractionError(
                f"{path} refers to {value.class_name}, which was not built from configuration"
            )
        return ComponentRef(ordering.name_of(value))

    if value.kind is ProvenanceKind.LIST:
        converted = [_convert_value(item, ordering, f"{path}[{index}]") for index, item in enumerate(value.items)]
        if any(isinstance(item, list) for item in converted):
            raise ExtractionError(f"{path}: nested lists cannot be configured")
        references = sum(isinstance(item, ComponentRef) for item in converted)
        if 0 < references < len(converted):
            raise ExtractionError(f"{path}: list mixes primitive values and components")
        return converted

    if value.kind is ProvenanceKind.MAP:
        raise ExtractionError(f"{path}: map provenance cannot be used as a configured value")

    raise ExtractionError(f"{path}: unsupported provenance kind {value.kind}")


def node_to_config(node: ObjectProvenance, ordering: ProvenanceOrdering) -> ComponentConfig:
    """
    Build the configuration for one configured object node.

    Args:
        node: Configured object provenance
        ordering: Ordering the node belongs to, used for naming

    Returns:
        ComponentConfig named after the node's position in ``ordering``
    """
    name = ordering.name_of(node)
    properties = {
        key: _convert_value(value, ordering, f"{name}.{key}")
        for key, value in node.configured.items()
    }
    return ComponentConfig(name=name, class_name=node.class_name, properties=properties)


def extract_configuration(
    root: ProvenanceNode,
    ordering: Optional[ProvenanceOrdering] = None,
) -> List[ComponentConfig]:
    """
    Extract component configurations from a provenance tree.

    Every object node reachable from ``root`` is visited; configured ones
    (trainers, configurable data sources and anything nested in them) become
    a ComponentConfig. Record-only nodes such as models, datasets and split
    partitions are traversed but yield no configuration.

    Args:
        root: Root of the provenance tree
        ordering: Precomputed ordering of ``root``; computed if omitted

    Returns:
        Configurations in dependency order

    Raises:
        ExtractionError: If the tree has a malformed shape
    """
    if ordering is None:
        ordering = order_provenances(root)

    configs = [node_to_config(node, ordering) for node in ordering if node.is_configured]

    logger.debug(f"Extracted {len(configs)} component configurations from {len(ordering)} provenance objects")
    return configs
