"""
Provenance trees: node types, ordering, configuration extraction and diffing.
"""

from .nodes import (
    ProvenanceKind,
    ProvenanceNode,
    PrimitiveProvenance,
    ListProvenance,
    MapProvenance,
    ObjectProvenance,
    DataSourceProvenance,
    SplitDataSourceProvenance,
    DatasetProvenance,
    TrainerProvenance,
    ModelProvenance,
    as_provenance,
    provenance_from_dict,
)
from .ordering import ProvenanceOrdering, compute_name, order_provenances
from .extraction import ComponentConfig, ComponentRef, extract_configuration
from .diff import diff_provenance, diff_provenance_nodes

__all__ = [
    "ProvenanceKind",
    "ProvenanceNode",
    "PrimitiveProvenance",
    "ListProvenance",
    "MapProvenance",
    "ObjectProvenance",
    "DataSourceProvenance",
    "SplitDataSourceProvenance",
    "DatasetProvenance",
    "TrainerProvenance",
    "ModelProvenance",
    "as_provenance",
    "provenance_from_dict",
    "ProvenanceOrdering",
    "compute_name",
    "order_provenances",
    "ComponentConfig",
    "ComponentRef",
    "extract_configuration",
    "diff_provenance",
    "diff_provenance_nodes",
]
