"""
Provenance node types.

A provenance tree is an immutable record of how an artifact was produced.
Nodes form a closed set of variants tagged by ``ProvenanceKind``; code that
walks a tree dispatches on ``node.kind`` rather than on Python types.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, Dict, List, Mapping, Tuple, Union

import numpy as np

from ..errors import ExtractionError


class ProvenanceKind(Enum):
    """Kinds of provenance node."""
    PRIMITIVE = "primitive"
    LIST = "list"
    MAP = "map"
    OBJECT = "object"
    DATASOURCE = "datasource"
    SPLIT_DATASOURCE = "split-datasource"
    DATASET = "dataset"
    TRAINER = "trainer"
    MODEL = "model"


# Kinds that carry a class name and configured/instance values
OBJECT_KINDS = frozenset({
    ProvenanceKind.OBJECT,
    ProvenanceKind.DATASOURCE,
    ProvenanceKind.SPLIT_DATASOURCE,
    ProvenanceKind.DATASET,
    ProvenanceKind.TRAINER,
    ProvenanceKind.MODEL,
})

# Kinds whose children are addressed by key
KEYED_KINDS = OBJECT_KINDS | {ProvenanceKind.MAP}

# Kinds that may stand as the source of a dataset
SOURCE_KINDS = frozenset({
    ProvenanceKind.DATASOURCE,
    ProvenanceKind.SPLIT_DATASOURCE,
    ProvenanceKind.DATASET,
})

# Well-known keys
CLASS_NAME = "class-name"
SOURCE_PROVENANCE = "source-provenance"
INVOCATION_COUNT = "invocation-count"
SPLIT_SEED = "seed"
SPLIT_TRAIN_PROPORTION = "train-proportion"
SPLIT_IS_TRAIN = "is-train"
SPLIT_SOURCE = "source"
MODEL_DATASET = "dataset"
MODEL_TRAINER = "trainer"

PrimitiveValue = Union[str, int, float, bool]


def _frozen_mapping(entries: Mapping[str, "ProvenanceNode"], owner: str) -> Mapping[str, "ProvenanceNode"]:
    result = {}
    for key, value in dict(entries).items():
        if not isinstance(key, str) or not key:
            raise ExtractionError(f"{owner}: provenance keys must be non-empty strings, got {key!r}")
        if not isinstance(value, ProvenanceNode):
            raise ExtractionError(f"{owner}: value for '{key}' is not a provenance node: {value!r}")
        result[key] = value
    return MappingProxyType(result)


@dataclass(frozen=True)
class ProvenanceNode:
    """Base class of every provenance node."""

    kind: ClassVar[ProvenanceKind]

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError

    def __reduce__(self):
        # Read-only mappings cannot be pickled, so go through the dict form
        return provenance_from_dict, (self.to_dict(),)


@dataclass(frozen=True)
class PrimitiveProvenance(ProvenanceNode):
    """A single scalar value."""

    kind: ClassVar[ProvenanceKind] = ProvenanceKind.PRIMITIVE

    value: PrimitiveValue

    def __post_init__(self):
        if isinstance(self.value, np.generic):
            object.__setattr__(self, "value", self.value.item())
        if not isinstance(self.value, (str, int, float, bool)):
            raise ExtractionError(
                f"Primitive provenance must hold str, int, float or bool, got {type(self.value).__name__}"
            )

    def stringify(self) -> str:
        """Textual form used when comparing and reporting values."""
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        return str(self.value)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "value": self.value}


@dataclass(frozen=True)
class ListProvenance(ProvenanceNode):
    """An ordered sequence of provenance nodes."""

    kind: ClassVar[ProvenanceKind] = ProvenanceKind.LIST

    items: Tuple[ProvenanceNode, ...] = ()

    def __post_init__(self):
        items = tuple(self.items)
        for index, item in enumerate(items):
            if not isinstance(item, ProvenanceNode):
                raise ExtractionError(f"List provenance element {index} is not a provenance node: {item!r}")
        object.__setattr__(self, "items", items)

    def __len__(self) -> int:
        return len(self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "items": [item.to_dict() for item in self.items]}


@dataclass(frozen=True)
class MapProvenance(ProvenanceNode):
    """A keyed collection of provenance nodes without a class name."""

    kind: ClassVar[ProvenanceKind] = ProvenanceKind.MAP

    # Compared but not hashed
    entries: Mapping[str, ProvenanceNode] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "entries", _frozen_mapping(self.entries, "map provenance"))

    def children(self) -> List[Tuple[str, ProvenanceNode]]:
        return list(self.entries.items())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "entries": {key: value.to_dict() for key, value in self.entries.items()},
        }


@dataclass(frozen=True)
class ObjectProvenance(ProvenanceNode):
    """
    Provenance of an object.

    Attributes:
        class_name: Stable identifier of the object's type
        configured: Configurable parameters, keyed by constructor argument name
        instance: Values recorded about this particular instance
        is_configured: Whether the object was built purely from ``configured``
    """

    kind: ClassVar[ProvenanceKind] = ProvenanceKind.OBJECT

    class_name: str
    # Mappings are compared but not hashed
    configured: Mapping[str, ProvenanceNode] = field(default_factory=dict, hash=False)
    instance: Mapping[str, ProvenanceNode] = field(default_factory=dict, hash=False)
    is_configured: bool = True

    def __post_init__(self):
        if not isinstance(self.class_name, str) or not self.class_name:
            raise ExtractionError(f"{self.kind.value} provenance requires a non-empty class name")
        owner = f"{self.class_name} provenance"
        configured = _frozen_mapping(self.configured, owner)
        instance = _frozen_mapping(self.instance, owner)
        clashes = (set(configured) & set(instance)) | ({CLASS_NAME} & (set(configured) | set(instance)))
        if clashes:
            raise ExtractionError(f"{owner}: duplicate keys {sorted(clashes)}")
        object.__setattr__(self, "configured", configured)
        object.__setattr__(self, "instance", instance)

    def children(self) -> List[Tuple[str, ProvenanceNode]]:
        """Immediate children, class name first, then configured then instance values."""
        pairs: List[Tuple[str, ProvenanceNode]] = [(CLASS_NAME, PrimitiveProvenance(self.class_name))]
        pairs.extend(self.configured.items())
        pairs.extend(self.instance.items())
        return pairs

    def get(self, key: str) -> ProvenanceNode:
        if key in self.configured:
            return self.configured[key]
        return self.instance.get(key)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            CLASS_NAME: self.class_name,
            "configured": {key: value.to_dict() for key, value in self.configured.items()},
            "instance": {key: value.to_dict() for key, value in self.instance.items()},
            "is-configured": self.is_configured,
        }


@dataclass(frozen=True)
class DataSourceProvenance(ObjectProvenance):
    """Provenance of a data source."""

    kind: ClassVar[ProvenanceKind] = ProvenanceKind.DATASOURCE


@dataclass(frozen=True)
class SplitDataSourceProvenance(DataSourceProvenance):
    """
    Provenance of one partition produced by a train/test splitter.

    Records ``seed``, ``train-proportion``, ``is-train`` and the inner
    ``source`` as instance values.
    """

    kind: ClassVar[ProvenanceKind] = ProvenanceKind.SPLIT_DATASOURCE

    is_configured: bool = False

    def __post_init__(self):
        super().__post_init__()
        source = self.instance.get(SPLIT_SOURCE)
        if source is None or source.kind not in SOURCE_KINDS:
            raise ExtractionError(f"{self.class_name} provenance requires a '{SPLIT_SOURCE}' data source")


@dataclass(frozen=True)
class DatasetProvenance(ObjectProvenance):
    """Provenance of a dataset, wrapping the provenance of its source."""

    kind: ClassVar[ProvenanceKind] = ProvenanceKind.DATASET

    is_configured: bool = False

    def __post_init__(self):
        super().__post_init__()
        source = self.instance.get(SOURCE_PROVENANCE)
        if source is None or source.kind not in SOURCE_KINDS:
            raise ExtractionError(f"{self.class_name} provenance requires a '{SOURCE_PROVENANCE}' data source")

    @property
    def source(self) -> ObjectProvenance:
        return self.instance[SOURCE_PROVENANCE]


@dataclass(frozen=True)
class TrainerProvenance(ObjectProvenance):
    """Provenance of a trainer, including its ``invocation-count``."""

    kind: ClassVar[ProvenanceKind] = ProvenanceKind.TRAINER


@dataclass(frozen=True)
class ModelProvenance(ObjectProvenance):
    """Root provenance of a trained model."""

    kind: ClassVar[ProvenanceKind] = ProvenanceKind.MODEL

    is_configured: bool = False

    def __post_init__(self):
        super().__post_init__()
        dataset = self.instance.get(MODEL_DATASET)
        if dataset is None or dataset.kind is not ProvenanceKind.DATASET:
            raise ExtractionError(f"{self.class_name} provenance requires a '{MODEL_DATASET}' dataset provenance")
        if self.instance.get(MODEL_TRAINER) is None:
            raise ExtractionError(f"{self.class_name} provenance requires a '{MODEL_TRAINER}' provenance")

    @property
    def dataset(self) -> DatasetProvenance:
        return self.instance[MODEL_DATASET]

    @property
    def trainer(self) -> ObjectProvenance:
        return self.instance[MODEL_TRAINER]


_OBJECT_TYPES = {
    ProvenanceKind.OBJECT: ObjectProvenance,
    ProvenanceKind.DATASOURCE: DataSourceProvenance,
    ProvenanceKind.SPLIT_DATASOURCE: SplitDataSourceProvenance,
    ProvenanceKind.DATASET: DatasetProvenance,
    ProvenanceKind.TRAINER: TrainerProvenance,
    ProvenanceKind.MODEL: ModelProvenance,
}


def as_provenance(value: Any) -> ProvenanceNode:
    """
    Convert a plain Python value into a provenance node.

    Nodes pass through unchanged, sequences become list provenance and dicts
    become map provenance. Objects exposing ``get_provenance()`` contribute
    their own provenance.
    """
    if isinstance(value, ProvenanceNode):
        return value
    if hasattr(value, "get_provenance"):
        return value.get_provenance()
    if isinstance(value, (list, tuple)):
        return ListProvenance(tuple(as_provenance(item) for item in value))
    if isinstance(value, dict):
        return MapProvenance({str(key): as_provenance(item) for key, item in value.items()})
    if isinstance(value, Enum):
        return PrimitiveProvenance(value.value)
    return PrimitiveProvenance(value)


def _container(data: Dict[str, Any], key: str, expected: type, path: str) -> Any:
    """Entry ``key`` of a serialized node, checked to be of type ``expected``."""
    value = data.get(key, expected())
    if not isinstance(value, expected):
        raise ExtractionError(f"{path}.{key} must be a {expected.__name__}, got {type(value).__name__}")
    return value


def provenance_from_dict(data: Dict[str, Any], path: str = "$") -> ProvenanceNode:
    """
    Rebuild a provenance tree from the output of ``to_dict``.

    Args:
        data: Dictionary produced by ``ProvenanceNode.to_dict``
        path: Key path of ``data`` within the whole tree, used in errors

    Returns:
        The reconstructed provenance node

    Raises:
        ExtractionError: If the dictionary does not describe a valid node
    """
    if not isinstance(data, dict) or "kind" not in data:
        raise ExtractionError(f"{path}: not a serialized provenance node: {data!r}")

    try:
        kind = ProvenanceKind(data["kind"])
    except ValueError:
        raise ExtractionError(f"{path}: unknown provenance kind '{data['kind']}'") from None

    if kind is ProvenanceKind.PRIMITIVE:
        return PrimitiveProvenance(data.get("value"))
    if kind is ProvenanceKind.LIST:
        items = _container(data, "items", list, path)
        return ListProvenance(tuple(
            provenance_from_dict(item, f"{path}[{index}]") for index, item in enumerate(items)
        ))
    if kind is ProvenanceKind.MAP:
        entries = _container(data, "entries", dict, path)
        return MapProvenance({key: provenance_from_dict(item, f"{path}.{key}") for key, item in entries.items()})

    node_type = _OBJECT_TYPES[kind]
    kwargs = {
        "class_name": data.get(CLASS_NAME),
        "configured": {
            key: provenance_from_dict(item, f"{path}.{key}")
            for key, item in _container(data, "configured", dict, path).items()
        },
        "instance": {
            key: provenance_from_dict(item, f"{path}.{key}")
            for key, item in _container(data, "instance", dict, path).items()
        },
    }
    if "is-configured" in data:
        kwargs["is_configured"] = bool(data["is-configured"])
    return node_type(**kwargs)
