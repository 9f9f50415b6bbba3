"""
Examples, feature maps and output domains.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Union


class OutputType(Enum):
    """What an example's output represents."""
    LABEL = "label"          # Single class label
    REGRESSOR = "regressor"  # One or more named real-valued dimensions


Output = Union[str, Dict[str, float]]


@dataclass
class Example:
    """
    A single training or test example.

    Attributes:
        output: Class label, or dimension name -> value for regression
        features: Feature name -> value; absent features are treated as zero
        weight: Example weight
    """
    output: Output
    features: Dict[str, float] = field(default_factory=dict)
    weight: float = 1.0

    def __post_init__(self):
        if self.weight < 0:
            raise ValueError(f"Example weight must be non-negative, got {self.weight}")


@dataclass
class FeatureInfo:
    """Summary statistics of one feature across a dataset."""
    name: str
    count: int = 0
    min: float = float("inf")
    max: float = float("-inf")

    def observe(self, value: float) -> None:
        self.count += 1
        self.min = min(self.min, value)
        self.max = max(self.max, value)

    def __str__(self) -> str:
        return f"RealInfo(name={self.name},count={self.count},max={self.max},min={self.min})"


class FeatureMap:
    """Features of a dataset, indexed in name order."""

    def __init__(self, infos: Iterable[FeatureInfo]):
        self._infos: List[FeatureInfo] = sorted(infos, key=lambda info: info.name)
        self._index: Dict[str, int] = {info.name: i for i, info in enumerate(self._infos)}

    @classmethod
    def from_examples(cls, examples: Iterable[Example]) -> "FeatureMap":
        infos: Dict[str, FeatureInfo] = {}
        for example in examples:
            for name, value in example.features.items():
                infos.setdefault(name, FeatureInfo(name)).observe(value)
        return cls(infos.values())

    def __len__(self) -> int:
        return len(self._infos)

    def __getitem__(self, index: int) -> FeatureInfo:
        return self._infos[index]

    def __iter__(self):
        return iter(self._infos)

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def index_of(self, name: str) -> int:
        return self._index[name]

    def names(self) -> List[str]:
        return [info.name for info in self._infos]

    def __str__(self) -> str:
        return "FeatureMap(" + ",".join(str(info) for info in self._infos) + ")"


class OutputInfo:
    """Domain of the outputs seen in a dataset."""

    output_type: OutputType

    def size(self) -> int:
        raise NotImplementedError


class LabelInfo(OutputInfo):
    """Label counts of a classification dataset."""

    output_type = OutputType.LABEL

    def __init__(self, counts: Dict[str, int]):
        self.counts = dict(sorted(counts.items()))

    @classmethod
    def from_examples(cls, examples: Iterable[Example]) -> "LabelInfo":
        counts: Dict[str, int] = {}
        for example in examples:
            counts[example.output] = counts.get(example.output, 0) + 1
        return cls(counts)

    def labels(self) -> List[str]:
        return list(self.counts)

    def size(self) -> int:
        return len(self.counts)

    def __str__(self) -> str:
        return f"LabelInfo(counts={self.counts})"


class RegressionInfo(OutputInfo):
    """Dimension names and value ranges of a regression dataset."""

    output_type = OutputType.REGRESSOR

    def __init__(self, infos: Iterable[FeatureInfo]):
        self.infos = sorted(infos, key=lambda info: info.name)

    @classmethod
    def from_examples(cls, examples: Iterable[Example]) -> "RegressionInfo":
        infos: Dict[str, FeatureInfo] = {}
        for example in examples:
            for name, value in example.output.items():
                infos.setdefault(name, FeatureInfo(name)).observe(value)
        return cls(infos.values())

    def dimensions(self) -> List[str]:
        return [info.name for info in self.infos]

    def size(self) -> int:
        return len(self.infos)

    def __str__(self) -> str:
        return "RegressionInfo(" + ",".join(str(info) for info in self.infos) + ")"


def build_output_info(output_type: OutputType, examples: Iterable[Example]) -> OutputInfo:
    if output_type is OutputType.LABEL:
        return LabelInfo.from_examples(examples)
    return RegressionInfo.from_examples(examples)
