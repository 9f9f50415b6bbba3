"""
Datasets: examples plus their feature map and output domain.
"""

from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..provenance.nodes import SOURCE_PROVENANCE, DatasetProvenance, PrimitiveProvenance
from ..registry import ComponentKind, register_component
from .examples import Example, FeatureMap, OutputInfo, OutputType, build_output_info


class Dataset:
    """
    Base dataset.

    Subclasses fill ``examples``, ``feature_map`` and ``output_info``. A
    dataset is iterable like a data source, so it can itself be wrapped by
    another dataset.
    """

    component_id: str
    output_type: OutputType
    examples: List[Example]
    feature_map: FeatureMap
    output_info: OutputInfo

    def __iter__(self) -> Iterator[Example]:
        return iter(self.examples)

    def __len__(self) -> int:
        return len(self.examples)

    def __getitem__(self, index: int) -> Example:
        return self.examples[index]

    def get_provenance(self) -> DatasetProvenance:
        raise NotImplementedError

    def feature_matrix(self, examples: Optional[Sequence[Example]] = None) -> np.ndarray:
        """Dense matrix of ``examples`` (default: this dataset) over this feature map."""
        examples = self.examples if examples is None else examples
        matrix = np.zeros((len(examples), len(self.feature_map)))
        for row, example in enumerate(examples):
            for name, value in example.features.items():
                if name in self.feature_map:
                    matrix[row, self.feature_map.index_of(name)] = value
        return matrix

    def to_arrays(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Convert the dataset to arrays.

        Returns:
            Tuple of (features, outputs, weights). Outputs hold label strings
            for classification and one column per dimension for regression.
        """
        features = self.feature_matrix()
        weights = np.array([example.weight for example in self.examples], dtype=float)
        if self.output_type is OutputType.LABEL:
            outputs = np.array([example.output for example in self.examples], dtype=object)
        else:
            dimensions = self.output_info.dimensions()
            outputs = np.array(
                [[example.output.get(d, 0.0) for d in dimensions] for example in self.examples],
                dtype=float,
            ).reshape(len(self.examples), len(dimensions))
        return features, outputs, weights


@register_component("MutableDataset", ComponentKind.DATASET)
class MutableDataset(Dataset):
    """
    Dataset built from every example of a data source (or another dataset).

    Args:
        source: Data source or dataset to read examples from
    """

    def __init__(self, source):
        self.source = source
        self.output_type = source.output_type
        self.examples = list(source)
        if not self.examples:
            raise ValueError(f"Cannot build a dataset from an empty source: {source!r}")
        self.feature_map = FeatureMap.from_examples(self.examples)
        self.output_info = build_output_info(self.output_type, self.examples)

    def get_provenance(self) -> DatasetProvenance:
        return DatasetProvenance(
            class_name=self.component_id,
            instance={
                SOURCE_PROVENANCE: self.source.get_provenance(),
                "num-examples": PrimitiveProvenance(len(self.examples)),
                "num-features": PrimitiveProvenance(len(self.feature_map)),
                "num-outputs": PrimitiveProvenance(self.output_info.size()),
            },
        )

    def __repr__(self) -> str:
        return (
            f"MutableDataset(examples={len(self.examples)}, features={len(self.feature_map)}, "
            f"outputs={self.output_info.size()})"
        )


class DatasetView(Dataset):
    """
    Subset of a parent dataset selected by index, possibly with repeats.

    Shares the parent's feature map and output domain so that models trained
    on a view are compatible with the parent.
    """

    component_id = "DatasetView"

    def __init__(self, parent: Dataset, indices: Sequence[int], tag: str = "view"):
        self.parent = parent
        self.indices = [int(i) for i in indices]
        self.tag = tag
        self.output_type = parent.output_type
        self.examples = [parent.examples[i] for i in self.indices]
        self.feature_map = parent.feature_map
        self.output_info = parent.output_info

    def get_provenance(self) -> DatasetProvenance:
        return DatasetProvenance(
            class_name=self.component_id,
            instance={
                SOURCE_PROVENANCE: self.parent.get_provenance(),
                "tag": PrimitiveProvenance(self.tag),
                "num-examples": PrimitiveProvenance(len(self.examples)),
            },
        )
