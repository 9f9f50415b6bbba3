"""
Seeded train/test splitting of a data source.
"""

from typing import Iterator, List

import numpy as np

from ..provenance.nodes import (
    SPLIT_IS_TRAIN,
    SPLIT_SEED,
    SPLIT_SOURCE,
    SPLIT_TRAIN_PROPORTION,
    PrimitiveProvenance,
    SplitDataSourceProvenance,
)
from ..utils.logging_utils import get_logger
from .examples import Example, OutputType
from .sources import DataSource

logger = get_logger(__name__)


class SplitDataSource(DataSource):
    """One partition of a TrainTestSplitter."""

    component_id = "TrainTestSplitter"

    def __init__(self, splitter: "TrainTestSplitter", examples: List[Example], is_train: bool):
        self._splitter = splitter
        self._examples = examples
        self.is_train = is_train
        self.output_type: OutputType = splitter.source.output_type

    def __iter__(self) -> Iterator[Example]:
        return iter(self._examples)

    def __len__(self) -> int:
        return len(self._examples)

    def get_provenance(self) -> SplitDataSourceProvenance:
        return SplitDataSourceProvenance(
            class_name=self.component_id,
            instance={
                SPLIT_SEED: PrimitiveProvenance(self._splitter.seed),
                SPLIT_TRAIN_PROPORTION: PrimitiveProvenance(self._splitter.train_proportion),
                SPLIT_IS_TRAIN: PrimitiveProvenance(self.is_train),
                SPLIT_SOURCE: self._splitter.source.get_provenance(),
                "size": PrimitiveProvenance(len(self._examples)),
            },
        )


class TrainTestSplitter:
    """
    Splits a data source into train and test partitions.

    The examples are permuted with a generator seeded by ``seed``; the first
    ``floor(n * train_proportion)`` permuted examples form the training
    partition. The same source, proportion and seed always give the same
    partitions.

    Args:
        source: Data source to split
        train_proportion: Fraction of examples used for training, in (0, 1)
        seed: Seed of the permutation
    """

    def __init__(self, source: DataSource, train_proportion: float = 0.7, seed: int = 1):
        if not 0.0 < train_proportion < 1.0:
            raise ValueError(f"train_proportion must be in (0, 1), got {train_proportion}")

        self.source = source
        self.train_proportion = float(train_proportion)
        self.seed = int(seed)

        examples = list(source)
        permutation = np.random.default_rng(self.seed).permutation(len(examples))
        num_train = int(len(examples) * self.train_proportion)

        self.train = SplitDataSource(self, [examples[i] for i in permutation[:num_train]], is_train=True)
        self.test = SplitDataSource(self, [examples[i] for i in permutation[num_train:]], is_train=False)

        logger.debug(
            f"Split {len(examples)} examples into {len(self.train)} train / {len(self.test)} test "
            f"(proportion={self.train_proportion}, seed={self.seed})"
        )

    def partition(self, is_train: bool) -> SplitDataSource:
        return self.train if is_train else self.test
