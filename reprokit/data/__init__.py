"""
Examples, data sources, splitting and datasets.
"""

from .examples import (
    Example,
    FeatureInfo,
    FeatureMap,
    LabelInfo,
    OutputInfo,
    OutputType,
    RegressionInfo,
)
from .sources import CSVDataSource, DataSource, InMemoryDataSource
from .splitter import SplitDataSource, TrainTestSplitter
from .dataset import Dataset, DatasetView, MutableDataset

__all__ = [
    "Example",
    "FeatureInfo",
    "FeatureMap",
    "LabelInfo",
    "OutputInfo",
    "OutputType",
    "RegressionInfo",
    "CSVDataSource",
    "DataSource",
    "InMemoryDataSource",
    "SplitDataSource",
    "TrainTestSplitter",
    "Dataset",
    "DatasetView",
    "MutableDataset",
]
