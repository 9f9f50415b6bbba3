"""
Shared pytest fixtures and configuration for all tests.
"""

import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from reprokit.data import CSVDataSource, Example, InMemoryDataSource, MutableDataset
from reprokit.provenance import (
    DataSourceProvenance,
    DatasetProvenance,
    ModelProvenance,
    PrimitiveProvenance,
    TrainerProvenance,
)


def write_classification_csv(path: Path, num_rows: int = 40, seed: int = 0) -> Path:
    """Two well separated classes over features x1, x2 and x3."""
    rng = np.random.default_rng(seed)
    labels = np.where(np.arange(num_rows) % 2 == 0, "pos", "neg")
    offset = np.where(labels == "pos", 2.0, -2.0)
    frame = pd.DataFrame({
        "x1": offset + rng.normal(0, 0.5, num_rows),
        "x2": -offset + rng.normal(0, 0.5, num_rows),
        "x3": rng.normal(0, 1.0, num_rows),
        "label": labels,
    })
    frame.to_csv(path, index=False)
    return path


def write_regression_csv(path: Path, num_rows: int = 40, seed: int = 0) -> Path:
    """Two linear targets y1, y2 over features a and b."""
    rng = np.random.default_rng(seed)
    a = rng.uniform(-1, 1, num_rows)
    b = rng.uniform(-1, 1, num_rows)
    frame = pd.DataFrame({
        "a": a,
        "b": b,
        "y1": 3 * a - b + rng.normal(0, 0.05, num_rows),
        "y2": a + 2 * b + rng.normal(0, 0.05, num_rows),
    })
    frame.to_csv(path, index=False)
    return path


@pytest.fixture
def classification_csv(tmp_path) -> Path:
    return write_classification_csv(tmp_path / "train.csv")


@pytest.fixture
def regression_csv(tmp_path) -> Path:
    return write_regression_csv(tmp_path / "regression.csv")


@pytest.fixture
def csv_source(classification_csv) -> CSVDataSource:
    return CSVDataSource(classification_csv, "label")


@pytest.fixture
def classification_dataset(csv_source) -> MutableDataset:
    return MutableDataset(csv_source)


@pytest.fixture
def in_memory_dataset() -> MutableDataset:
    examples = [
        Example("a", {"f1": 1.0, "f2": 0.0}),
        Example("b", {"f1": 0.0, "f2": 1.0}),
        Example("a", {"f1": 0.9, "f2": 0.1}),
        Example("b", {"f1": 0.1, "f2": 0.8}),
    ]
    return MutableDataset(InMemoryDataSource(examples, description="unit-test"))


@pytest.fixture
def scenario_provenance() -> ModelProvenance:
    """
    Model trained by a LinearTrainer (invocation-count 3, seed 42) on a
    CSVSource reading train.csv.
    """
    source = DataSourceProvenance(
        class_name="CSVSource",
        configured={"path": PrimitiveProvenance("train.csv")},
    )
    dataset = DatasetProvenance(class_name="MutableDataset", instance={"source-provenance": source})
    trainer = TrainerProvenance(
        class_name="LinearTrainer",
        configured={"seed": PrimitiveProvenance(42)},
        instance={"invocation-count": PrimitiveProvenance(3)},
    )
    return ModelProvenance(
        class_name="LinearModel",
        instance={"dataset": dataset, "trainer": trainer},
    )


# Markers for different test types
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "reproducibility: marks reproducibility system tests"
    )
