"""
Data sources.

A data source yields Examples and records how it obtained them. Sources built
purely from constructor arguments are configurable and can be rebuilt during
reproduction; in-memory sources cannot.
"""

import hashlib
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

import pandas as pd

from ..provenance.nodes import DataSourceProvenance, PrimitiveProvenance, as_provenance
from ..registry import ComponentKind, register_component
from ..utils.logging_utils import get_logger
from .examples import Example, OutputType

logger = get_logger(__name__)


class DataSource(ABC):
    """Iterable collection of examples with recorded provenance."""

    component_id: str
    output_type: OutputType

    @abstractmethod
    def __iter__(self) -> Iterator[Example]:
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass

    @abstractmethod
    def get_provenance(self) -> DataSourceProvenance:
        pass


def _file_hash(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1 << 16), b""):
            digest.update(chunk)
    return digest.hexdigest()


@register_component("CSVDataSource", ComponentKind.DATA_SOURCE)
class CSVDataSource(DataSource):
    """
    Examples read from a CSV file with a header row.

    Every non-response column (or only ``feature_columns`` if given) becomes
    a real-valued feature. Classification reads a single response column as
    the label; regression reads one dimension per response column.

    Args:
        path: CSV file to read
        response_columns: Column(s) holding the output
        output_type: "label" or "regressor"
        feature_columns: Optional subset of columns to use as features
    """

    def __init__(
        self,
        path: Union[str, Path],
        response_columns: Union[str, Sequence[str]],
        output_type: Union[str, OutputType] = OutputType.LABEL,
        feature_columns: Optional[Sequence[str]] = None,
    ):
        self.path = Path(path)
        if isinstance(response_columns, str):
            response_columns = [response_columns]
        self.response_columns = list(response_columns)
        self.output_type = OutputType(output_type)
        self.feature_columns = list(feature_columns) if feature_columns is not None else None

        if not self.response_columns:
            raise ValueError("At least one response column is required")
        if self.output_type is OutputType.LABEL and len(self.response_columns) != 1:
            raise ValueError(
                f"Classification needs exactly one response column, got {self.response_columns}"
            )
        if not self.path.exists():
            raise ValueError(f"CSV file not found: {self.path}")

        frame = pd.read_csv(self.path)
        missing = [c for c in self.response_columns + (self.feature_columns or []) if c not in frame.columns]
        if missing:
            raise ValueError(f"Columns {missing} not found in {self.path}")

        if self.feature_columns is None:
            features = [c for c in frame.columns if c not in self.response_columns]
        else:
            features = self.feature_columns

        self._examples = [self._row_to_example(row, features) for row in frame.to_dict(orient="records")]
        self._hash = _file_hash(self.path)

        logger.info(f"Loaded {len(self._examples)} examples from {self.path}")

    def _row_to_example(self, row, features: List[str]) -> Example:
        if self.output_type is OutputType.LABEL:
            output = str(row[self.response_columns[0]])
        else:
            output = {column: float(row[column]) for column in self.response_columns}
        values = {name: float(row[name]) for name in features if not pd.isna(row[name])}
        return Example(output=output, features=values)

    def __iter__(self) -> Iterator[Example]:
        return iter(self._examples)

    def __len__(self) -> int:
        return len(self._examples)

    def get_provenance(self) -> DataSourceProvenance:
        configured = {
            "path": PrimitiveProvenance(str(self.path)),
            "response_columns": as_provenance(self.response_columns),
            "output_type": PrimitiveProvenance(self.output_type.value),
        }
        if self.feature_columns is not None:
            configured["feature_columns"] = as_provenance(self.feature_columns)
        return DataSourceProvenance(
            class_name=self.component_id,
            configured=configured,
            instance={
                "resource-hash": PrimitiveProvenance(self._hash),
                "num-rows": PrimitiveProvenance(len(self._examples)),
            },
        )

    def __repr__(self) -> str:
        return f"CSVDataSource(path={self.path}, response_columns={self.response_columns})"


@register_component("InMemoryDataSource", ComponentKind.DATA_SOURCE, configurable=False)
class InMemoryDataSource(DataSource):
    """
    Examples supplied directly by the caller.

    The examples themselves are not recorded, so models trained on this
    source cannot be reproduced.
    """

    def __init__(
        self,
        examples: Sequence[Example],
        output_type: Union[str, OutputType] = OutputType.LABEL,
        description: str = "in-memory",
    ):
        self._examples = list(examples)
        self.output_type = OutputType(output_type)
        self.description = description

    def __iter__(self) -> Iterator[Example]:
        return iter(self._examples)

    def __len__(self) -> int:
        return len(self._examples)

    def get_provenance(self) -> DataSourceProvenance:
        return DataSourceProvenance(
            class_name=self.component_id,
            instance={
                "description": PrimitiveProvenance(self.description),
                "num-rows": PrimitiveProvenance(len(self._examples)),
            },
            is_configured=False,
        )
