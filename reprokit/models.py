"""
Trained models.
"""

import pickle
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from .data.examples import Example, FeatureMap, OutputInfo, OutputType
from .provenance.nodes import ModelProvenance
from .utils.logging_utils import get_logger

logger = get_logger(__name__)


@dataclass
class Prediction:
    """
    Output of a model for one example.

    Attributes:
        output: Predicted label, or dimension name -> value for regression
        scores: Per-label scores where the model produces them
        num_used_features: Number of the example's features known to the model
    """
    output: Union[str, Dict[str, float]]
    scores: Dict[str, float] = field(default_factory=dict)
    num_used_features: int = 0


class Model(ABC):
    """
    Base class of trained models.

    A model knows the feature map and output domain of the data it was
    trained on, and carries the provenance of its training run.
    """

    def __init__(self, feature_map: FeatureMap, output_info: OutputInfo):
        self.feature_map = feature_map
        self.output_info = output_info
        self.provenance: Optional[ModelProvenance] = None

    @property
    def output_type(self) -> OutputType:
        return self.output_info.output_type

    def _to_matrix(self, examples: Sequence[Example]):
        matrix = np.zeros((len(examples), len(self.feature_map)))
        used = []
        for row, example in enumerate(examples):
            count = 0
            for name, value in example.features.items():
                if name in self.feature_map:
                    matrix[row, self.feature_map.index_of(name)] = value
                    count += 1
            if count == 0:
                raise ValueError(f"Example {row} contains no features known to the model")
            used.append(count)
        return matrix, used

    @abstractmethod
    def _predict_matrix(self, matrix: np.ndarray) -> List[Prediction]:
        """Predict every row of a feature matrix aligned with ``feature_map``."""

    def predict(self, example: Example) -> Prediction:
        return self.predict_all([example])[0]

    def predict_all(self, examples: Sequence[Example]) -> List[Prediction]:
        """
        Predict a batch of examples.

        Raises:
            ValueError: If an example has no feature known to the model
        """
        examples = list(examples)
        if not examples:
            return []
        matrix, used = self._to_matrix(examples)
        predictions = self._predict_matrix(matrix)
        for prediction, count in zip(predictions, used):
            prediction.num_used_features = count
        return predictions

    def save(self, path: Union[str, Path]) -> Path:
        """Pickle the model, provenance included."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            pickle.dump(self, f)
        logger.info(f"Saved {type(self).__name__} to {path}")
        return path


def load_model(path: Union[str, Path]) -> Model:
    """
    Load a model written by ``Model.save``.

    Raises:
        ValueError: If the file does not hold a Model
    """
    with open(path, "rb") as f:
        model = pickle.load(f)
    if not isinstance(model, Model):
        raise ValueError(f"{path} does not contain a model, found {type(model).__name__}")
    return model
