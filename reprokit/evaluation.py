"""
Evaluation of models on datasets.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Union

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    f1_score,
    mean_absolute_error,
    mean_squared_error,
    r2_score,
)

from .data.examples import Example, OutputType
from .models import Model


@dataclass
class ClassificationEvaluation:
    """Accuracy and macro-averaged F1 of a classifier."""
    num_examples: int
    accuracy: float
    macro_f1: float

    def __str__(self) -> str:
        return (
            f"ClassificationEvaluation(examples={self.num_examples}, "
            f"accuracy={self.accuracy:.4f}, macro_f1={self.macro_f1:.4f})"
        )


@dataclass
class RegressionEvaluation:
    """Per-dimension error metrics of a regressor."""
    num_examples: int
    rmse: Dict[str, float] = field(default_factory=dict)
    mae: Dict[str, float] = field(default_factory=dict)
    r2: Dict[str, float] = field(default_factory=dict)

    @property
    def average_r2(self) -> float:
        return float(np.mean(list(self.r2.values()))) if self.r2 else float("nan")

    def __str__(self) -> str:
        lines = [f"RegressionEvaluation(examples={self.num_examples}, average_r2={self.average_r2:.4f})"]
        for dimension in sorted(self.rmse):
            lines.append(
                f"  {dimension}: rmse={self.rmse[dimension]:.4f} "
                f"mae={self.mae[dimension]:.4f} r2={self.r2[dimension]:.4f}"
            )
        return "\n".join(lines)


Evaluation = Union[ClassificationEvaluation, RegressionEvaluation]


def evaluate(model: Model, examples: Iterable[Example]) -> Evaluation:
    """
    Evaluate ``model`` on a dataset or data source.

    Raises:
        ValueError: If there are no examples, or an example has no feature
            known to the model
    """
    examples = list(examples)
    if not examples:
        raise ValueError("Cannot evaluate on an empty set of examples")

    predictions = model.predict_all(examples)

    if model.output_type is OutputType.LABEL:
        truth = [example.output for example in examples]
        predicted = [prediction.output for prediction in predictions]
        return ClassificationEvaluation(
            num_examples=len(examples),
            accuracy=float(accuracy_score(truth, predicted)),
            macro_f1=float(f1_score(truth, predicted, average="macro", zero_division=0)),
        )

    evaluation = RegressionEvaluation(num_examples=len(examples))
    for dimension in model.output_info.dimensions():
        truth = np.array([example.output.get(dimension, 0.0) for example in examples])
        predicted = np.array([prediction.output[dimension] for prediction in predictions])
        evaluation.rmse[dimension] = float(np.sqrt(mean_squared_error(truth, predicted)))
        evaluation.mae[dimension] = float(mean_absolute_error(truth, predicted))
        evaluation.r2[dimension] = float(r2_score(truth, predicted)) if len(truth) > 1 else float("nan")
    return evaluation
