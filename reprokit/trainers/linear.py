"""
Linear models trained by minibatch stochastic gradient descent.

Classification uses a softmax (multinomial logistic) loss, regression a
squared loss with one output column per dimension. Examples are shuffled
with the invocation's random stream at the start of every epoch.
"""

from typing import Any, Dict, List

import numpy as np

from ..data.dataset import Dataset
from ..data.examples import FeatureMap, OutputInfo, OutputType
from ..models import Model, Prediction
from ..registry import ComponentKind, register_component
from ..utils.logging_utils import get_logger
from .base import DEFAULT_SEED, Trainer

logger = get_logger(__name__)


def _softmax(scores: np.ndarray) -> np.ndarray:
    shifted = scores - scores.max(axis=1, keepdims=True)
    exp = np.exp(shifted)
    return exp / exp.sum(axis=1, keepdims=True)


class LinearSGDModel(Model):
    """Linear model: ``features @ weights + bias``."""

    def __init__(self, feature_map: FeatureMap, output_info: OutputInfo, weights: np.ndarray, bias: np.ndarray):
        super().__init__(feature_map, output_info)
        self.weights = weights
        self.bias = bias

    def _predict_matrix(self, matrix: np.ndarray) -> List[Prediction]:
        scores = matrix @ self.weights + self.bias
        predictions = []
        if self.output_type is OutputType.LABEL:
            labels = self.output_info.labels()
            probabilities = _softmax(scores)
            for row in probabilities:
                best = int(np.argmax(row))
                predictions.append(Prediction(
                    output=labels[best],
                    scores={label: float(p) for label, p in zip(labels, row)},
                ))
        else:
            dimensions = self.output_info.dimensions()
            for row in scores:
                predictions.append(Prediction(output={d: float(v) for d, v in zip(dimensions, row)}))
        return predictions


@register_component("LinearSGDTrainer", ComponentKind.TRAINER)
class LinearSGDTrainer(Trainer):
    """
    Trains a LinearSGDModel.

    Args:
        epochs: Passes over the training data
        learning_rate: Step size
        l2: L2 regularisation strength
        minibatch_size: Examples per gradient step
        seed: Seed of the shuffling stream
        invocation_count: Training invocations already consumed
    """

    def __init__(
        self,
        epochs: int = 5,
        learning_rate: float = 0.1,
        l2: float = 1e-4,
        minibatch_size: int = 1,
        seed: int = DEFAULT_SEED,
        invocation_count: int = 0,
    ):
        super().__init__(seed=seed, invocation_count=invocation_count)
        if epochs < 1:
            raise ValueError(f"epochs must be >= 1, got {epochs}")
        if learning_rate <= 0:
            raise ValueError(f"learning_rate must be positive, got {learning_rate}")
        if l2 < 0:
            raise ValueError(f"l2 must be non-negative, got {l2}")
        if minibatch_size < 1:
            raise ValueError(f"minibatch_size must be >= 1, got {minibatch_size}")
        self.epochs = int(epochs)
        self.learning_rate = float(learning_rate)
        self.l2 = float(l2)
        self.minibatch_size = int(minibatch_size)

    def configuration(self) -> Dict[str, Any]:
        return {
            "epochs": self.epochs,
            "learning_rate": self.learning_rate,
            "l2": self.l2,
            "minibatch_size": self.minibatch_size,
            "seed": self.seed,
        }

    def _fit(self, dataset: Dataset, rng: np.random.Generator) -> LinearSGDModel:
        features, outputs, sample_weights = dataset.to_arrays()
        num_examples, num_features = features.shape

        if dataset.output_type is OutputType.LABEL:
            labels = dataset.output_info.labels()
            index = {label: i for i, label in enumerate(labels)}
            targets = np.zeros((num_examples, len(labels)))
            targets[np.arange(num_examples), [index[label] for label in outputs]] = 1.0
        else:
            targets = outputs

        weights = np.zeros((num_features, targets.shape[1]))
        bias = np.zeros(targets.shape[1])

        for epoch in range(self.epochs):
            order = rng.permutation(num_examples)
            loss = 0.0
            for start in range(0, num_examples, self.minibatch_size):
                batch = order[start:start + self.minibatch_size]
                x, t, w = features[batch], targets[batch], sample_weights[batch]

                scores = x @ weights + bias
                if dataset.output_type is OutputType.LABEL:
                    predicted = _softmax(scores)
                    loss -= float(np.sum(w * np.log(np.sum(predicted * t, axis=1) + 1e-12)))
                else:
                    predicted = scores
                    loss += float(0.5 * np.sum(w[:, None] * (predicted - t) ** 2))

                error = (predicted - t) * w[:, None]
                grad_weights = x.T @ error / len(batch) + self.l2 * weights
                grad_bias = error.mean(axis=0)
                weights -= self.learning_rate * grad_weights
                bias -= self.learning_rate * grad_bias

            logger.debug(f"Epoch {epoch + 1}/{self.epochs}: loss={loss / num_examples:.6f}")

        return LinearSGDModel(dataset.feature_map, dataset.output_info, weights, bias)
