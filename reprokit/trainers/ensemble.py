"""
Bagging ensembles.
"""

from collections import Counter
from typing import Any, Dict, List

import numpy as np

from ..data.dataset import Dataset, DatasetView
from ..data.examples import FeatureMap, OutputInfo, OutputType
from ..models import Model, Prediction
from ..registry import ComponentKind, register_component
from ..utils.logging_utils import get_logger
from .base import DEFAULT_SEED, Trainer

logger = get_logger(__name__)


class EnsembleModel(Model):
    """Combines member predictions by majority vote or by averaging."""

    def __init__(self, feature_map: FeatureMap, output_info: OutputInfo, members: List[Model]):
        super().__init__(feature_map, output_info)
        self.members = members

    def _predict_matrix(self, matrix: np.ndarray) -> List[Prediction]:
        member_predictions = [member._predict_matrix(matrix) for member in self.members]
        predictions = []
        for row in range(matrix.shape[0]):
            outputs = [predictions_of[row].output for predictions_of in member_predictions]
            if self.output_type is OutputType.LABEL:
                votes = Counter(outputs)
                # Ties go to the first label in sorted order
                label = max(sorted(votes), key=lambda candidate: votes[candidate])
                scores = {candidate: votes[candidate] / len(outputs) for candidate in sorted(votes)}
                predictions.append(Prediction(output=label, scores=scores))
            else:
                dimensions = self.output_info.dimensions()
                averaged = {d: float(np.mean([output[d] for output in outputs])) for d in dimensions}
                predictions.append(Prediction(output=averaged))
        return predictions


@register_component("BaggingTrainer", ComponentKind.TRAINER)
class BaggingTrainer(Trainer):
    """
    Trains ``num_members`` copies of an inner trainer's model on bootstrap
    samples drawn with this trainer's random stream.

    Every member consumes one invocation of the inner trainer, and the inner
    trainer's provenance is nested in this trainer's configuration.

    Args:
        inner_trainer: Trainer used for each member
        num_members: Ensemble size
        seed: Seed of the bootstrap stream
        invocation_count: Training invocations already consumed
    """

    def __init__(
        self,
        inner_trainer: Trainer,
        num_members: int = 10,
        seed: int = DEFAULT_SEED,
        invocation_count: int = 0,
    ):
        super().__init__(seed=seed, invocation_count=invocation_count)
        if not isinstance(inner_trainer, Trainer):
            raise ValueError(f"inner_trainer must be a Trainer, got {type(inner_trainer).__name__}")
        if num_members < 1:
            raise ValueError(f"num_members must be >= 1, got {num_members}")
        self.inner_trainer = inner_trainer
        self.num_members = int(num_members)

    def configuration(self) -> Dict[str, Any]:
        return {
            "inner_trainer": self.inner_trainer,
            "num_members": self.num_members,
            "seed": self.seed,
        }

    def _fit(self, dataset: Dataset, rng: np.random.Generator) -> EnsembleModel:
        members = []
        for member in range(self.num_members):
            indices = rng.integers(0, len(dataset), size=len(dataset))
            sample = DatasetView(dataset, indices, tag=f"bootstrap-{member}")
            members.append(self.inner_trainer.train(sample))
            logger.debug(f"Trained ensemble member {member + 1}/{self.num_members}")
        return EnsembleModel(dataset.feature_map, dataset.output_info, members)
