"""
Trainer base class.

Trainers record their configuration and how many training invocations they
have already performed. The invocation count is a constructor argument: a
trainer rebuilt from provenance is created with the recorded count and
replays the same random stream from its first call to ``train``.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict

import numpy as np

from ..data.dataset import Dataset
from ..models import Model
from ..provenance.nodes import (
    INVOCATION_COUNT,
    MODEL_DATASET,
    MODEL_TRAINER,
    ModelProvenance,
    PrimitiveProvenance,
    TrainerProvenance,
    as_provenance,
)
from ..utils.logging_utils import get_logger
from ..version import __version__

logger = get_logger(__name__)

DEFAULT_SEED = 12345


class Trainer(ABC):
    """
    Base class of all trainers.

    Args:
        seed: Seed of the trainer's random stream
        invocation_count: Number of ``train`` calls already made by the
            trainer whose run is being continued or replayed
    """

    component_id: str

    def __init__(self, seed: int = DEFAULT_SEED, invocation_count: int = 0):
        if isinstance(invocation_count, bool) or not isinstance(invocation_count, (int, np.integer)):
            raise ValueError(f"invocation_count must be an integer, got {invocation_count!r}")
        if invocation_count < 0:
            raise ValueError(f"invocation_count must be non-negative, got {invocation_count}")
        self.seed = int(seed)
        self._invocation_count = int(invocation_count)

    @property
    def invocation_count(self) -> int:
        return self._invocation_count

    @abstractmethod
    def configuration(self) -> Dict[str, Any]:
        """Constructor arguments describing this trainer, excluding the invocation count."""

    @abstractmethod
    def _fit(self, dataset: Dataset, rng: np.random.Generator) -> Model:
        """Train a model with the random stream of one invocation."""

    def get_provenance(self) -> TrainerProvenance:
        configured = {
            key: as_provenance(value)
            for key, value in self.configuration().items()
            if value is not None
        }
        return TrainerProvenance(
            class_name=self.component_id,
            configured=configured,
            instance={INVOCATION_COUNT: PrimitiveProvenance(self._invocation_count)},
        )

    def _next_rng(self) -> np.random.Generator:
        sequence = np.random.SeedSequence(self.seed, spawn_key=(self._invocation_count,))
        self._invocation_count += 1
        return np.random.default_rng(sequence)

    def train(self, dataset: Dataset) -> Model:
        """
        Train a model on ``dataset``.

        The trainer's provenance is captured before the invocation count
        advances, so it records the count this run started from.
        """
        if len(dataset) == 0:
            raise ValueError("Cannot train on an empty dataset")

        trainer_provenance = self.get_provenance()
        rng = self._next_rng()

        logger.debug(
            f"{self.component_id}: training on {len(dataset)} examples "
            f"(invocation {trainer_provenance.get(INVOCATION_COUNT).value})"
        )
        model = self._fit(dataset, rng)

        model.provenance = ModelProvenance(
            class_name=type(model).__name__,
            instance={
                MODEL_DATASET: dataset.get_provenance(),
                MODEL_TRAINER: trainer_provenance,
                "trained-at": PrimitiveProvenance(datetime.now(timezone.utc).isoformat()),
                "reprokit-version": PrimitiveProvenance(__version__),
            },
        )
        return model

    def __repr__(self) -> str:
        params = ", ".join(f"{key}={value!r}" for key, value in self.configuration().items())
        return f"{type(self).__name__}({params}, invocation_count={self._invocation_count})"
