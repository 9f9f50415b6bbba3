"""
Reproduction of trained models from their provenance.

A Reproducer rebuilds the trainer and the dataset a model was trained with,
re-runs training and optionally checks that the new model has the same
feature and output domains as the original. Each reproduction attempt gets
its own component registry, filled from the provenance tree.
"""

from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..data.dataset import Dataset
from ..data.splitter import TrainTestSplitter
from ..errors import (
    DatasetRecoveryError,
    ExtractionError,
    MismatchAspect,
    ReproductionError,
    TrainerRecoveryError,
    ValidationError,
)
from ..models import Model
from ..provenance import diff as provenance_diff
from ..provenance.extraction import extract_configuration
from ..provenance.nodes import (
    INVOCATION_COUNT,
    SPLIT_IS_TRAIN,
    SPLIT_SEED,
    SPLIT_SOURCE,
    SPLIT_TRAIN_PROPORTION,
    DatasetProvenance,
    ModelProvenance,
    ObjectProvenance,
    ProvenanceKind,
    ProvenanceNode,
)
from ..provenance.ordering import ProvenanceOrdering, compute_name, order_provenances
from ..registry import ComponentCatalogue, ComponentKind, ComponentRegistry, catalogue as default_catalogue
from ..trainers.base import Trainer
from ..utils.context import ReproAttempt, ReproContext
from ..utils.logging_utils import get_logger

logger = get_logger(__name__)


class ReproState(Enum):
    """Stages of a reproduction attempt."""
    INITIALIZED = "initialized"
    CONFIG_LOADED = "config-loaded"
    TRAINER_RECOVERED = "trainer-recovered"
    DATASET_RECOVERED = "dataset-recovered"
    RETRAINED = "retrained"
    VALIDATED = "validated"


def _primitive(node: Optional[ProvenanceNode], types: Tuple[type, ...]) -> Any:
    """Value of a primitive node if it has one of ``types``; bools only match ``bool``."""
    if node is None or node.kind is not ProvenanceKind.PRIMITIVE:
        return None
    value = node.value
    if isinstance(value, bool) and bool not in types:
        return None
    return value if isinstance(value, types) else None


def validate_equivalence(original: Model, reproduced: Model) -> None:
    """
    Check that two models share their feature map and output domain.

    Features are compared by count, then one by one through their string
    form; output domains through their string form.

    Raises:
        ValidationError: Naming the first aspect that differs
    """
    original_features = original.feature_map
    reproduced_features = reproduced.feature_map

    if len(original_features) != len(reproduced_features):
        raise ValidationError(
            MismatchAspect.FEATURE_MAP_SIZE,
            f"original has {len(original_features)} features, reproduced has {len(reproduced_features)}",
        )

    for index in range(len(original_features)):
        expected = str(original_features[index])
        actual = str(reproduced_features[index])
        if expected != actual:
            raise ValidationError(
                MismatchAspect.FEATURE_IDENTITY,
                f"feature {index} differs: {expected} != {actual}",
                index=index,
            )

    if str(original.output_info) != str(reproduced.output_info):
        raise ValidationError(
            MismatchAspect.OUTPUT_DOMAIN,
            f"output domains differ: {original.output_info} != {reproduced.output_info}",
        )


class Reproducer:
    """
    Rebuilds and re-trains a model from its provenance.

    Args:
        provenance: Provenance of the model to reproduce
        original_model: The model itself, required by ``reproduce_from_model``
        catalogue: Component catalogue (defaults to the global one)
        overrides: Class name -> constructor argument -> value, applied to
            every matching component before it is built (e.g. to point a
            data source at a moved file)

    Raises:
        ExtractionError: If ``provenance`` is not a model provenance
        TrainerRecoveryError: If the model was not trained by a recorded trainer
    """

    def __init__(
        self,
        provenance: ModelProvenance,
        original_model: Optional[Model] = None,
        catalogue: Optional[ComponentCatalogue] = None,
        overrides: Optional[Dict[str, Dict[str, Any]]] = None,
    ):
        if provenance is None or getattr(provenance, "kind", None) is not ProvenanceKind.MODEL:
            raise ExtractionError(f"Reproduction needs a model provenance, got {provenance!r}")

        trainer = provenance.trainer
        if trainer.kind is not ProvenanceKind.TRAINER:
            raise TrainerRecoveryError(
                f"Model was trained by {getattr(trainer, 'class_name', trainer.kind.value)}, "
                f"which is not a recorded trainer ({trainer.kind.value} provenance)"
            )

        self.provenance = provenance
        self.original_model = original_model
        self.catalogue = catalogue if catalogue is not None else default_catalogue
        self.overrides = overrides or {}

        self.state = ReproState.INITIALIZED
        self.attempt_id: Optional[str] = None
        self._ordering: Optional[ProvenanceOrdering] = None
        self._registry: Optional[ComponentRegistry] = None

    @classmethod
    def from_model(
        cls,
        model: Model,
        catalogue: Optional[ComponentCatalogue] = None,
        overrides: Optional[Dict[str, Dict[str, Any]]] = None,
    ) -> "Reproducer":
        """Create a Reproducer for ``model`` from the provenance it carries."""
        if model.provenance is None:
            raise ReproductionError(f"{type(model).__name__} carries no provenance")
        return cls(model.provenance, original_model=model, catalogue=catalogue, overrides=overrides)

    @property
    def registry(self) -> Optional[ComponentRegistry]:
        """Registry of the current attempt, or None before configuration is loaded."""
        return self._registry

    @property
    def ordering(self) -> Optional[ProvenanceOrdering]:
        return self._ordering

    def _transition(self, state: ReproState) -> None:
        logger.info(f"Reproduction {self.state.value} -> {state.value}")
        self.state = state
        # Stages are only traced inside this reproducer's own attempt
        if self.attempt_id is not None and ReproContext.get_attempt_id() == self.attempt_id:
            ReproContext.set_stage(state.value)

    def _load_configuration(self) -> None:
        ordering = order_provenances(self.provenance)
        registry = ComponentRegistry(self.catalogue)
        registry.register(extract_configuration(self.provenance, ordering))

        for class_name, properties in self.overrides.items():
            for name in registry.list_all(class_name):
                for key, value in properties.items():
                    registry.override(name, key, value)
                    logger.info(f"Override {name}.{key} = {value!r}")

        self._ordering = ordering
        self._registry = registry
        self._transition(ReproState.CONFIG_LOADED)

    def recover_trainer(self) -> Trainer:
        """
        Rebuild the trainer recorded in the provenance.

        Loads a fresh registry, restores every trainer's recorded invocation
        count through its ``invocation_count`` constructor argument, then
        builds the root trainer.

        Raises:
            TrainerRecoveryError: If the trainer class is unknown or an
                invocation count is missing or malformed
        """
        self._load_configuration()
        ordering, registry = self._ordering, self._registry

        for index, node in ordering.enumerate_kind(ProvenanceKind.TRAINER):
            name = compute_name(node, index)
            count = _primitive(node.instance.get(INVOCATION_COUNT), (int,))
            if count is None:
                raise TrainerRecoveryError(
                    f"{name}: '{INVOCATION_COUNT}' is missing or not an integer "
                    f"({node.instance.get(INVOCATION_COUNT)!r})"
                )
            if name in registry:
                registry.override(name, "invocation_count", count)
                logger.debug(f"Restored {name} invocation count to {count}")

        root = self.provenance.trainer
        component_type = self.catalogue.get(root.class_name)
        if component_type is None or component_type.kind is not ComponentKind.TRAINER:
            available = ", ".join(self.catalogue.list_components(ComponentKind.TRAINER))
            raise TrainerRecoveryError(
                f"Trainer class '{root.class_name}' is not registered as a trainer. Available trainers: {available}"
            )

        candidates = registry.list_all(root.class_name)
        if not candidates:
            raise TrainerRecoveryError(f"No configured component found for trainer '{root.class_name}'")

        preferred = ordering.name_of(root)
        name = preferred if preferred in candidates else candidates[0]
        trainer = registry.lookup(name)

        logger.info(f"Recovered trainer {name}: {trainer!r}")
        self._transition(ReproState.TRAINER_RECOVERED)
        return trainer

    def _unwrap_dataset(self, dataset: DatasetProvenance) -> Tuple[str, ObjectProvenance]:
        """Innermost dataset class name and the data source it wraps."""
        while dataset.source.kind is ProvenanceKind.DATASET:
            dataset = dataset.source
        return dataset.class_name, dataset.source

    def _recover_split(self, node: ObjectProvenance):
        seed = _primitive(node.instance.get(SPLIT_SEED), (int,))
        proportion = _primitive(node.instance.get(SPLIT_TRAIN_PROPORTION), (int, float))
        is_train = _primitive(node.instance.get(SPLIT_IS_TRAIN), (bool,))
        if seed is None or proportion is None or is_train is None:
            raise DatasetRecoveryError(
                f"Split source {node.class_name} has missing or malformed metadata "
                f"(seed={seed!r}, train-proportion={proportion!r}, is-train={is_train!r})"
            )
        if not 0.0 < proportion < 1.0:
            raise DatasetRecoveryError(f"Split source {node.class_name} has train-proportion {proportion} outside (0, 1)")

        inner = node.instance[SPLIT_SOURCE]
        while inner.kind is ProvenanceKind.DATASET:
            inner = inner.source

        splitter = TrainTestSplitter(self._recover_source(inner), train_proportion=proportion, seed=seed)
        partition = splitter.partition(is_train)

        recorded_size = _primitive(node.instance.get("size"), (int,))
        if recorded_size is not None and recorded_size != len(partition):
            logger.warning(f"Split partition has {len(partition)} examples, provenance recorded {recorded_size}")

        logger.info(
            f"Rebuilt {'train' if is_train else 'test'} split (seed={seed}, proportion={proportion})"
        )
        return partition

    def _recover_source(self, node: ObjectProvenance):
        if node.kind is ProvenanceKind.SPLIT_DATASOURCE:
            return self._recover_split(node)

        if not node.is_configured or not self.catalogue.is_configurable(node.class_name, ComponentKind.DATA_SOURCE):
            raise DatasetRecoveryError(
                f"Data source '{node.class_name}' cannot be rebuilt from configuration"
            )
        return self._registry.lookup(self._ordering.name_of(node))

    def recover_dataset(self) -> Dataset:
        """
        Rebuild the dataset recorded in the provenance.

        Nested datasets are unwrapped to the innermost dataset type and its
        data source. Split sources are re-split with the recorded seed and
        proportion, and the recorded partition is selected.

        Raises:
            DatasetRecoveryError: If the source is not configurable, the
                dataset type is unknown or split metadata is malformed
        """
        if self._registry is None:
            self._load_configuration()

        dataset_class, source_node = self._unwrap_dataset(self.provenance.dataset)
        if not self.catalogue.is_configurable(dataset_class, ComponentKind.DATASET):
            available = ", ".join(self.catalogue.list_components(ComponentKind.DATASET))
            raise DatasetRecoveryError(
                f"Dataset type '{dataset_class}' is not registered. Available datasets: {available}"
            )

        source = self._recover_source(source_node)
        dataset = self.catalogue.wrap_dataset(dataset_class, source)

        logger.info(f"Recovered {dataset_class} with {len(dataset)} examples from {source_node.class_name}")
        self._transition(ReproState.DATASET_RECOVERED)
        return dataset

    def _reproduce(self) -> Model:
        self.state = ReproState.INITIALIZED
        self._registry = None
        self._ordering = None

        trainer = self.recover_trainer()
        dataset = self.recover_dataset()
        model = trainer.train(dataset)
        self._transition(ReproState.RETRAINED)
        return model

    def reproduce_from_provenance(self) -> Model:
        """
        Re-train the model described by the provenance.

        Returns:
            The newly trained model

        Raises:
            ReproductionError: Any recovery or reconstruction failure
        """
        with ReproAttempt(stage=ReproState.INITIALIZED.value) as attempt:
            self.attempt_id = attempt.attempt_id
            try:
                return self._reproduce()
            except ReproductionError as e:
                logger.error(f"Reproduction failed in state {self.state.value}: {e}")
                raise

    def reproduce_from_model(self) -> Model:
        """
        Re-train the original model and check that the result matches it.

        Returns:
            The newly trained model

        Raises:
            ReproductionError: If no original model was given
            ValidationError: If the reproduced model's domains differ
        """
        if self.original_model is None:
            raise ReproductionError("reproduce_from_model requires the original model")

        with ReproAttempt(stage=ReproState.INITIALIZED.value) as attempt:
            self.attempt_id = attempt.attempt_id
            try:
                model = self._reproduce()
                validate_equivalence(self.original_model, model)
            except ReproductionError as e:
                logger.error(f"Reproduction failed in state {self.state.value}: {e}")
                raise
            self._transition(ReproState.VALIDATED)
            return model

    @staticmethod
    def diff_provenance(
        original: ProvenanceNode,
        reproduced: ProvenanceNode,
        labels: Tuple[str, str] = (provenance_diff.ORIGINAL, provenance_diff.REPRODUCED),
    ) -> str:
        """JSON report of the differences between two provenance trees."""
        return provenance_diff.diff_provenance(original, reproduced, labels)
