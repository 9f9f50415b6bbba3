"""
LibSVM trainers backed by scikit-learn's SVC, NuSVC, SVR and NuSVR.

Regression trains one SVM per output dimension. With ``standardize`` the
regression targets are centred and scaled to unit variance before training,
and the recorded means and variances undo the scaling at prediction time.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

import numpy as np
from sklearn.svm import SVC, SVR, NuSVC, NuSVR

from ..data.dataset import Dataset
from ..data.examples import FeatureMap, OutputInfo, OutputType
from ..models import Model, Prediction
from ..registry import ComponentKind, register_component
from ..utils.logging_utils import get_logger
from .base import DEFAULT_SEED, Trainer

logger = get_logger(__name__)


class SVMType(Enum):
    """LibSVM formulation."""
    C_SVC = "c-svc"
    NU_SVC = "nu-svc"
    EPSILON_SVR = "epsilon-svr"
    NU_SVR = "nu-svr"


class KernelType(Enum):
    """Kernel function; values match scikit-learn's kernel names."""
    LINEAR = "linear"
    POLY = "poly"
    RBF = "rbf"
    SIGMOID = "sigmoid"


CLASSIFICATION_TYPES = (SVMType.C_SVC, SVMType.NU_SVC)
REGRESSION_TYPES = (SVMType.EPSILON_SVR, SVMType.NU_SVR)


class LibSVMModel(Model):
    """
    Model holding one fitted scikit-learn SVM (classification) or one per
    output dimension (regression).
    """

    def __init__(
        self,
        feature_map: FeatureMap,
        output_info: OutputInfo,
        estimators: List[Any],
        means: Optional[np.ndarray] = None,
        variances: Optional[np.ndarray] = None,
    ):
        super().__init__(feature_map, output_info)
        self.estimators = estimators
        self.means = means
        self.variances = variances

    def support_vector_counts(self) -> List[int]:
        """Number of support vectors of each underlying SVM."""
        return [int(len(estimator.support_)) for estimator in self.estimators]

    def num_support_vectors(self) -> int:
        return sum(self.support_vector_counts())

    def _predict_matrix(self, matrix: np.ndarray) -> List[Prediction]:
        if self.output_type is OutputType.LABEL:
            estimator = self.estimators[0]
            labels = estimator.predict(matrix)
            decision = estimator.decision_function(matrix)
            classes = [str(c) for c in estimator.classes_]
            predictions = []
            for row, label in enumerate(labels):
                if len(classes) == 2:
                    # Binary decision values are the score of the second class
                    value = float(decision[row])
                    scores = {classes[0]: -value, classes[1]: value}
                else:
                    scores = {c: float(v) for c, v in zip(classes, decision[row])}
                predictions.append(Prediction(output=str(label), scores=scores))
            return predictions

        columns = np.column_stack([estimator.predict(matrix) for estimator in self.estimators])
        if self.means is not None:
            columns = columns * np.sqrt(self.variances) + self.means
        dimensions = self.output_info.dimensions()
        return [Prediction(output={d: float(v) for d, v in zip(dimensions, row)}) for row in columns]


class _LibSVMTrainer(Trainer):
    """Parameters shared by the LibSVM trainers."""

    def __init__(
        self,
        svm_type: Union[str, SVMType],
        kernel: Union[str, KernelType] = KernelType.RBF,
        cost: float = 1.0,
        gamma: Optional[float] = None,
        nu: float = 0.5,
        degree: int = 3,
        coef0: float = 0.0,
        seed: int = DEFAULT_SEED,
        invocation_count: int = 0,
    ):
        super().__init__(seed=seed, invocation_count=invocation_count)
        self.svm_type = SVMType(svm_type)
        self.kernel = KernelType(kernel)
        if cost <= 0:
            raise ValueError(f"cost must be positive, got {cost}")
        if not 0.0 < nu <= 1.0:
            raise ValueError(f"nu must be in (0, 1], got {nu}")
        if gamma is not None and gamma <= 0:
            raise ValueError(f"gamma must be positive, got {gamma}")
        self.cost = float(cost)
        self.gamma = None if gamma is None else float(gamma)
        self.nu = float(nu)
        self.degree = int(degree)
        self.coef0 = float(coef0)

    def configuration(self) -> Dict[str, Any]:
        return {
            "svm_type": self.svm_type,
            "kernel": self.kernel,
            "cost": self.cost,
            "gamma": self.gamma,
            "nu": self.nu,
            "degree": self.degree,
            "coef0": self.coef0,
            "seed": self.seed,
        }

    def _kernel_args(self) -> Dict[str, Any]:
        return {
            "kernel": self.kernel.value,
            "gamma": "scale" if self.gamma is None else self.gamma,
            "degree": self.degree,
            "coef0": self.coef0,
        }


@register_component("LibSVMClassificationTrainer", ComponentKind.TRAINER)
class LibSVMClassificationTrainer(_LibSVMTrainer):
    """
    Trains C-SVC or nu-SVC classifiers.

    Args:
        svm_type: "c-svc" or "nu-svc"
        kernel: Kernel function
        cost: C parameter (C-SVC)
        gamma: Kernel coefficient; scikit-learn's "scale" if omitted
        nu: nu parameter (nu-SVC)
        degree: Polynomial kernel degree
        coef0: Kernel independent term
        seed: Seed from which each invocation's solver seed is drawn
        invocation_count: Training invocations already consumed
    """

    def __init__(self, svm_type: Union[str, SVMType] = SVMType.C_SVC, **kwargs):
        super().__init__(svm_type, **kwargs)
        if self.svm_type not in CLASSIFICATION_TYPES:
            raise ValueError(f"{self.svm_type.value} is not a classification SVM type")

    def _fit(self, dataset: Dataset, rng: np.random.Generator) -> LibSVMModel:
        if dataset.output_type is not OutputType.LABEL:
            raise ValueError("LibSVMClassificationTrainer requires a classification dataset")

        features, outputs, weights = dataset.to_arrays()
        random_state = int(rng.integers(2 ** 31 - 1))
        if self.svm_type is SVMType.C_SVC:
            estimator = SVC(C=self.cost, random_state=random_state, **self._kernel_args())
        else:
            estimator = NuSVC(nu=self.nu, random_state=random_state, **self._kernel_args())

        estimator.fit(features, outputs.astype(str), sample_weight=weights)
        model = LibSVMModel(dataset.feature_map, dataset.output_info, [estimator])
        logger.debug(f"Trained {self.svm_type.value} with {model.num_support_vectors()} support vectors")
        return model


@register_component("LibSVMRegressionTrainer", ComponentKind.TRAINER)
class LibSVMRegressionTrainer(_LibSVMTrainer):
    """
    Trains epsilon-SVR or nu-SVR regressors, one per output dimension.

    Args:
        svm_type: "epsilon-svr" or "nu-svr"
        epsilon: Width of the insensitive tube (epsilon-SVR)
        standardize: Standardise each target dimension before training
        **kwargs: Parameters shared with the classification trainer
    """

    def __init__(
        self,
        svm_type: Union[str, SVMType] = SVMType.EPSILON_SVR,
        epsilon: float = 0.1,
        standardize: bool = False,
        **kwargs,
    ):
        super().__init__(svm_type, **kwargs)
        if self.svm_type not in REGRESSION_TYPES:
            raise ValueError(f"{self.svm_type.value} is not a regression SVM type")
        if epsilon < 0:
            raise ValueError(f"epsilon must be non-negative, got {epsilon}")
        self.epsilon = float(epsilon)
        self.standardize = bool(standardize)

    def configuration(self) -> Dict[str, Any]:
        config = super().configuration()
        config["epsilon"] = self.epsilon
        config["standardize"] = self.standardize
        return config

    def _fit(self, dataset: Dataset, rng: np.random.Generator) -> LibSVMModel:
        if dataset.output_type is not OutputType.REGRESSOR:
            raise ValueError("LibSVMRegressionTrainer requires a regression dataset")

        features, targets, weights = dataset.to_arrays()
        means = variances = None
        if self.standardize:
            means = targets.mean(axis=0)
            variances = targets.var(axis=0)
            variances[variances == 0] = 1.0
            targets = (targets - means) / np.sqrt(variances)

        estimators = []
        for column in range(targets.shape[1]):
            if self.svm_type is SVMType.EPSILON_SVR:
                estimator = SVR(C=self.cost, epsilon=self.epsilon, **self._kernel_args())
            else:
                estimator = NuSVR(C=self.cost, nu=self.nu, **self._kernel_args())
            estimator.fit(features, targets[:, column], sample_weight=weights)
            estimators.append(estimator)

        return LibSVMModel(dataset.feature_map, dataset.output_info, estimators, means, variances)
