"""
Configuration Schema Module

Defines the structure, expected data types and default values of the
train-test and reproduction configuration using Python dataclasses.
Configurations are read from YAML files; command line flags override them.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml


class TrainerChoice(Enum):
    """Trainers selectable from the command line."""
    LINEAR_SGD = "linear-sgd"
    LIBSVM = "libsvm"


@dataclass
class DataConfig:
    """Configuration of the training and test data."""

    # CSV inputs
    train_path: Optional[str] = None
    test_path: Optional[str] = None
    response_columns: List[str] = field(default_factory=lambda: ["label"])
    output_type: str = "label"  # "label" or "regressor"

    # Split the training file when no test file is given
    split_proportion: Optional[float] = None
    split_seed: int = 1

    def __post_init__(self):
        """Validate data configuration after initialization."""
        if isinstance(self.response_columns, str):
            self.response_columns = [self.response_columns]

        if self.output_type not in ("label", "regressor"):
            raise ValueError(f"output_type must be 'label' or 'regressor', got {self.output_type}")

        if self.split_proportion is not None and not 0.0 < self.split_proportion < 1.0:
            raise ValueError("split_proportion must be between 0 and 1")

        if self.test_path is not None and self.split_proportion is not None:
            raise ValueError("Give either test_path or split_proportion, not both")


@dataclass
class LinearSGDConfig:
    """Configuration of the linear SGD trainer."""

    epochs: int = 5
    learning_rate: float = 0.1
    l2: float = 1e-4
    minibatch_size: int = 1
    seed: int = 12345

    def __post_init__(self):
        if self.epochs < 1:
            raise ValueError("epochs must be >= 1")

        if self.learning_rate <= 0:
            raise ValueError("learning_rate must be positive")

        if self.minibatch_size < 1:
            raise ValueError("minibatch_size must be >= 1")


@dataclass
class SVMConfig:
    """Configuration of the LibSVM trainers."""

    svm_type: str = "c-svc"
    kernel: str = "rbf"
    cost: float = 1.0
    gamma: Optional[float] = None
    nu: float = 0.5
    epsilon: float = 0.1
    degree: int = 3
    coef0: float = 0.0
    standardize: bool = False
    seed: int = 12345

    def __post_init__(self):
        """Validate SVM configuration after initialization."""
        valid_types = ["c-svc", "nu-svc", "epsilon-svr", "nu-svr"]
        if self.svm_type not in valid_types:
            raise ValueError(f"svm_type must be one of {valid_types}")

        valid_kernels = ["linear", "poly", "rbf", "sigmoid"]
        if self.kernel not in valid_kernels:
            raise ValueError(f"kernel must be one of {valid_kernels}")

        if self.cost <= 0:
            raise ValueError("cost must be positive")

        if not 0.0 < self.nu <= 1.0:
            raise ValueError("nu must be in (0, 1]")

    @property
    def is_regression(self) -> bool:
        return self.svm_type in ("epsilon-svr", "nu-svr")


@dataclass
class EnsembleConfig:
    """Configuration of bagging; disabled when ``num_members`` is 0."""

    num_members: int = 0
    seed: int = 12345

    def __post_init__(self):
        if self.num_members < 0:
            raise ValueError("num_members must be non-negative")


@dataclass
class ExperimentConfig:
    """Configuration of outputs and logging."""

    output_dir: str = "./outputs"
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        self.log_level = self.log_level.upper()


@dataclass
class ReproConfig:
    """Configuration of reproduction runs."""

    validate: bool = True
    diff_labels: Tuple[str, str] = ("original", "reproduced")
    # Component class name -> constructor argument -> replacement value
    overrides: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def __post_init__(self):
        self.diff_labels = tuple(self.diff_labels)
        if len(self.diff_labels) != 2 or self.diff_labels[0] == self.diff_labels[1]:
            raise ValueError("diff_labels must be two distinct labels")


@dataclass
class TrainTestConfig:
    """Main configuration combining all sub-configurations."""

    trainer: TrainerChoice = TrainerChoice.LINEAR_SGD
    data: DataConfig = field(default_factory=DataConfig)
    linear: LinearSGDConfig = field(default_factory=LinearSGDConfig)
    svm: SVMConfig = field(default_factory=SVMConfig)
    ensemble: EnsembleConfig = field(default_factory=EnsembleConfig)
    experiment: ExperimentConfig = field(default_factory=ExperimentConfig)
    repro: ReproConfig = field(default_factory=ReproConfig)

    def __post_init__(self):
        self.trainer = TrainerChoice(self.trainer)

    def validate(self):
        """Validate the entire configuration."""
        # Trigger post_init validation for all sub-configs
        self.data.__post_init__()
        self.linear.__post_init__()
        self.svm.__post_init__()
        self.ensemble.__post_init__()
        self.experiment.__post_init__()
        self.repro.__post_init__()

        # Cross-configuration validation
        if self.trainer is TrainerChoice.LIBSVM:
            wants_regression = self.data.output_type == "regressor"
            if wants_regression != self.svm.is_regression:
                raise ValueError(
                    f"svm_type {self.svm.svm_type} does not match output_type {self.data.output_type}"
                )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        result = {
            "trainer": self.trainer.value,
            "data": asdict(self.data),
            "linear": asdict(self.linear),
            "svm": asdict(self.svm),
            "ensemble": asdict(self.ensemble),
            "experiment": asdict(self.experiment),
            "repro": asdict(self.repro),
        }
        result["repro"]["diff_labels"] = list(self.repro.diff_labels)
        return result

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "TrainTestConfig":
        """Create configuration from dictionary."""
        config = cls()

        if "trainer" in config_dict:
            config.trainer = TrainerChoice(config_dict["trainer"])
        if "data" in config_dict:
            config.data = DataConfig(**config_dict["data"])
        if "linear" in config_dict:
            config.linear = LinearSGDConfig(**config_dict["linear"])
        if "svm" in config_dict:
            config.svm = SVMConfig(**config_dict["svm"])
        if "ensemble" in config_dict:
            config.ensemble = EnsembleConfig(**config_dict["ensemble"])
        if "experiment" in config_dict:
            config.experiment = ExperimentConfig(**config_dict["experiment"])
        if "repro" in config_dict:
            config.repro = ReproConfig(**config_dict["repro"])

        return config


def load_config(path: Union[str, Path]) -> TrainTestConfig:
    """
    Load a TrainTestConfig from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file content is not a mapping or fails validation
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r") as f:
        config_dict = yaml.safe_load(f) or {}

    if not isinstance(config_dict, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(config_dict).__name__}")

    config = TrainTestConfig.from_dict(config_dict)
    config.validate()
    return config
