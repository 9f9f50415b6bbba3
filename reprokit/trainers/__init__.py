"""
Trainers. Importing this package registers every trainer in the catalogue.
"""

from .base import Trainer
from .linear import LinearSGDModel, LinearSGDTrainer
from .libsvm import (
    KernelType,
    LibSVMClassificationTrainer,
    LibSVMModel,
    LibSVMRegressionTrainer,
    SVMType,
)
from .ensemble import BaggingTrainer, EnsembleModel

__all__ = [
    "Trainer",
    "LinearSGDModel",
    "LinearSGDTrainer",
    "KernelType",
    "LibSVMClassificationTrainer",
    "LibSVMModel",
    "LibSVMRegressionTrainer",
    "SVMType",
    "BaggingTrainer",
    "EnsembleModel",
]
