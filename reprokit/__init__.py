"""
reprokit: training, evaluation and provenance-based reproduction of
classification and regression models.

Importing the package registers the built-in data sources, datasets and
trainers in the component catalogue.
"""

from .version import __version__
from . import data, trainers
from .models import Model, Prediction, load_model
from .evaluation import evaluate
from .reproducibility import Reproducer, ReproState

__all__ = [
    "__version__",
    "data",
    "trainers",
    "Model",
    "Prediction",
    "load_model",
    "evaluate",
    "Reproducer",
    "ReproState",
]
