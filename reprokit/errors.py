"""
Exceptions raised while extracting, reconstructing, reproducing and diffing
provenance. None of these are retried: they all signal a structural or
environment mismatch rather than a transient condition.
"""

from enum import Enum
from typing import Optional


class ReproductionError(Exception):
    """Base exception for provenance reproduction operations."""
    pass


class ExtractionError(ReproductionError):
    """Raised when a provenance tree has a malformed or unsupported shape."""
    pass


class TrainerRecoveryError(ReproductionError):
    """Raised when the trainer class is unresolvable or its RNG state is missing."""
    pass


class DatasetRecoveryError(ReproductionError):
    """
    Raised when the data source cannot be rebuilt from configuration.

    This is permanent: it means the original data came from an inline or
    ephemeral source that cannot be replayed.
    """
    pass


class ReconstructionError(ReproductionError):
    """Raised when the component registry fails to instantiate a component."""
    pass


class UnsupportedDiffError(ReproductionError):
    """Raised when two provenance trees cannot be safely aligned for a diff."""
    pass


class MismatchAspect(Enum):
    """Which part of a reproduced model diverged from the original."""
    FEATURE_MAP_SIZE = "feature-map-size"
    FEATURE_IDENTITY = "feature-identity"
    OUTPUT_DOMAIN = "output-domain"


class ValidationError(ReproductionError):
    """Raised when a reproduced model structurally diverges from the original."""

    def __init__(self, aspect: MismatchAspect, message: str, index: Optional[int] = None):
        self.aspect = aspect
        self.index = index
        super().__init__(f"[{aspect.value}] {message}")
