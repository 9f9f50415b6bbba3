"""
Context management utilities for reproduction attempts.

This module provides context variables holding the identifier of the
reproduction attempt currently running and the stage it has reached, so
that log records emitted deep inside trainers and data sources can be tied
back to the attempt that triggered them.
"""

from contextvars import ContextVar
from typing import Optional, Dict, Any
import uuid
from datetime import datetime, timezone


# The context variable will hold a string attempt_id, or None if not set
attempt_id_var: ContextVar[Optional[str]] = ContextVar("attempt_id", default=None)

# Stage of the reproduction state machine the attempt is in
stage_var: ContextVar[Optional[str]] = ContextVar("stage", default=None)


class ReproContext:
    """
    Accessors for the reproduction attempt context.
    """

    @staticmethod
    def generate_attempt_id() -> str:
        """
        Generate a new short attempt ID.

        Returns:
            A unique attempt ID string.
        """
        return uuid.uuid4().hex[:12]

    @staticmethod
    def set_attempt_id(attempt_id: Optional[str] = None) -> str:
        """
        Set the attempt ID for the current context.

        Args:
            attempt_id: The attempt ID to set. If None, generates a new one.

        Returns:
            The attempt ID that was set.
        """
        if attempt_id is None:
            attempt_id = ReproContext.generate_attempt_id()

        attempt_id_var.set(attempt_id)
        return attempt_id

    @staticmethod
    def get_attempt_id() -> Optional[str]:
        """Get the current attempt ID, or None outside an attempt."""
        return attempt_id_var.get()

    @staticmethod
    def set_stage(stage: str) -> None:
        """
        Record the stage the current attempt has reached.

        Args:
            stage: Name of the reproduction stage.
        """
        stage_var.set(stage)

    @staticmethod
    def get_stage() -> Optional[str]:
        return stage_var.get()

    @staticmethod
    def to_dict() -> Dict[str, Any]:
        """
        Export current context as a dictionary.

        Returns:
            Dictionary containing all context information.
        """
        return {
            "attempt_id": ReproContext.get_attempt_id(),
            "stage": ReproContext.get_stage(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


class ReproAttempt:
    """
    Context manager scoping one reproduction attempt.

    Sets the attempt ID and initial stage on entry and restores the previous
    values on exit, so nested or sequential attempts never leak into each
    other's log records.
    """

    def __init__(self, stage: str, attempt_id: Optional[str] = None):
        """
        Initialize an attempt scope.

        Args:
            stage: Initial stage name.
            attempt_id: Optional attempt ID. Generated if not provided.
        """
        self.stage = stage
        self.attempt_id = attempt_id

        self._attempt_token = None
        self._stage_token = None

    def __enter__(self):
        if self.attempt_id is None:
            self.attempt_id = ReproContext.generate_attempt_id()
        self._attempt_token = attempt_id_var.set(self.attempt_id)
        self._stage_token = stage_var.set(self.stage)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._attempt_token:
            attempt_id_var.reset(self._attempt_token)
        if self._stage_token:
            stage_var.reset(self._stage_token)
