"""Conduit exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each pipeline stage raises a specific error type for debuggability.
"""

from __future__ import annotations


class ConduitError(Exception):
    """Base exception for all Conduit failures."""


class ConduitConfigError(ConduitError):
    """Raised for invalid runtime configuration."""


class ConduitExtractError(ConduitError):
    """Raised for source read and retrieval failures."""


class ConduitAuthError(ConduitExtractError):
    """Raised when a remote source rejects the configured credentials."""


class ConduitSchemaError(ConduitError):
    """Raised when a table does not satisfy its declared schema."""


class ConduitTransformError(ConduitError):
    """Raised for transform failures caused by upstream contract violations."""


class ConduitModelError(ConduitError):
    """Raised for model training, artifact, and prediction failures."""


class ConduitGenerationError(ConduitError):
    """Raised when the text generation service cannot be used at all."""


class ConduitLoadError(ConduitError):
    """Raised for destination persistence failures."""


class ConduitDependencyError(ConduitError):
    """Raised when an optional runtime dependency is missing."""


class ConduitStageError(ConduitError):
    """Raised by the orchestrator with the failing stage attached."""

    def __init__(self, stage: str, cause: Exception) -> None:
        super().__init__(f"{stage}: {cause}")
        self.stage = stage
        self.cause = cause
