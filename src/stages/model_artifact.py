"""Churn model artifact persistence.

This module saves and loads the fitted model together with the feature
contract and standardization statistics needed to score new rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from core.errors import ConduitModelError

_REQUIRED_KEYS = ("feature_names", "means", "stds", "state_dict", "metrics")


@dataclass(frozen=True)
class ChurnModelArtifact:
    """Fitted logistic model and its feature contract.

    Attributes:
        feature_names: Ordered feature columns the model expects.
        means: Per-feature training means.
        stds: Per-feature training standard deviations (zeros replaced by 1).
        state_dict: ``torch.nn.Linear`` state dict.
        metrics: Training metrics such as final loss and accuracy.
    """

    feature_names: tuple[str, ...]
    means: tuple[float, ...]
    stds: tuple[float, ...]
    state_dict: Mapping[str, Any]
    metrics: Mapping[str, float]


def save_model_artifact(torch_module: Any, artifact: ChurnModelArtifact, model_path: Path) -> Path:
    """Persist an artifact, replacing any previous file atomically.

    Raises:
        ConduitModelError: If the artifact cannot be written.
    """
    payload = {
        "feature_names": list(artifact.feature_names),
        "means": list(artifact.means),
        "stds": list(artifact.stds),
        "state_dict": dict(artifact.state_dict),
        "metrics": dict(artifact.metrics),
    }
    temporary_path = model_path.with_name(f".{model_path.name}.tmp")
    try:
        model_path.parent.mkdir(parents=True, exist_ok=True)
        torch_module.save(payload, str(temporary_path))
        temporary_path.replace(model_path)
    except OSError as error:
        raise ConduitModelError(
            f"Failed to save model artifact at {model_path}: {error}. "
            "Check write permissions for CONDUIT_MODEL_PATH."
        ) from error
    return model_path


def load_model_artifact(
    torch_module: Any,
    model_path: Path,
    expected_features: tuple[str, ...],
) -> ChurnModelArtifact:
    """Load and validate a persisted artifact.

    Raises:
        ConduitModelError: If the file is missing, unreadable, or was
            trained on a different feature contract.
    """
    if not model_path.is_file():
        raise ConduitModelError(
            f"Model artifact not found at {model_path}. Run with CONDUIT_ML_MODE=train first."
        )
    try:
        payload = torch_module.load(str(model_path), weights_only=True)
    except Exception as error:
        raise ConduitModelError(
            f"Failed to read model artifact at {model_path}: {error}. Retrain the model."
        ) from error
    if not isinstance(payload, dict) or any(key not in payload for key in _REQUIRED_KEYS):
        raise ConduitModelError(
            f"Model artifact at {model_path} is incomplete. Expected keys: {', '.join(_REQUIRED_KEYS)}."
        )
    feature_names = tuple(payload["feature_names"])
    if feature_names != expected_features:
        raise ConduitModelError(
            f"Model artifact at {model_path} expects features {feature_names}, "
            f"but the pipeline produces {expected_features}. Retrain the model."
        )
    return ChurnModelArtifact(
        feature_names=feature_names,
        means=tuple(float(value) for value in payload["means"]),
        stds=tuple(float(value) for value in payload["stds"]),
        state_dict=payload["state_dict"],
        metrics={str(key): float(value) for key, value in payload["metrics"].items()},
    )
