"""Churn model training and prediction stages.

Training fits a standardized logistic regression on labelled customer
feature rows and persists the artifact. Prediction loads the artifact
and appends a probability and a thresholded label to every row. Any
failure here is fatal: a broken model must not silently score data.
"""

from __future__ import annotations

from typing import Any

import pyarrow as pa

from core.config import Settings
from core.constants import CHURN_FEATURE_FIELDS, CHURN_LABEL_FIELD
from core.entity_schemas import CUSTOMER_CHURN_SCHEMA
from core.errors import ConduitDependencyError, ConduitModelError
from core.logging_config import get_logger
from core.types import Dataset, StageOutcome
from stages.model_artifact import ChurnModelArtifact, load_model_artifact, save_model_artifact

_LOGGER = get_logger(__name__)


def train_churn_model(dataset: Dataset, settings: Settings) -> StageOutcome:
    """Fit a churn model, persist it, and score every row.

    Args:
        dataset: ``customer_features`` dataset with optional labels.
        settings: Training hyperparameters and ``model_path``.

    Returns:
        Stage outcome with the scored dataset and training details.

    Raises:
        ConduitDependencyError: If torch is not installed.
        ConduitModelError: If no labelled rows exist or persistence fails.
    """
    torch_module = _import_torch()
    rows = dataset.to_rows()
    labelled_rows = [row for row in rows if row[CHURN_LABEL_FIELD] is not None]
    if not labelled_rows:
        raise ConduitModelError(
            f"Cannot train churn model: no rows have a '{CHURN_LABEL_FIELD}' label. "
            "Provide labelled customers or switch CONDUIT_ML_MODE to predict."
        )
    torch_module.manual_seed(settings.random_seed)
    features = torch_module.tensor(_feature_matrix(labelled_rows), dtype=torch_module.float32)
    labels = torch_module.tensor(
        [1.0 if row[CHURN_LABEL_FIELD] else 0.0 for row in labelled_rows],
        dtype=torch_module.float32,
    )
    means = features.mean(dim=0)
    stds = features.std(dim=0, unbiased=False)
    stds = torch_module.where(stds > 0, stds, torch_module.ones_like(stds))
    model = torch_module.nn.Linear(len(CHURN_FEATURE_FIELDS), 1)
    optimizer = torch_module.optim.SGD(model.parameters(), lr=settings.learning_rate)
    loss_function = torch_module.nn.BCEWithLogitsLoss()
    normalized = (features - means) / stds
    final_loss = 0.0
    for _ in range(settings.epochs):
        optimizer.zero_grad()
        loss = loss_function(model(normalized).squeeze(1), labels)
        loss.backward()
        optimizer.step()
        final_loss = float(loss.item())
    with torch_module.no_grad():
        predictions = torch_module.sigmoid(model(normalized).squeeze(1)) >= settings.prediction_threshold
        accuracy = float((predictions.float() == labels).float().mean().item())
    artifact = ChurnModelArtifact(
        feature_names=CHURN_FEATURE_FIELDS,
        means=tuple(float(value) for value in means.tolist()),
        stds=tuple(float(value) for value in stds.tolist()),
        state_dict=model.state_dict(),
        metrics={
            "final_loss": round(final_loss, 6),
            "train_accuracy": round(accuracy, 4),
            "labelled_rows": float(len(labelled_rows)),
        },
    )
    model_path = save_model_artifact(torch_module, artifact, settings.model_path)
    _LOGGER.info(
        "churn_model_trained",
        model_path=str(model_path),
        labelled_rows=len(labelled_rows),
        epochs=settings.epochs,
        final_loss=artifact.metrics["final_loss"],
        train_accuracy=artifact.metrics["train_accuracy"],
    )
    scored = _score_dataset(torch_module, dataset, artifact, settings.prediction_threshold)
    return StageOutcome(
        dataset=scored,
        details={
            "model_path": str(model_path),
            "train_accuracy": f"{artifact.metrics['train_accuracy']:.4f}",
            "final_loss": f"{artifact.metrics['final_loss']:.6f}",
        },
    )


def predict_churn(dataset: Dataset, settings: Settings) -> StageOutcome:
    """Score every row with a previously trained artifact.

    Raises:
        ConduitDependencyError: If torch is not installed.
        ConduitModelError: If the artifact is missing or incompatible.
    """
    torch_module = _import_torch()
    artifact = load_model_artifact(torch_module, settings.model_path, CHURN_FEATURE_FIELDS)
    scored = _score_dataset(torch_module, dataset, artifact, settings.prediction_threshold)
    positive_count = sum(1 for value in scored.table["churn_predicted"].to_pylist() if value)
    _LOGGER.info(
        "churn_predictions_completed",
        model_path=str(settings.model_path),
        row_count=scored.num_rows,
        positive_count=positive_count,
    )
    return StageOutcome(
        dataset=scored,
        details={"model_path": str(settings.model_path), "predicted_churn": str(positive_count)},
    )


def _score_dataset(
    torch_module: Any,
    dataset: Dataset,
    artifact: ChurnModelArtifact,
    threshold: float,
) -> Dataset:
    model = torch_module.nn.Linear(len(artifact.feature_names), 1)
    try:
        model.load_state_dict(artifact.state_dict)
    except (RuntimeError, KeyError) as error:
        raise ConduitModelError(
            f"Model weights do not fit the feature contract: {error}. Retrain the model."
        ) from error
    rows = dataset.to_rows()
    probabilities: list[float] = []
    if rows:
        features = torch_module.tensor(_feature_matrix(rows), dtype=torch_module.float32)
        means = torch_module.tensor(artifact.means, dtype=torch_module.float32)
        stds = torch_module.tensor(artifact.stds, dtype=torch_module.float32)
        with torch_module.no_grad():
            logits = model((features - means) / stds).squeeze(1)
            probabilities = [round(float(value), 4) for value in torch_module.sigmoid(logits).tolist()]
    table = dataset.table
    table = table.append_column(
        pa.field("churn_probability", pa.float64(), nullable=False),
        pa.array(probabilities, type=pa.float64()),
    )
    table = table.append_column(
        pa.field("churn_predicted", pa.bool_(), nullable=False),
        pa.array([value >= threshold for value in probabilities], type=pa.bool_()),
    )
    return dataset.derive(table, CUSTOMER_CHURN_SCHEMA.name)


def _feature_matrix(rows: list[dict[str, Any]]) -> list[list[float]]:
    return [[float(row[name]) for name in CHURN_FEATURE_FIELDS] for row in rows]


def _import_torch() -> Any:
    """Import torch dependency used by churn model stages."""
    try:
        import torch
    except ImportError as error:
        raise ConduitDependencyError(
            "Churn model stages require torch, but it is not installed. "
            "Install torch to run the churn pipeline."
        ) from error
    return torch
