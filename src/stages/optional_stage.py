"""Optional stage dispatch.

Maps the stage kind of a pipeline run onto its implementation. The
``none`` variant is an identity passthrough for plain data pipelines.
"""

from __future__ import annotations

from core.config import Settings
from core.errors import ConduitConfigError
from core.types import Dataset, OptionalStageKind, StageOutcome
from stages.campaign_enrichment import enrich_campaigns
from stages.churn_model import predict_churn, train_churn_model
from stages.generation_client import TextGenerator


def run_optional_stage(
    kind: OptionalStageKind,
    dataset: Dataset,
    settings: Settings,
    generator: TextGenerator | None = None,
) -> StageOutcome:
    """Run the optional stage variant for a pipeline.

    Raises:
        ConduitConfigError: If the stage kind is unknown.
    """
    if kind == "none":
        return StageOutcome(dataset=dataset)
    if kind == "train":
        return train_churn_model(dataset, settings)
    if kind == "predict":
        return predict_churn(dataset, settings)
    if kind == "generate":
        return enrich_campaigns(dataset, settings, generator)
    raise ConduitConfigError(f"Unsupported optional stage '{kind}'.")
