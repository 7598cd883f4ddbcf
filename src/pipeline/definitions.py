"""Built-in pipeline definitions.

A definition names the entities to extract, the pure transform that
combines them, the optional stage family, and the output schema that
guards the load stage.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Mapping, cast

import pyarrow as pa

from core.config import Settings
from core.constants import SUPPORTED_PIPELINES
from core.entity_schemas import (
    CAMPAIGN_ENRICHMENT_SCHEMA,
    CAMPAIGNS_SCHEMA,
    CUSTOMER_CHURN_SCHEMA,
    CUSTOMER_SUMMARY_SCHEMA,
    CUSTOMERS_SCHEMA,
    ORDERS_SCHEMA,
)
from core.errors import ConduitConfigError, ConduitTransformError
from core.schema import Schema
from core.types import Dataset, OptionalStageKind
from transforms.campaign_cleaning import clean_campaigns
from transforms.churn_features import build_churn_features
from transforms.customer_summary import summarize_customers
from transforms.order_cleaning import clean_orders

StageFamily = Literal["none", "ml", "generate"]
TransformFunction = Callable[[Mapping[str, Dataset], Settings], Dataset]


@dataclass(frozen=True)
class PipelineDefinition:
    """Static description of one pipeline.

    Attributes:
        name: Pipeline name used in settings, outputs, and reports.
        entities: Input schemas extracted in order.
        transform: Pure function combining extracted datasets.
        stage_family: Optional stage family.
        output_schema: Schema the final dataset must satisfy.
    """

    name: str
    entities: tuple[Schema, ...]
    transform: TransformFunction
    stage_family: StageFamily
    output_schema: Schema

    def stage_kind(self, settings: Settings) -> OptionalStageKind:
        """Resolve the concrete optional stage for this run."""
        if self.stage_family == "ml":
            return cast(OptionalStageKind, settings.ml_mode)
        return cast(OptionalStageKind, self.stage_family)

    def run_transform(self, datasets: Mapping[str, Dataset], settings: Settings) -> Dataset:
        """Run the transform, reporting contract violations as transform errors.

        Raises:
            ConduitTransformError: If upstream data breaks transform assumptions.
        """
        try:
            return self.transform(datasets, settings)
        except (pa.ArrowException, KeyError, TypeError, ValueError) as error:
            raise ConduitTransformError(
                f"Transform for pipeline '{self.name}' failed: {error}. "
                "This indicates a schema contract violation upstream."
            ) from error


def _customer_summary(datasets: Mapping[str, Dataset], settings: Settings) -> Dataset:
    return summarize_customers(clean_orders(datasets["orders"]), settings)


def _churn_features(datasets: Mapping[str, Dataset], settings: Settings) -> Dataset:
    return build_churn_features(clean_orders(datasets["orders"]), datasets["customers"], settings)


def _campaigns(datasets: Mapping[str, Dataset], settings: Settings) -> Dataset:
    _ = settings
    return clean_campaigns(datasets["campaigns"])


PIPELINE_DEFINITIONS: dict[str, PipelineDefinition] = {
    "customer_summary": PipelineDefinition(
        name="customer_summary",
        entities=(ORDERS_SCHEMA,),
        transform=_customer_summary,
        stage_family="none",
        output_schema=CUSTOMER_SUMMARY_SCHEMA,
    ),
    "churn": PipelineDefinition(
        name="churn",
        entities=(ORDERS_SCHEMA, CUSTOMERS_SCHEMA),
        transform=_churn_features,
        stage_family="ml",
        output_schema=CUSTOMER_CHURN_SCHEMA,
    ),
    "campaign_enrichment": PipelineDefinition(
        name="campaign_enrichment",
        entities=(CAMPAIGNS_SCHEMA,),
        transform=_campaigns,
        stage_family="generate",
        output_schema=CAMPAIGN_ENRICHMENT_SCHEMA,
    ),
}


def get_pipeline_definition(pipeline_name: str) -> PipelineDefinition:
    """Look up a pipeline definition by name.

    Raises:
        ConduitConfigError: If the pipeline is unknown.
    """
    definition = PIPELINE_DEFINITIONS.get(pipeline_name)
    if definition is None:
        supported_rows = ", ".join(SUPPORTED_PIPELINES)
        raise ConduitConfigError(
            f"Unsupported pipeline '{pipeline_name}'. Use one of: {supported_rows}."
        )
    return definition
