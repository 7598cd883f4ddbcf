"""Entity and output schema registry.

Input schemas guard extraction from both fixtures and remote APIs.
Output schemas guard the load stage of each pipeline.
"""

from __future__ import annotations

from core.errors import ConduitSchemaError
from core.schema import FieldSpec, Schema

ORDERS_SCHEMA = Schema(
    name="orders",
    fields=(
        FieldSpec("order_id", "string"),
        FieldSpec("customer_id", "string"),
        FieldSpec("order_date", "date"),
        FieldSpec("amount", "float"),
        FieldSpec("status", "string", required=False),
    ),
)

CUSTOMERS_SCHEMA = Schema(
    name="customers",
    fields=(
        FieldSpec("customer_id", "string"),
        FieldSpec("signup_date", "date"),
        FieldSpec("churned", "bool", required=False),
    ),
)

CAMPAIGNS_SCHEMA = Schema(
    name="campaigns",
    fields=(
        FieldSpec("campaign_id", "string"),
        FieldSpec("campaign_name", "string"),
        FieldSpec("start_date", "date"),
        FieldSpec("budget", "float"),
        FieldSpec("spend", "float", required=False),
    ),
)

_CUSTOMER_SUMMARY_FIELDS = (
    FieldSpec("customer_id", "string"),
    FieldSpec("order_count", "int"),
    FieldSpec("total_spent", "float"),
    FieldSpec("average_order_value", "float"),
    FieldSpec("first_purchase_date", "date"),
    FieldSpec("last_purchase_date", "date"),
    FieldSpec("days_since_first_purchase", "int"),
    FieldSpec("days_since_last_purchase", "int"),
    FieldSpec("segment", "string"),
)

CUSTOMER_SUMMARY_SCHEMA = Schema(name="customer_summary", fields=_CUSTOMER_SUMMARY_FIELDS)

CUSTOMER_FEATURES_SCHEMA = Schema(
    name="customer_features",
    fields=(
        FieldSpec("customer_id", "string"),
        FieldSpec("signup_date", "date"),
        FieldSpec("tenure_days", "int"),
        FieldSpec("order_count", "int"),
        FieldSpec("total_spent", "float"),
        FieldSpec("average_order_value", "float"),
        FieldSpec("first_purchase_date", "date", required=False),
        FieldSpec("last_purchase_date", "date", required=False),
        FieldSpec("days_since_last_purchase", "int"),
        FieldSpec("churned", "bool", required=False),
    ),
)

CUSTOMER_CHURN_SCHEMA = Schema(
    name="customer_churn",
    fields=CUSTOMER_FEATURES_SCHEMA.fields
    + (
        FieldSpec("churn_probability", "float"),
        FieldSpec("churn_predicted", "bool"),
    ),
)

CLEAN_CAMPAIGNS_SCHEMA = Schema(
    name="clean_campaigns",
    fields=CAMPAIGNS_SCHEMA.fields[:-1]
    + (
        FieldSpec("spend", "float"),
        FieldSpec("budget_utilization", "float"),
    ),
)

CAMPAIGN_ENRICHMENT_SCHEMA = Schema(
    name="campaign_enrichment",
    fields=CLEAN_CAMPAIGNS_SCHEMA.fields
    + (
        FieldSpec("channel", "string", required=False),
        FieldSpec("audience", "string", required=False),
        FieldSpec("region", "string", required=False),
        FieldSpec("enrichment_status", "string"),
        FieldSpec("enrichment_error", "string", required=False),
    ),
)

ENTITY_SCHEMAS: dict[str, Schema] = {
    schema.name: schema for schema in (ORDERS_SCHEMA, CUSTOMERS_SCHEMA, CAMPAIGNS_SCHEMA)
}


def get_entity_schema(entity_name: str) -> Schema:
    """Look up an input entity schema by name.

    Raises:
        ConduitSchemaError: If no schema is declared for the entity.
    """
    schema = ENTITY_SCHEMAS.get(entity_name)
    if schema is None:
        supported_rows = ", ".join(sorted(ENTITY_SCHEMAS))
        raise ConduitSchemaError(
            f"No schema declared for entity '{entity_name}'. Use one of: {supported_rows}."
        )
    return schema
