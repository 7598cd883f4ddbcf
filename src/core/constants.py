"""Core constants used across Conduit modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

ENV_PREFIX = "CONDUIT_"
SETTINGS_FILE_ENV_VAR = "CONDUIT_SETTINGS_FILE"
DEFAULT_DOTENV_PATH = Path(".env")
DEFAULT_ENVIRONMENT = "development"
SUPPORTED_ENVIRONMENTS = ("development", "production")
DEFAULT_PIPELINE = "customer_summary"
SUPPORTED_PIPELINES = ("customer_summary", "churn", "campaign_enrichment")
DEFAULT_SOURCE_KIND = "file"
SUPPORTED_SOURCE_KINDS = ("file", "api")
DEFAULT_INPUT_DIR = Path("data")
DEFAULT_OUTPUT_URI = "output"
DEFAULT_OUTPUT_FORMAT = "csv"
SUPPORTED_OUTPUT_FORMATS = ("csv", "jsonl", "parquet")
SUPPORTED_INPUT_EXTENSIONS = (".csv", ".jsonl", ".parquet")
DEFAULT_BATCH_SIZE = 100
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_LLM_MODEL = "gpt-4o-mini"
DEFAULT_MAX_CONCURRENCY = 4
DEFAULT_ML_MODE = "predict"
SUPPORTED_ML_MODES = ("train", "predict")
DEFAULT_MODEL_PATH = Path("models/churn_model.pt")
DEFAULT_TRAIN_EPOCHS = 300
DEFAULT_TRAIN_LEARNING_RATE = 0.1
DEFAULT_RANDOM_SEED = 42
DEFAULT_PREDICTION_THRESHOLD = 0.5
DEFAULT_AT_RISK_DAYS = 90
DEFAULT_NEW_CUSTOMER_DAYS = 30
DEFAULT_LOYAL_MIN_ORDERS = 5
DEFAULT_REPORT_MAX_ROWS = 20
DEFAULT_LOG_LEVEL = "info"
SUPPORTED_LOG_LEVELS = ("debug", "info", "warning", "error")
EXCLUDED_ORDER_STATUSES = ("cancelled", "refunded")
HASH_ALGORITHM = "sha256"
ENRICHMENT_STATUS_OK = "ok"
ENRICHMENT_STATUS_FLAGGED = "flagged"
ENRICHMENT_OUTPUT_FIELDS = ("channel", "audience", "region")
CHURN_FEATURE_FIELDS = (
    "order_count",
    "total_spent",
    "average_order_value",
    "days_since_last_purchase",
    "tenure_days",
)
CHURN_LABEL_FIELD = "churned"
