"""Public SDK surface for Conduit.

This module provides a stable import path for library users.
It re-exports settings, typed models, and the pipeline entry points.
"""

from __future__ import annotations

from core.config import Settings
from core.entity_schemas import ENTITY_SCHEMAS, get_entity_schema
from core.schema import FieldSpec, Schema, validate_table
from core.types import Dataset, LoadResult, RunReport, StageMetric, StageOutcome
from extract.strategies import ExtractionStrategy, default_strategies, extract_entity
from load.sinks import load_dataset
from pipeline.definitions import PIPELINE_DEFINITIONS, get_pipeline_definition
from pipeline.report import render_report
from pipeline.runner import PipelineRunner, run_pipeline
from stages.generation_client import TextGenerator

__all__ = [
    "Dataset",
    "ENTITY_SCHEMAS",
    "ExtractionStrategy",
    "FieldSpec",
    "LoadResult",
    "PIPELINE_DEFINITIONS",
    "PipelineRunner",
    "RunReport",
    "Schema",
    "Settings",
    "StageMetric",
    "StageOutcome",
    "TextGenerator",
    "default_strategies",
    "extract_entity",
    "get_entity_schema",
    "get_pipeline_definition",
    "load_dataset",
    "render_report",
    "run_pipeline",
    "validate_table",
]
