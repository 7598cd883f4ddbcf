"""Pipeline orchestration.

This module sequences extract, transform, optional stage, and load in
fixed order. Each stage fully completes before the next begins, and the
first stage failure stops the run with the stage name attached.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable, Mapping, TypeVar

from core.config import Settings
from core.errors import ConduitStageError
from core.logging_config import configure_logging, get_logger
from core.types import Dataset, RunReport, StageMetric, StageName, StageOutcome
from extract.strategies import ExtractionStrategy, extract_entity
from load.sinks import load_dataset
from pipeline.definitions import get_pipeline_definition
from stages.generation_client import TextGenerator
from stages.optional_stage import run_optional_stage

_LOGGER = get_logger(__name__)
_StageResult = TypeVar("_StageResult")


class PipelineRunner:
    """Runner for one pipeline execution."""

    def __init__(
        self,
        settings: Settings,
        strategies: Mapping[str, ExtractionStrategy] | None = None,
        generator: TextGenerator | None = None,
    ) -> None:
        self._settings = settings
        self._strategies = strategies
        self._generator = generator
        self._definition = get_pipeline_definition(settings.pipeline)
        self._metrics: list[StageMetric] = []

    def run(self) -> RunReport:
        """Execute all stages and return the run report.

        Raises:
            ConduitStageError: If any stage fails.
        """
        started_at = datetime.now(timezone.utc)
        _LOGGER.info(
            "pipeline_started",
            pipeline=self._definition.name,
            source_kind=self._settings.source_kind,
            stage_kind=self._definition.stage_kind(self._settings),
        )
        extracted = self._run_stage("extract", self._extract, _sum_rows)
        transformed = self._run_stage(
            "transform",
            lambda: self._definition.run_transform(extracted, self._settings),
            lambda dataset: dataset.num_rows,
        )
        outcome = self._run_stage(
            "stage",
            lambda: self._run_optional_stage(transformed),
            lambda result: result.dataset.num_rows,
        )
        load_result = self._run_stage(
            "load",
            lambda: load_dataset(
                outcome.dataset,
                self._definition.output_schema,
                self._settings,
                self._definition.name,
            ),
            lambda result: result.rows_written,
        )
        report = RunReport(
            pipeline=self._definition.name,
            source_kind=self._settings.source_kind,
            started_at=started_at,
            stage_metrics=tuple(self._metrics),
            dataset=outcome.dataset,
            load_result=load_result,
            flagged_records=outcome.flagged_records,
            details=outcome.details,
        )
        _LOGGER.info(
            "pipeline_completed",
            pipeline=report.pipeline,
            rows_loaded=load_result.rows_written,
            flagged_records=report.flagged_records,
            destination=load_result.destination,
            duration_seconds=round(report.duration_seconds, 4),
        )
        return report

    def _extract(self) -> dict[str, Dataset]:
        return {
            schema.name: extract_entity(self._settings, schema, self._strategies)
            for schema in self._definition.entities
        }

    def _run_optional_stage(self, dataset: Dataset) -> StageOutcome:
        stage_kind = self._definition.stage_kind(self._settings)
        return run_optional_stage(stage_kind, dataset, self._settings, self._generator)

    def _run_stage(
        self,
        stage: StageName,
        action: Callable[[], _StageResult],
        count_rows: Callable[[_StageResult], int],
    ) -> _StageResult:
        _LOGGER.info("stage_started", pipeline=self._definition.name, stage=stage)
        started = time.perf_counter()
        try:
            result = action()
        except Exception as error:
            _LOGGER.error(
                "stage_failed",
                pipeline=self._definition.name,
                stage=stage,
                error_type=type(error).__name__,
                message=str(error),
            )
            raise ConduitStageError(stage, error) from error
        duration = time.perf_counter() - started
        row_count = count_rows(result)
        self._metrics.append(StageMetric(stage=stage, rows=row_count, duration_seconds=duration))
        _LOGGER.info(
            "stage_completed",
            pipeline=self._definition.name,
            stage=stage,
            rows=row_count,
            duration_seconds=round(duration, 4),
        )
        return result


def run_pipeline(
    settings: Settings,
    strategies: Mapping[str, ExtractionStrategy] | None = None,
    generator: TextGenerator | None = None,
) -> RunReport:
    """Run the configured pipeline end to end.

    Args:
        settings: Immutable settings for this run.
        strategies: Optional extraction strategy registry override.
        generator: Optional text generator for the enrichment stage.

    Returns:
        Completed run report.

    Raises:
        ConduitConfigError: If the configured pipeline is unknown.
        ConduitStageError: If any stage fails.
    """
    configure_logging(settings.log_level)
    return PipelineRunner(settings, strategies, generator).run()


def _sum_rows(datasets: Mapping[str, Dataset]) -> int:
    return sum(dataset.num_rows for dataset in datasets.values())
