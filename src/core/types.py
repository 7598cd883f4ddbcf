"""Shared typed models.

This module defines immutable data models exchanged between extract,
transform, optional stage, load, and reporting layers.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Literal, Mapping

import pyarrow as pa

StageName = Literal["extract", "transform", "stage", "load"]
OptionalStageKind = Literal["none", "train", "predict", "generate"]


@dataclass(frozen=True)
class Dataset:
    """Schema-validated tabular value passed between stages.

    Attributes:
        schema_name: Name of the schema the table conforms to.
        table: Immutable Arrow table.
        sources: Files or URLs the rows were read from.
    """

    schema_name: str
    table: pa.Table
    sources: tuple[str, ...] = ()

    @property
    def num_rows(self) -> int:
        return self.table.num_rows

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(self.table.column_names)

    def to_rows(self) -> list[dict[str, Any]]:
        """Return rows as Python dictionaries in table order."""
        return self.table.to_pylist()

    def derive(self, table: pa.Table, schema_name: str | None = None) -> "Dataset":
        """Return a new dataset carrying this dataset's lineage."""
        return replace(self, table=table, schema_name=schema_name or self.schema_name)


@dataclass(frozen=True)
class StageOutcome:
    """Result of the optional pipeline stage.

    Attributes:
        dataset: Dataset produced by the stage.
        flagged_records: Number of rows flagged as not fully processed.
        details: Extra ``key=value`` facts for the run report.
    """

    dataset: Dataset
    flagged_records: int = 0
    details: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class LoadResult:
    """Destination write confirmation.

    Attributes:
        destination: Human-readable destination location.
        rows_written: Number of rows persisted.
    """

    destination: str
    rows_written: int


@dataclass(frozen=True)
class StageMetric:
    """One stage timing row.

    Attributes:
        stage: Stage name.
        rows: Rows in the stage output.
        duration_seconds: Wall-clock stage duration.
    """

    stage: StageName
    rows: int
    duration_seconds: float


@dataclass(frozen=True)
class RunReport:
    """Completed pipeline run summary.

    Attributes:
        pipeline: Pipeline name.
        source_kind: Extraction strategy used.
        started_at: UTC start timestamp.
        stage_metrics: Ordered per-stage metrics.
        dataset: Final dataset that was loaded.
        load_result: Destination confirmation.
        flagged_records: Rows flagged by the optional stage.
        details: Extra ``key=value`` facts from the optional stage.
    """

    pipeline: str
    source_kind: str
    started_at: datetime
    stage_metrics: tuple[StageMetric, ...]
    dataset: Dataset
    load_result: LoadResult
    flagged_records: int
    details: Mapping[str, str] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> float:
        return sum(metric.duration_seconds for metric in self.stage_metrics)
