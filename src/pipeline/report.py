"""Run report rendering.

The report is plain text meant for people and for downstream text
consumers alike: a pipe-delimited table with a header row, followed by
one ``key=value`` line per summary fact.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from core.types import RunReport

_MISSING_VALUE = "-"


def render_report(report: RunReport, max_rows: int) -> str:
    """Render a run report.

    Args:
        report: Completed run report.
        max_rows: Maximum number of table rows to include.

    Returns:
        Report text ending with a newline.
    """
    lines = [f"# {report.pipeline} report"]
    lines.extend(render_table(report.dataset.column_names, report.dataset.to_rows()[:max_rows]))
    shown_rows = min(max_rows, report.dataset.num_rows)
    lines.append(f"({shown_rows} of {report.dataset.num_rows} rows shown)")
    lines.append("")
    lines.extend(f"{key}={value}" for key, value in summary_items(report))
    return "\n".join(lines) + "\n"


def render_table(columns: tuple[str, ...], rows: list[dict[str, Any]]) -> list[str]:
    """Render rows as an aligned pipe-delimited table."""
    cells = [[format_cell(row.get(column)) for column in columns] for row in rows]
    widths = [
        max([len(column)] + [len(row_cells[index]) for row_cells in cells])
        for index, column in enumerate(columns)
    ]
    header = " | ".join(column.ljust(width) for column, width in zip(columns, widths))
    divider = "-+-".join("-" * width for width in widths)
    body = [
        " | ".join(cell.ljust(width) for cell, width in zip(row_cells, widths)).rstrip()
        for row_cells in cells
    ]
    return [header.rstrip(), divider, *body]


def summary_items(report: RunReport) -> list[tuple[str, str]]:
    """Build ordered summary facts for a run."""
    rows_by_stage = {metric.stage: metric.rows for metric in report.stage_metrics}
    items = [
        ("pipeline", report.pipeline),
        ("source_kind", report.source_kind),
        ("started_at", report.started_at.isoformat()),
        ("rows_extracted", str(rows_by_stage.get("extract", 0))),
        ("rows_transformed", str(rows_by_stage.get("transform", 0))),
        ("rows_loaded", str(report.load_result.rows_written)),
        ("flagged_records", str(report.flagged_records)),
        ("destination", report.load_result.destination),
        ("duration_seconds", f"{report.duration_seconds:.3f}"),
    ]
    items.extend((key, value) for key, value in sorted(report.details.items()))
    return items


def format_cell(value: object) -> str:
    """Format one cell; pipes and newlines are replaced to keep rows parseable."""
    if value is None:
        return _MISSING_VALUE
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return f"{value:.2f}" if value == round(value, 2) else f"{value:.4f}"
    if isinstance(value, date):
        return value.isoformat()
    return str(value).replace("|", "/").replace("\n", " ")
