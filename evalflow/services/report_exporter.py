"""Evaluation reports and their persistence."""

from collections.abc import Sequence
from datetime import datetime, timezone
import enum
from pathlib import Path
from typing import Any

from loguru import logger
import polars as pl
from pydantic import BaseModel, Field

from evalflow.core.engine.params import EngineParams
from evalflow.core.evaluation.search import SearchResult


class ConfigurationStatus(enum.StrEnum):
    """Whether a configuration made it into the ranking."""

    OK = "ok"
    PARTIAL = "partial"
    FAILED = "failed"


class ConfigurationReport(BaseModel):
    """Audit entry for one configuration."""

    index: int = Field(json_schema_extra={"description": "Position in the input list."})
    rank: int | None = Field(
        default=None,
        json_schema_extra={"description": "1-based rank, None for failed configurations."},
    )
    status: ConfigurationStatus
    config: EngineParams
    score: float | None = None
    fold_scores: list[float | None] = Field(default_factory=list)
    failed_folds: list[int] = Field(default_factory=list)
    other_scores: dict[str, float | None] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)


class EvaluationReport(BaseModel):
    """Report of a complete evaluation run."""

    run_id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metric: str
    other_metrics: list[str] = Field(default_factory=list)
    folds: int
    aggregation: str
    best_config: EngineParams
    best_score: float
    configurations: list[ConfigurationReport]


def _index_of(config: EngineParams, configs: Sequence[EngineParams], taken: set[int]) -> int:
    for index, candidate in enumerate(configs):
        if index not in taken and candidate == config:
            taken.add(index)
            return index
    raise ValueError("Configuration not found in the searched list")


def build_report(
    result: SearchResult,
    configs: Sequence[EngineParams],
    *,
    run_id: str,
    metric: str,
    other_metrics: Sequence[str] = (),
    folds: int,
    aggregation: str,
) -> EvaluationReport:
    """Build the audit report of a search.

    Args:
        result: The search result.
        configs: The configurations in input order, used to attribute indexes.
        run_id: Identifier of the run.
        metric: Header of the ranking metric.
        other_metrics: Headers of the secondary metrics.
        folds: Number of folds.
        aggregation: The aggregation policy used.

    Returns:
        The report, configurations ordered by rank then failures.
    """
    taken: set[int] = set()
    entries: list[ConfigurationReport] = []

    for rank, record in enumerate(result.records, start=1):
        entries.append(
            ConfigurationReport(
                index=_index_of(record.config, configs, taken),
                rank=rank,
                status=ConfigurationStatus.PARTIAL if record.partial else ConfigurationStatus.OK,
                config=record.config,
                score=record.score,
                fold_scores=list(record.fold_scores),
                failed_folds=list(record.failed_folds),
                other_scores=dict(zip(other_metrics, record.other_scores)),
                errors=[str(f) for f in record.failures],
            )
        )

    for failure in result.failures:
        entries.append(
            ConfigurationReport(
                index=_index_of(failure.config, configs, taken),
                status=ConfigurationStatus.FAILED,
                config=failure.config,
                fold_scores=[None] * folds,
                failed_folds=[f.fold_index for f in failure.failures],
                errors=[str(f) for f in failure.failures],
            )
        )

    return EvaluationReport(
        run_id=run_id,
        metric=metric,
        other_metrics=list(other_metrics),
        folds=folds,
        aggregation=aggregation,
        best_config=result.best_config,
        best_score=result.best_score,
        configurations=entries,
    )


def fold_scores_frame(report: EvaluationReport) -> pl.DataFrame:
    """Flatten the per-fold scores of a report into one row per (configuration, fold)."""
    rows: list[dict[str, Any]] = [
        {
            "index": entry.index,
            "rank": entry.rank,
            "status": entry.status.value,
            "fold": fold,
            "score": score,
            "config": entry.config.model_dump_json(),
        }
        for entry in report.configurations
        for fold, score in enumerate(entry.fold_scores)
    ]
    return pl.DataFrame(
        rows,
        schema={
            "index": pl.Int64,
            "rank": pl.Int64,
            "status": pl.Utf8,
            "fold": pl.Int64,
            "score": pl.Float64,
            "config": pl.Utf8,
        },
    )


class ReportExporter:
    """Writes evaluation reports to a directory, one subdirectory per run."""

    def __init__(self, output_dir: Path) -> None:
        self._output_dir = Path(output_dir)

    def export(self, report: EvaluationReport) -> dict[str, Path]:
        """Write the JSON report and the fold score table.

        Returns:
            The written paths, keyed by "report" and "fold_scores".
        """
        run_dir = self._output_dir / report.run_id
        run_dir.mkdir(parents=True, exist_ok=True)

        report_path = run_dir / "report.json"
        report_path.write_text(report.model_dump_json(indent=2), encoding="utf-8")

        scores_path = run_dir / "fold_scores.parquet"
        fold_scores_frame(report).write_parquet(scores_path)

        logger.info("Saved evaluation report to {path}", path=str(run_dir))
        return {"report": report_path, "fold_scores": scores_path}


__all__ = [
    "ConfigurationStatus",
    "ConfigurationReport",
    "EvaluationReport",
    "build_report",
    "fold_scores_frame",
    "ReportExporter",
]
