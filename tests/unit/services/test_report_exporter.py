"""Tests for evalflow.services.report_exporter module."""

import json
from pathlib import Path

import polars as pl
import pytest

from evalflow.core.evaluation.evaluator import Evaluator
from evalflow.core.evaluation.metrics import Accuracy, Precision, Recall
from evalflow.core.evaluation.runner import PipelineRunner
from evalflow.core.evaluation.search import SearchController, SearchResult
from evalflow.services.report_exporter import (
    ConfigurationStatus,
    EvaluationReport,
    ReportExporter,
    build_report,
    fold_scores_frame,
)


@pytest.fixture
def configs(three_configs, make_config) -> list:
    """Three ranked configurations, one partial one and one failing one."""
    return [
        make_config(fail_folds=range(5)),
        *three_configs,
        make_config(counts=[0] * 5, fail_folds=[2]),
    ]


@pytest.fixture
def result(scripted_engine, configs, dataset) -> SearchResult:
    """The search result over `configs`."""
    evaluator = Evaluator(runner=PipelineRunner(scripted_engine), metric=Accuracy())
    return SearchController(evaluator).search(configs, 5, dataset)


@pytest.fixture
def report(result: SearchResult, configs) -> EvaluationReport:
    """The report of `result`."""
    return build_report(
        result,
        configs,
        run_id="01912345-6789-7abc-8def-0123456789ab",
        metric="Accuracy",
        folds=5,
        aggregation="metric",
    )


class DescribeBuildReport:
    """Tests for build_report function."""

    def it_lists_ranked_configurations_first(self, report: EvaluationReport) -> None:
        """Verify ranks and input indexes of the ranked entries."""
        ranked = [(e.rank, e.index) for e in report.configurations if e.rank is not None]

        assert ranked == [(1, 4), (2, 1), (3, 2), (4, 3)]

    def it_marks_partial_and_failed_configurations(self, report: EvaluationReport) -> None:
        """Verify the status of every entry."""
        statuses = {e.index: e.status for e in report.configurations}

        assert statuses == {
            0: ConfigurationStatus.FAILED,
            1: ConfigurationStatus.OK,
            2: ConfigurationStatus.OK,
            3: ConfigurationStatus.OK,
            4: ConfigurationStatus.PARTIAL,
        }

    def it_records_the_failed_configuration_errors(self, report: EvaluationReport) -> None:
        """Verify failed entries carry their fold errors and no score."""
        failed = report.configurations[-1]

        assert failed.index == 0
        assert failed.rank is None
        assert failed.score is None
        assert failed.failed_folds == [0, 1, 2, 3, 4]
        assert len(failed.errors) == 5
        assert failed.fold_scores == [None] * 5

    def it_keeps_the_best_configuration(
        self, report: EvaluationReport, result: SearchResult
    ) -> None:
        """Verify the report's best configuration and score."""
        assert report.best_config == result.best_config
        assert report.best_score == pytest.approx(1.0)

    def it_attributes_duplicate_configurations_to_distinct_indexes(
        self, scripted_engine, make_config, dataset
    ) -> None:
        """Verify identical configurations keep their own input positions."""
        config = make_config(counts=[1] * 5)
        evaluator = Evaluator(runner=PipelineRunner(scripted_engine), metric=Accuracy())
        result = SearchController(evaluator).search([config, config], 5, dataset)

        report = build_report(
            result, [config, config], run_id="run", metric="Accuracy", folds=5, aggregation="mean"
        )

        assert [e.index for e in report.configurations] == [0, 1]

    def it_reports_undefined_secondary_scores_as_null(
        self, tmp_path: Path, scripted_engine, make_config, dataset
    ) -> None:
        """Verify a secondary metric undefined on every fold is kept as null."""
        config = make_config(counts=[1] * 5)
        evaluator = Evaluator(
            runner=PipelineRunner(scripted_engine),
            metric=Accuracy(),
            other_metrics=[Recall(label=1), Precision(label=2)],
        )
        result = SearchController(evaluator).search([config], 5, dataset)

        report = build_report(
            result,
            [config],
            run_id="run",
            metric="Accuracy",
            other_metrics=["Recall(label=1)", "Precision(label=2)"],
            folds=5,
            aggregation="metric",
        )
        saved = json.loads(ReportExporter(tmp_path).export(report)["report"].read_text())

        assert report.configurations[0].status == ConfigurationStatus.OK
        assert report.configurations[0].other_scores["Precision(label=2)"] is None
        assert saved["configurations"][0]["other_scores"]["Precision(label=2)"] is None


class DescribeFoldScoresFrame:
    """Tests for fold_scores_frame function."""

    def it_has_one_row_per_configuration_and_fold(self, report: EvaluationReport) -> None:
        """Verify the flattened table shape and schema."""
        frame = fold_scores_frame(report)

        assert frame.height == 25
        assert frame.schema["score"] == pl.Float64
        assert frame.filter(pl.col("status") == "failed").get_column("score").null_count() == 5


class DescribeReportExporter:
    """Tests for ReportExporter class."""

    def it_writes_the_report_and_fold_scores(
        self, tmp_path: Path, report: EvaluationReport
    ) -> None:
        """Verify both files are written under the run directory."""
        paths = ReportExporter(tmp_path).export(report)

        run_dir = tmp_path / report.run_id
        assert paths == {
            "report": run_dir / "report.json",
            "fold_scores": run_dir / "fold_scores.parquet",
        }
        saved = json.loads(paths["report"].read_text())
        assert saved["run_id"] == report.run_id
        assert len(saved["configurations"]) == 5
        assert pl.read_parquet(paths["fold_scores"]).height == 25

    def it_reloads_into_an_equal_report(self, tmp_path: Path, report: EvaluationReport) -> None:
        """Verify the JSON report validates back into the model."""
        paths = ReportExporter(tmp_path).export(report)

        loaded = EvaluationReport.model_validate_json(paths["report"].read_text())

        assert loaded.best_config == report.best_config
        assert [e.status for e in loaded.configurations] == [
            e.status for e in report.configurations
        ]
