from dataclasses import replace
from pathlib import Path
from typing import Annotated

from loguru import logger
import typer

from evalflow.containers import container
from evalflow.core.evaluation.errors import (
    EvaluationError,
    InvalidFoldCount,
    NoViableConfiguration,
    SearchCancelled,
)
from evalflow.core.evaluation.metrics import Aggregation
from evalflow.services.evaluation_workflow import WorkflowConfig, WorkflowResult
from evalflow.services.reference_resolver import (
    ReferenceResolutionError,
    resolve_evaluation,
    resolve_params_generator,
)

app = typer.Typer()


@app.command("run")
def run(
    evaluation: Annotated[
        str,
        typer.Argument(
            help="Evaluation definition as 'package.module:attribute' (an Evaluation or a factory).",
        ),
    ],
    params_generator: Annotated[
        str,
        typer.Argument(
            help="Configurations to search: 'package.module:attribute' or a JSON file.",
        ),
    ],
    folds: Annotated[
        int | None,
        typer.Option("--folds", "-k", min=2, help="Number of cross-validation folds."),
    ] = None,
    jobs: Annotated[
        int | None,
        typer.Option(
            "--jobs",
            "-j",
            min=1,
            help="Number of parallel workers. Defaults to safe number based on RAM.",
        ),
    ] = None,
    sequential: Annotated[
        bool | None,
        typer.Option(
            "--sequential/--no-sequential",
            "-s",
            help="Run every unit in the calling process instead of in parallel.",
        ),
    ] = None,
    shuffle: Annotated[
        bool | None,
        typer.Option("--shuffle/--no-shuffle", help="Shuffle points before fold assignment."),
    ] = None,
    seed: Annotated[
        int | None,
        typer.Option("--seed", help="Seed for the fold shuffle."),
    ] = None,
    aggregation: Annotated[
        Aggregation | None,
        typer.Option(
            "--aggregation",
            "-a",
            case_sensitive=False,
            help="How fold scores are combined into a configuration score.",
        ),
    ] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option("--output-dir", "-o", help="Directory where the report is written."),
    ] = None,
    no_export: Annotated[
        bool,
        typer.Option("--no-export", help="Do not write the report to disk."),
    ] = False,
):
    """Evaluate every configuration and report the best one."""
    try:
        definition = resolve_evaluation(evaluation)
        generator = resolve_params_generator(params_generator)
    except ReferenceResolutionError as e:
        logger.error("Reference resolution failed: {message}", message=str(e))
        raise typer.Exit(1)

    config = _build_workflow_config(
        container.workflow_config(), folds, jobs, sequential, shuffle, seed, aggregation
    )
    if no_export:
        exporter = None
    elif output_dir is not None:
        exporter = container.report_exporter(output_dir=output_dir)
    else:
        exporter = container.report_exporter()

    workflow = container.evaluation_workflow(config=config, exporter=exporter)

    try:
        outcome = workflow.run(definition, generator)
    except NoViableConfiguration as e:
        logger.error("No viable configuration: {message}", message=str(e))
        for failure in e.failures:
            logger.error(
                "Configuration {config} failed: {cause!r}",
                config=failure.config.model_dump_json(),
                cause=failure.cause,
            )
        raise typer.Exit(1)
    except (InvalidFoldCount, SearchCancelled) as e:
        logger.error(str(e))
        raise typer.Exit(1)
    except EvaluationError as e:
        logger.error(f"Evaluation failed: {e}")
        raise typer.Exit(1)
    except Exception as e:
        logger.exception(f"Evaluation run failed: {e}")
        raise typer.Exit(1)

    _print_summary(outcome)
    raise typer.Exit(0)


def _build_workflow_config(
    base: WorkflowConfig,
    folds: int | None,
    jobs: int | None,
    sequential: bool | None,
    shuffle: bool | None,
    seed: int | None,
    aggregation: Aggregation | None,
) -> WorkflowConfig:
    """Apply CLI overrides on top of the configured defaults.

    This is a simple mapping function with no business logic.
    """
    overrides = {
        "folds": folds,
        "n_jobs": jobs,
        "sequential": sequential,
        "shuffle": shuffle,
        "seed": seed,
        "aggregation": aggregation,
    }
    return replace(base, **{key: value for key, value in overrides.items() if value is not None})


def _print_summary(outcome: WorkflowResult) -> None:
    report = outcome.report

    typer.echo(f"Run {report.run_id} ({report.metric}, k={report.folds})")
    for entry in report.configurations:
        if entry.score is None:
            typer.echo(f"  [failed] #{entry.index}: {'; '.join(entry.errors)}")
        else:
            typer.echo(f"  {entry.rank:>3}. #{entry.index} {entry.status.value}: {entry.score:.4f}")

    typer.echo(f"Best score: {report.best_score:.4f}")
    typer.echo(f"Best configuration: {report.best_config.model_dump_json()}")
    for name, path in outcome.paths.items():
        typer.echo(f"Saved {name}: {path}")
