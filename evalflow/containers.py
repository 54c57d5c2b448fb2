"""Dependency injection container for the evalflow application.

This module defines the Container class which manages all application
dependencies using dependency-injector. It provides centralized access
to services through the container instance.
"""

from dependency_injector import containers, providers
from loguru import logger

from evalflow.config.logging import LoggingSearchObserver
from evalflow.config.settings import EvalflowSettings
from evalflow.services.evaluation_workflow import EvaluationWorkflow, WorkflowConfig
from evalflow.services.report_exporter import ReportExporter
from evalflow.services.resource_calculator import ResourceCalculator


class Container(containers.DeclarativeContainer):
    """Main dependency injection container for the evalflow application.

    This container manages all application services and their dependencies.
    Services are accessed via the container singleton instance.
    """

    # Root settings - loaded from environment/.env
    settings = providers.Singleton(EvalflowSettings)

    # Logger - use loguru global logger
    log = providers.Object(logger)

    # --- Core Services ---

    resource_calculator = providers.Singleton(
        ResourceCalculator,
        memory_per_worker_gb=settings.provided.resources.memory_per_worker_gb,
    )

    report_exporter = providers.Factory(
        ReportExporter,
        output_dir=settings.provided.evaluation.output_dir,
    )

    logging_observer = providers.Factory(LoggingSearchObserver)

    # --- Evaluation Workflow ---

    workflow_config = providers.Factory(
        WorkflowConfig,
        folds=settings.provided.evaluation.folds,
        shuffle=settings.provided.evaluation.shuffle,
        seed=settings.provided.evaluation.seed,
        aggregation=settings.provided.evaluation.aggregation,
        n_jobs=settings.provided.resources.n_jobs,
        sequential=settings.provided.resources.sequential,
        backend=settings.provided.resources.backend,
        pre_dispatch=settings.provided.resources.pre_dispatch,
    )

    evaluation_workflow = providers.Factory(
        EvaluationWorkflow,
        config=workflow_config,
        resource_calculator=resource_calculator,
        exporter=report_exporter,
        observers=providers.List(logging_observer),
    )


def create_container() -> Container:
    """Create and initialize the DI container.

    Returns:
        Initialized Container instance.
    """
    container = Container()
    return container


# Global container instance
container = create_container()
