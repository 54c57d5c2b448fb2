"""Services module for the evalflow application.

This module provides the services that sit around the evaluation core:
run orchestration, reference resolution, report export and resource
calculation.
"""

from evalflow.services.evaluation_workflow import (
    EvaluationWorkflow,
    WorkflowConfig,
    WorkflowResult,
)
from evalflow.services.reference_resolver import (
    ReferenceResolutionError,
    resolve_evaluation,
    resolve_params_generator,
)
from evalflow.services.report_exporter import (
    EvaluationReport,
    ReportExporter,
    build_report,
)
from evalflow.services.resource_calculator import ResourceCalculator

__all__ = [
    # Workflow
    "EvaluationWorkflow",
    "WorkflowConfig",
    "WorkflowResult",
    # References
    "ReferenceResolutionError",
    "resolve_evaluation",
    "resolve_params_generator",
    # Reports
    "EvaluationReport",
    "ReportExporter",
    "build_report",
    # Resource calculation
    "ResourceCalculator",
]
