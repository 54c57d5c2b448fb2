"""Ready-made engines for evaluation runs."""

from evalflow.engines.classification import (
    accuracy_evaluation,
    create_classification_engine,
    default_params_generator,
)

__all__ = [
    "accuracy_evaluation",
    "create_classification_engine",
    "default_params_generator",
]
