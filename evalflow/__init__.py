"""Evaluation workflow engine: k-fold evaluation and parameter search."""

from evalflow.config.settings import EvalflowSettings
from evalflow.containers import Container, container

__all__ = [
    "Container",
    "container",
    "EvalflowSettings",
]
