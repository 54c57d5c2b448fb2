"""Application settings using Pydantic Settings.

This module defines the EvalflowSettings class which loads configuration
from environment variables and .env files using pydantic-settings.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from evalflow.core.evaluation.metrics import Aggregation


def _default_output_dir() -> Path:
    return Path.cwd() / "evaluations"


class EvaluationSettings(BaseSettings):
    """Evaluation-related settings."""

    model_config = SettingsConfigDict(
        env_prefix="EVALFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    folds: int = Field(default=5, ge=2, description="Number of cross-validation folds")
    shuffle: bool = Field(default=False, description="Shuffle points before fold assignment")
    seed: int | None = Field(default=None, description="Seed for the fold shuffle")
    aggregation: Aggregation = Field(
        default=Aggregation.METRIC,
        description="How fold scores are combined: 'metric', 'mean' or 'weighted'",
    )
    output_dir: Path = Field(
        default_factory=_default_output_dir,
        description="Directory where evaluation reports are written",
    )


class ResourceSettings(BaseSettings):
    """Resource-related settings."""

    model_config = SettingsConfigDict(
        env_prefix="EVALFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    n_jobs: int | None = Field(
        default=None,
        description="Parallel workers. Defaults to a safe number based on CPU count and RAM",
    )
    sequential: bool = Field(default=False, description="Run units in the calling process")
    backend: str | None = Field(default=None, description="joblib backend for parallel runs")
    pre_dispatch: str = Field(default="2*n_jobs", description="joblib pre-dispatch setting")
    memory_per_worker_gb: float = Field(
        default=0.5,
        description="Estimated peak memory of one unit of work, in GB",
    )


class EvalflowSettings(BaseSettings):
    """Root settings class that composes all settings groups."""

    model_config = SettingsConfigDict(
        env_prefix="EVALFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = Field(default=False, description="Include diagnostics in tracebacks")
    log_level: str = Field(default="INFO", description="Minimum log level")
    log_json: bool = Field(default=False, description="Serialize log records as JSON")

    evaluation: EvaluationSettings = Field(default_factory=EvaluationSettings)
    resources: ResourceSettings = Field(default_factory=ResourceSettings)
