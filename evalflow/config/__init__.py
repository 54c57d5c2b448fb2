"""Configuration module for evaluation settings and logging."""

from dotenv import load_dotenv

from evalflow.config.settings import EvalflowSettings, EvaluationSettings, ResourceSettings

# Load environment variables from .env file if it exists
load_dotenv()

__all__ = [
    "EvalflowSettings",
    "EvaluationSettings",
    "ResourceSettings",
]
