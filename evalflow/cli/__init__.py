"""CLI entry point for evalflow."""

import typer

from evalflow.config.logging import configure_logging
from evalflow.containers import container

from .evaluate import app as evaluate

app = typer.Typer()
app.add_typer(evaluate, name="evaluate", help="Cross-validated evaluation and parameter search.")


@app.callback()
def main() -> None:
    """Evaluate engine configurations with k-fold cross-validation."""
    configure_logging(container.settings())
