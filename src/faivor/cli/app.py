"""FAIVOR validation CLI application entry point.

Provides commands for profiling CSV datasets, checking a dataset folder
against its model metadata, running the two-stage remote validation and
classifying validator metrics.

Usage:
    faivor profile <csv-file>
    faivor match <dataset-folder>
    faivor validate <dataset-folder> [--mode auto|full]
    faivor metrics <metrics-json>
    faivor health
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape

from faivor.models.validation import ValidationMode

app = typer.Typer(
    name="faivor",
    help="Dataset profiling and remote model validation for FAIRmodels.",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging on stderr"),
    ] = False,
) -> None:
    """Configure logging before any command runs."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _error(message: object) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(str(message))}")


def _load_folder(folder: Path):
    from faivor.io.folder import load_dataset_folder

    try:
        return load_dataset_folder(folder)
    except (FileNotFoundError, ValueError) as e:
        _error(e)
        raise typer.Exit(code=1) from e


@app.command()
def version() -> None:
    """Show the current version."""
    from faivor import __version__

    console.print(f"faivor-validation {__version__}")


@app.command()
def profile(
    csv_path: Annotated[
        Path,
        typer.Argument(help="CSV file to profile"),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the profile as JSON to this file"),
    ] = None,
    detail: Annotated[
        bool,
        typer.Option("--detail", "-d", help="Show column-level statistics"),
    ] = False,
) -> None:
    """Profile a CSV dataset.

    Classifies each column as numerical or categorical and summarizes it
    (moments, quartiles and histogram, or value frequencies).
    """
    from faivor.cli.display import display_column_detail, display_profile_summary
    from faivor.errors import FaivorError
    from faivor.profiling.profiler import profile_file

    if not csv_path.is_file():
        _error(f"File not found: {csv_path}")
        raise typer.Exit(code=1)

    try:
        result = profile_file(csv_path)
    except (FaivorError, UnicodeDecodeError) as e:
        _error(e)
        raise typer.Exit(code=1) from e

    display_profile_summary(result, console)
    if detail:
        console.print()
        display_column_detail(result, console)

    if output is not None:
        output.write_text(result.model_dump_json(indent=2))
        console.print(f"\n[green]Profile written to {output}[/green]")


@app.command()
def match(
    folder: Annotated[
        Path,
        typer.Argument(help="Dataset folder with metadata.json and data.csv"),
    ],
) -> None:
    """Compare a dataset's columns with the model's required inputs."""
    from faivor.cli.display import display_match_report
    from faivor.errors import FaivorError
    from faivor.io.csv_reader import decode_bytes, read_header
    from faivor.parsing.metadata import parse_model_metadata
    from faivor.parsing.schema_matcher import match_columns

    dataset_folder = _load_folder(folder)
    assert dataset_folder.metadata_text is not None

    try:
        schema = parse_model_metadata(dataset_folder.metadata_text)
        header = read_header(decode_bytes(dataset_folder.data))
    except (FaivorError, UnicodeDecodeError) as e:
        _error(e)
        raise typer.Exit(code=1) from e

    report = match_columns(header, schema)
    display_match_report(schema, report, console)
    if not report.is_satisfied:
        raise typer.Exit(code=1)


@app.command()
def validate(
    folder: Annotated[
        Path,
        typer.Argument(help="Dataset folder with metadata.json and data.csv"),
    ],
    mode: Annotated[
        ValidationMode,
        typer.Option("--mode", "-m", help="auto: structural check only; full: run the model"),
    ] = ValidationMode.FULL,
    validator_url: Annotated[
        str | None,
        typer.Option("--validator-url", help="Validator service URL (overrides FAIVOR_VALIDATOR_URL)"),
    ] = None,
    seed: Annotated[
        int | None,
        typer.Option("--seed", help="Seed for synthesized mock columns"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the outcome as JSON to this file"),
    ] = None,
) -> None:
    """Run structural and execution validation against the validator service.

    Exits with code 1 when the run does not succeed.
    """
    import asyncio
    import random

    from faivor.cli.display import display_outcome
    from faivor.validation.orchestrator import ValidationOrchestrator
    from faivor.validator.client import ValidatorClient

    settings = _settings()
    dataset_folder = _load_folder(folder)
    assert dataset_folder.metadata_text is not None
    rng = random.Random(seed) if seed is not None else None

    async def _run():
        async with ValidatorClient(
            validator_url or settings.validator_url, timeout=settings.request_timeout
        ) as client:
            orchestrator = ValidationOrchestrator(
                client, mock_row_count=settings.mock_row_count, rng=rng
            )
            return await orchestrator.run_from_documents(
                dataset_folder.metadata_text,
                dataset_folder.data,
                dataset_folder.column_metadata_text,
                mode,
            )

    console.print(
        f"\n[bold blue]Validating[/bold blue] {dataset_folder.name} "
        f"({dataset_folder.total_size} bytes, mode={mode.value})..."
    )
    outcome = asyncio.run(_run())
    display_outcome(outcome, console)

    if output is not None:
        output.write_text(outcome.model_dump_json(indent=2))
        console.print(f"\n[green]Outcome written to {output}[/green]")

    if not outcome.success:
        raise typer.Exit(code=1)


@app.command()
def metrics(
    metrics_path: Annotated[
        Path,
        typer.Argument(help="JSON file with a flat metrics object (or a validate-model response)"),
    ],
    protected: Annotated[
        list[str] | None,
        typer.Option("--protected", "-p", help="Protected attribute (repeatable)"),
    ] = None,
) -> None:
    """Classify validator metrics into performance/fairness/bias/explainability buckets."""
    import json

    from faivor.classification.metrics import classify_metrics
    from faivor.cli.display import display_metric_buckets

    if not metrics_path.is_file():
        _error(f"File not found: {metrics_path}")
        raise typer.Exit(code=1)

    try:
        data = json.loads(metrics_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        _error(f"Invalid JSON: {e}")
        raise typer.Exit(code=1) from e

    if isinstance(data, dict) and isinstance(data.get("metrics"), dict):
        data = data["metrics"]
    if not isinstance(data, dict):
        _error("Expected a JSON object of metric values")
        raise typer.Exit(code=1)

    numeric = {
        k: float(v)
        for k, v in data.items()
        if isinstance(v, int | float) and not isinstance(v, bool)
    }
    skipped = len(data) - len(numeric)
    if skipped:
        logger.warning("Skipped {} non-numeric metric value(s)", skipped)

    buckets = classify_metrics(numeric, protected_attributes=protected or None)
    display_metric_buckets(buckets, console)


@app.command()
def health(
    validator_url: Annotated[
        str | None,
        typer.Option("--validator-url", help="Validator service URL (overrides FAIVOR_VALIDATOR_URL)"),
    ] = None,
) -> None:
    """Check that the validator service is reachable."""
    import asyncio

    from faivor.errors import FaivorError
    from faivor.validator.client import ValidatorClient

    settings = _settings()
    url = validator_url or settings.validator_url

    async def _check():
        async with ValidatorClient(url, timeout=settings.request_timeout) as client:
            return await client.health_check()

    try:
        payload = asyncio.run(_check())
    except FaivorError as e:
        _error(f"{e.message} ({e.technical_details})")
        raise typer.Exit(code=1) from e

    message = payload.get("message", "") if isinstance(payload, dict) else payload
    console.print(f"[green]Validator at {url} is up[/green] {message}")


def _settings():
    from pydantic import ValidationError

    from faivor.config import load_settings

    try:
        return load_settings()
    except ValidationError as e:
        _error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1) from e
