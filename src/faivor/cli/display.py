"""Rich display helpers for terminal output.

Formats dataset profiles, schema match reports, validation outcomes and
metric buckets as Rich tables and panels.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from faivor.models.dataset import ModelSchema
from faivor.models.metrics import MetricBuckets
from faivor.models.profiling import DatasetProfile
from faivor.models.validation import (
    ColumnMatchReport,
    StructuralStatus,
    ValidationOutcome,
    ValidationStage,
)

_STAGE_STYLES: dict[ValidationStage, str] = {
    ValidationStage.NONE: "dim",
    ValidationStage.CSV: "yellow",
    ValidationStage.MODEL: "magenta",
    ValidationStage.COMPLETE: "bold green",
}


def _completeness_text(completeness: float) -> Text:
    if completeness < 50:
        style = "bold red"
    elif completeness < 80:
        style = "yellow"
    else:
        style = "green"
    return Text(f"{completeness:.2f}%", style=style)


def display_profile_summary(profile: DatasetProfile, console: Console) -> None:
    """Print a one-row summary table for a profiled dataset.

    Columns: Dataset, Rows, Columns, Numerical, Categorical, Delimiter, Completeness

    Args:
        profile: DatasetProfile to summarize.
        console: Rich Console for output.
    """
    n_numerical = sum(1 for c in profile.columns if c.type == "numerical")

    table = Table(title="Dataset Summary", show_lines=True)
    table.add_column("Dataset", style="bold cyan", no_wrap=True)
    table.add_column("Rows", justify="right", style="green")
    table.add_column("Columns", justify="right")
    table.add_column("Numerical", justify="right", style="bold")
    table.add_column("Categorical", justify="right")
    table.add_column("Delimiter", justify="center", style="dim")
    table.add_column("Completeness", justify="right")

    table.add_row(
        profile.file_name or "<text>",
        str(profile.row_count),
        str(profile.column_count),
        str(n_numerical),
        str(profile.column_count - n_numerical),
        repr(profile.delimiter),
        _completeness_text(profile.completeness),
    )
    console.print(table)


def display_column_detail(profile: DatasetProfile, console: Console) -> None:
    """Print column-level statistics for a profiled dataset.

    Numerical columns show range, mean, std and quartiles; categorical
    columns show their three most frequent values.
    """
    title = f"{profile.file_name or 'dataset'} ({profile.row_count} rows x {profile.column_count} cols)"
    table = Table(title=title, show_lines=True)
    table.add_column("Column", style="bold", no_wrap=True)
    table.add_column("Type", no_wrap=True)
    table.add_column("Count", justify="right")
    table.add_column("Unique", justify="right")
    table.add_column("Missing", justify="right")
    table.add_column("Summary", max_width=60)

    for col in profile.columns:
        if col.type == "numerical":
            summary = (
                f"min={col.min} max={col.max} mean={col.mean} std={col.std} "
                f"q1/q2/q3={col.quartiles.q1}/{col.quartiles.q2}/{col.quartiles.q3}"
            )
            type_text = Text("numerical", style="cyan")
        else:
            summary = ", ".join(f"{vc.value} ({vc.count})" for vc in col.distribution[:3])
            type_text = Text("categorical", style="magenta")

        table.add_row(
            col.name,
            type_text,
            str(col.count),
            str(col.unique_values),
            Text(str(col.null_values), style="red" if col.null_values else ""),
            summary,
        )

    console.print(table)


def display_match_report(
    schema: ModelSchema, report: ColumnMatchReport, console: Console
) -> None:
    """Print the dataset/schema column match report."""
    header = f"[bold]{schema.title or 'Model'}[/bold]"
    if schema.outcome:
        header += f"  outcome: [cyan]{schema.outcome}[/cyan]"
    console.print(header)

    table = Table(title="Required Inputs", show_lines=False)
    table.add_column("Column", style="bold")
    table.add_column("Status", justify="center")

    for col in schema.input_columns:
        if col in report.missing_columns:
            table.add_row(col, Text("MISSING", style="bold red"))
        else:
            table.add_row(col, Text("OK", style="green"))
    console.print(table)

    if report.extra_columns:
        console.print(f"[dim]Extra columns (ignored): {', '.join(sorted(report.extra_columns))}[/dim]")

    if report.is_satisfied:
        console.print("[green]All required columns present.[/green]")
    else:
        console.print(
            f"[bold red]{len(report.missing_columns)} required column(s) missing.[/bold red]"
        )


def display_metric_buckets(buckets: MetricBuckets, console: Console) -> None:
    """Print the classified metric buckets as one table per non-empty bucket."""
    groups = [
        ("Performance", buckets.performance),
        ("Fairness", buckets.fairness),
        ("Bias", buckets.bias.detected_metrics),
        ("Explainability", buckets.explainability.computed_metrics),
        ("Other", buckets.other),
    ]
    for title, metrics in groups:
        if not metrics:
            continue
        table = Table(title=title, show_lines=False)
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right")
        for name, value in metrics.items():
            table.add_row(name, f"{value:.4f}")
        console.print(table)

    console.print(
        f"Bias score: [bold]{buckets.bias.bias_score:.3f}[/bold]  "
        f"Suggestions: {', '.join(buckets.bias.bias_mitigation_suggestions)}"
    )
    console.print(f"Explanation methods: {', '.join(buckets.explainability.explanation_methods)}")


def display_outcome(outcome: ValidationOutcome, console: Console) -> None:
    """Print a validation outcome: stage, stage results, warnings and errors."""
    stage_style = _STAGE_STYLES[outcome.stage]
    status = "[bold green]SUCCESS[/bold green]" if outcome.success else "[bold red]FAILED[/bold red]"

    lines = [f"Stage: [{stage_style}]{outcome.stage.value}[/{stage_style}]   Result: {status}"]

    csv_result = outcome.csv_validation
    if csv_result is not None:
        lines.append(f"CSV: {escape(csv_result.message)}")
        if csv_result.status == StructuralStatus.FALLBACK_APPLIED:
            lines.append(f"[yellow]Warning: {escape(csv_result.warning or '')}[/yellow]")
            lines.append(
                f"[yellow]Mock columns added: {', '.join(csv_result.mock_columns_added or [])}[/yellow]"
            )

    if outcome.model_validation is not None:
        lines.append(f"Model: {escape(outcome.model_validation.message)}")

    if outcome.error:
        code = f" ({outcome.error_code})" if outcome.error_code else ""
        lines.append(f"[bold red]Error{code}:[/bold red] {escape(outcome.error)}")

    border = "green" if outcome.success else "red"
    console.print(Panel("\n".join(lines), title="Validation Outcome", border_style=border))

    if outcome.metrics is not None:
        display_metric_buckets(outcome.metrics, console)
