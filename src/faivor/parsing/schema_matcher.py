"""Match a dataset header against a model's declared input columns.

Matching is purely deterministic: exact, case-sensitive string comparison
with no fuzzy or alias matching. Extra dataset columns are informational
and never block validation.
"""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from faivor.models.dataset import ModelSchema
from faivor.models.validation import ColumnMatchReport


def match_columns(dataset_header: Iterable[str], schema: ModelSchema) -> ColumnMatchReport:
    """Compare dataset columns with the schema's required inputs.

    Args:
        dataset_header: Column names present in the dataset.
        schema: Model schema declaring the required input columns.

    Returns:
        ColumnMatchReport with ``missing_columns`` (required but absent)
        and ``extra_columns`` (present but not required).
    """
    header = set(dataset_header)
    required = schema.required_columns

    report = ColumnMatchReport(
        missing_columns=required - header,
        extra_columns=header - required,
    )
    logger.debug(
        "Schema match: {} missing, {} extra",
        len(report.missing_columns),
        len(report.extra_columns),
    )
    return report


def candidate_columns(
    required_columns: Iterable[str],
    missing_columns: Iterable[str],
    dataset_columns: Iterable[str],
) -> list[str]:
    """Ordered union of required, missing and dataset columns.

    Used when execution has to be attempted from a column list alone.
    First occurrence wins; order is required, then missing, then dataset.
    """
    seen: dict[str, None] = {}
    for group in (required_columns, missing_columns, dataset_columns):
        for col in group:
            seen.setdefault(col, None)
    return list(seen)
