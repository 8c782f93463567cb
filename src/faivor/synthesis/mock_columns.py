"""Synthesize values for required columns a dataset is missing.

Used as a validation fallback: the dataset is cut down to a small sample,
the missing columns are appended to the header, and each sampled row gets a
plausible value per added column. Values come from a name-based heuristic
(e.g. a column containing "glucose" gets an integer in [70, 170)). The
output only lets the model run; it says nothing about real model quality.

Rows are split on commas with no quote handling, unlike the profiler.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Iterable

from loguru import logger

from faivor.errors import EmptyDatasetError
from faivor.io.csv_reader import NaiveRowParser

ValueFactory = Callable[[random.Random], str]

DEFAULT_SAMPLE_ROW_COUNT = 10


def _int_range(low: int, high: int) -> ValueFactory:
    return lambda rng: str(rng.randrange(low, high))


def _one_decimal(low: float, span: float) -> ValueFactory:
    return lambda rng: f"{low + rng.random() * span:.1f}"


def _weighted(first: str, first_share: float, second: str) -> ValueFactory:
    return lambda rng: first if rng.random() < first_share else second


def _blood_pressure(rng: random.Random) -> str:
    return f"{rng.randrange(110, 140)}/{rng.randrange(70, 90)}"


# (substrings, exact names, factory). First match wins, so specific rules
# must precede general ones ("weight loss" before "weight").
MOCK_VALUE_RULES: list[tuple[tuple[str, ...], tuple[str, ...], ValueFactory]] = [
    (("weight loss",), (), _int_range(0, 10)),
    (("weight",), ("wt",), _int_range(50, 100)),
    (("height",), ("ht",), _int_range(150, 200)),
    (("bmi", "body mass index"), (), _one_decimal(18.5, 12)),
    (("age",), ("yr", "yrs"), _int_range(20, 80)),
    (("blood pressure", "bp"), (), _blood_pressure),
    (("glucose", "sugar"), (), _int_range(70, 170)),
    (("cholesterol",), (), _int_range(150, 250)),
    (("gender", "sex"), (), _weighted("M", 0.5, "F")),
    (("smoker", "smoking"), (), _weighted("No", 0.7, "Yes")),
    (("diabetes", "diabetic"), (), _weighted("No", 0.8, "Yes")),
]

_FALLBACK_FACTORY = _int_range(0, 100)


def generate_mock_value(column_name: str, rng: random.Random | None = None) -> str:
    """Produce one plausible value for a column, chosen by its name.

    Args:
        column_name: Column name; matched case-insensitively.
        rng: Random source. An unseeded generator is used when None.

    Returns:
        The synthesized cell value as a string.
    """
    rng = rng or random.Random()
    name = column_name.lower()
    for substrings, exact_names, factory in MOCK_VALUE_RULES:
        if name in exact_names or any(s in name for s in substrings):
            return factory(rng)
    return _FALLBACK_FACTORY(rng)


def synthesize_missing_columns(
    missing_columns: Iterable[str],
    dataset_text: str,
    sample_row_count: int = DEFAULT_SAMPLE_ROW_COUNT,
    *,
    rng: random.Random | None = None,
) -> str:
    """Return a reduced CSV with the missing columns appended and filled.

    Keeps the header plus the first ``min(available, sample_row_count)``
    lines after it (blank ones skipped); later rows are discarded. Short
    rows are padded with empty cells up to the original header width.

    Args:
        missing_columns: Required columns absent from the dataset.
        dataset_text: Original CSV text.
        sample_row_count: Maximum number of data lines to keep.
        rng: Random source; pass a seeded ``random.Random`` for
            reproducible output.

    Returns:
        Newline-joined CSV text (header + sampled rows).

    Raises:
        EmptyDatasetError: If the text has no header line.
    """
    lines = dataset_text.split("\n")
    if not lines[0].strip():
        raise EmptyDatasetError("CSV file is empty")

    rng = rng or random.Random()
    parser = NaiveRowParser(",")
    header = parser.parse_row(lines[0])

    added: list[str] = []
    for col in missing_columns:
        if col not in header and col not in added:
            added.append(col)

    out = [",".join(header + added)]
    window = min(len(lines) - 1, sample_row_count)
    for line in lines[1 : window + 1]:
        if not line.strip():
            continue
        cells = parser.parse_row(line)
        cells.extend([""] * (len(header) - len(cells)))
        cells.extend(generate_mock_value(col, rng) for col in added)
        out.append(",".join(cells))

    logger.info(
        "Synthesized {} column(s) {} over {} sample row(s)",
        len(added),
        added,
        len(out) - 1,
    )
    return "\n".join(out)
