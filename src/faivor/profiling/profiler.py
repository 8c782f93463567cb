"""Dataset profiler for uploaded CSV files.

Produces per-column statistical summaries. Each column is classified as
numerical or categorical from how many of its non-missing values parse as
finite numbers, then summarized accordingly (moments, quartiles and an
equal-width histogram, or value frequencies).
"""

from __future__ import annotations

import math
from collections import Counter
from pathlib import Path

import numpy as np
import pandas as pd
from loguru import logger

from faivor.errors import EmptyDatasetError
from faivor.io.csv_reader import (
    QuoteAwareRowParser,
    decode_bytes,
    detect_delimiter,
    read_dataset,
    split_lines,
)
from faivor.models.profiling import (
    CategoricalColumnStatistic,
    DatasetProfile,
    HistogramBin,
    NumericalColumnStatistic,
    Quartiles,
    ValueCount,
)

# A column is numerical when MORE than this share of its non-missing values
# parse as finite numbers (exactly 80% stays categorical).
NUMERIC_THRESHOLD = 0.8

MIN_HISTOGRAM_BINS = 5
MAX_HISTOGRAM_BINS = 10
MAX_SAMPLE_VALUES = 20
MAX_DISTRIBUTION_VALUES = 15


def _r2(value: float) -> float:
    return round(float(value), 2)


def parse_numeric(values: list[str]) -> np.ndarray:
    """Return the finite numeric values among ``values`` as a float array."""
    if not values:
        return np.array([], dtype=float)
    parsed = pd.to_numeric(pd.Series(values, dtype="object"), errors="coerce")
    numeric = parsed.to_numpy(dtype=float, na_value=np.nan)
    return numeric[np.isfinite(numeric)]


def is_numerical(n_numeric: int, n_non_missing: int) -> bool:
    """Apply the strict numeric-share rule."""
    return n_non_missing > 0 and n_numeric > n_non_missing * NUMERIC_THRESHOLD


def quantile(sorted_values: np.ndarray | list[float], q: float) -> float:
    """Linear-interpolation quantile of pre-sorted values.

    ``index = q * (n - 1)``; the floor and ceiling neighbours are blended by
    the fractional part of the index, clamped to the array bounds.

    Raises:
        ValueError: If ``sorted_values`` is empty.
    """
    n = len(sorted_values)
    if n == 0:
        raise ValueError("quantile() of an empty sequence")

    index = q * (n - 1)
    lower = math.floor(index)
    upper = math.ceil(index)
    weight = index - lower

    if upper >= n:
        return float(sorted_values[n - 1])
    if lower < 0:
        return float(sorted_values[0])
    return float(sorted_values[lower]) * (1 - weight) + float(sorted_values[upper]) * weight


def histogram_bin_count(n_values: int) -> int:
    """Number of histogram bins: round(sqrt(n)) clamped to [5, 10]."""
    rounded = math.floor(math.sqrt(n_values) + 0.5)
    return min(MAX_HISTOGRAM_BINS, max(MIN_HISTOGRAM_BINS, rounded))


def build_histogram(values: np.ndarray) -> list[HistogramBin]:
    """Equal-width histogram spanning [min, max].

    Every bucket is half-open on its upper edge except the last, which is
    closed, so the counts always sum to ``len(values)``.
    """
    if len(values) == 0:
        return []

    n_bins = histogram_bin_count(len(values))
    lo = float(values.min())
    hi = float(values.max())
    width = (hi - lo) / n_bins
    edges = [lo + i * width for i in range(n_bins)] + [hi]

    bins: list[HistogramBin] = []
    for i in range(n_bins):
        start, end = edges[i], edges[i + 1]
        if i == n_bins - 1:
            mask = (values >= start) & (values <= end)
        else:
            mask = (values >= start) & (values < end)
        bins.append(
            HistogramBin(
                label=f"{start:.1f}-{end:.1f}",
                lower=_r2(start),
                upper=_r2(end),
                count=int(mask.sum()),
            )
        )
    return bins


def _profile_numerical(
    name: str, numeric: np.ndarray, n_non_missing: int, n_missing: int
) -> NumericalColumnStatistic:
    sorted_values = np.sort(numeric)
    q1 = quantile(sorted_values, 0.25)
    q2 = quantile(sorted_values, 0.5)
    q3 = quantile(sorted_values, 0.75)

    return NumericalColumnStatistic(
        name=name,
        count=n_non_missing,
        unique_values=int(np.unique(numeric).size),
        null_values=n_missing,
        min=_r2(sorted_values[0]),
        max=_r2(sorted_values[-1]),
        mean=_r2(numeric.mean()),
        median=_r2(q2),
        std=_r2(numeric.std()),
        quartiles=Quartiles(q1=_r2(q1), q2=_r2(q2), q3=_r2(q3)),
        histogram=build_histogram(numeric),
    )


def _profile_categorical(
    name: str, non_missing: list[str], n_missing: int
) -> CategoricalColumnStatistic:
    # Counter keeps first-seen order, and most_common() is stable for ties.
    counts = Counter(non_missing)
    top = counts.most_common(MAX_DISTRIBUTION_VALUES)

    return CategoricalColumnStatistic(
        name=name,
        count=len(non_missing),
        unique_values=len(counts),
        null_values=n_missing,
        values=list(counts)[:MAX_SAMPLE_VALUES],
        most_common=ValueCount(value=top[0][0], count=top[0][1]) if top else None,
        distribution=[ValueCount(value=v, count=c) for v, c in top],
    )


def profile_column(
    name: str, cells: list[str]
) -> NumericalColumnStatistic | CategoricalColumnStatistic:
    """Classify and summarize one column of string cells."""
    non_missing = [c for c in cells if c != ""]
    n_missing = len(cells) - len(non_missing)

    numeric = parse_numeric(non_missing)
    if is_numerical(len(numeric), len(non_missing)):
        return _profile_numerical(name, numeric, len(non_missing), n_missing)
    return _profile_categorical(name, non_missing, n_missing)


def profile_dataset(
    text: str,
    *,
    delimiter: str | None = None,
    file_name: str = "",
    file_size: int = 0,
) -> DatasetProfile:
    """Profile CSV text, producing per-column statistics.

    Args:
        text: Raw CSV text; the first non-blank line is the header.
        delimiter: Field delimiter. Auto-detected from the header when None.
        file_name: Source file name, recorded on the profile.
        file_size: Source size in bytes, recorded on the profile.

    Returns:
        DatasetProfile with row/column counts, per-column statistics and
        overall completeness (percentage of non-missing cells, 2 dp).

    Raises:
        EmptyDatasetError: If the text has no non-blank lines.
        NoValidRowsError: If no data row has the header's cell count.
    """
    lines = split_lines(text)
    if not lines:
        raise EmptyDatasetError("CSV file is empty")

    delimiter = delimiter or detect_delimiter(lines[0])
    dataset = read_dataset(text, QuoteAwareRowParser(delimiter))

    logger.info(
        "Profiling dataset: {} ({} rows x {} cols, delimiter {!r})",
        file_name or "<text>",
        dataset.row_count,
        dataset.column_count,
        delimiter,
    )

    columns = [
        profile_column(name, dataset.column_values(i)) for i, name in enumerate(dataset.columns)
    ]

    total_cells = dataset.row_count * dataset.column_count
    non_missing_cells = sum(col.count for col in columns)
    completeness = round(non_missing_cells / total_cells * 100, 2) if total_cells else 0.0

    n_numerical = sum(1 for col in columns if col.type == "numerical")
    logger.info(
        "Profiled {}: {} numerical, {} categorical columns, completeness={}%",
        file_name or "<text>",
        n_numerical,
        len(columns) - n_numerical,
        completeness,
    )

    return DatasetProfile(
        file_name=file_name,
        file_size=file_size,
        delimiter=delimiter,
        row_count=dataset.row_count,
        column_count=dataset.column_count,
        columns=columns,
        completeness=completeness,
    )


def profile_file(path: str | Path) -> DatasetProfile:
    """Read and profile a CSV file, recording its name and size."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"CSV file not found: {path}")
    data = path.read_bytes()
    return profile_dataset(decode_bytes(data), file_name=path.name, file_size=len(data))
