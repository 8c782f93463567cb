"""Dataset profiling result models.

These models represent the output of the profiling stage, where an uploaded
CSV is analyzed to produce per-column statistics. Each column is either
numerical (moments, quartiles, equal-width histogram) or categorical
(frequencies, most common value, top-N distribution).
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field


class ValueCount(BaseModel):
    """Frequency entry for a single categorical value."""

    value: str = Field(..., description="The observed value")
    count: int = Field(..., ge=0, description="Number of occurrences")


class Quartiles(BaseModel):
    q1: float = Field(..., description="25th percentile")
    q2: float = Field(..., description="50th percentile (median)")
    q3: float = Field(..., description="75th percentile")


class HistogramBin(BaseModel):
    """One equal-width histogram bucket.

    Buckets are half-open ``[lower, upper)`` except the last, which is closed.
    """

    label: str = Field(..., description="Display label, e.g. '1.0-2.5'")
    lower: float = Field(..., description="Lower edge (inclusive)")
    upper: float = Field(..., description="Upper edge")
    count: int = Field(..., ge=0, description="Number of values in the bucket")


class NumericalColumnStatistic(BaseModel):
    """Summary of a column whose values are predominantly numeric."""

    type: Literal["numerical"] = "numerical"
    name: str = Field(..., description="Column name")
    count: int = Field(..., ge=0, description="Number of non-missing values")
    unique_values: int = Field(..., ge=0, description="Number of distinct numeric values")
    null_values: int = Field(..., ge=0, description="Number of missing values")
    min: float = Field(..., description="Minimum numeric value")
    max: float = Field(..., description="Maximum numeric value")
    mean: float = Field(..., description="Arithmetic mean")
    median: float = Field(..., description="Median (same as quartiles.q2)")
    std: float = Field(..., ge=0.0, description="Population standard deviation")
    quartiles: Quartiles
    histogram: list[HistogramBin] = Field(
        default_factory=list, description="Ordered equal-width histogram"
    )

    def histogram_dict(self) -> dict[str, int]:
        """Histogram as an ordered label -> count mapping.

        Labels are rounded to one decimal, so narrow ranges can repeat a
        label; counts for a repeated label are summed.
        """
        counts: dict[str, int] = {}
        for b in self.histogram:
            counts[b.label] = counts.get(b.label, 0) + b.count
        return counts


class CategoricalColumnStatistic(BaseModel):
    """Summary of a column treated as categorical."""

    type: Literal["categorical"] = "categorical"
    name: str = Field(..., description="Column name")
    count: int = Field(..., ge=0, description="Number of non-missing values")
    unique_values: int = Field(..., ge=0, description="Number of distinct values")
    null_values: int = Field(..., ge=0, description="Number of missing values")
    values: list[str] = Field(
        default_factory=list, description="Sample of distinct values in first-seen order"
    )
    most_common: ValueCount | None = Field(default=None, description="Most frequent value")
    distribution: list[ValueCount] = Field(
        default_factory=list, description="Most frequent values, descending"
    )

    def distribution_dict(self) -> dict[str, int]:
        """Distribution as an ordered value -> count mapping."""
        return {vc.value: vc.count for vc in self.distribution}


ColumnStatistic = Annotated[
    NumericalColumnStatistic | CategoricalColumnStatistic, Field(discriminator="type")
]


class DatasetProfile(BaseModel):
    """Complete statistical profile of an uploaded dataset."""

    file_name: str = Field(default="", description="Source file name, if known")
    file_size: int = Field(default=0, ge=0, description="Source size in bytes, if known")
    delimiter: str = Field(default=",", description="Field delimiter used to parse the file")
    row_count: int = Field(..., ge=0, description="Number of valid data rows")
    column_count: int = Field(..., ge=0, description="Number of columns")
    columns: list[ColumnStatistic] = Field(
        default_factory=list, description="Ordered per-column statistics"
    )
    completeness: float = Field(
        ..., ge=0.0, le=100.0, description="Percentage of non-missing cells"
    )

    def get_column(self, name: str) -> NumericalColumnStatistic | CategoricalColumnStatistic | None:
        for col in self.columns:
            if col.name == name:
                return col
        return None
