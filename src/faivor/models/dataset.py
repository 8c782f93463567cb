"""Dataset and model-schema models.

A Dataset is the parsed form of an uploaded CSV (header + equal-width rows).
A ModelSchema is the part of a FAIRmodels metadata document the validation
pipeline needs: the declared input columns and the outcome label, plus the
raw document that is forwarded verbatim to the validator service.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator


class Dataset(BaseModel):
    """Parsed tabular dataset.

    Every row has exactly one cell per column; readers drop rows that do
    not, so consumers never pad or truncate.
    """

    columns: list[str] = Field(..., description="Ordered column names from the header")
    rows: list[list[str]] = Field(default_factory=list, description="Data rows as string cells")

    @model_validator(mode="after")
    def _check_row_width(self) -> Dataset:
        width = len(self.columns)
        for i, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(f"Row {i} has {len(row)} cells, expected {width}")
        return self

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.columns)

    def column_values(self, index: int) -> list[str]:
        """Return every cell of the column at ``index``, in row order."""
        return [row[index] for row in self.rows]


class ModelSchema(BaseModel):
    """Input/outcome declaration of a model, extracted from FAIRmodels metadata."""

    title: str = Field(default="", description="Model title")
    input_columns: list[str] = Field(
        default_factory=list, description="Declared required input column labels (ordered)"
    )
    outcome: str = Field(default="", description="Declared outcome label")
    docker_image: str = Field(default="", description="FAIRmodels image name")
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Raw metadata document sent to the validator"
    )

    @property
    def required_columns(self) -> set[str]:
        """Declared input columns as a set (duplicates collapse)."""
        return set(self.input_columns)
