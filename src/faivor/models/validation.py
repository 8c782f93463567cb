"""Validation pipeline models.

Covers the validator service contract (structural and execution responses),
the schema match report, and the staged outcome of one orchestration run.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from faivor.errors import ValidationErrorCode
from faivor.models.metrics import MetricBuckets


class ValidationStage(StrEnum):
    """How far a validation run progressed.

    NONE: Nothing ran (or inputs could not be parsed).
    CSV: Structural validation ran.
    MODEL: Execution validation ran (and failed).
    COMPLETE: Execution validation succeeded.
    """

    NONE = "none"
    CSV = "csv"
    MODEL = "model"
    COMPLETE = "complete"


class ValidationMode(StrEnum):
    """AUTO runs the structural stage only; FULL runs the whole pipeline."""

    AUTO = "auto"
    FULL = "full"


class StructuralStatus(StrEnum):
    """Explicit outcome of the structural stage.

    CLEAN: The dataset passed the structural check as-is.
    FALLBACK_APPLIED: Required columns were missing and a fallback made
        execution possible; the degradation is reported as a warning.
    FAILED: The structural check failed and no fallback succeeded.
    """

    CLEAN = "clean"
    FALLBACK_APPLIED = "fallback_applied"
    FAILED = "failed"


class ColumnMatchReport(BaseModel):
    """Dataset header compared with a model's required inputs."""

    missing_columns: set[str] = Field(
        default_factory=set, description="Required by the model but absent from the dataset"
    )
    extra_columns: set[str] = Field(
        default_factory=set, description="Present in the dataset but not required (informational)"
    )

    @property
    def is_satisfied(self) -> bool:
        return not self.missing_columns


class CsvValidationResponse(BaseModel):
    """Structural check result returned by ``POST /validate-csv/``.

    ``missing_columns`` is not part of the wire format; the client fills it
    from the service message so orchestration never inspects free text.
    """

    valid: bool
    message: str | None = None
    csv_columns: list[str] = Field(default_factory=list)
    model_input_columns: list[str] = Field(default_factory=list)
    warning: str | None = None
    mock_columns_added: list[str] | None = None
    missing_columns: list[str] | None = Field(
        default=None, description="Missing required columns, when that is the failure reason"
    )


class ModelValidationResponse(BaseModel):
    """Execution result returned by ``POST /validate-model``."""

    model_name: str
    metrics: dict[str, float] = Field(default_factory=dict)
    docker_image_sha256: str | None = None


class MetricDefinition(BaseModel):
    """Metric description returned by ``POST /retrieve-metrics``."""

    name: str
    description: str = ""
    type: str = ""


class StageResult(BaseModel):
    """Outcome of one pipeline stage."""

    success: bool
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
    warning: str | None = None
    mock_columns_added: list[str] | None = None


class CsvStageResult(StageResult):
    status: StructuralStatus = StructuralStatus.CLEAN


class ValidationOutcome(BaseModel):
    """Staged result of a single orchestration run."""

    stage: ValidationStage = ValidationStage.NONE
    success: bool = False
    csv_validation: CsvStageResult | None = None
    model_validation: StageResult | None = None
    error: str | None = Field(default=None, description="Message of the terminal failure")
    error_code: ValidationErrorCode | None = None
    metrics: MetricBuckets | None = Field(
        default=None, description="Classified execution metrics, when execution succeeded"
    )
