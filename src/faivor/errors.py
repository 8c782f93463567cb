"""Error taxonomy for dataset profiling and remote model validation.

Every failure raised by this package derives from FaivorError, which carries a
ValidationErrorCode, a human-readable message, optional technical details and
user guidance, so callers can report stage + message without parsing text.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

ErrorType = Literal["container", "data", "model", "service", "validation"]


class ValidationErrorCode(StrEnum):
    """Error codes shared by the reader, the validator client and the orchestrator."""

    # Container-related errors
    CONTAINER_START_FAILED = "CONTAINER_START_FAILED"
    CONTAINER_EXECUTION_ERROR = "CONTAINER_EXECUTION_ERROR"
    CONTAINER_TIMEOUT = "CONTAINER_TIMEOUT"

    # Data-related errors
    MISSING_REQUIRED_COLUMNS = "MISSING_REQUIRED_COLUMNS"
    INVALID_CSV_FORMAT = "INVALID_CSV_FORMAT"
    EMPTY_DATASET = "EMPTY_DATASET"

    # Model-related errors
    MODEL_EXECUTION_FAILED = "MODEL_EXECUTION_FAILED"
    MODEL_METADATA_INVALID = "MODEL_METADATA_INVALID"

    # Service-related errors
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    VALIDATION_FAILED = "VALIDATION_FAILED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# Backend (FastAPI ErrorDetail) codes -> local codes.
BACKEND_ERROR_CODES: dict[str, ValidationErrorCode] = {
    "CONTAINER_EXECUTION_ERROR": ValidationErrorCode.CONTAINER_EXECUTION_ERROR,
    "MODEL_EXECUTION_TIMEOUT": ValidationErrorCode.CONTAINER_TIMEOUT,
    "MODEL_EXECUTION_FAILED": ValidationErrorCode.MODEL_EXECUTION_FAILED,
    "INVALID_METADATA_JSON": ValidationErrorCode.MODEL_METADATA_INVALID,
    "METADATA_PARSE_ERROR": ValidationErrorCode.MODEL_METADATA_INVALID,
    "INVALID_CSV_FORMAT": ValidationErrorCode.INVALID_CSV_FORMAT,
    "CSV_READ_ERROR": ValidationErrorCode.INVALID_CSV_FORMAT,
    "MISSING_REQUIRED_COLUMNS": ValidationErrorCode.MISSING_REQUIRED_COLUMNS,
}


def user_guidance_for(code: ValidationErrorCode, technical_details: str = "") -> str:
    """Return a user-facing hint for an error code.

    Model execution failures are refined by looking at the technical details
    reported by the model container.
    """
    if code == ValidationErrorCode.CONTAINER_EXECUTION_ERROR:
        return (
            "The model container failed to start or execute. Check that the Docker "
            "image exists and is properly configured."
        )
    if code == ValidationErrorCode.CONTAINER_TIMEOUT:
        return (
            "The model took too long to process. Try with a smaller dataset or "
            "contact the model maintainer."
        )
    if code == ValidationErrorCode.MODEL_EXECUTION_FAILED:
        if "preprocessing" in technical_details or "invalid data" in technical_details:
            return (
                "The model encountered an error processing your data. Check that your "
                "data matches the expected format and types."
            )
        if "KeyError" in technical_details or "column" in technical_details:
            return (
                "The model could not find expected columns in your data. Verify column "
                "names match the model requirements."
            )
        if "ValueError" in technical_details or "type" in technical_details:
            return (
                "The model received data in an unexpected format. Check that numeric "
                "columns contain valid numbers."
            )
        return (
            "The model encountered an error during execution. Review the technical "
            "details for more information."
        )
    if code == ValidationErrorCode.MODEL_METADATA_INVALID:
        return "The model metadata file is invalid. Ensure metadata.json follows the FAIRmodels format."
    if code in (ValidationErrorCode.INVALID_CSV_FORMAT, ValidationErrorCode.EMPTY_DATASET):
        return "The CSV file format is invalid. Check for proper formatting, headers, and encoding."
    if code == ValidationErrorCode.MISSING_REQUIRED_COLUMNS:
        return (
            "Your CSV is missing required columns. Ensure all expected columns are "
            "present with exact names."
        )
    if code == ValidationErrorCode.SERVICE_UNAVAILABLE:
        return "The validation service is temporarily unavailable. Please try again in a few moments."
    return "An unexpected error occurred. Please try again or contact support."


class FaivorError(Exception):
    """Base class for all structured validation errors."""

    default_code: ValidationErrorCode = ValidationErrorCode.UNKNOWN_ERROR
    default_status: int = 500

    def __init__(
        self,
        message: str,
        *,
        code: ValidationErrorCode | None = None,
        technical_details: str = "",
        user_guidance: str | None = None,
        metadata: dict[str, Any] | None = None,
        http_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.technical_details = technical_details
        self.user_guidance = (
            user_guidance
            if user_guidance is not None
            else user_guidance_for(self.code, technical_details)
        )
        self.metadata = metadata or {}
        self.http_status = http_status if http_status is not None else self.default_status

    @property
    def error_type(self) -> ErrorType:
        """Coarse error family derived from the code."""
        code = self.code.value
        if code.startswith("CONTAINER_"):
            return "container"
        if "CSV" in code or "DATA" in code or "COLUMN" in code:
            return "data"
        if code.startswith("MODEL_"):
            return "model"
        if code.startswith("SERVICE_"):
            return "service"
        return "validation"

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error_type": self.error_type,
            "message": self.message,
            "technical_details": self.technical_details,
            "user_guidance": self.user_guidance,
            "metadata": self.metadata,
            "http_status": self.http_status,
        }


class EmptyDatasetError(FaivorError):
    """Raised when a CSV text has no non-blank lines (no header)."""

    default_code = ValidationErrorCode.EMPTY_DATASET
    default_status = 400


class NoValidRowsError(FaivorError):
    """Raised when no data row has the same number of cells as the header."""

    default_code = ValidationErrorCode.INVALID_CSV_FORMAT
    default_status = 400


class InvalidCsvFormatError(FaivorError):
    default_code = ValidationErrorCode.INVALID_CSV_FORMAT
    default_status = 400


class MissingRequiredColumnsError(FaivorError):
    """Structured form of the validator's missing-column failure."""

    default_code = ValidationErrorCode.MISSING_REQUIRED_COLUMNS
    default_status = 400

    @classmethod
    def for_columns(
        cls, missing_columns: list[str], available_columns: list[str] | None = None
    ) -> MissingRequiredColumnsError:
        available = list(available_columns or [])
        return cls(
            f"Missing required columns: {', '.join(missing_columns)}",
            technical_details=(
                f"Required columns not found in CSV. Missing: {', '.join(missing_columns)}. "
                f"Available: {', '.join(available)}"
            ),
            metadata={"missing_columns": list(missing_columns), "available_columns": available},
        )

    @property
    def missing_columns(self) -> list[str]:
        return list(self.metadata.get("missing_columns", []))


class InvalidMetadataFormatError(FaivorError):
    """Raised when metadata.json or column_metadata.json is not valid JSON."""

    default_code = ValidationErrorCode.MODEL_METADATA_INVALID
    default_status = 400


class ServiceUnavailableError(FaivorError):
    """Network failure or non-2xx response from the validator not otherwise classified."""

    default_code = ValidationErrorCode.SERVICE_UNAVAILABLE
    default_status = 503

    @classmethod
    def for_service(cls, service_name: str, details: str = "") -> ServiceUnavailableError:
        return cls(
            f"{service_name} service is unavailable",
            technical_details=details or "Unable to connect to the validation service",
            metadata={"service_name": service_name},
        )


class ModelExecutionFailedError(FaivorError):
    default_code = ValidationErrorCode.MODEL_EXECUTION_FAILED
    default_status = 500

    @classmethod
    def for_model(cls, model_name: str, error_output: str = "") -> ModelExecutionFailedError:
        return cls(
            f"Model execution failed: {model_name}",
            technical_details=error_output,
            metadata={"model_name": model_name, "error_output": error_output},
        )


class ContainerExecutionError(FaivorError):
    default_code = ValidationErrorCode.CONTAINER_EXECUTION_ERROR
    default_status = 503


class ValidationFailedError(FaivorError):
    default_code = ValidationErrorCode.VALIDATION_FAILED
    default_status = 400


# Exception class raised for each code reported by the validator.
ERROR_CLASSES: dict[ValidationErrorCode, type[FaivorError]] = {
    ValidationErrorCode.CONTAINER_START_FAILED: ContainerExecutionError,
    ValidationErrorCode.CONTAINER_EXECUTION_ERROR: ContainerExecutionError,
    ValidationErrorCode.CONTAINER_TIMEOUT: ContainerExecutionError,
    ValidationErrorCode.MISSING_REQUIRED_COLUMNS: MissingRequiredColumnsError,
    ValidationErrorCode.INVALID_CSV_FORMAT: InvalidCsvFormatError,
    ValidationErrorCode.EMPTY_DATASET: EmptyDatasetError,
    ValidationErrorCode.MODEL_EXECUTION_FAILED: ModelExecutionFailedError,
    ValidationErrorCode.MODEL_METADATA_INVALID: InvalidMetadataFormatError,
    ValidationErrorCode.SERVICE_UNAVAILABLE: ServiceUnavailableError,
    ValidationErrorCode.VALIDATION_FAILED: ValidationFailedError,
}
