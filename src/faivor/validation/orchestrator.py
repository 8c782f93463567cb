"""Two-stage validation orchestrator.

Drives one validation run through ``none -> csv -> model -> complete``:

1. Structural check: the validator compares the dataset header with the
   model's declared inputs.
2. Execution check: the validator runs the model on the dataset and
   returns metrics.

When the structural check fails only because required columns are missing,
the run degrades instead of halting: it first retries execution on a small
dataset with synthesized values for the missing columns, then on a
header-only dataset built from the candidate column list. A successful
fallback is reported as ``StructuralStatus.FALLBACK_APPLIED`` with the
structural message kept as a warning. Nothing is retried otherwise.
"""

from __future__ import annotations

import random
from typing import Any

from loguru import logger

from faivor.classification.metrics import classify_metrics
from faivor.errors import FaivorError, InvalidMetadataFormatError, ValidationErrorCode
from faivor.io.csv_reader import decode_bytes
from faivor.models.dataset import ModelSchema
from faivor.models.validation import (
    CsvStageResult,
    CsvValidationResponse,
    ModelValidationResponse,
    StageResult,
    StructuralStatus,
    ValidationMode,
    ValidationOutcome,
    ValidationStage,
)
from faivor.parsing.metadata import parse_column_metadata, parse_model_metadata
from faivor.parsing.schema_matcher import candidate_columns
from faivor.synthesis.mock_columns import DEFAULT_SAMPLE_ROW_COUNT, synthesize_missing_columns
from faivor.validator.client import ValidatorClient

FALLBACK_WARNING_MESSAGE = "CSV validation completed with warnings (missing columns were mocked)"


def _as_bytes(dataset: bytes | str) -> bytes:
    return dataset.encode("utf-8") if isinstance(dataset, str) else dataset


class ValidationOrchestrator:
    """Runs structural and execution validation against a ValidatorClient.

    Each run is independent: the orchestrator keeps no state between runs
    apart from its client and random source.
    """

    def __init__(
        self,
        client: ValidatorClient,
        *,
        mock_row_count: int = DEFAULT_SAMPLE_ROW_COUNT,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            client: Validator service client.
            mock_row_count: Rows kept when synthesizing missing columns.
            rng: Random source for synthesized values. Pass a seeded
                ``random.Random`` to make fallback datasets reproducible.
        """
        self._client = client
        self._mock_row_count = mock_row_count
        self._rng = rng or random.Random()

    async def run_structural_check(
        self, schema: ModelSchema, dataset: bytes | str
    ) -> CsvValidationResponse:
        """Ask the validator whether the dataset satisfies the schema."""
        return await self._client.validate_csv(schema.metadata, _as_bytes(dataset))

    async def run_execution_check(
        self,
        schema: ModelSchema,
        dataset: bytes | str,
        column_metadata: dict[str, Any] | None = None,
    ) -> ModelValidationResponse:
        """Execute the model on the dataset and return its metrics."""
        return await self._client.validate_model(
            schema.metadata, _as_bytes(dataset), column_metadata
        )

    async def run_full_pipeline(
        self,
        schema: ModelSchema,
        dataset: bytes | str,
        column_metadata: dict[str, Any] | None = None,
        mode: ValidationMode = ValidationMode.FULL,
    ) -> ValidationOutcome:
        """Run one validation and report how far it got.

        Args:
            schema: Model schema; its raw metadata is sent to the validator.
            dataset: CSV bytes or text.
            column_metadata: Optional per-column metadata for execution.
            mode: AUTO stops after the structural stage; FULL runs both.

        Returns:
            ValidationOutcome whose ``stage`` marks where the run ended. Service
            failures are recorded in the outcome, never raised.
        """
        data = _as_bytes(dataset)
        logger.info(
            "Validation run | model='{}' mode={} size={}B",
            schema.title or "<untitled>",
            mode,
            len(data),
        )

        try:
            check = await self.run_structural_check(schema, data)
        except FaivorError as exc:
            logger.error("Structural check failed: [{}] {}", exc.code, exc.message)
            return ValidationOutcome(
                stage=ValidationStage.CSV,
                csv_validation=CsvStageResult(
                    success=False,
                    status=StructuralStatus.FAILED,
                    message=f"CSV validation failed: {exc.message}",
                    details=exc.to_dict(),
                ),
                error=exc.message,
                error_code=exc.code,
            )

        if mode == ValidationMode.AUTO:
            return self._structural_only(check)

        if not check.valid:
            if check.missing_columns:
                recovered = await self._run_fallbacks(schema, data, check, column_metadata)
                if recovered is not None:
                    return recovered
            return self._structural_failure(check)

        logger.info("Structural check passed; executing model on the original dataset")
        csv_result = CsvStageResult(
            success=True,
            message="CSV validation completed successfully",
            details=check.model_dump(),
        )
        try:
            result = await self.run_execution_check(schema, data, column_metadata)
        except FaivorError as exc:
            logger.error("Model execution failed: [{}] {}", exc.code, exc.message)
            return ValidationOutcome(
                stage=ValidationStage.MODEL,
                csv_validation=csv_result,
                model_validation=StageResult(
                    success=False,
                    message=f"Model validation failed: {exc.message}",
                    details=exc.to_dict(),
                ),
                error=exc.message,
                error_code=exc.code,
            )

        return self._complete(
            csv_result, result, f"Model validation completed! Model: {result.model_name}"
        )

    async def run_from_documents(
        self,
        metadata_text: str,
        dataset: bytes | str,
        column_metadata_text: str | None = None,
        mode: ValidationMode = ValidationMode.FULL,
    ) -> ValidationOutcome:
        """Parse the metadata documents, then run the pipeline.

        A metadata parse failure ends the run at stage ``none`` with
        ``error_code=MODEL_METADATA_INVALID``.
        """
        try:
            schema = parse_model_metadata(metadata_text)
            column_metadata = parse_column_metadata(column_metadata_text)
        except InvalidMetadataFormatError as exc:
            logger.error("Metadata could not be parsed: {}", exc.message)
            return ValidationOutcome(
                stage=ValidationStage.NONE,
                error=exc.message,
                error_code=exc.code,
            )

        return await self.run_full_pipeline(
            schema,
            dataset,
            column_metadata if column_metadata_text is not None else None,
            mode,
        )

    async def _run_fallbacks(
        self,
        schema: ModelSchema,
        data: bytes,
        check: CsvValidationResponse,
        column_metadata: dict[str, Any] | None,
    ) -> ValidationOutcome | None:
        missing = list(check.missing_columns or [])
        logger.warning("Structural check reported missing columns {}; attempting fallback", missing)

        try:
            augmented = synthesize_missing_columns(
                missing, decode_bytes(data), self._mock_row_count, rng=self._rng
            )
            result = await self._client.validate_model(
                schema.metadata,
                augmented.encode("utf-8"),
                column_metadata,
                filename="enhanced_data.csv",
            )
        except (FaivorError, UnicodeDecodeError) as exc:
            logger.warning("Synthesized-column fallback failed: {}", exc)
        else:
            return self._complete(
                self._fallback_csv_result(check, missing),
                result,
                "Model validation completed with mock data for missing columns! "
                f"Model: {result.model_name}",
            )

        candidates = candidate_columns(
            [*schema.input_columns, *check.model_input_columns], missing, check.csv_columns
        )
        try:
            result = await self._client.validate_model_with_columns(
                schema.metadata, candidates, column_metadata
            )
        except FaivorError as exc:
            logger.warning("Column-list fallback failed: {}", exc.message)
            return None

        return self._complete(
            self._fallback_csv_result(check, missing),
            result,
            f"Model validation completed with mock columns! Model: {result.model_name}",
        )

    @staticmethod
    def _fallback_csv_result(check: CsvValidationResponse, missing: list[str]) -> CsvStageResult:
        details = check.model_dump()
        details.update(valid=True, warning=check.message, mock_columns_added=missing)
        return CsvStageResult(
            success=True,
            status=StructuralStatus.FALLBACK_APPLIED,
            message=FALLBACK_WARNING_MESSAGE,
            details=details,
            warning=check.message,
            mock_columns_added=missing,
        )

    @staticmethod
    def _structural_only(check: CsvValidationResponse) -> ValidationOutcome:
        if not check.valid:
            return ValidationOrchestrator._structural_failure(check)
        logger.info("Structural check passed (auto mode, execution skipped)")
        return ValidationOutcome(
            stage=ValidationStage.CSV,
            success=True,
            csv_validation=CsvStageResult(
                success=True, message="CSV validation passed", details=check.model_dump()
            ),
        )

    @staticmethod
    def _structural_failure(check: CsvValidationResponse) -> ValidationOutcome:
        message = check.message or "CSV validation failed"
        logger.info("Run halted at csv stage: {}", message)
        return ValidationOutcome(
            stage=ValidationStage.CSV,
            csv_validation=CsvStageResult(
                success=False,
                status=StructuralStatus.FAILED,
                message=message,
                details=check.model_dump(),
            ),
            error=message,
            error_code=(
                ValidationErrorCode.MISSING_REQUIRED_COLUMNS
                if check.missing_columns
                else ValidationErrorCode.VALIDATION_FAILED
            ),
        )

    @staticmethod
    def _complete(
        csv_result: CsvStageResult, result: ModelValidationResponse, message: str
    ) -> ValidationOutcome:
        logger.info("Run complete | model={} metrics={}", result.model_name, len(result.metrics))
        return ValidationOutcome(
            stage=ValidationStage.COMPLETE,
            success=True,
            csv_validation=csv_result,
            model_validation=StageResult(
                success=True, message=message, details=result.model_dump()
            ),
            metrics=classify_metrics(result.metrics),
        )
