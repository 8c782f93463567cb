"""Tests for the validation orchestrator state machine (mocked validator client)."""

from __future__ import annotations

import json
import random
from unittest.mock import AsyncMock, patch

import pytest

from faivor.errors import (
    ModelExecutionFailedError,
    ServiceUnavailableError,
    ValidationErrorCode,
)
from faivor.models.dataset import ModelSchema
from faivor.models.validation import (
    CsvValidationResponse,
    ModelValidationResponse,
    StructuralStatus,
    ValidationMode,
    ValidationStage,
)
from faivor.validation.orchestrator import ValidationOrchestrator
from faivor.validator.client import ValidatorClient

DATA = b"a,b\n1,2\n3,4\n5,6\n"
MISSING_MESSAGE = "Missing required columns: x, y"


@pytest.fixture
def schema() -> ModelSchema:
    return ModelSchema(
        title="Test model",
        input_columns=["a", "x", "y"],
        metadata={"name": "test-model"},
    )


@pytest.fixture
def client() -> AsyncMock:
    return AsyncMock(spec=ValidatorClient)


def _valid() -> CsvValidationResponse:
    return CsvValidationResponse(valid=True, csv_columns=["a", "b"], model_input_columns=["a", "b"])


def _missing() -> CsvValidationResponse:
    return CsvValidationResponse(
        valid=False,
        message=MISSING_MESSAGE,
        csv_columns=["a", "b"],
        model_input_columns=["a", "x", "y"],
        missing_columns=["x", "y"],
    )


def _executed(**metrics: float) -> ModelValidationResponse:
    return ModelValidationResponse(model_name="test-model", metrics=metrics)


class TestCleanPath:
    """Structural check passes; execution runs on the original dataset."""

    @pytest.mark.asyncio
    async def test_routes_directly_to_execution(self, schema: ModelSchema, client: AsyncMock) -> None:
        client.validate_csv.return_value = _valid()
        client.validate_model.return_value = _executed(accuracy=0.9)

        with patch("faivor.validation.orchestrator.synthesize_missing_columns") as synth:
            outcome = await ValidationOrchestrator(client).run_full_pipeline(schema, DATA)

        synth.assert_not_called()
        client.validate_model_with_columns.assert_not_called()
        client.validate_model.assert_awaited_once_with(schema.metadata, DATA, None)
        assert outcome.stage == ValidationStage.COMPLETE
        assert outcome.success
        assert outcome.csv_validation is not None
        assert outcome.csv_validation.status == StructuralStatus.CLEAN
        assert outcome.csv_validation.warning is None
        assert outcome.model_validation is not None
        assert outcome.model_validation.success

    @pytest.mark.asyncio
    async def test_metrics_are_classified(self, schema: ModelSchema, client: AsyncMock) -> None:
        client.validate_csv.return_value = _valid()
        client.validate_model.return_value = _executed(**{"performance.accuracy": 0.9, "fairness.bias": 0.2})

        outcome = await ValidationOrchestrator(client).run_full_pipeline(schema, DATA)

        assert outcome.metrics is not None
        assert outcome.metrics.performance == {"performance.accuracy": 0.9}
        assert "fairness.bias" in outcome.metrics.fairness
        assert "fairness.bias" in outcome.metrics.bias.detected_metrics

    @pytest.mark.asyncio
    async def test_column_metadata_forwarded(self, schema: ModelSchema, client: AsyncMock) -> None:
        client.validate_csv.return_value = _valid()
        client.validate_model.return_value = _executed()

        await ValidationOrchestrator(client).run_full_pipeline(schema, DATA, {"a": {"type": "int"}})

        client.validate_model.assert_awaited_once_with(schema.metadata, DATA, {"a": {"type": "int"}})

    @pytest.mark.asyncio
    async def test_text_dataset_encoded(self, schema: ModelSchema, client: AsyncMock) -> None:
        client.validate_csv.return_value = _valid()
        client.validate_model.return_value = _executed()

        await ValidationOrchestrator(client).run_full_pipeline(schema, DATA.decode())

        client.validate_csv.assert_awaited_once_with(schema.metadata, DATA)

    @pytest.mark.asyncio
    async def test_execution_failure_halts_at_model(self, schema: ModelSchema, client: AsyncMock) -> None:
        client.validate_csv.return_value = _valid()
        client.validate_model.side_effect = ModelExecutionFailedError.for_model("test-model", "boom")

        outcome = await ValidationOrchestrator(client).run_full_pipeline(schema, DATA)

        assert outcome.stage == ValidationStage.MODEL
        assert not outcome.success
        assert outcome.error == "Model execution failed: test-model"
        assert outcome.error_code == ValidationErrorCode.MODEL_EXECUTION_FAILED
        assert outcome.csv_validation is not None and outcome.csv_validation.success
        assert outcome.model_validation is not None and not outcome.model_validation.success
        assert outcome.metrics is None


class TestStructuralFailures:
    @pytest.mark.asyncio
    async def test_invalid_without_missing_signal_halts(
        self, schema: ModelSchema, client: AsyncMock
    ) -> None:
        client.validate_csv.return_value = CsvValidationResponse(valid=False, message="Bad encoding")

        outcome = await ValidationOrchestrator(client).run_full_pipeline(schema, DATA)

        assert outcome.stage == ValidationStage.CSV
        assert not outcome.success
        assert outcome.error == "Bad encoding"
        assert outcome.csv_validation is not None
        assert outcome.csv_validation.status == StructuralStatus.FAILED
        client.validate_model.assert_not_called()
        client.validate_model_with_columns.assert_not_called()

    @pytest.mark.asyncio
    async def test_service_failure_is_terminal_at_csv(
        self, schema: ModelSchema, client: AsyncMock
    ) -> None:
        client.validate_csv.side_effect = ServiceUnavailableError.for_service("FAIVOR ML Validator")

        outcome = await ValidationOrchestrator(client).run_full_pipeline(schema, DATA)

        assert outcome.stage == ValidationStage.CSV
        assert not outcome.success
        assert outcome.error_code == ValidationErrorCode.SERVICE_UNAVAILABLE
        client.validate_csv.assert_awaited_once()
        client.validate_model.assert_not_called()


class TestMissingColumnFallback:
    """Structural failure with a missing-column signal triggers the fallbacks."""

    @pytest.mark.asyncio
    async def test_synthesized_dataset_fallback(self, schema: ModelSchema, client: AsyncMock) -> None:
        client.validate_csv.return_value = _missing()
        client.validate_model.return_value = _executed(accuracy=0.8)

        outcome = await ValidationOrchestrator(client, rng=random.Random(0)).run_full_pipeline(
            schema, DATA
        )

        assert outcome.stage == ValidationStage.COMPLETE
        assert outcome.success
        csv_result = outcome.csv_validation
        assert csv_result is not None
        assert csv_result.success
        assert csv_result.status == StructuralStatus.FALLBACK_APPLIED
        assert set(csv_result.mock_columns_added or []) == {"x", "y"}
        assert csv_result.warning == MISSING_MESSAGE
        assert csv_result.details["valid"] is True

        call = client.validate_model.await_args
        sent = call.args[1].decode()
        assert sent.split("\n")[0] == "a,b,x,y"
        assert len(sent.split("\n")) == 4
        assert call.kwargs["filename"] == "enhanced_data.csv"
        client.validate_model_with_columns.assert_not_called()

    @pytest.mark.asyncio
    async def test_mock_row_count_limits_sample(self, schema: ModelSchema, client: AsyncMock) -> None:
        client.validate_csv.return_value = _missing()
        client.validate_model.return_value = _executed()

        await ValidationOrchestrator(client, mock_row_count=1).run_full_pipeline(schema, DATA)

        sent = client.validate_model.await_args.args[1].decode()
        assert len(sent.split("\n")) == 2

    @pytest.mark.asyncio
    async def test_column_list_fallback(self, schema: ModelSchema, client: AsyncMock) -> None:
        client.validate_csv.return_value = _missing()
        client.validate_model.side_effect = ModelExecutionFailedError.for_model("test-model")
        client.validate_model_with_columns.return_value = _executed(accuracy=0.7)

        outcome = await ValidationOrchestrator(client).run_full_pipeline(
            schema, DATA, {"a": {"type": "int"}}
        )

        client.validate_model_with_columns.assert_awaited_once_with(
            schema.metadata, ["a", "x", "y", "b"], {"a": {"type": "int"}}
        )
        assert outcome.stage == ValidationStage.COMPLETE
        assert outcome.success
        assert outcome.csv_validation is not None
        assert outcome.csv_validation.status == StructuralStatus.FALLBACK_APPLIED
        assert outcome.csv_validation.mock_columns_added == ["x", "y"]

    @pytest.mark.asyncio
    async def test_both_fallbacks_fail(self, schema: ModelSchema, client: AsyncMock) -> None:
        client.validate_csv.return_value = _missing()
        client.validate_model.side_effect = ModelExecutionFailedError.for_model("test-model")
        client.validate_model_with_columns.side_effect = ServiceUnavailableError.for_service("v")

        outcome = await ValidationOrchestrator(client).run_full_pipeline(schema, DATA)

        assert outcome.stage == ValidationStage.CSV
        assert not outcome.success
        assert outcome.error == MISSING_MESSAGE
        assert outcome.error_code == ValidationErrorCode.MISSING_REQUIRED_COLUMNS
        assert outcome.csv_validation is not None
        assert outcome.csv_validation.status == StructuralStatus.FAILED
        assert outcome.model_validation is None

    @pytest.mark.asyncio
    async def test_undecodable_dataset_skips_to_column_list(
        self, schema: ModelSchema, client: AsyncMock
    ) -> None:
        client.validate_csv.return_value = _missing()
        client.validate_model_with_columns.return_value = _executed()

        outcome = await ValidationOrchestrator(client).run_full_pipeline(schema, b"a,b\n\xff\xfe,2\n")

        client.validate_model.assert_not_called()
        assert outcome.stage == ValidationStage.COMPLETE

    @pytest.mark.asyncio
    async def test_seeded_rng_reproduces_fallback_dataset(
        self, schema: ModelSchema, client: AsyncMock
    ) -> None:
        client.validate_csv.return_value = _missing()
        client.validate_model.return_value = _executed()

        await ValidationOrchestrator(client, rng=random.Random(7)).run_full_pipeline(schema, DATA)
        first = client.validate_model.await_args.args[1]
        await ValidationOrchestrator(client, rng=random.Random(7)).run_full_pipeline(schema, DATA)
        second = client.validate_model.await_args.args[1]

        assert first == second


class TestAutoMode:
    @pytest.mark.asyncio
    async def test_valid_stops_after_structural(self, schema: ModelSchema, client: AsyncMock) -> None:
        client.validate_csv.return_value = _valid()

        outcome = await ValidationOrchestrator(client).run_full_pipeline(
            schema, DATA, mode=ValidationMode.AUTO
        )

        assert outcome.stage == ValidationStage.CSV
        assert outcome.success
        client.validate_model.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_columns_reported_without_fallback(
        self, schema: ModelSchema, client: AsyncMock
    ) -> None:
        client.validate_csv.return_value = _missing()

        outcome = await ValidationOrchestrator(client).run_full_pipeline(
            schema, DATA, mode=ValidationMode.AUTO
        )

        assert outcome.stage == ValidationStage.CSV
        assert not outcome.success
        assert outcome.csv_validation is not None
        assert outcome.csv_validation.details["missing_columns"] == ["x", "y"]
        client.validate_model.assert_not_called()
        client.validate_model_with_columns.assert_not_called()


class TestRunFromDocuments:
    """Tests for run_from_documents (metadata parsing + pipeline)."""

    METADATA_TEXT = json.dumps(
        {
            "General Model Information": {"Title": {"@value": "Doc model"}},
            "Input data": [{"Input label": {"@value": "a"}}, {"Input label": {"@value": "b"}}],
        }
    )

    @pytest.mark.asyncio
    async def test_invalid_metadata_is_stage_none(self, client: AsyncMock) -> None:
        outcome = await ValidationOrchestrator(client).run_from_documents("{oops", DATA)

        assert outcome.stage == ValidationStage.NONE
        assert not outcome.success
        assert outcome.error_code == ValidationErrorCode.MODEL_METADATA_INVALID
        client.validate_csv.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_column_metadata_is_stage_none(self, client: AsyncMock) -> None:
        outcome = await ValidationOrchestrator(client).run_from_documents(
            self.METADATA_TEXT, DATA, "not json"
        )

        assert outcome.stage == ValidationStage.NONE
        assert outcome.error_code == ValidationErrorCode.MODEL_METADATA_INVALID

    @pytest.mark.asyncio
    async def test_parses_and_runs(self, client: AsyncMock) -> None:
        client.validate_csv.return_value = _valid()
        client.validate_model.return_value = _executed()

        outcome = await ValidationOrchestrator(client).run_from_documents(
            self.METADATA_TEXT, DATA, '{"a": {"type": "int"}}'
        )

        assert outcome.stage == ValidationStage.COMPLETE
        sent_metadata = client.validate_csv.await_args.args[0]
        assert sent_metadata == json.loads(self.METADATA_TEXT)
        assert client.validate_model.await_args.args[2] == {"a": {"type": "int"}}

    @pytest.mark.asyncio
    async def test_absent_column_metadata_sent_as_none(self, client: AsyncMock) -> None:
        client.validate_csv.return_value = _valid()
        client.validate_model.return_value = _executed()

        await ValidationOrchestrator(client).run_from_documents(self.METADATA_TEXT, DATA)

        assert client.validate_model.await_args.args[2] is None
