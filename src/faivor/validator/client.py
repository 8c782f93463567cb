"""Async client for the FAIVOR ML validator service.

Wraps the validator's multipart endpoints (structural CSV check, model
execution, metric definitions) on top of ``httpx.AsyncClient``. Every
failure is converted into a FaivorError subclass carrying a
ValidationErrorCode, so callers never inspect HTTP status codes or
free-form messages themselves. Calls are made once: there is no retry.
"""

from __future__ import annotations

import json
import re
import time
from typing import Any

import httpx
from loguru import logger
from pydantic import TypeAdapter

from faivor.config import DEFAULT_VALIDATOR_URL, Settings
from faivor.errors import (
    BACKEND_ERROR_CODES,
    ERROR_CLASSES,
    ContainerExecutionError,
    FaivorError,
    InvalidCsvFormatError,
    MissingRequiredColumnsError,
    ModelExecutionFailedError,
    ServiceUnavailableError,
    ValidationErrorCode,
    ValidationFailedError,
)
from faivor.models.validation import (
    CsvValidationResponse,
    MetricDefinition,
    ModelValidationResponse,
)

SERVICE_NAME = "FAIVOR ML Validator"

_MISSING_COLUMNS_RE = re.compile(r"Missing required columns: (.*)")
_METRIC_DEFINITIONS = TypeAdapter(list[MetricDefinition])


def parse_missing_columns(message: str | None) -> list[str] | None:
    """Extract the column list from a "Missing required columns: a, b" message.

    Returns:
        The trimmed column names, or None when the message carries no
        missing-column signal.
    """
    if not message:
        return None
    match = _MISSING_COLUMNS_RE.search(message)
    if match is None:
        return None
    columns = [col.strip() for col in match.group(1).split(",") if col.strip()]
    return columns or None


def _model_name(metadata: dict[str, Any]) -> str:
    return str(metadata.get("name") or "Unknown Model")


class ValidatorClient:
    """HTTP client for the model validator with structured error mapping.

    Usage::

        async with ValidatorClient("http://localhost:8000") as client:
            check = await client.validate_csv(schema.metadata, csv_bytes)
            if check.valid:
                result = await client.validate_model(schema.metadata, csv_bytes)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_VALIDATOR_URL,
        *,
        timeout: float = 300.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the underlying httpx client.

        Args:
            base_url: Validator service root URL.
            timeout: Per-request timeout in seconds.
            transport: Optional transport override (e.g. ``httpx.MockTransport``).
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings) -> ValidatorClient:
        return cls(settings.validator_url, timeout=settings.request_timeout)

    async def __aenter__(self) -> ValidatorClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        data: dict[str, str] | None = None,
        files: dict[str, tuple[str, bytes, str]] | None = None,
    ) -> httpx.Response:
        """Send one request and raise a FaivorError on a non-2xx response.

        Transport errors (``httpx.HTTPError``) propagate to the caller, which
        decides how to classify them.
        """
        start = time.monotonic()
        response = await self._client.request(method, path, data=data, files=files)
        elapsed = time.monotonic() - start

        logger.info(
            "Validator call | {method} {path} status={status} latency={lat:.2f}s",
            method=method,
            path=path,
            status=response.status_code,
            lat=elapsed,
        )

        if response.is_error:
            raise self._parse_error_response(response)
        return response

    def _parse_error_response(self, response: httpx.Response) -> FaivorError:
        """Map a non-2xx validator response to a FaivorError.

        Handles the structured FastAPI form ``{"detail": {code, message,
        technical_details, metadata}}`` first, then a plain string ``detail``
        classified by content, then the HTTP status.
        """
        text = response.text
        try:
            body = response.json()
        except ValueError:
            body = None
        detail = body.get("detail") if isinstance(body, dict) else None
        status = response.status_code

        if isinstance(detail, dict):
            backend_code = str(detail.get("code") or "UNKNOWN_ERROR")
            code = BACKEND_ERROR_CODES.get(backend_code, ValidationErrorCode.VALIDATION_FAILED)
            technical_details = str(detail.get("technical_details") or "")
            metadata = dict(detail.get("metadata") or {})
            metadata.update(status=status, backend_code=backend_code)

            logger.error(
                "Validator error | status={} code={} message={}",
                status,
                backend_code,
                detail.get("message"),
            )
            error_cls = ERROR_CLASSES.get(code, FaivorError)
            return error_cls(
                str(detail.get("message") or "An error occurred"),
                code=code,
                technical_details=technical_details,
                metadata=metadata,
                http_status=status,
            )

        if isinstance(detail, str):
            if "Missing required columns" in detail:
                return MissingRequiredColumnsError.for_columns(parse_missing_columns(detail) or [])
            if "container" in detail or "Docker" in detail:
                return ContainerExecutionError(
                    "Failed to start model container",
                    code=ValidationErrorCode.CONTAINER_START_FAILED,
                    technical_details=detail,
                    http_status=status,
                )
            if "CSV" in detail or "format" in detail:
                return InvalidCsvFormatError(detail, technical_details=detail, http_status=status)

        if status >= 500:
            return ServiceUnavailableError.for_service(SERVICE_NAME, text or response.reason_phrase)

        logger.error("Validator error | status={} body={}", status, text[:500])
        message = detail or (body.get("message") if isinstance(body, dict) else None)
        return ValidationFailedError(
            str(message or text or response.reason_phrase),
            technical_details=text,
            metadata={"status": status, "status_text": response.reason_phrase},
            http_status=status,
        )

    @staticmethod
    def _decode(response: httpx.Response, operation: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ServiceUnavailableError.for_service(
                SERVICE_NAME, f"{operation}: response is not valid JSON"
            ) from exc

    @staticmethod
    def _form(
        metadata: dict[str, Any], column_metadata: dict[str, Any] | None = None
    ) -> dict[str, str]:
        data = {"model_metadata": json.dumps(metadata)}
        if column_metadata is not None:
            data["column_metadata"] = json.dumps(column_metadata)
        return data

    async def health_check(self) -> dict[str, Any]:
        """Call ``GET /`` and return the service's message payload."""
        try:
            response = await self._request("GET", "/")
        except httpx.HTTPError as exc:
            raise ServiceUnavailableError.for_service(SERVICE_NAME, str(exc) or "Unknown error") from exc
        return self._decode(response, "health check")

    async def validate_csv(self, metadata: dict[str, Any], csv_data: bytes) -> CsvValidationResponse:
        """Run the structural check (``POST /validate-csv/``).

        A missing-column failure, whether reported in the response body or as
        an error response, comes back as ``valid=False`` with
        ``missing_columns`` filled in.

        Args:
            metadata: Raw FAIRmodels metadata document.
            csv_data: Dataset bytes.

        Returns:
            CsvValidationResponse.

        Raises:
            ServiceUnavailableError: On transport failure or a 5xx response.
            FaivorError: For other error responses.
        """
        try:
            response = await self._request(
                "POST",
                "/validate-csv/",
                data=self._form(metadata),
                files={"csv_file": ("data.csv", csv_data, "text/csv")},
            )
        except MissingRequiredColumnsError as exc:
            return CsvValidationResponse(
                valid=False,
                message=exc.message,
                csv_columns=list(exc.metadata.get("available_columns") or []),
                missing_columns=exc.missing_columns or parse_missing_columns(exc.message),
            )
        except httpx.HTTPError as exc:
            raise ServiceUnavailableError.for_service(
                SERVICE_NAME, str(exc) or "CSV validation failed"
            ) from exc

        try:
            result = CsvValidationResponse.model_validate(self._decode(response, "CSV validation"))
        except ValueError as exc:
            raise ServiceUnavailableError.for_service(SERVICE_NAME, str(exc)) from exc

        if not result.valid and result.missing_columns is None:
            result.missing_columns = parse_missing_columns(result.message)
        logger.info(
            "Structural check: valid={} missing={}",
            result.valid,
            result.missing_columns or [],
        )
        return result

    async def validate_model(
        self,
        metadata: dict[str, Any],
        csv_data: bytes,
        column_metadata: dict[str, Any] | None = None,
        *,
        filename: str = "data.csv",
    ) -> ModelValidationResponse:
        """Execute the model on the dataset (``POST /validate-model``).

        Raises:
            ModelExecutionFailedError: When the model run fails.
            ServiceUnavailableError: On transport failure or a 5xx response.
            FaivorError: For other error responses.
        """
        try:
            response = await self._request(
                "POST",
                "/validate-model",
                data=self._form(metadata, column_metadata),
                files={"csv_file": (filename, csv_data, "text/csv")},
            )
        except httpx.HTTPError as exc:
            message = str(exc)
            if "model" in message and "execution" in message:
                raise ModelExecutionFailedError.for_model(_model_name(metadata), message) from exc
            raise ServiceUnavailableError.for_service(
                SERVICE_NAME, message or "Model validation failed"
            ) from exc

        try:
            result = ModelValidationResponse.model_validate(
                self._decode(response, "model validation")
            )
        except ValueError as exc:
            raise ServiceUnavailableError.for_service(SERVICE_NAME, str(exc)) from exc

        logger.info("Model '{}' returned {} metric(s)", result.model_name, len(result.metrics))
        return result

    async def validate_model_with_columns(
        self,
        metadata: dict[str, Any],
        columns: list[str],
        column_metadata: dict[str, Any] | None = None,
    ) -> ModelValidationResponse:
        """Execute the model with a header-only CSV built from ``columns``."""
        header_only = (",".join(columns) + "\n").encode("utf-8")
        return await self.validate_model(
            metadata, header_only, column_metadata, filename="columns_only.csv"
        )

    async def retrieve_metric_definitions(
        self,
        metadata: dict[str, Any],
        csv_data: bytes,
        column_metadata: dict[str, Any] | None = None,
    ) -> list[MetricDefinition]:
        """List the metrics the validator can compute (``POST /retrieve-metrics``)."""
        try:
            response = await self._request(
                "POST",
                "/retrieve-metrics",
                data=self._form(metadata, column_metadata),
                files={"csv_file": ("data.csv", csv_data, "text/csv")},
            )
        except httpx.HTTPError as exc:
            raise ServiceUnavailableError.for_service(
                SERVICE_NAME, str(exc) or "Failed to retrieve metrics"
            ) from exc

        try:
            return _METRIC_DEFINITIONS.validate_python(self._decode(response, "metric retrieval"))
        except ValueError as exc:
            raise ServiceUnavailableError.for_service(SERVICE_NAME, str(exc)) from exc
