"""FAIRmodels metadata parsing.

Extracts the model's declared input columns and outcome label from a
FAIRmodels JSON-LD metadata document. Values in these documents are wrapped
as ``{"@value": ...}`` or ``{"rdfs:label": ...}`` objects.
"""

from __future__ import annotations

import json
from typing import Any

from loguru import logger

from faivor.errors import InvalidMetadataFormatError
from faivor.models.dataset import ModelSchema

# Keys under which exported documents list their inputs ("Input data1" is
# produced by some FAIRmodels exports).
_INPUT_KEYS: tuple[str, ...] = ("Input data", "Input data1")


def _literal(node: Any) -> str:
    """Unwrap a JSON-LD literal node to a plain string."""
    if node is None:
        return ""
    if isinstance(node, dict):
        for key in ("@value", "rdfs:label"):
            value = node.get(key)
            if value is not None:
                return str(value)
        return ""
    return str(node)


def _load_json(text: str, document: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidMetadataFormatError(
            f"Invalid {document} format: {exc.msg}",
            technical_details=str(exc),
            metadata={"document": document, "parse_error": str(exc)},
        ) from exc


def schema_from_metadata(metadata: dict[str, Any]) -> ModelSchema:
    """Build a ModelSchema from an already-decoded metadata document.

    Args:
        metadata: Decoded FAIRmodels metadata.

    Returns:
        ModelSchema with ordered input labels, outcome, title and image name.
        The raw document is kept for forwarding to the validator.
    """
    inputs: list[Any] = []
    for key in _INPUT_KEYS:
        candidate = metadata.get(key)
        if isinstance(candidate, list):
            inputs = candidate
            break

    input_columns = [
        label
        for label in (_literal(item.get("Input label")) for item in inputs if isinstance(item, dict))
        if label
    ]

    outcome_node = metadata.get("Outcome")
    outcome = ""
    if isinstance(outcome_node, dict) and "rdfs:label" in outcome_node:
        outcome = str(outcome_node["rdfs:label"])
    if not outcome:
        outcome = _literal(metadata.get("Outcome label"))

    general = metadata.get("General Model Information") or {}
    title = _literal(general.get("Title")) if isinstance(general, dict) else ""
    image = _literal(general.get("FAIRmodels image name")) if isinstance(general, dict) else ""

    return ModelSchema(
        title=title,
        input_columns=input_columns,
        outcome=outcome,
        docker_image=image,
        metadata=metadata,
    )


def parse_model_metadata(text: str) -> ModelSchema:
    """Parse metadata.json text into a ModelSchema.

    Raises:
        InvalidMetadataFormatError: If the text is not a JSON object.
    """
    data = _load_json(text, "metadata.json")
    if not isinstance(data, dict):
        raise InvalidMetadataFormatError(
            "Invalid metadata.json format: expected a JSON object",
            metadata={"document": "metadata.json"},
        )
    schema = schema_from_metadata(data)
    logger.info(
        "Parsed model metadata '{}': {} input columns, outcome '{}'",
        schema.title,
        len(schema.input_columns),
        schema.outcome,
    )
    return schema


def parse_column_metadata(text: str | None) -> dict[str, Any]:
    """Parse column_metadata.json text; absent or blank text yields an empty dict.

    Raises:
        InvalidMetadataFormatError: If the text is not a JSON object.
    """
    if text is None or not text.strip():
        return {}
    data = _load_json(text, "column_metadata.json")
    if not isinstance(data, dict):
        raise InvalidMetadataFormatError(
            "Invalid column_metadata.json format: expected a JSON object",
            metadata={"document": "column_metadata.json"},
        )
    return data
