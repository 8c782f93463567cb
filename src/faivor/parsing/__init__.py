"""Model metadata parsing and dataset/schema column matching."""

from faivor.parsing.metadata import (
    parse_column_metadata,
    parse_model_metadata,
    schema_from_metadata,
)
from faivor.parsing.schema_matcher import candidate_columns, match_columns

__all__ = [
    "parse_model_metadata",
    "parse_column_metadata",
    "schema_from_metadata",
    "match_columns",
    "candidate_columns",
]
