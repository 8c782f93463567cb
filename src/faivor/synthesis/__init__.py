"""Mock-column synthesis used by the missing-column validation fallback."""

from faivor.synthesis.mock_columns import generate_mock_value, synthesize_missing_columns

__all__ = ["generate_mock_value", "synthesize_missing_columns"]
