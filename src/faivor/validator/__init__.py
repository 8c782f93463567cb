"""Client for the remote FAIVOR model validator service."""

from faivor.validator.client import ValidatorClient, parse_missing_columns

__all__ = ["ValidatorClient", "parse_missing_columns"]
