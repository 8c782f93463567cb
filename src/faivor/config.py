"""Runtime settings for the validator client and the orchestrator.

Values come from environment variables so the CLI and any embedding service
share one source of configuration:

    FAIVOR_VALIDATOR_URL    Base URL of the FAIVOR ML validator service
    FAIVOR_REQUEST_TIMEOUT  Per-request timeout in seconds
    FAIVOR_MOCK_ROW_COUNT   Rows kept when synthesizing missing columns
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field

DEFAULT_VALIDATOR_URL = "http://localhost:8000"


class Settings(BaseModel):
    """Validator connection and synthesis settings."""

    validator_url: str = Field(
        default=DEFAULT_VALIDATOR_URL, description="Base URL of the model validator service"
    )
    request_timeout: float = Field(
        default=300.0, gt=0, description="Timeout in seconds for each validator request"
    )
    mock_row_count: int = Field(
        default=10, ge=1, description="Data rows kept when synthesizing missing columns"
    )


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from environment variables, falling back to defaults.

    Args:
        environ: Mapping to read from. Defaults to ``os.environ``.

    Returns:
        Validated Settings instance.
    """
    env = os.environ if environ is None else environ
    values: dict[str, str] = {}
    if env.get("FAIVOR_VALIDATOR_URL"):
        values["validator_url"] = env["FAIVOR_VALIDATOR_URL"].rstrip("/")
    if env.get("FAIVOR_REQUEST_TIMEOUT"):
        values["request_timeout"] = env["FAIVOR_REQUEST_TIMEOUT"]
    if env.get("FAIVOR_MOCK_ROW_COUNT"):
        values["mock_row_count"] = env["FAIVOR_MOCK_ROW_COUNT"]
    return Settings.model_validate(values)
