"""Configuration for the TES client CLI.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tes_client.client import normalize_address
from tes_client.serialization import MarshalOptions


class TesSettings(BaseSettings):
    """Settings for talking to a TES server.

    Environment variables:
    - TES_SERVER           (optional)
    - TES_REQUEST_TIMEOUT  (optional)
    - TES_CONCURRENCY      (optional)
    - TES_POLL_INTERVAL    (optional)
    - TES_JSON_INDENT      (optional)
    - LOG_LEVEL            (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `TesSettings(_env_file=path_to_env)`.
    """

    server: str = Field(
        default="http://localhost:8000",
        validation_alias="TES_SERVER",
        description="Address of the TES server",
    )

    request_timeout: float = Field(
        default=60.0,
        gt=0,
        validation_alias="TES_REQUEST_TIMEOUT",
        description="Timeout in seconds for each HTTP request",
    )

    concurrency: int = Field(
        default=5,
        validation_alias="TES_CONCURRENCY",
        description="Parallel lookups for bulk task retrieval (<= 0 uses 5)",
    )

    poll_interval: float = Field(
        default=2.0,
        gt=0,
        validation_alias="TES_POLL_INTERVAL",
        description="Seconds between polling cycles when waiting for tasks",
    )

    json_indent: int = Field(
        default=2,
        ge=0,
        validation_alias="TES_JSON_INDENT",
        description="Indentation of JSON printed by the CLI (0 for compact)",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("server")
    @classmethod
    def _valid_server(cls, value: str) -> str:
        return normalize_address(value)

    @property
    def marshal_options(self) -> MarshalOptions:
        """JSON formatting derived from ``json_indent``."""

        return MarshalOptions(indent=self.json_indent or None)
