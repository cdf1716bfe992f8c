"""
Client settings for tubegraph.

Settings are read from ``TUBEGRAPH_*`` environment variables and turned
into the TransportConfig the HTTP transport consumes.

Security:
    The API key uses SecretStr to prevent accidental logging.
    Access the value with ``settings.api_key.get_secret_value()``.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, Field, SecretStr

from tubegraph.parser.builder import DEFAULT_DISCRIMINATOR
from tubegraph.transport.http import DEFAULT_API_PREFIX, DEFAULT_BASE_URL, TransportConfig


class ClientSettings(BaseModel):
    """Type-safe client settings."""

    # Connection
    base_url: str = Field(DEFAULT_BASE_URL, description="Service origin")
    api_prefix: str = Field(DEFAULT_API_PREFIX, description="Path prefix of the JSON API")
    api_key: SecretStr | None = None
    timeout: float = Field(30.0, gt=0)
    user_agent: str | None = None

    # Client context
    client_name: str = "WEB_REMIX"
    client_version: str = "1.20240101.01.00"
    hl: str = "en"
    gl: str = "US"

    # Retries
    max_retries: int = Field(3, ge=0)
    retry_delay: float = Field(1.0, ge=0)

    # Parsing
    discriminator: str = Field(DEFAULT_DISCRIMINATOR, description="Raw key holding the node tag")

    # Observability
    log_requests: bool = False
    log_responses: bool = False

    @classmethod
    def from_env(cls) -> ClientSettings:
        """Build settings from the environment."""
        api_key = os.getenv("TUBEGRAPH_API_KEY")
        return cls(
            # Connection
            base_url=os.getenv("TUBEGRAPH_BASE_URL", DEFAULT_BASE_URL),
            api_prefix=os.getenv("TUBEGRAPH_API_PREFIX", DEFAULT_API_PREFIX),
            api_key=SecretStr(api_key) if api_key else None,
            timeout=float(os.getenv("TUBEGRAPH_TIMEOUT", "30")),
            user_agent=os.getenv("TUBEGRAPH_USER_AGENT"),
            # Client context
            client_name=os.getenv("TUBEGRAPH_CLIENT_NAME", "WEB_REMIX"),
            client_version=os.getenv("TUBEGRAPH_CLIENT_VERSION", "1.20240101.01.00"),
            hl=os.getenv("TUBEGRAPH_HL", "en"),
            gl=os.getenv("TUBEGRAPH_GL", "US"),
            # Retries
            max_retries=int(os.getenv("TUBEGRAPH_MAX_RETRIES", "3")),
            retry_delay=float(os.getenv("TUBEGRAPH_RETRY_DELAY", "1.0")),
            # Parsing
            discriminator=os.getenv("TUBEGRAPH_DISCRIMINATOR", DEFAULT_DISCRIMINATOR),
            # Observability
            log_requests=os.getenv("TUBEGRAPH_LOG_REQUESTS", "false").lower() == "true",
            log_responses=os.getenv("TUBEGRAPH_LOG_RESPONSES", "false").lower() == "true",
        )

    def to_transport_config(self) -> TransportConfig:
        return TransportConfig(
            base_url=self.base_url,
            api_prefix=self.api_prefix,
            api_key=self.api_key.get_secret_value() if self.api_key else None,
            timeout=self.timeout,
            user_agent=self.user_agent,
            client_name=self.client_name,
            client_version=self.client_version,
            hl=self.hl,
            gl=self.gl,
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
            log_requests=self.log_requests,
            log_responses=self.log_responses,
        )
