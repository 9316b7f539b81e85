"""
Base configuration for the document builder and the query runner.

Uses Pydantic Settings for environment-based configuration.
Every value can be set through a ``LADYBUG_``-prefixed environment
variable or a ``.env`` file.
"""

from pydantic_settings import BaseSettings

# Fallback when neither a block directive nor the environment names an endpoint
DEFAULT_ENDPOINT = "http://127.0.0.1:8080"


class LadybugSettings(BaseSettings):
    """Settings shared by the build-time extractor and the page runtime."""

    # Default ladybug-rs endpoint (read from LADYBUG_ENDPOINT)
    endpoint: str | None = None

    # Query timeout in seconds (read from LADYBUG_TIMEOUT_SECONDS)
    timeout_seconds: float = 10.0

    # Logging
    log_level: str = "INFO"

    class Config:
        env_prefix = "LADYBUG_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
