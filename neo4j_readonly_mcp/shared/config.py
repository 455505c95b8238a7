"""
Base configuration for the server.

Uses Pydantic Settings for environment-based configuration.
Values passed to the constructor (e.g. from CLI flags) take precedence
over environment variables, which take precedence over `.env`.
"""

from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_NEO4J_URI = "bolt://localhost:7687"
DEFAULT_NEO4J_USERNAME = "neo4j"


class BaseServerSettings(BaseSettings):
    """Neo4j connection and logging settings."""

    # Neo4j connection
    neo4j_uri: str = DEFAULT_NEO4J_URI
    neo4j_username: str = DEFAULT_NEO4J_USERNAME
    neo4j_password: str = Field(min_length=1)
    neo4j_database: str | None = None

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_ignore_empty = True
        extra = "ignore"

    @field_validator("neo4j_uri")
    @classmethod
    def _uri_is_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"Invalid URL: {value!r}")
        return value
