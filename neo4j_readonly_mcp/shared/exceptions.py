"""
Custom exception hierarchy for the read-only Neo4j MCP server.

All server errors inherit from ServerError so they can be caught
uniformly at the tool boundary and rendered as a textual result.
"""


class ServerError(Exception):
    """Base exception for all server errors."""

    def __init__(self, message: str, component: str = "unknown"):
        self.component = component
        self.message = message
        super().__init__(message)


class QueryRejectedError(ServerError):
    """A query was classified as potentially mutating."""

    def __init__(self, message: str):
        super().__init__(message, component="query_guard")


class InvalidIdentifierError(QueryRejectedError):
    """A label or relationship type cannot be interpolated safely."""
    pass


class ArgumentValidationError(ServerError):
    """Tool arguments did not match the tool's schema."""

    def __init__(self, message: str):
        super().__init__(message, component="arguments")


class DatabaseConnectionError(ServerError):
    """Failed to connect to Neo4j."""

    def __init__(self, message: str):
        super().__init__(message, component="database")


class QueryExecutionError(ServerError):
    """Neo4j rejected or failed a running query."""

    def __init__(self, message: str):
        super().__init__(message, component="database")


class ConfigurationError(ServerError):
    """Startup configuration is missing or malformed."""

    def __init__(self, message: str, problems: list[str] | None = None):
        self.problems = problems or []
        super().__init__(message, component="config")
