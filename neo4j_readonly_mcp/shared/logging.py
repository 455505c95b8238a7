"""
Logging setup shared by the server and the CLI.

Everything goes to stderr: with the stdio transport, stdout carries
the MCP protocol stream and must not receive log lines.
"""

import logging
import sys

LOGGER_PREFIX = "neo4j-readonly-mcp"


def setup_logging(component: str, level: str = "INFO") -> logging.Logger:
    """
    Configure logging for a server component.

    Args:
        component: Name of the component (used as logger suffix).
        level: Log level string (e.g. 'INFO', 'DEBUG').

    Returns:
        Configured logger instance.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s  %(name)-40s  %(levelname)-7s  %(message)s",
        stream=sys.stderr,
    )
    return get_logger(component)


def get_logger(component: str) -> logging.Logger:
    """Return the namespaced logger for a component without configuring handlers."""
    return logging.getLogger(f"{LOGGER_PREFIX}.{component}")
