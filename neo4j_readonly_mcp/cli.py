"""
Command-line entry point.

Flags override environment variables (and `.env`), which override the
built-in defaults.  Invalid configuration stops the process before any
tool is registered.

Usage:
    neo4j-readonly-mcp --neo4j-password secret
    NEO4J_PASSWORD=secret python -m neo4j_readonly_mcp
"""

import asyncio
from typing import Any

import typer
from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP
from pydantic import ValidationError

from neo4j_readonly_mcp.readonly_query.config import ReadOnlySettings
from neo4j_readonly_mcp.readonly_query.graph_store import GraphStore
from neo4j_readonly_mcp.readonly_query.server import build_store, create_mcp_server
from neo4j_readonly_mcp.shared.exceptions import ConfigurationError
from neo4j_readonly_mcp.shared.logging import get_logger, setup_logging

logger = get_logger("cli")

ENV_HELP = """\
Environment variables: NEO4J_URI, NEO4J_USERNAME, NEO4J_PASSWORD,
NEO4J_DATABASE, MCP_TRANSPORT, MCP_HOST, MCP_PORT, LOG_LEVEL.

Example: neo4j-readonly-mcp --neo4j-uri bolt://localhost:7687
--neo4j-username neo4j --neo4j-password mypassword
"""

app = typer.Typer(
    name="neo4j-readonly-mcp",
    help="Read-only Neo4j MCP server.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def load_settings(**overrides: Any) -> ReadOnlySettings:
    """Build settings, with non-None overrides taking precedence over the environment.

    Raises:
        ConfigurationError: With one ``field: message`` entry per problem.
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return ReadOnlySettings(**values)
    except ValidationError as exc:
        problems = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        raise ConfigurationError("Configuration error", problems) from exc


@app.command(epilog=ENV_HELP)
def serve(
    neo4j_uri: str | None = typer.Option(
        None, "--neo4j-uri", help="Neo4j connection URI (default: bolt://localhost:7687)",
    ),
    neo4j_username: str | None = typer.Option(
        None, "--neo4j-username", help="Neo4j username (default: neo4j)",
    ),
    neo4j_password: str | None = typer.Option(
        None, "--neo4j-password", help="Neo4j password (required)",
    ),
    neo4j_database: str | None = typer.Option(
        None, "--neo4j-database", help="Database name (default: server default)",
    ),
    transport: str | None = typer.Option(
        None, "--transport", help="MCP transport: stdio (default) or sse",
    ),
    host: str | None = typer.Option(None, "--host", help="Bind host for sse"),
    port: int | None = typer.Option(None, "--port", help="Bind port for sse"),
    log_level: str | None = typer.Option(None, "--log-level", help="Log level (default: INFO)"),
) -> None:
    """Start the read-only Neo4j MCP server."""
    try:
        settings = load_settings(
            neo4j_uri=neo4j_uri,
            neo4j_username=neo4j_username,
            neo4j_password=neo4j_password,
            neo4j_database=neo4j_database,
            mcp_transport=transport,
            mcp_host=host,
            mcp_port=port,
            log_level=log_level,
        )
    except ConfigurationError as exc:
        typer.echo("Configuration error:", err=True)
        for problem in exc.problems:
            typer.echo(f"  {problem}", err=True)
        typer.echo("\nUse --help for usage information", err=True)
        raise typer.Exit(code=1) from exc

    setup_logging("cli", level=settings.log_level)
    store = build_store(settings)
    server = create_mcp_server(store, name=settings.server_name)
    asyncio.run(run_server(server, store, settings))


async def run_server(server: FastMCP, store: GraphStore, settings: ReadOnlySettings) -> None:
    """Serve on the configured transport, then close the store's driver once.

    Serving and closing share one event loop, which owns the driver.
    """
    try:
        if settings.mcp_transport == "sse":
            import uvicorn

            logger.info(
                "Starting Neo4j MCP server (SSE transport on %s:%s)",
                settings.mcp_host, settings.mcp_port,
            )
            config = uvicorn.Config(
                server.sse_app(),
                host=settings.mcp_host,
                port=settings.mcp_port,
                log_level=settings.log_level.lower(),
            )
            await uvicorn.Server(config).serve()
        else:
            logger.info("Starting Neo4j MCP server (stdio transport)")
            await server.run_stdio_async()
    finally:
        await store.close()


def main() -> None:
    load_dotenv()
    app()
