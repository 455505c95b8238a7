"""Read-only query server configuration."""

from typing import Literal

from neo4j_readonly_mcp.shared.config import BaseServerSettings


class ReadOnlySettings(BaseServerSettings):
    """Settings specific to the read-only query MCP server."""

    server_name: str = "neo4j-mcp-server"
    mcp_transport: Literal["stdio", "sse"] = "stdio"
    mcp_host: str = "127.0.0.1"
    mcp_port: int = 8000

    # Query Guard coverage is configuration: these only ever add rules
    extra_forbidden_keywords: list[str] = []
    extra_allowed_procedures: list[str] = []
