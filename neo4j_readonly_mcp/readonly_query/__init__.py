"""Read-only query server: the query guard, result normalizer and MCP tools."""

from neo4j_readonly_mcp.readonly_query.graph_store import GraphStore
from neo4j_readonly_mcp.readonly_query.normalizer import normalize
from neo4j_readonly_mcp.readonly_query.query_guard import (
    Classification,
    GuardRules,
    QueryGuard,
    ReadOnlyQueryGuard,
    Verdict,
)
from neo4j_readonly_mcp.readonly_query.server import create_mcp_server

__all__ = [
    "Classification",
    "GraphStore",
    "GuardRules",
    "QueryGuard",
    "ReadOnlyQueryGuard",
    "Verdict",
    "create_mcp_server",
    "normalize",
]
