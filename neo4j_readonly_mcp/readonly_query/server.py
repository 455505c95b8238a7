"""
Read-only Neo4j MCP Server

Exposes eleven read-only tools over a Neo4j database.  Each tool's
docstring is read by the calling agent so it knows *when* and *how*
to call it.  Every tool returns text: a JSON payload on success, or
``Error: <message>`` on any failure (rejected query, bad arguments,
database error).  Nothing is raised across the protocol boundary.

Build with ``create_mcp_server(store)``; run via ``neo4j-readonly-mcp``
(see ``neo4j_readonly_mcp.cli``).
"""

import json
from collections.abc import Awaitable
from typing import Any

from mcp.server.fastmcp import FastMCP

from neo4j_readonly_mcp.readonly_query.config import ReadOnlySettings
from neo4j_readonly_mcp.readonly_query.graph_store import GraphStore
from neo4j_readonly_mcp.readonly_query.query_guard import GuardRules, ReadOnlyQueryGuard
from neo4j_readonly_mcp.shared.database import Neo4jHandler
from neo4j_readonly_mcp.shared.exceptions import QueryRejectedError, ServerError
from neo4j_readonly_mcp.shared.logging import get_logger

logger = get_logger("readonly_query.server")

INSTRUCTIONS = (
    "Read-only access to a Neo4j graph database. Only MATCH, RETURN, WITH, "
    "UNWIND, SHOW and schema-introspection CALL procedures are allowed."
)


def _dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, default=str)


async def _run_tool(name: str, call: Awaitable[Any]) -> str:
    """Await a GraphStore call and render its outcome as tool text."""
    try:
        result = await call
    except QueryRejectedError as exc:
        return f"Error: {exc}"
    except ServerError as exc:
        logger.warning("Tool %s failed: %s", name, exc)
        return f"Error: {exc}"
    except Exception as exc:
        logger.exception("Unexpected failure in tool %s", name)
        return f"Error: {exc}"
    return result if isinstance(result, str) else _dumps(result)


def build_store(settings: ReadOnlySettings, **handler_kwargs: Any) -> GraphStore:
    """Wire a GraphStore from settings: one handler, one configured guard."""
    rules = GuardRules().extended(
        forbidden_keywords=settings.extra_forbidden_keywords,
        allowed_procedures=settings.extra_allowed_procedures,
    )
    handler = Neo4jHandler.from_settings(settings, **handler_kwargs)
    return GraphStore(handler, guard=ReadOnlyQueryGuard(rules))


def create_mcp_server(
    store: GraphStore,
    name: str = "neo4j-mcp-server",
    **fastmcp_kwargs: Any,
) -> FastMCP:
    """Create a FastMCP server whose tools all run against ``store``.

    The server never closes the store: FastMCP enters its lifespan once
    per SSE client, while the driver is shared by all of them.  Whoever
    built the store closes it at shutdown (see ``cli.serve``).
    """
    mcp = FastMCP(name, instructions=INSTRUCTIONS, **fastmcp_kwargs)

    @mcp.tool()
    async def neo4j_query(query: str, parameters: dict[str, Any] | None = None) -> str:
        """Execute read-only Cypher queries against the Neo4j database.

        Only MATCH, RETURN, WITH, UNWIND, SHOW and read-only CALL procedures
        (db.labels, db.relationshipTypes, db.propertyKeys, db.schema.*,
        apoc.meta.*, gds.*, algo.*) are allowed.  Any query mentioning a
        write keyword (CREATE, MERGE, DELETE, SET, REMOVE, DROP, ...) is
        rejected, even inside a string literal.

        Args:
            query: The Cypher query to execute (read-only operations only).
                Use $name placeholders for values.
            parameters: Optional parameters for the query.
        """
        return await _run_tool("neo4j_query", store.query(query, parameters))

    @mcp.tool()
    async def neo4j_schema() -> str:
        """Get the database schema including node labels, relationship types, and property keys."""
        return await _run_tool("neo4j_schema", store.schema())

    @mcp.tool()
    async def neo4j_test_connection() -> str:
        """Test the connection to the Neo4j database."""
        return await _run_tool("neo4j_test_connection", store.test_connection())

    @mcp.tool()
    async def neo4j_node_count(label: str | None = None) -> str:
        """Get the count of nodes by label or total count of all nodes.

        Args:
            label: Optional label to count nodes for. If not provided,
                returns total count of all nodes.
        """
        return await _run_tool("neo4j_node_count", store.node_count(label))

    @mcp.tool()
    async def neo4j_relationship_count(type: str | None = None) -> str:
        """Get the count of relationships by type or total count of all relationships.

        Args:
            type: Optional relationship type to count. If not provided,
                returns total count of all relationships.
        """
        return await _run_tool("neo4j_relationship_count", store.relationship_count(type))

    @mcp.tool()
    async def neo4j_database_info() -> str:
        """Get general database information including version, edition, and basic statistics."""
        return await _run_tool("neo4j_database_info", store.database_info())

    @mcp.tool()
    async def neo4j_indexes() -> str:
        """List all indexes in the database."""
        return await _run_tool("neo4j_indexes", store.indexes())

    @mcp.tool()
    async def neo4j_constraints() -> str:
        """List all constraints in the database."""
        return await _run_tool("neo4j_constraints", store.constraints())

    @mcp.tool()
    async def neo4j_sample_data(
        label: str | None = None,
        relationshipType: str | None = None,  # noqa: N803 - public argument name
        limit: int | None = None,
    ) -> str:
        """Get sample data from the database for a specific label or relationship type.

        Args:
            label: Node label to get sample data for.
            relationshipType: Relationship type to get sample data for.
                Give either label or relationshipType, not both.
            limit: Number of samples to return (default: 5, min: 1, max: 50).
        """
        return await _run_tool(
            "neo4j_sample_data", store.sample_data(label, relationshipType, limit),
        )

    @mcp.tool()
    async def neo4j_node_properties(label: str) -> str:
        """Get all properties and their types for a specific node label.

        Property types need the APOC plugin; without it the result lists
        property names and frequencies only, with a note saying so.

        Args:
            label: Node label to analyze properties for.
        """
        return await _run_tool("neo4j_node_properties", store.node_properties(label))

    @mcp.tool()
    async def neo4j_relationship_properties(type: str) -> str:
        """Get all properties and their types for a specific relationship type.

        Property types need the APOC plugin; without it the result lists
        property names and frequencies only, with a note saying so.

        Args:
            type: Relationship type to analyze properties for.
        """
        return await _run_tool(
            "neo4j_relationship_properties", store.relationship_properties(type),
        )

    return mcp
