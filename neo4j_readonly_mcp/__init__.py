"""Read-only Neo4j MCP server: a guarded Cypher query surface for tool-calling agents."""

__version__ = "1.0.0"
