"""
Graph Store: Neo4j query layer for the read-only MCP server.

Each public method corresponds to one MCP tool and returns a plain dict
ready for JSON serialisation.  Every method opens exactly one session
through the shared ``Neo4jHandler`` and releases it before returning.

Caller-supplied Cypher goes through the Query Guard; caller-supplied
labels and relationship types go through the identifier check before
they are interpolated into a template.  Fixed queries authored here
(``SHOW INDEXES``, ``CALL dbms.components()``...) are not guarded.
"""

from typing import Any

from neo4j import AsyncSession

from neo4j_readonly_mcp.readonly_query.identifiers import quote_identifier
from neo4j_readonly_mcp.readonly_query.models import (
    NodeCountArgs,
    NodePropertiesArgs,
    PropertyAnalysis,
    QueryArgs,
    RelationshipCountArgs,
    RelationshipPropertiesArgs,
    SampleDataArgs,
)
from neo4j_readonly_mcp.readonly_query.normalizer import normalize_record
from neo4j_readonly_mcp.readonly_query.query_guard import QueryGuard, ReadOnlyQueryGuard
from neo4j_readonly_mcp.shared.database import Neo4jHandler, fetch_records
from neo4j_readonly_mcp.shared.exceptions import (
    DatabaseConnectionError,
    QueryExecutionError,
    QueryRejectedError,
    ServerError,
)
from neo4j_readonly_mcp.shared.logging import get_logger

logger = get_logger("readonly_query.graph_store")

REJECTION_MESSAGE = (
    "Query contains forbidden operations. "
    "Only read operations (MATCH, RETURN, WITH, UNWIND, etc.) are allowed."
)
APOC_UNAVAILABLE_NOTE = "Property types not available (APOC not installed)"

_SUMMARY_COUNTERS = (
    "nodes_created", "nodes_deleted",
    "relationships_created", "relationships_deleted",
    "properties_set", "labels_added", "labels_removed",
    "indexes_added", "indexes_removed",
    "constraints_added", "constraints_removed",
    "system_updates", "contains_updates", "contains_system_updates",
)


def _summary_counters(summary: Any) -> dict[str, Any]:
    counters = getattr(summary, "counters", None)
    if counters is None:
        return {}
    return {name: getattr(counters, name, 0) for name in _SUMMARY_COUNTERS}


def _sorted_properties(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(rows, key=lambda row: (-row["frequency"], row["property"]))


class GraphStore:
    """Read-only query interface over a Neo4j database."""

    def __init__(self, handler: Neo4jHandler, guard: QueryGuard | None = None):
        self._db = handler
        self._guard = guard or ReadOnlyQueryGuard()

    @property
    def handler(self) -> Neo4jHandler:
        return self._db

    async def close(self) -> None:
        await self._db.close()

    # ─── Core helpers ─────────────────────────────────────

    async def _rows(
        self, session: AsyncSession, cypher: str, params: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        records, _ = await fetch_records(session, cypher, params)
        return [normalize_record(record) for record in records]

    async def _count(self, session: AsyncSession, cypher: str, column: str) -> int:
        rows = await self._rows(session, cypher)
        return int(rows[0][column]) if rows else 0

    async def _attempt(self, session: AsyncSession, cypher: str) -> list[dict[str, Any]] | None:
        """Like _rows, but a query the database fails yields None instead of raising."""
        try:
            return await self._rows(session, cypher)
        except QueryExecutionError as exc:
            logger.warning("Optional query failed, using fallback: %s", exc)
            return None

    async def _analyse_properties(
        self, session: AsyncSession, match_clause: str, variable: str,
    ) -> PropertyAnalysis:
        """Discover property keys with types, or without them if APOC is missing."""
        enriched = (
            f"{match_clause} "
            f"UNWIND keys({variable}) AS key "
            f"RETURN DISTINCT key, "
            f"       apoc.meta.cypher.type({variable}[key]) AS type, "
            f"       count(*) AS frequency "
            f"ORDER BY frequency DESC, key"
        )
        fallback = (
            f"{match_clause} "
            f"UNWIND keys({variable}) AS key "
            f"RETURN DISTINCT key, count(*) AS frequency "
            f"ORDER BY frequency DESC, key"
        )

        rows = await self._attempt(session, enriched)
        if rows is not None:
            return PropertyAnalysis(
                properties=_sorted_properties([
                    {"property": r["key"], "type": r["type"], "frequency": int(r["frequency"])}
                    for r in rows
                ]),
            )

        rows = await self._rows(session, fallback)
        return PropertyAnalysis(
            properties=_sorted_properties([
                {"property": r["key"], "frequency": int(r["frequency"])} for r in rows
            ]),
            degraded=True,
        )

    # ─── Tool: neo4j_query ────────────────────────────────

    async def query(
        self, query: str, parameters: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run a guarded read-only Cypher query.

        Raises:
            ArgumentValidationError: If the arguments do not match the schema.
            QueryRejectedError: If the guard classifies the query as mutating.
            QueryExecutionError: If Cypher execution fails.
        """
        args = QueryArgs.parse(query=query, parameters=parameters)

        classification = self._guard.classify(args.query)
        if not classification.is_safe:
            logger.warning("Rejected query (%s): %.200s", classification.reason, args.query)
            raise QueryRejectedError(f"{REJECTION_MESSAGE} ({classification.reason})")

        async with self._db.session() as session:
            records, summary = await fetch_records(session, args.query, args.parameters)

        return {
            "query": args.query,
            "parameters": args.parameters,
            "records": [normalize_record(record) for record in records],
            "summary": {
                "resultConsumedAfter": getattr(summary, "result_consumed_after", None),
                "resultAvailableAfter": getattr(summary, "result_available_after", None),
                "counters": _summary_counters(summary),
            },
        }

    # ─── Tool: neo4j_schema ───────────────────────────────

    async def schema(self) -> dict[str, Any]:
        async with self._db.session() as session:
            labels = await self._rows(session, "CALL db.labels() YIELD label RETURN label")
            rel_types = await self._rows(
                session,
                "CALL db.relationshipTypes() YIELD relationshipType RETURN relationshipType",
            )
            keys = await self._rows(
                session, "CALL db.propertyKeys() YIELD propertyKey RETURN propertyKey",
            )

        return {
            "labels": [r["label"] for r in labels],
            "relationshipTypes": [r["relationshipType"] for r in rel_types],
            "propertyKeys": [r["propertyKey"] for r in keys],
        }

    # ─── Tool: neo4j_test_connection ──────────────────────

    async def test_connection(self) -> str:
        try:
            async with self._db.session() as session:
                await self._rows(session, "RETURN 'Connection successful' AS message")
        except ServerError as exc:
            raise DatabaseConnectionError(f"Connection test failed: {exc}") from exc
        return "Neo4j connection test successful!"

    # ─── Tool: neo4j_node_count ───────────────────────────

    async def node_count(self, label: str | None = None) -> dict[str, Any]:
        args = NodeCountArgs.parse(label=label)
        if args.label:
            cypher = f"MATCH (n:{quote_identifier(args.label, 'label')}) RETURN count(n) AS count"
        else:
            cypher = "MATCH (n) RETURN count(n) AS count"

        async with self._db.session() as session:
            count = await self._count(session, cypher, "count")

        return {"label": args.label or "all_nodes", "count": count, "query": cypher}

    # ─── Tool: neo4j_relationship_count ───────────────────

    async def relationship_count(self, type: str | None = None) -> dict[str, Any]:
        args = RelationshipCountArgs.parse(type=type)
        if args.type:
            cypher = (
                f"MATCH ()-[r:{quote_identifier(args.type, 'relationship type')}]->() "
                f"RETURN count(r) AS count"
            )
        else:
            cypher = "MATCH ()-[r]->() RETURN count(r) AS count"

        async with self._db.session() as session:
            count = await self._count(session, cypher, "count")

        return {"type": args.type or "all_relationships", "count": count, "query": cypher}

    # ─── Tool: neo4j_database_info ────────────────────────

    async def database_info(self) -> dict[str, Any]:
        async with self._db.session() as session:
            components = await self._rows(
                session, "CALL dbms.components() YIELD name, versions, edition "
                         "RETURN name, versions, edition",
            )
            node_count = await self._count(
                session, "MATCH (n) RETURN count(n) AS nodeCount", "nodeCount",
            )
            rel_count = await self._count(
                session, "MATCH ()-[r]->() RETURN count(r) AS relCount", "relCount",
            )

        version = components[0] if components else {}
        return {
            "name": version.get("name"),
            "versions": version.get("versions"),
            "edition": version.get("edition"),
            "statistics": {
                "totalNodes": node_count,
                "totalRelationships": rel_count,
            },
        }

    # ─── Tools: neo4j_indexes / neo4j_constraints ─────────

    async def indexes(self) -> dict[str, Any]:
        async with self._db.session() as session:
            rows = await self._rows(session, "SHOW INDEXES")
        return {"indexes": rows}

    async def constraints(self) -> dict[str, Any]:
        async with self._db.session() as session:
            rows = await self._rows(session, "SHOW CONSTRAINTS")
        return {"constraints": rows}

    # ─── Tool: neo4j_sample_data ──────────────────────────

    async def sample_data(
        self,
        label: str | None = None,
        relationship_type: str | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        args = SampleDataArgs.parse(label=label, relationshipType=relationship_type, limit=limit)

        if args.label:
            cypher = f"MATCH (n:{quote_identifier(args.label, 'label')}) RETURN n LIMIT {args.limit}"
        elif args.relationship_type:
            rel = quote_identifier(args.relationship_type, "relationship type")
            cypher = f"MATCH (a)-[r:{rel}]->(b) RETURN a, r, b LIMIT {args.limit}"
        else:
            cypher = f"MATCH (n) RETURN n LIMIT {args.limit}"

        async with self._db.session() as session:
            samples = await self._rows(session, cypher)

        return {"query": cypher, "sampleCount": len(samples), "samples": samples}

    # ─── Tools: property analysis ─────────────────────────

    async def node_properties(self, label: str) -> dict[str, Any]:
        args = NodePropertiesArgs.parse(label=label)
        match_clause = f"MATCH (n:{quote_identifier(args.label, 'label')})"

        async with self._db.session() as session:
            analysis = await self._analyse_properties(session, match_clause, "n")

        result: dict[str, Any] = {"label": args.label, "properties": analysis.properties}
        if analysis.degraded:
            result["note"] = APOC_UNAVAILABLE_NOTE
        return result

    async def relationship_properties(self, type: str) -> dict[str, Any]:
        args = RelationshipPropertiesArgs.parse(type=type)
        match_clause = f"MATCH ()-[r:{quote_identifier(args.type, 'relationship type')}]->()"

        async with self._db.session() as session:
            analysis = await self._analyse_properties(session, match_clause, "r")

        result: dict[str, Any] = {"relationshipType": args.type, "properties": analysis.properties}
        if analysis.degraded:
            result["note"] = APOC_UNAVAILABLE_NOTE
        return result
