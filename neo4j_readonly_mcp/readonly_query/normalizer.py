"""
Result Normalizer

Turns values returned by the Neo4j driver into plain JSON-compatible
trees.  Dispatch is over the closed set of driver graph types
(Node, Relationship, Path), spatial points, and the container types
lists and maps.

Integers: the Python driver already yields native ``int`` values, so no
precision is lost here.  Consumers parsing the JSON with IEEE-754 doubles
may lose precision above 2**53; that is accepted.

Paths are acyclic by construction on the database side, so the recursion
does not track visited entities.
"""

from collections.abc import Mapping
from typing import Any

from neo4j.graph import Node, Path, Relationship
from neo4j.spatial import Point


def entity_identity(entity: Node | Relationship) -> int | str:
    """Numeric id of a node or relationship.

    Neo4j 5 element ids look like ``4:<db-uuid>:<id>`` while Neo4j 4
    element ids are the bare id; both end in the numeric id.
    """
    element_id = str(entity.element_id)
    tail = element_id.rsplit(":", 1)[-1]
    return int(tail) if tail.isdigit() else element_id


def normalize_properties(properties: Mapping[str, Any] | Any) -> dict[str, Any]:
    items = properties.items() if hasattr(properties, "items") else properties
    return {key: normalize(value) for key, value in items}


def normalize_node(node: Node) -> dict[str, Any]:
    return {
        "identity": entity_identity(node),
        "labels": sorted(node.labels),
        "properties": normalize_properties(node),
    }


def normalize_relationship(relationship: Relationship) -> dict[str, Any]:
    return {
        "identity": entity_identity(relationship),
        "start": entity_identity(relationship.start_node),
        "end": entity_identity(relationship.end_node),
        "type": relationship.type,
        "properties": normalize_properties(relationship),
    }


def normalize_path(path: Path) -> dict[str, Any]:
    nodes = path.nodes
    segments = [
        {
            "start": normalize(nodes[i]),
            "relationship": normalize(relationship),
            "end": normalize(nodes[i + 1]),
        }
        for i, relationship in enumerate(path.relationships)
    ]
    return {
        "start": normalize(path.start_node),
        "end": normalize(path.end_node),
        "segments": segments,
    }


def normalize_point(point: Point) -> dict[str, Any]:
    """Render a point as its SRID plus ``x``/``y`` (and ``z``) coordinates."""
    coordinates = dict(zip(("x", "y", "z"), point))
    return {"srid": point.srid, **coordinates}


def normalize(value: Any) -> Any:
    """Recursively convert a driver value into a JSON-compatible value."""
    if value is None:
        return None
    if isinstance(value, Node):
        return normalize_node(value)
    if isinstance(value, Relationship):
        return normalize_relationship(value)
    if isinstance(value, Path):
        return normalize_path(value)
    if isinstance(value, Point):
        return normalize_point(value)
    if isinstance(value, (list, tuple)):
        return [normalize(item) for item in value]
    if isinstance(value, Mapping):
        return {key: normalize(item) for key, item in value.items()}
    return value


def normalize_record(record: Mapping[str, Any] | Any) -> dict[str, Any]:
    """Normalize one result record into ``{column: value}`` preserving column order."""
    return {key: normalize(value) for key, value in record.items()}
