"""
Unit tests for the Result Normalizer.

Graph values are MagicMocks specced on the driver classes, so the
normalizer's isinstance dispatch sees them as real Nodes/Relationships/Paths.
"""

import json
from unittest.mock import MagicMock

import pytest
from neo4j.graph import Node, Path, Relationship
from neo4j.spatial import CartesianPoint, WGS84Point

from neo4j_readonly_mcp.readonly_query.normalizer import (
    entity_identity,
    normalize,
    normalize_record,
)


def make_node(identity: int, labels: set[str], properties: dict) -> MagicMock:
    node = MagicMock(spec=Node)
    node.element_id = f"4:0a1b2c3d:{identity}"
    node.labels = frozenset(labels)
    node.items.return_value = list(properties.items())
    return node


def make_relationship(identity: int, start, end, rel_type: str, properties: dict) -> MagicMock:
    rel = MagicMock(spec=Relationship)
    rel.element_id = f"5:0a1b2c3d:{identity}"
    rel.start_node = start
    rel.end_node = end
    rel.type = rel_type
    rel.items.return_value = list(properties.items())
    return rel


@pytest.fixture
def ann():
    return make_node(5, {"Person"}, {"name": "Ann"})


@pytest.fixture
def bob():
    return make_node(6, {"Person", "Employee"}, {"name": "Bob", "age": 41})


# ─── Scalars ────────────────────────────────────────────────


class TestScalars:
    @pytest.mark.parametrize("value", [0, 42, -7, 3.5, "text", True, False])
    def test_plain_values_unchanged(self, value):
        assert normalize(value) == value

    def test_none(self):
        assert normalize(None) is None

    def test_large_integer_kept_exact(self):
        big = 2**63 - 1
        assert normalize(big) == big


# ─── Graph entities ─────────────────────────────────────────


class TestNodes:
    def test_node(self, ann):
        assert normalize(ann) == {
            "identity": 5,
            "labels": ["Person"],
            "properties": {"name": "Ann"},
        }

    def test_labels_sorted(self, bob):
        assert normalize(bob)["labels"] == ["Employee", "Person"]

    def test_list_of_nodes_keeps_order(self, ann, bob):
        result = normalize([bob, ann])
        assert [n["identity"] for n in result] == [6, 5]

    def test_nested_property_values(self):
        node = make_node(1, {"Doc"}, {"tags": ["a", "b"], "meta": {"v": 1}})
        assert normalize(node)["properties"] == {"tags": ["a", "b"], "meta": {"v": 1}}


class TestRelationships:
    def test_relationship(self, ann, bob):
        rel = make_relationship(9, ann, bob, "KNOWS", {"since": 2020})
        assert normalize(rel) == {
            "identity": 9,
            "start": 5,
            "end": 6,
            "type": "KNOWS",
            "properties": {"since": 2020},
        }


class TestPaths:
    def test_path_segments(self, ann, bob):
        carl = make_node(7, {"Person"}, {"name": "Carl"})
        r1 = make_relationship(10, ann, bob, "KNOWS", {})
        r2 = make_relationship(11, bob, carl, "KNOWS", {})
        path = MagicMock(spec=Path)
        path.start_node = ann
        path.end_node = carl
        path.nodes = (ann, bob, carl)
        path.relationships = (r1, r2)

        result = normalize(path)

        assert result["start"]["identity"] == 5
        assert result["end"]["identity"] == 7
        assert len(result["segments"]) == 2
        first, second = result["segments"]
        assert first["start"]["identity"] == 5
        assert first["relationship"]["identity"] == 10
        assert first["end"]["identity"] == 6
        assert second["start"]["identity"] == 6
        assert second["end"]["identity"] == 7

    def test_zero_length_path(self, ann):
        path = MagicMock(spec=Path)
        path.start_node = ann
        path.end_node = ann
        path.nodes = (ann,)
        path.relationships = ()
        assert normalize(path)["segments"] == []


# ─── Spatial ──────────────────────────────────────────────


class TestPoints:
    def test_cartesian_point_keeps_srid(self):
        assert normalize(CartesianPoint((1.0, 2.0))) == {"srid": 7203, "x": 1.0, "y": 2.0}

    def test_3d_geographic_point(self):
        assert normalize(WGS84Point((12.5, 55.6, 10.0))) == {
            "srid": 4979, "x": 12.5, "y": 55.6, "z": 10.0,
        }

    def test_point_inside_properties(self):
        node = make_node(3, {"Place"}, {"location": CartesianPoint((0.0, 4.0))})
        assert normalize(node)["properties"]["location"]["srid"] == 7203


# ─── Containers ─────────────────────────────────────────────


class TestContainers:
    def test_map_keys_and_order_preserved(self, ann):
        value = {"z": 1, "a": ann, "m": None}
        result = normalize(value)
        assert list(result) == ["z", "a", "m"]
        assert result["a"]["identity"] == 5
        assert result["m"] is None

    def test_tuple_becomes_list(self):
        assert normalize((1, 2)) == [1, 2]

    def test_record_columns_in_order(self, ann):
        row = normalize_record({"n": ann, "count": 3})
        assert list(row) == ["n", "count"]
        assert row["n"]["properties"] == {"name": "Ann"}

    def test_result_is_json_serialisable(self, ann, bob):
        rel = make_relationship(9, ann, bob, "KNOWS", {})
        json.dumps(normalize({"rows": [ann, rel, [bob]]}))


# ─── Identity parsing ───────────────────────────────────────


class TestIdentity:
    def test_neo4j5_element_id(self, ann):
        assert entity_identity(ann) == 5

    def test_legacy_element_id(self):
        node = make_node(0, set(), {})
        node.element_id = "12"
        assert entity_identity(node) == 12

    def test_non_numeric_element_id_kept(self):
        node = make_node(0, set(), {})
        node.element_id = "custom-id"
        assert entity_identity(node) == "custom-id"
