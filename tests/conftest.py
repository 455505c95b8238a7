"""
Shared fixtures: an in-memory stand-in for the async Neo4j driver.

FakeDriver answers queries from a list of (substring, response) rules.
A response is a list of row dicts, or an exception instance to raise.
Every query run is recorded so tests can assert what reached the
"database" (and that nothing did, for rejected queries).
"""

from typing import Any
from unittest.mock import MagicMock

import pytest

from neo4j_readonly_mcp.readonly_query.graph_store import GraphStore
from neo4j_readonly_mcp.shared.database import Neo4jHandler


class FakeResult:
    def __init__(self, rows: list[dict[str, Any]]):
        self._rows = rows
        self.summary = MagicMock()
        self.summary.result_available_after = 3
        self.summary.result_consumed_after = 7
        self.summary.counters.nodes_created = 0
        self.summary.counters.contains_updates = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for row in self._rows:
            yield row

    async def consume(self):
        return self.summary


class FakeSession:
    def __init__(self, driver: "FakeDriver", database: str | None):
        self._driver = driver
        self.database = database
        self.closed = False

    async def run(self, query: str, params: dict[str, Any] | None = None) -> FakeResult:
        self._driver.queries.append((query, params or {}))
        for fragment, response in self._driver.rules:
            if fragment in query:
                if isinstance(response, BaseException):
                    raise response
                return FakeResult(response)
        return FakeResult([])

    async def close(self) -> None:
        self.closed = True


class FakeDriver:
    def __init__(self):
        self.rules: list[tuple[str, Any]] = []
        self.queries: list[tuple[str, dict[str, Any]]] = []
        self.sessions: list[FakeSession] = []
        self.verify_error: BaseException | None = None
        self.closed = False

    def respond(self, fragment: str, response: Any) -> "FakeDriver":
        self.rules.append((fragment, response))
        return self

    def session(self, database: str | None = None) -> FakeSession:
        session = FakeSession(self, database)
        self.sessions.append(session)
        return session

    async def verify_connectivity(self) -> None:
        if self.verify_error is not None:
            raise self.verify_error

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def handler(fake_driver: FakeDriver) -> Neo4jHandler:
    return Neo4jHandler(
        "bolt://localhost:7687", "neo4j", "secret",
        driver_factory=lambda uri, auth: fake_driver,
    )


@pytest.fixture
def store(handler: Neo4jHandler) -> GraphStore:
    return GraphStore(handler)
