"""
Neo4j Connection Handler

Owns the single async Neo4j driver shared by every tool call.
The driver is created lazily on first use and lives until close().
Each request borrows one short-lived session from it.
"""

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from neo4j import AsyncDriver, AsyncGraphDatabase, AsyncSession
from neo4j.exceptions import DriverError, Neo4jError, ServiceUnavailable

from neo4j_readonly_mcp.shared.config import BaseServerSettings
from neo4j_readonly_mcp.shared.exceptions import DatabaseConnectionError, QueryExecutionError
from neo4j_readonly_mcp.shared.logging import get_logger

logger = get_logger("neo4j_handler")

DriverFactory = Callable[[str, tuple[str, str]], AsyncDriver]


def _default_driver_factory(uri: str, auth: tuple[str, str]) -> AsyncDriver:
    return AsyncGraphDatabase.driver(uri, auth=auth)


class Neo4jHandler:
    """
    Manages a single lazily-created async Neo4j driver.

    Usage
    -----
    handler = Neo4jHandler.from_settings(settings)
    async with handler.session() as session:   # connects on first use
        result = await session.run("MATCH (n) RETURN n LIMIT 5")
    await handler.close()

    A ``driver_factory`` can be injected to substitute the real driver,
    e.g. with a test double that simulates connectivity failures.
    """

    def __init__(
        self,
        uri: str,
        username: str,
        password: str,
        database: str | None = None,
        driver_factory: DriverFactory | None = None,
    ):
        self._uri = uri
        self._username = username
        self._password = password
        self._database = database
        self._driver_factory = driver_factory or _default_driver_factory
        self._driver: AsyncDriver | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: BaseServerSettings, **kwargs: Any) -> "Neo4jHandler":
        return cls(
            uri=settings.neo4j_uri,
            username=settings.neo4j_username,
            password=settings.neo4j_password,
            database=settings.neo4j_database,
            **kwargs,
        )

    # ─── Lifecycle ──────────────────────────────────────────

    async def connect(self) -> AsyncDriver:
        """Create the async driver on first call and verify connectivity.

        Returns:
            The shared AsyncDriver.

        Raises:
            DatabaseConnectionError: If the driver cannot be created or the
                server is unreachable / rejects the credentials.
        """
        if self._driver is not None:
            return self._driver

        async with self._lock:
            if self._driver is not None:
                return self._driver
            try:
                self._driver = self._driver_factory(
                    self._uri, (self._username, self._password)
                )
            except (ValueError, DriverError, Neo4jError) as exc:
                logger.error("Failed to create Neo4j driver for %s: %s", self._uri, exc)
                raise DatabaseConnectionError(f"Failed to connect to Neo4j: {exc}") from exc

            # The driver stays in place if verification fails: later calls
            # reuse it (and fail again) rather than rebuilding it.
            try:
                await self._driver.verify_connectivity()
            except Exception as exc:
                logger.error("Failed to connect to Neo4j at %s: %s", self._uri, exc)
                raise DatabaseConnectionError(f"Failed to connect to Neo4j: {exc}") from exc

            logger.info("Connected to Neo4j at %s (db=%s)", self._uri, self._database or "default")
            return self._driver

    async def close(self) -> None:
        """Close the underlying driver.

        Call once at process shutdown; sessions borrowed afterwards
        reconnect lazily.
        """
        async with self._lock:
            if self._driver is not None:
                await self._driver.close()
                self._driver = None
                logger.info("Neo4j connection closed")

    # ─── Properties ─────────────────────────────────────────

    @property
    def connected(self) -> bool:
        return self._driver is not None

    @property
    def uri(self) -> str:
        return self._uri

    # ─── Sessions ───────────────────────────────────────────

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open one session for the duration of a request.

        The session is closed on every exit path, including errors raised
        by the caller's block.
        """
        driver = await self.connect()
        session = driver.session(database=self._database)
        try:
            yield session
        finally:
            await session.close()


async def fetch_records(
    session: AsyncSession,
    query: str,
    params: dict[str, Any] | None = None,
) -> tuple[list[Any], Any]:
    """Run a query in a session and fully drain its result.

    Args:
        session: An open session from ``Neo4jHandler.session()``.
        query: Cypher query string.
        params: Optional query parameters.

    Returns:
        ``(records, summary)`` where records is the complete list of
        ``neo4j.Record`` objects and summary the ``ResultSummary``.

    Raises:
        DatabaseConnectionError: If the server became unreachable.
        QueryExecutionError: If Neo4j fails the query.
    """
    try:
        result = await session.run(query, params or {})
        records = [record async for record in result]
        summary = await result.consume()
    except ServiceUnavailable as exc:
        raise DatabaseConnectionError(f"Neo4j is unavailable: {exc}") from exc
    except (Neo4jError, DriverError) as exc:
        message = getattr(exc, "message", None) or str(exc)
        raise QueryExecutionError(message) from exc
    return records, summary
