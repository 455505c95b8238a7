"""
Database package: centralised connection handler.
"""

from .neo4j_handler import Neo4jHandler, fetch_records

__all__ = ["Neo4jHandler", "fetch_records"]
