"""Graph materialization.

- `GraphStore`: the structural capability the persisters rely on
- `InMemoryGraphStore` / `Neo4jGraphStore`: implementations
- `SentencePersister`: projects an annotated Sentence into the graph
"""

from .memory_store import InMemoryGraphStore
from .neo4j_store import Neo4jConfig, Neo4jDatabase, Neo4jGraphStore
from .persister import SentencePersister
from .schema import DEFAULT_SCHEMA, GraphSchema, resolve_schema
from .store import GraphStore, Relationship

__all__ = [
    "DEFAULT_SCHEMA",
    "GraphSchema",
    "GraphStore",
    "InMemoryGraphStore",
    "Neo4jConfig",
    "Neo4jDatabase",
    "Neo4jGraphStore",
    "Relationship",
    "SentencePersister",
    "resolve_schema",
]
