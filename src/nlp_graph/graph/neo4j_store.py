from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from .schema import DEFAULT_SCHEMA, GraphSchema
from .store import Direction, Relationship

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _name(s: str) -> str:
    """Quote a label or relationship type; Cypher cannot parameterize them."""
    return "`" + s.replace("`", "``") + "`"


@dataclass(slots=True)
class Neo4jConfig:
    uri: str
    user: str
    password: str
    database: str = "neo4j"


class Neo4jGraphStore:
    """`GraphStore` over an open Neo4j transaction.

    The caller owns the transaction (usually via `Neo4jDatabase.write`);
    this class never commits or rolls back.
    """

    def __init__(self, tx):
        self._tx = tx

    def _single(self, q: str, **params) -> Any:
        return self._tx.run(q, **params).single()

    def create_node(self, label: str, properties: dict[str, Any] | None = None) -> str:
        q = f"CREATE (n:{_name(label)}) SET n = $props RETURN elementId(n) AS id"
        return self._single(q, props=properties or {})["id"]

    def find_node(self, label: str, key: str, value: Any) -> str | None:
        q = f"MATCH (n:{_name(label)}) WHERE n.{_name(key)} = $value RETURN elementId(n) AS id LIMIT 1"
        row = self._single(q, value=value)
        return row["id"] if row else None

    def add_label(self, node_id: str, label: str) -> None:
        self._tx.run(f"MATCH (n) WHERE elementId(n) = $id SET n:{_name(label)}", id=node_id)

    def remove_label(self, node_id: str, label: str) -> None:
        self._tx.run(f"MATCH (n) WHERE elementId(n) = $id REMOVE n:{_name(label)}", id=node_id)

    def labels(self, node_id: str) -> set[str]:
        row = self._single("MATCH (n) WHERE elementId(n) = $id RETURN labels(n) AS labels", id=node_id)
        return set(row["labels"]) if row else set()

    def get_node_properties(self, node_id: str) -> dict[str, Any]:
        row = self._single("MATCH (n) WHERE elementId(n) = $id RETURN properties(n) AS props", id=node_id)
        return dict(row["props"]) if row else {}

    def set_node_properties(self, node_id: str, properties: dict[str, Any]) -> None:
        self._tx.run("MATCH (n) WHERE elementId(n) = $id SET n += $props", id=node_id, props=properties)

    def create_relationship(
        self, start: str, end: str, rel_type: str, properties: dict[str, Any] | None = None
    ) -> Relationship:
        q = f"""
        MATCH (a) WHERE elementId(a) = $start
        MATCH (b) WHERE elementId(b) = $end
        CREATE (a)-[r:{_name(rel_type)}]->(b)
        SET r = $props
        RETURN elementId(r) AS id, properties(r) AS props
        """
        row = self._single(q, start=start, end=end, props=properties or {})
        return Relationship(id=row["id"], type=rel_type, start=start, end=end, properties=dict(row["props"]))

    def relationships(
        self, node_id: str, rel_type: str | None = None, direction: Direction = "out"
    ) -> list[Relationship]:
        pattern = {"out": "(n)-[r]->()", "in": "(n)<-[r]-()", "both": "(n)-[r]-()"}[direction]
        q = f"""
        MATCH {pattern}
        WHERE elementId(n) = $id AND ($type IS NULL OR type(r) = $type)
        RETURN DISTINCT elementId(r) AS id, type(r) AS type,
               elementId(startNode(r)) AS start, elementId(endNode(r)) AS end,
               properties(r) AS props
        """
        res = self._tx.run(q, id=node_id, type=rel_type)
        return [
            Relationship(id=x["id"], type=x["type"], start=x["start"], end=x["end"], properties=dict(x["props"]))
            for x in res
        ]

    def set_relationship_properties(self, rel_id: str, properties: dict[str, Any]) -> None:
        self._tx.run("MATCH ()-[r]->() WHERE elementId(r) = $id SET r += $props", id=rel_id, props=properties)


class Neo4jDatabase:
    """Owns the Neo4j driver and hands out transaction-scoped stores.

    Dependency: neo4j>=5.
    """

    def __init__(self, cfg: Neo4jConfig, schema: GraphSchema = DEFAULT_SCHEMA):
        self.cfg = cfg
        self.schema = schema
        from neo4j import GraphDatabase  # type: ignore

        # Driver is thread-safe; sessions are lightweight.
        self._driver = GraphDatabase.driver(cfg.uri, auth=(cfg.user, cfg.password))

    def close(self) -> None:
        self._driver.close()

    def __enter__(self) -> Neo4jDatabase:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def ensure_schema(self) -> None:
        s = self.schema
        stmts = [
            f"CREATE CONSTRAINT sentence_id IF NOT EXISTS FOR (n:{_name(s.SENTENCE)}) REQUIRE n.{_name(s.ID)} IS UNIQUE",
            f"CREATE CONSTRAINT tag_id IF NOT EXISTS FOR (n:{_name(s.TAG)}) REQUIRE n.{_name(s.ID)} IS UNIQUE",
            f"CREATE INDEX phrase_value IF NOT EXISTS FOR (n:{_name(s.PHRASE)}) ON (n.{_name(s.VALUE)})",
        ]
        with self._driver.session(database=self.cfg.database) as session:
            for q in stmts:
                session.run(q)
        logger.info("Neo4j schema ensured on %s", self.cfg.database)

    def write(self, work: Callable[[Neo4jGraphStore], T]) -> T:
        """Run `work` inside one managed write transaction."""
        with self._driver.session(database=self.cfg.database) as session:
            return session.execute_write(lambda tx: work(Neo4jGraphStore(tx)))
