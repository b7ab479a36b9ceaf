"""In-process graph store.

Useful for tests and for running the persisters without a database; it
implements exactly the `GraphStore` capability and nothing more.
"""

from __future__ import annotations

import copy
import itertools
from dataclasses import dataclass, field
from typing import Any

from .store import Direction, Relationship


@dataclass
class _NodeRecord:
    labels: set[str] = field(default_factory=set)
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass
class _RelRecord:
    type: str
    start: str
    end: str
    properties: dict[str, Any] = field(default_factory=dict)


class InMemoryGraphStore:
    def __init__(self) -> None:
        self._nodes: dict[str, _NodeRecord] = {}
        self._rels: dict[str, _RelRecord] = {}
        self._out: dict[str, list[str]] = {}
        self._in: dict[str, list[str]] = {}
        self._node_ids = itertools.count(1)
        self._rel_ids = itertools.count(1)

    def _node(self, node_id: str) -> _NodeRecord:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise KeyError(f"No node with id {node_id}") from None

    def create_node(self, label: str, properties: dict[str, Any] | None = None) -> str:
        node_id = f"n{next(self._node_ids)}"
        self._nodes[node_id] = _NodeRecord(labels={label}, properties=copy.deepcopy(properties or {}))
        self._out[node_id] = []
        self._in[node_id] = []
        return node_id

    def find_node(self, label: str, key: str, value: Any) -> str | None:
        for node_id, rec in self._nodes.items():
            if label in rec.labels and rec.properties.get(key) == value:
                return node_id
        return None

    def add_label(self, node_id: str, label: str) -> None:
        self._node(node_id).labels.add(label)

    def remove_label(self, node_id: str, label: str) -> None:
        self._node(node_id).labels.discard(label)

    def labels(self, node_id: str) -> set[str]:
        return set(self._node(node_id).labels)

    def get_node_properties(self, node_id: str) -> dict[str, Any]:
        return copy.deepcopy(self._node(node_id).properties)

    def set_node_properties(self, node_id: str, properties: dict[str, Any]) -> None:
        rec = self._node(node_id)
        for k, v in properties.items():
            if v is None:
                rec.properties.pop(k, None)
            else:
                rec.properties[k] = copy.deepcopy(v)

    def create_relationship(
        self, start: str, end: str, rel_type: str, properties: dict[str, Any] | None = None
    ) -> Relationship:
        self._node(start)
        self._node(end)
        rel_id = f"r{next(self._rel_ids)}"
        rec = _RelRecord(type=rel_type, start=start, end=end, properties=copy.deepcopy(properties or {}))
        self._rels[rel_id] = rec
        self._out[start].append(rel_id)
        self._in[end].append(rel_id)
        return self._to_relationship(rel_id, rec)

    def relationships(
        self, node_id: str, rel_type: str | None = None, direction: Direction = "out"
    ) -> list[Relationship]:
        self._node(node_id)
        if direction == "out":
            rel_ids = list(self._out[node_id])
        elif direction == "in":
            rel_ids = list(self._in[node_id])
        else:
            rel_ids = list(dict.fromkeys(self._out[node_id] + self._in[node_id]))
        out = []
        for rel_id in rel_ids:
            rec = self._rels[rel_id]
            if rel_type is None or rec.type == rel_type:
                out.append(self._to_relationship(rel_id, rec))
        return out

    def set_relationship_properties(self, rel_id: str, properties: dict[str, Any]) -> None:
        rec = self._rels[rel_id]
        for k, v in properties.items():
            if v is None:
                rec.properties.pop(k, None)
            else:
                rec.properties[k] = copy.deepcopy(v)

    @staticmethod
    def _to_relationship(rel_id: str, rec: _RelRecord) -> Relationship:
        return Relationship(
            id=rel_id,
            type=rec.type,
            start=rec.start,
            end=rec.end,
            properties=copy.deepcopy(rec.properties),
        )

    # --- inspection helpers ---

    def nodes(self, label: str | None = None) -> list[str]:
        return [nid for nid, rec in self._nodes.items() if label is None or label in rec.labels]

    def count_nodes(self, label: str | None = None) -> int:
        return len(self.nodes(label))

    def count_relationships(self, rel_type: str | None = None) -> int:
        return sum(1 for rec in self._rels.values() if rel_type is None or rec.type == rel_type)
