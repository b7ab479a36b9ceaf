from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

Direction = Literal["out", "in", "both"]


@dataclass(frozen=True, slots=True)
class Relationship:
    """A directed, typed edge as seen by the persisters."""

    id: str
    type: str
    start: str
    end: str
    properties: dict[str, Any] = field(default_factory=dict, compare=False)

    def other(self, node_id: str) -> str:
        return self.end if node_id == self.start else self.start


class GraphStore(Protocol):
    """Minimal structural capability of the backing graph database.

    Nodes and relationships are addressed by opaque string ids. Calls are
    expected to run inside a write scope owned by the caller.
    """

    def create_node(self, label: str, properties: dict[str, Any] | None = None) -> str: ...

    def find_node(self, label: str, key: str, value: Any) -> str | None: ...

    def add_label(self, node_id: str, label: str) -> None: ...

    def remove_label(self, node_id: str, label: str) -> None: ...

    def labels(self, node_id: str) -> set[str]: ...

    def get_node_properties(self, node_id: str) -> dict[str, Any]: ...

    def set_node_properties(self, node_id: str, properties: dict[str, Any]) -> None: ...

    def create_relationship(
        self, start: str, end: str, rel_type: str, properties: dict[str, Any] | None = None
    ) -> Relationship: ...

    def relationships(
        self, node_id: str, rel_type: str | None = None, direction: Direction = "out"
    ) -> list[Relationship]: ...

    def set_relationship_properties(self, rel_id: str, properties: dict[str, Any]) -> None: ...
