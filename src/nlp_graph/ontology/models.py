from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class OntologyEdge:
    """One edge of the lexical knowledge graph, endpoints as bare terms."""

    start: str
    start_language: str
    end: str
    end_language: str
    relation: str
    weight: float = 1.0

    def touches(self, key: str) -> bool:
        return self.start.lower() == key.lower() or self.end.lower() == key.lower()
