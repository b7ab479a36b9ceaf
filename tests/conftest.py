"""Pytest configuration for nlp-graph tests."""

from __future__ import annotations

import pytest

from nlp_graph.errors import OntologyError
from nlp_graph.graph.memory_store import InMemoryGraphStore
from nlp_graph.graph.persister import SentencePersister
from nlp_graph.ontology.models import OntologyEdge


class FakeOntologyClient:
    """In-memory ontology: edges are indexed by both endpoints.

    Keys listed in `failing` raise OntologyError, like a broken request.
    """

    def __init__(self, edges: list[OntologyEdge] | None = None, failing: set[str] | None = None):
        self.edges = list(edges or [])
        self.failing = set(failing or ())
        self.calls: list[tuple[str, str]] = []

    def lookup(self, key: str, language: str) -> set[OntologyEdge]:
        self.calls.append((key, language))
        if key in self.failing:
            raise OntologyError(f"lookup failed for {key}")
        return {e for e in self.edges if e.start == key or e.end == key}


def edge(start: str, relation: str, end: str, weight: float = 1.0, start_lang: str = "en", end_lang: str = "en"):
    return OntologyEdge(
        start=start,
        start_language=start_lang,
        end=end,
        end_language=end_lang,
        relation=relation,
        weight=weight,
    )


@pytest.fixture
def store():
    return InMemoryGraphStore()


@pytest.fixture
def persister(store):
    return SentencePersister(store, idempotent_occurrences=True)
