"""Ontology access and hierarchy enrichment.

- `OntologyClient` / `ConceptNetClient`: one synchronous lookup per term
- `ConceptEnricher`: depth-bounded expansion of a Tag into its neighbors
"""

from .client import ConceptNetClient, OntologyClient
from .enricher import DEFAULT_ADMITTED_RELATIONS, BranchError, ConceptEnricher, HierarchyResult
from .models import OntologyEdge
from .resolver import ConceptResolver

__all__ = [
    "BranchError",
    "ConceptEnricher",
    "ConceptNetClient",
    "ConceptResolver",
    "DEFAULT_ADMITTED_RELATIONS",
    "HierarchyResult",
    "OntologyClient",
    "OntologyEdge",
]
