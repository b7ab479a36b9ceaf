"""In-memory annotation model for one sentence and its concept hierarchy."""

from .hierarchy import ConceptGraph
from .models import (
    Coreference,
    ParentLink,
    Phrase,
    PhraseOccurrence,
    Sentence,
    SentimentLevel,
    Tag,
    TagOccurrence,
    TypedDependency,
)

__all__ = [
    "ConceptGraph",
    "Coreference",
    "ParentLink",
    "Phrase",
    "PhraseOccurrence",
    "Sentence",
    "SentimentLevel",
    "Tag",
    "TagOccurrence",
    "TypedDependency",
]
