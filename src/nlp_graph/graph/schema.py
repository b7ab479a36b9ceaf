from __future__ import annotations

from dataclasses import dataclass, fields, replace

from ..annotation.models import SentimentLevel


@dataclass(frozen=True, slots=True)
class GraphSchema:
    """Labels, relationship types and property keys used in the graph.

    Resolved once at startup (see `resolve_schema`); persisters read the
    attributes directly.
    """

    # labels
    SENTENCE: str = "Sentence"
    TAG: str = "Tag"
    TAG_OCCURRENCE: str = "TagOccurrence"
    PHRASE: str = "Phrase"
    PHRASE_OCCURRENCE: str = "PhraseOccurrence"
    ROOT: str = "Root"
    NE_PREFIX: str = "NE_"
    VERY_NEGATIVE: str = "VeryNegative"
    NEGATIVE: str = "Negative"
    NEUTRAL: str = "Neutral"
    POSITIVE: str = "Positive"
    VERY_POSITIVE: str = "VeryPositive"

    # relationship types
    HAS_TAG: str = "HAS_TAG"
    SENTENCE_TAG_OCCURRENCE: str = "SENTENCE_TAG_OCCURRENCE"
    TAG_OCCURRENCE_TAG: str = "TAG_OCCURRENCE_TAG"
    HAS_PHRASE: str = "HAS_PHRASE"
    SENTENCE_PHRASE_OCCURRENCE: str = "SENTENCE_PHRASE_OCCURRENCE"
    PHRASE_OCCURRENCE_PHRASE: str = "PHRASE_OCCURRENCE_PHRASE"
    IS_RELATED_TO: str = "IS_RELATED_TO"
    COREF: str = "COREF"
    COREFERENCE: str = "COREFERENCE"

    # property keys
    ID: str = "id"
    TEXT: str = "text"
    HASH: str = "hash"
    SENTENCE_NUMBER: str = "sentenceNumber"
    TF: str = "tf"
    VALUE: str = "value"
    LANGUAGE: str = "language"
    POS: str = "pos"
    NE: str = "ne"
    ORIGINAL_VALUE: str = "originalValue"
    START_POSITION: str = "startPosition"
    END_POSITION: str = "endPosition"
    CONFIDENCE: str = "confidence"
    SPECIFIC: str = "specific"
    TYPE: str = "type"
    WEIGHT: str = "weight"

    def sentiment_labels(self) -> dict[SentimentLevel, str]:
        return {
            SentimentLevel.VERY_NEGATIVE: self.VERY_NEGATIVE,
            SentimentLevel.NEGATIVE: self.NEGATIVE,
            SentimentLevel.NEUTRAL: self.NEUTRAL,
            SentimentLevel.POSITIVE: self.POSITIVE,
            SentimentLevel.VERY_POSITIVE: self.VERY_POSITIVE,
        }

    def sentiment_label(self, level: SentimentLevel | int) -> str | None:
        return self.sentiment_labels().get(SentimentLevel(level))

    def sentiment_for_label(self, label: str) -> SentimentLevel | None:
        for level, name in self.sentiment_labels().items():
            if name == label:
                return level
        return None

    def named_entity_label(self, ne: str) -> str:
        return self.NE_PREFIX + ne.lower().capitalize()


DEFAULT_SCHEMA = GraphSchema()


def resolve_schema(overrides: dict[str, str] | None = None) -> GraphSchema:
    """Build the schema, applying name overrides such as {"HAS_TAG": "TAGGED"}."""
    if not overrides:
        return DEFAULT_SCHEMA
    known = {f.name for f in fields(GraphSchema)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ValueError(f"Unknown graph schema names: {', '.join(unknown)}")
    return replace(DEFAULT_SCHEMA, **overrides)
