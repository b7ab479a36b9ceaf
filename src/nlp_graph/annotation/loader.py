from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from .models import Coreference, Phrase, Sentence, SentimentLevel, Tag, TypedDependency


class CoreferenceIn(BaseModel):
    sentence_number: int
    begin: int
    end: int


class TagOccurrenceIn(BaseModel):
    begin: int
    end: int
    value: str
    lemma: str
    language: str | None = None
    pos: list[str] = Field(default_factory=list)
    ne: list[str] = Field(default_factory=list)
    token_ids: list[str] = Field(default_factory=list)
    named_entity: str | None = None
    confidence: float | None = None
    coref: CoreferenceIn | None = None


class PhraseOccurrenceIn(BaseModel):
    begin: int
    end: int
    content: str
    type: str | None = None
    reference: str | None = None


class DependencyIn(BaseModel):
    source: str
    target: str
    name: str
    specific: str | None = None


class SentenceIn(BaseModel):
    text: str
    sentence_number: int
    sentiment: int = int(SentimentLevel.UNSET)
    tokens: list[TagOccurrenceIn] = Field(default_factory=list)
    phrases: list[PhraseOccurrenceIn] = Field(default_factory=list)
    dependencies: list[DependencyIn] = Field(default_factory=list)


class DocumentIn(BaseModel):
    """Annotation payload for one document, as emitted by the upstream pipeline."""

    id: str
    language: str = "en"
    sentences: list[SentenceIn] = Field(default_factory=list)


def to_sentence(payload: SentenceIn, *, language: str = "en") -> Sentence:
    sentence = Sentence(payload.text, payload.sentence_number, sentiment=payload.sentiment)
    for tok in payload.tokens:
        tag = Tag(lemma=tok.lemma, language=tok.language or language, original_value=tok.value)
        tag.add_pos(*tok.pos)
        tag.add_ne(*tok.ne)
        tag = sentence.add_tag(tag)
        sentence.add_tag_occurrence(
            tok.begin,
            tok.end,
            tok.value,
            tag,
            tok.token_ids,
            named_entity=tok.named_entity,
            confidence=tok.confidence,
            coreference=Coreference(**tok.coref.model_dump()) if tok.coref else None,
        )
    for ph in payload.phrases:
        phrase = Phrase(content=ph.content, type=ph.type, reference=ph.reference)
        sentence.add_phrase_occurrence(ph.begin, ph.end, phrase)
    for dep in payload.dependencies:
        sentence.add_typed_dependency(
            TypedDependency(source=dep.source, target=dep.target, name=dep.name, specific=dep.specific)
        )
    return sentence


def load_document(payload: dict[str, Any] | DocumentIn) -> tuple[str, list[Sentence]]:
    doc = payload if isinstance(payload, DocumentIn) else DocumentIn.model_validate(payload)
    sentences = [to_sentence(s, language=doc.language) for s in doc.sentences]
    return doc.id, sorted(sentences)


def load_document_file(path: str | Path) -> tuple[str, list[Sentence]]:
    with open(path, encoding="utf-8") as f:
        return load_document(json.load(f))
