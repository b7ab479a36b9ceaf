from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import IntEnum
from functools import total_ordering
from typing import Iterator

from ..errors import InvalidSpanError

NO_NAMED_ENTITY = "O"


class SentimentLevel(IntEnum):
    """Sentence sentiment as produced by the upstream classifier."""

    UNSET = -1
    VERY_NEGATIVE = 0
    NEGATIVE = 1
    NEUTRAL = 2
    POSITIVE = 3
    VERY_POSITIVE = 4


def tag_id(lemma: str, language: str) -> str:
    return f"{lemma}_{language}"


def _check_begin(begin: int, what: str) -> None:
    if begin < 0:
        raise InvalidSpanError(f"Begin cannot be negative (for {what})")


@dataclass(frozen=True, slots=True)
class ParentLink:
    """A hierarchy edge from a Tag to one of its parents.

    The parent is addressed by its stable tag id; the Tag itself lives in a
    `ConceptGraph`.
    """

    relation: str
    parent_id: str
    weight: float = 1.0


@dataclass(slots=True, eq=False)
class Tag:
    """A canonical lexical unit, identified by lemma within a sentence."""

    lemma: str
    language: str = "en"
    multiplicity: int = 1
    pos: list[str] = field(default_factory=list)
    ne: list[str] = field(default_factory=list)
    original_value: str | None = None
    parents: list[ParentLink] = field(default_factory=list)

    @property
    def id(self) -> str:
        return tag_id(self.lemma, self.language)

    def inc_multiplicity(self) -> int:
        self.multiplicity += 1
        return self.multiplicity

    def add_pos(self, *values: str) -> None:
        for v in values:
            if v and v not in self.pos:
                self.pos.append(v)

    def add_ne(self, *values: str) -> None:
        for v in values:
            if v and v not in self.ne:
                self.ne.append(v)

    @property
    def has_named_entity(self) -> bool:
        return bool(self.ne) and self.ne[0] != NO_NAMED_ENTITY

    def add_parent(self, relation: str, parent: Tag | str, weight: float = 1.0) -> ParentLink:
        """Attach a parent link; (relation, parent) pairs are kept unique, in insertion order."""
        parent_id = parent if isinstance(parent, str) else parent.id
        for link in self.parents:
            if link.relation == relation and link.parent_id == parent_id:
                return link
        link = ParentLink(relation=relation, parent_id=parent_id, weight=float(weight))
        self.parents.append(link)
        return link

    def __repr__(self) -> str:
        return f"Tag({self.lemma!r}, {self.language!r}, multiplicity={self.multiplicity})"


@dataclass(frozen=True, slots=True)
class Coreference:
    """Points at an antecedent occurrence by sentence number and span."""

    sentence_number: int
    begin: int
    end: int


@dataclass(slots=True, eq=False)
class TagOccurrence:
    tag: Tag
    begin: int
    end: int
    value: str
    token_ids: list[str] = field(default_factory=list)
    named_entity: str | None = None
    confidence: float | None = None
    coreference: Coreference | None = None

    def __post_init__(self) -> None:
        _check_begin(self.begin, f"tag: {self.tag.lemma}")

    @property
    def span(self) -> tuple[int, int]:
        return self.begin, self.end

    @property
    def ne_type(self) -> str | None:
        if self.named_entity:
            return self.named_entity
        if self.tag.has_named_entity:
            return self.tag.ne[0]
        return None

    @property
    def has_named_entity(self) -> bool:
        return self.ne_type is not None

    @property
    def has_reference(self) -> bool:
        return self.coreference is not None


@dataclass(slots=True, eq=False)
class Phrase:
    """A multi-token span of interest; `content` is its identity."""

    content: str
    type: str | None = None
    reference: str | None = None  # content of the antecedent phrase

    def set_reference(self, phrase: Phrase | str) -> None:
        self.reference = phrase if isinstance(phrase, str) else phrase.content

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Phrase):
            return NotImplemented
        return self.content == other.content

    def __hash__(self) -> int:
        return hash(self.content)


@dataclass(slots=True, eq=False)
class PhraseOccurrence:
    phrase: Phrase
    begin: int
    end: int

    def __post_init__(self) -> None:
        _check_begin(self.begin, f"phrase: {self.phrase.content}")

    @property
    def span(self) -> tuple[int, int]:
        return self.begin, self.end


@dataclass(frozen=True, slots=True)
class TypedDependency:
    """A directed syntactic edge between two token ids of one sentence."""

    source: str
    target: str
    name: str
    specific: str | None = None

    @property
    def is_root(self) -> bool:
        return self.name.upper() == "ROOT"


@total_ordering
class Sentence:
    """One annotated sentence.

    Identity downstream is (document id, sentence number); sentences order
    by sentence number.
    """

    def __init__(
        self,
        text: str,
        sentence_number: int = 0,
        *,
        sentiment: SentimentLevel | int = SentimentLevel.UNSET,
    ):
        self.text = text
        self.sentence_number = sentence_number
        self.sentiment = sentiment
        self.typed_dependencies: list[TypedDependency] = []
        self._tags: dict[str, Tag] = {}
        self._tag_occurrences: dict[int, list[TagOccurrence]] = {}
        self._phrase_occurrences: dict[int, dict[int, PhraseOccurrence]] = {}

    @property
    def sentiment(self) -> SentimentLevel:
        return self._sentiment

    @sentiment.setter
    def sentiment(self, value: SentimentLevel | int) -> None:
        self._sentiment = SentimentLevel(value)

    # --- tags ---

    @property
    def tags(self) -> dict[str, Tag]:
        return self._tags

    def add_tag(self, tag: Tag) -> Tag:
        """Insert `tag`, or bump the multiplicity of the Tag already holding its lemma."""
        existing = self._tags.get(tag.lemma)
        if existing is not None:
            existing.inc_multiplicity()
            return existing
        self._tags[tag.lemma] = tag
        return tag

    def get_tag(self, lemma: str) -> Tag | None:
        return self._tags.get(lemma)

    # --- tag occurrences ---

    def add_tag_occurrence(
        self,
        begin: int,
        end: int,
        value: str,
        tag: Tag,
        token_ids: list[str] | None = None,
        *,
        named_entity: str | None = None,
        confidence: float | None = None,
        coreference: Coreference | None = None,
    ) -> TagOccurrence:
        occurrence = TagOccurrence(
            tag=tag,
            begin=begin,
            end=end,
            value=value,
            token_ids=list(token_ids or []),
            named_entity=named_entity,
            confidence=confidence,
            coreference=coreference,
        )
        self._tag_occurrences.setdefault(begin, []).append(occurrence)
        return occurrence

    @property
    def tag_occurrences_by_begin(self) -> dict[int, list[TagOccurrence]]:
        return self._tag_occurrences

    def tag_occurrences(self) -> Iterator[TagOccurrence]:
        for begin in sorted(self._tag_occurrences):
            yield from self._tag_occurrences[begin]

    def get_tag_occurrences_at(self, begin: int) -> list[TagOccurrence]:
        _check_begin(begin, "lookup")
        return list(self._tag_occurrences.get(begin, []))

    def get_tag_occurrence(self, begin: int) -> Tag | None:
        """First Tag found at `begin`."""
        found = self.get_tag_occurrences_at(begin)
        return found[0].tag if found else None

    def find_tag_occurrence(self, begin: int, end: int) -> TagOccurrence | None:
        for occurrence in self.get_tag_occurrences_at(begin):
            if occurrence.end == end:
                return occurrence
        return None

    def get_tag_occurrence_by_tag_value(self, lemma: str) -> TagOccurrence | None:
        for occurrence in self.tag_occurrences():
            if occurrence.tag.lemma == lemma:
                return occurrence
        return None

    def get_tag_occurrence_by_value_with_ne(self, value: str) -> TagOccurrence | None:
        """Last occurrence whose surface text is `value` and which carries a named entity."""
        found = None
        for occurrence in self.tag_occurrences():
            if occurrence.value == value and occurrence.has_named_entity:
                found = occurrence
        return found

    def get_tag_occurrence_by_value_and_ne(self, value: str, ne: str) -> TagOccurrence | None:
        found = None
        for occurrence in self.tag_occurrences():
            original = occurrence.tag.original_value or occurrence.value
            if original == value and occurrence.ne_type == ne:
                found = occurrence
        return found

    # --- phrases ---

    def add_phrase_occurrence(self, begin: int, end: int, phrase: Phrase) -> PhraseOccurrence:
        occurrence = PhraseOccurrence(phrase=phrase, begin=begin, end=end)
        # last write wins at an exact span
        self._phrase_occurrences.setdefault(begin, {})[end] = occurrence
        return occurrence

    def phrase_occurrences(self) -> Iterator[PhraseOccurrence]:
        for begin in sorted(self._phrase_occurrences):
            at_begin = self._phrase_occurrences[begin]
            for end in sorted(at_begin):
                yield at_begin[end]

    def get_phrase_occurrence(self, begin: int, end: int) -> Phrase | None:
        _check_begin(begin, "lookup")
        occurrence = self._phrase_occurrences.get(begin, {}).get(end)
        return occurrence.phrase if occurrence else None

    def get_phrases_at(self, begin: int) -> list[Phrase]:
        _check_begin(begin, "lookup")
        return [o.phrase for o in self._phrase_occurrences.get(begin, {}).values()]

    # --- dependencies ---

    def add_typed_dependency(self, dependency: TypedDependency) -> None:
        self.typed_dependencies.append(dependency)

    def hash(self) -> str:
        """Stable fingerprint of the raw text."""
        return hashlib.md5(self.text.encode("utf-8")).hexdigest()

    def __lt__(self, other: Sentence) -> bool:
        if not isinstance(other, Sentence):
            return NotImplemented
        return self.sentence_number < other.sentence_number

    def __repr__(self) -> str:
        return f"Sentence(#{self.sentence_number}, {self.text!r})"
