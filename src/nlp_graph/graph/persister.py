from __future__ import annotations

import logging
from typing import Any

from ..annotation.hierarchy import ConceptGraph
from ..annotation.models import Phrase, PhraseOccurrence, Sentence, Tag, TagOccurrence
from ..errors import UnsupportedOperationError
from ..settings import settings
from .schema import GraphSchema, resolve_schema
from .store import GraphStore

logger = logging.getLogger(__name__)

DEFAULT_PHRASE_TYPE = "N/A"


def sentence_key(document_id: str, sentence_number: int) -> str:
    return f"{document_id}_{sentence_number}"


class SentencePersister:
    """Projects one annotated Sentence into the graph.

    Sentence, Tag and Phrase nodes are upserted by key, as are the edges
    between them and the coreference edges. Occurrence nodes are keyed by
    (sentence, span) and reused on re-persist unless
    `idempotent_occurrences` is off, in which case every call creates a
    fresh set.

    Nothing here is atomic: run `persist` inside the caller's write
    transaction.
    """

    def __init__(
        self,
        store: GraphStore,
        schema: GraphSchema | None = None,
        *,
        concepts: ConceptGraph | None = None,
        idempotent_occurrences: bool | None = None,
    ):
        self.store = store
        self.schema = schema or resolve_schema(settings.schema_overrides)
        self.concepts = concepts
        self.idempotent_occurrences = (
            settings.idempotent_occurrences if idempotent_occurrences is None else idempotent_occurrences
        )

    def persist(self, sentence: Sentence, document_id: str | None = None, tx_id: str | None = None) -> str:
        if document_id is None:
            raise UnsupportedOperationError("A document id is required to persist a sentence")

        sentence_node = self._get_or_create_sentence(sentence, document_id)
        self._store_tags(sentence, sentence_node)
        occurrence_nodes = self._store_tag_occurrences(sentence, sentence_node)
        self._store_typed_dependencies(sentence, occurrence_nodes)
        self._store_phrases(sentence, sentence_node)
        self._store_phrase_coreferences(sentence)
        self._store_occurrence_coreferences(document_id, sentence_node, occurrence_nodes)
        self._assign_sentiment_label(sentence, sentence_node)
        logger.debug(
            "Persisted sentence %s (tx=%s): %d tags, %d occurrences",
            sentence_key(document_id, sentence.sentence_number),
            tx_id,
            len(sentence.tags),
            len(occurrence_nodes),
        )
        return sentence_node

    def load(self, node_id: str) -> Sentence:
        """Rebuild text, number and sentiment of a stored Sentence node."""
        s = self.schema
        props = self.store.get_node_properties(node_id)
        sentence = Sentence(str(props[s.TEXT]), int(props[s.SENTENCE_NUMBER]))
        for label in self.store.labels(node_id):
            level = s.sentiment_for_label(label)
            if level is not None:
                sentence.sentiment = level
        return sentence

    def get_sentence_node(self, document_id: str, sentence_number: int) -> str | None:
        s = self.schema
        return self.store.find_node(s.SENTENCE, s.ID, sentence_key(document_id, sentence_number))

    # --- sentence ---

    def _get_or_create_sentence(self, sentence: Sentence, document_id: str) -> str:
        s = self.schema
        node = self.get_sentence_node(document_id, sentence.sentence_number)
        if node is None:
            node = self.store.create_node(s.SENTENCE)
        self.store.set_node_properties(
            node,
            {
                s.ID: sentence_key(document_id, sentence.sentence_number),
                s.SENTENCE_NUMBER: sentence.sentence_number,
                s.HASH: sentence.hash(),
                s.TEXT: sentence.text,
            },
        )
        return node

    # --- tags ---

    def _store_tags(self, sentence: Sentence, sentence_node: str) -> None:
        for tag in sentence.tags.values():
            tag_node = self._get_or_create_tag(tag)
            self._relate_once(sentence_node, tag_node, self.schema.HAS_TAG, {self.schema.TF: tag.multiplicity})
            if self.concepts is not None and tag.parents:
                self._store_hierarchy(tag, tag_node)

    def _get_or_create_tag(self, tag: Tag) -> str:
        s = self.schema
        node = self.store.find_node(s.TAG, s.ID, tag.id)
        if node is None:
            node = self.store.create_node(s.TAG)
        props: dict[str, Any] = {
            s.ID: tag.id,
            s.VALUE: tag.lemma,
            s.LANGUAGE: tag.language,
            s.POS: list(tag.pos),
            s.NE: list(tag.ne),
        }
        if tag.original_value is not None:
            props[s.ORIGINAL_VALUE] = tag.original_value
        self.store.set_node_properties(node, props)
        return node

    def _store_hierarchy(self, tag: Tag, tag_node: str) -> None:
        s = self.schema
        seen = {tag.id}
        stack = [(tag, tag_node)]
        while stack:
            child, child_node = stack.pop()
            for link in child.parents:
                parent = self.concepts.get(link.parent_id)
                if parent is None:
                    logger.debug("Parent %s of %s is not in the concept graph", link.parent_id, child.id)
                    continue
                parent_node = self._get_or_create_tag(parent)
                self._relate_once(
                    child_node,
                    parent_node,
                    s.IS_RELATED_TO,
                    {s.TYPE: link.relation, s.WEIGHT: link.weight},
                    match=(s.TYPE,),
                )
                if parent.id not in seen:
                    seen.add(parent.id)
                    stack.append((parent, parent_node))

    # --- tag occurrences ---

    def _store_tag_occurrences(self, sentence: Sentence, sentence_node: str) -> list[tuple[TagOccurrence, str]]:
        s = self.schema
        out = []
        for occurrence in sentence.tag_occurrences():
            tag_node = self._get_or_create_tag(occurrence.tag)
            node = None
            if self.idempotent_occurrences:
                node = self._find_tag_occurrence(sentence_node, occurrence.begin, occurrence.end, tag_node)
            if node is None:
                node = self.store.create_node(s.TAG_OCCURRENCE)
                self.store.create_relationship(sentence_node, node, s.SENTENCE_TAG_OCCURRENCE)
                self.store.create_relationship(node, tag_node, s.TAG_OCCURRENCE_TAG)
            self._update_tag_occurrence(node, occurrence)
            out.append((occurrence, node))
        return out

    def _update_tag_occurrence(self, node: str, occurrence: TagOccurrence) -> None:
        s = self.schema
        props: dict[str, Any] = {
            s.START_POSITION: occurrence.begin,
            s.END_POSITION: occurrence.end,
            s.POS: list(occurrence.tag.pos),
            s.NE: list(occurrence.tag.ne),
            s.VALUE: occurrence.value,
        }
        ne = occurrence.ne_type
        if ne is not None:
            self.store.add_label(node, s.named_entity_label(ne))
            if occurrence.confidence is not None:
                props[s.CONFIDENCE] = occurrence.confidence
        self.store.set_node_properties(node, props)

    def _find_tag_occurrence(
        self, sentence_node: str, begin: int, end: int, tag_node: str | None = None
    ) -> str | None:
        s = self.schema
        for rel in self.store.relationships(sentence_node, s.SENTENCE_TAG_OCCURRENCE, "out"):
            props = self.store.get_node_properties(rel.end)
            if props.get(s.START_POSITION) != begin or props.get(s.END_POSITION) != end:
                continue
            if tag_node is None:
                return rel.end
            for tag_rel in self.store.relationships(rel.end, s.TAG_OCCURRENCE_TAG, "out"):
                if tag_rel.end == tag_node:
                    return rel.end
        return None

    # --- dependencies ---

    def _store_typed_dependencies(self, sentence: Sentence, occurrence_nodes: list[tuple[TagOccurrence, str]]) -> None:
        s = self.schema
        token_nodes: dict[str, str] = {}
        for occurrence, node in occurrence_nodes:
            for token_id in occurrence.token_ids:
                token_nodes[token_id] = node

        for dependency in sentence.typed_dependencies:
            source = token_nodes.get(dependency.source)
            target = token_nodes.get(dependency.target)
            if source is None or target is None:
                logger.info(
                    "source: %s or target: %s for typed dependency not found",
                    dependency.source,
                    dependency.target,
                )
                continue
            rel_type = dependency.name.upper()
            props = {s.SPECIFIC: dependency.specific} if dependency.specific else None
            self._relate_once(source, target, rel_type, props)
            if dependency.is_root:
                self.store.add_label(source, s.ROOT)

    # --- phrases ---

    def _store_phrases(self, sentence: Sentence, sentence_node: str) -> None:
        s = self.schema
        for occurrence in sentence.phrase_occurrences():
            phrase_node = self._get_or_create_phrase(occurrence.phrase)
            self._relate_once(sentence_node, phrase_node, s.HAS_PHRASE)
            node = None
            if self.idempotent_occurrences:
                node = self._find_phrase_occurrence(sentence_node, occurrence)
            if node is None:
                node = self.store.create_node(
                    s.PHRASE_OCCURRENCE,
                    {s.START_POSITION: occurrence.begin, s.END_POSITION: occurrence.end},
                )
                self.store.create_relationship(sentence_node, node, s.SENTENCE_PHRASE_OCCURRENCE)
            self._relate_once(node, phrase_node, s.PHRASE_OCCURRENCE_PHRASE)

    def _find_phrase_occurrence(self, sentence_node: str, occurrence: PhraseOccurrence) -> str | None:
        s = self.schema
        for rel in self.store.relationships(sentence_node, s.SENTENCE_PHRASE_OCCURRENCE, "out"):
            props = self.store.get_node_properties(rel.end)
            if props.get(s.START_POSITION) == occurrence.begin and props.get(s.END_POSITION) == occurrence.end:
                return rel.end
        return None

    def _get_phrase_node(self, content: str) -> str | None:
        return self.store.find_node(self.schema.PHRASE, self.schema.VALUE, content)

    def _get_or_create_phrase(self, phrase: Phrase) -> str:
        s = self.schema
        node = self._get_phrase_node(phrase.content)
        if node is None:
            node = self.store.create_node(s.PHRASE)
        self.store.set_node_properties(
            node, {s.VALUE: phrase.content, s.TYPE: phrase.type or DEFAULT_PHRASE_TYPE}
        )
        return node

    # --- coreference ---

    def _store_phrase_coreferences(self, sentence: Sentence) -> None:
        s = self.schema
        for occurrence in sentence.phrase_occurrences():
            reference = occurrence.phrase.reference
            if not reference:
                continue
            phrase_node = self._get_phrase_node(occurrence.phrase.content)
            reference_node = self._get_phrase_node(reference)
            if phrase_node is None or reference_node is None:
                logger.debug("Coreference %s -> %s skipped: phrase not stored", occurrence.phrase.content, reference)
                continue
            if not self._connected(phrase_node, reference_node, s.COREFERENCE):
                self.store.create_relationship(phrase_node, reference_node, s.COREFERENCE)

    def _store_occurrence_coreferences(
        self, document_id: str, sentence_node: str, occurrence_nodes: list[tuple[TagOccurrence, str]]
    ) -> None:
        s = self.schema
        for occurrence, node in occurrence_nodes:
            ref = occurrence.coreference
            if ref is None:
                continue
            antecedent_sentence = self.get_sentence_node(document_id, ref.sentence_number)
            if antecedent_sentence is None:
                logger.debug("Antecedent sentence %s not stored yet", ref.sentence_number)
                continue
            target = self._find_tag_occurrence(antecedent_sentence, ref.begin, ref.end)
            if target is None:
                continue
            # the first occurrence stored at this span carries the edge
            source = self._find_tag_occurrence(sentence_node, occurrence.begin, occurrence.end) or node
            if any(rel.end == target for rel in self.store.relationships(source, s.COREF, "out")):
                continue
            self.store.create_relationship(source, target, s.COREF)

    # --- sentiment ---

    def _assign_sentiment_label(self, sentence: Sentence, sentence_node: str) -> None:
        label = self.schema.sentiment_label(sentence.sentiment)
        current = self.store.labels(sentence_node)
        for stale in self.schema.sentiment_labels().values():
            if stale != label and stale in current:
                self.store.remove_label(sentence_node, stale)
        if label is not None:
            self.store.add_label(sentence_node, label)

    # --- helpers ---

    def _connected(self, a: str, b: str, rel_type: str) -> bool:
        return any(rel.other(a) == b for rel in self.store.relationships(a, rel_type, "both"))

    def _relate_once(
        self,
        start: str,
        end: str,
        rel_type: str,
        properties: dict[str, Any] | None = None,
        *,
        match: tuple[str, ...] = (),
    ) -> str:
        """Create `start-[rel_type]->end` unless it exists; update its properties either way."""
        properties = properties or {}
        for rel in self.store.relationships(start, rel_type, "out"):
            if rel.end != end:
                continue
            if any(rel.properties.get(k) != properties.get(k) for k in match):
                continue
            if properties:
                self.store.set_relationship_properties(rel.id, properties)
            return rel.id
        return self.store.create_relationship(start, end, rel_type, properties).id
