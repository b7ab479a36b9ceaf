from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from ..annotation.hierarchy import ConceptGraph
from ..annotation.models import Sentence, Tag
from ..settings import settings
from .cache import TTLCache
from .client import OntologyClient
from .models import OntologyEdge
from .resolver import ConceptResolver

logger = logging.getLogger(__name__)

DEFAULT_ADMITTED_RELATIONS: tuple[str, ...] = (
    "RelatedTo",
    "IsA",
    "PartOf",
    "AtLocation",
    "Synonym",
    "MemberOf",
    "HasA",
    "CausesDesire",
)


def normalize_key(lemma: str) -> str:
    return lemma.lower().replace(" ", "_")


@dataclass(slots=True)
class BranchError:
    """An expansion that failed; its neighbors are treated as empty."""

    key: str
    language: str
    depth: int
    message: str
    exception: BaseException | None = field(default=None, repr=False, compare=False)


@dataclass(slots=True)
class HierarchyResult:
    tags: list[Tag] = field(default_factory=list)
    errors: list[BranchError] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.errors


class ConceptEnricher:
    """Expands Tags into their ontology neighbors, depth-first.

    Only the start-endpoint branch recurses: when the tag being expanded is
    the edge's end, the neighbor is linked as a child of the tag and not
    expanded further.
    """

    def __init__(
        self,
        client: OntologyClient,
        resolver: ConceptResolver | None = None,
        *,
        depth: int | None = None,
        graph: ConceptGraph | None = None,
        supported_languages: Sequence[str] | None = None,
        cache: TTLCache[tuple[str, str], Tag] | None = None,
    ):
        self.client = client
        self.resolver = resolver
        self.depth = depth if depth is not None else settings.conceptnet_depth
        self.graph = graph if graph is not None else ConceptGraph()
        langs = supported_languages if supported_languages is not None else settings.supported_languages
        self.supported_languages = {x.lower() for x in langs}
        if cache is None:
            cache = TTLCache(max_size=settings.cache_max_size, ttl=settings.cache_ttl_seconds)
        self.cache = cache

    def import_hierarchy(
        self,
        tag: Tag,
        language: str,
        filter_language: bool = False,
        depth: int | None = None,
        admitted_relations: Sequence[str] | None = DEFAULT_ADMITTED_RELATIONS,
    ) -> HierarchyResult:
        depth = self.depth if depth is None else depth
        if depth < 1:
            raise ValueError("depth must be >= 1")
        self.graph.adopt(tag)
        return self._expand(tag, language, filter_language, depth, admitted_relations, expanded={})

    def enrich_sentence(self, sentence: Sentence, language: str, **kwargs) -> dict[str, HierarchyResult]:
        """Run `import_hierarchy` for every Tag of `sentence`, keyed by lemma."""
        return {
            lemma: self.import_hierarchy(tag, language, **kwargs)
            for lemma, tag in list(sentence.tags.items())
        }

    def _expand(
        self,
        source: Tag,
        language: str,
        filter_language: bool,
        depth: int,
        admitted_relations: Sequence[str] | None,
        expanded: dict[tuple[str, str], int],
    ) -> HierarchyResult:
        result = HierarchyResult()
        key = normalize_key(source.lemma)
        visit = (key, source.language.lower())
        if expanded.get(visit, 0) >= depth:
            return result
        expanded[visit] = depth

        try:
            edges = self.client.lookup(key, language)
        except Exception as e:
            logger.error("Error while importing hierarchy for %s (%s). Ignored!", key, language, exc_info=True)
            result.errors.append(BranchError(key, language, depth, str(e), e))
            return result

        for edge in sorted(edges, key=lambda x: (x.relation, x.start, x.end)):
            if not self._admitted(edge, key, language, filter_language, admitted_relations):
                continue
            try:
                if edge.start.lower() == key:
                    neighbor = self._annotate(edge.end, edge.end_language)
                    if depth > 1:
                        child = self._expand(
                            neighbor, language, filter_language, depth - 1, admitted_relations, expanded
                        )
                        result.errors.extend(child.errors)
                    self.graph.link(source, edge.relation, neighbor, edge.weight)
                else:
                    neighbor = self._annotate(edge.start, edge.start_language)
                    self.graph.link(neighbor, edge.relation, source, edge.weight)
            except Exception as e:
                logger.error("Error while linking %s to %s. Ignored!", key, edge, exc_info=True)
                result.errors.append(BranchError(key, language, depth, str(e), e))
                continue
            result.tags.append(neighbor)
        return result

    @staticmethod
    def _admitted(
        edge: OntologyEdge,
        key: str,
        language: str,
        filter_language: bool,
        admitted_relations: Sequence[str] | None,
    ) -> bool:
        if admitted_relations and not any(rel in edge.relation for rel in admitted_relations):
            return False
        if not edge.touches(key):
            return False
        if filter_language:
            lang = language.lower()
            return edge.start_language.lower() == lang and edge.end_language.lower() == lang
        return True

    def _annotate(self, term: str, language: str) -> Tag:
        cache_key = (term.lower(), language.lower())
        tag = self.cache.get(cache_key)
        if tag is not None:
            return self.graph.add(tag)
        if self.resolver is not None and language.lower() in self.supported_languages:
            tag = self.resolver.resolve(term, language)
        if tag is None:
            tag = Tag(lemma=term, language=language)
        tag = self.graph.add(tag)
        self.cache.put(cache_key, tag)
        return tag
