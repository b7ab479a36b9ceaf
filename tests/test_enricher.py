import pytest

from conftest import FakeOntologyClient, edge
from nlp_graph.annotation.models import Sentence, Tag
from nlp_graph.ontology.cache import TTLCache
from nlp_graph.ontology.enricher import ConceptEnricher, normalize_key


class RecordingResolver:
    def __init__(self, known=None):
        self.known = known or {}
        self.calls = []

    def resolve(self, surface_form, language):
        self.calls.append((surface_form, language))
        pos = self.known.get(surface_form)
        if pos is None:
            return None
        return Tag(surface_form, language, pos=[pos])


def parent_ids(tag):
    return [(p.relation, p.parent_id) for p in tag.parents]


def test_normalize_key():
    assert normalize_key("Ice Cream") == "ice_cream"


def test_only_admitted_relations_are_linked():
    client = FakeOntologyClient([edge("cat", "RelatedTo", "feline"), edge("cat", "Unrelated", "furniture")])
    enricher = ConceptEnricher(client, supported_languages=[])
    cat = Tag("cat")

    result = enricher.import_hierarchy(cat, "en", depth=1, admitted_relations=["RelatedTo"])

    assert [t.lemma for t in result.tags] == ["feline"]
    assert parent_ids(cat) == [("RelatedTo", "feline_en")]
    assert "furniture_en" not in enricher.graph


def test_empty_admitted_relations_admit_everything():
    client = FakeOntologyClient([edge("cat", "RelatedTo", "feline"), edge("cat", "Unrelated", "furniture")])
    enricher = ConceptEnricher(client, supported_languages=[])

    result = enricher.import_hierarchy(Tag("cat"), "en", depth=1, admitted_relations=[])

    assert sorted(t.lemma for t in result.tags) == ["feline", "furniture"]


def test_depth_two_links_two_hops():
    client = FakeOntologyClient([edge("dog", "IsA", "animal"), edge("animal", "IsA", "organism")])
    enricher = ConceptEnricher(client, supported_languages=[])
    dog = Tag("dog")

    result = enricher.import_hierarchy(dog, "en", depth=2, admitted_relations=["IsA"])

    assert [t.lemma for t in result.tags] == ["animal"]
    assert parent_ids(dog) == [("IsA", "animal_en")]
    animal = enricher.graph.get("animal_en")
    assert parent_ids(animal) == [("IsA", "organism_en")]
    assert [t.lemma for t in enricher.graph.ancestors(dog.id)] == ["animal", "organism"]


def test_depth_one_links_single_hop():
    client = FakeOntologyClient([edge("dog", "IsA", "animal"), edge("animal", "IsA", "organism")])
    enricher = ConceptEnricher(client, supported_languages=[])
    dog = Tag("dog")

    enricher.import_hierarchy(dog, "en", depth=1, admitted_relations=["IsA"])

    assert client.calls == [("dog", "en")]
    assert parent_ids(dog) == [("IsA", "animal_en")]
    assert enricher.graph.get("animal_en").parents == []


def test_end_endpoint_links_source_as_parent_without_recursing():
    client = FakeOntologyClient([edge("puppy", "IsA", "dog"), edge("puppy", "IsA", "baby")])
    enricher = ConceptEnricher(client, supported_languages=[])
    dog = Tag("dog")

    result = enricher.import_hierarchy(dog, "en", depth=3, admitted_relations=["IsA"])

    assert [t.lemma for t in result.tags] == ["puppy"]
    assert dog.parents == []
    assert parent_ids(result.tags[0]) == [("IsA", "dog_en")]
    assert client.calls == [("dog", "en")]


def test_filter_language_drops_cross_language_edges():
    client = FakeOntologyClient(
        [edge("cat", "Synonym", "gatto", end_lang="it"), edge("cat", "Synonym", "kitty")]
    )
    enricher = ConceptEnricher(client, supported_languages=[])

    result = enricher.import_hierarchy(Tag("cat"), "en", filter_language=True, depth=1)

    assert [t.lemma for t in result.tags] == ["kitty"]


def test_edges_not_touching_the_key_are_ignored():
    client = FakeOntologyClient()
    client.lookup = lambda key, language: {edge("dog", "IsA", "pet"), edge("cat", "IsA", "pet")}
    enricher = ConceptEnricher(client, supported_languages=[])

    result = enricher.import_hierarchy(Tag("cat"), "en", depth=1)

    assert [t.lemma for t in result.tags] == ["pet"]


def test_failed_lookup_is_reported_and_siblings_continue():
    client = FakeOntologyClient(
        [
            edge("dog", "IsA", "animal"),
            edge("dog", "IsA", "pet"),
            edge("pet", "IsA", "companion"),
        ],
        failing={"animal"},
    )
    enricher = ConceptEnricher(client, supported_languages=[])
    dog = Tag("dog")

    result = enricher.import_hierarchy(dog, "en", depth=2, admitted_relations=["IsA"])

    assert sorted(t.lemma for t in result.tags) == ["animal", "pet"]
    assert not result.complete
    assert [(e.key, e.depth) for e in result.errors] == [("animal", 1)]
    assert parent_ids(enricher.graph.get("pet_en")) == [("IsA", "companion_en")]


def test_failed_root_lookup_returns_no_neighbors():
    enricher = ConceptEnricher(FakeOntologyClient(failing={"dog"}), supported_languages=[])

    result = enricher.import_hierarchy(Tag("dog"), "en")

    assert result.tags == []
    assert result.errors[0].key == "dog"


def test_cycles_are_not_requeried():
    client = FakeOntologyClient([edge("a", "IsA", "b"), edge("b", "IsA", "a")])
    enricher = ConceptEnricher(client, supported_languages=[])

    enricher.import_hierarchy(Tag("a"), "en", depth=5, admitted_relations=["IsA"])

    assert sorted(client.calls) == [("a", "en"), ("b", "en")]


def test_resolver_used_for_supported_languages_and_cached():
    client = FakeOntologyClient([edge("cat", "IsA", "pet"), edge("dog", "IsA", "pet"), edge("cat", "IsA", "animale", end_lang="it")])
    resolver = RecordingResolver({"pet": "NN", "animale": "NN"})
    enricher = ConceptEnricher(client, resolver, supported_languages=["en"])

    enricher.import_hierarchy(Tag("cat"), "en", depth=1)
    enricher.import_hierarchy(Tag("dog"), "en", depth=1)

    pet = enricher.graph.get("pet_en")
    assert pet.pos == ["NN"]
    assert resolver.calls == [("pet", "en")]
    assert enricher.graph.get("animale_it").pos == []


def test_cache_entries_expire():
    now = [0.0]
    cache = TTLCache(max_size=10, ttl=10, clock=lambda: now[0])
    client = FakeOntologyClient([edge("cat", "IsA", "pet")])
    resolver = RecordingResolver({"pet": "NN"})
    enricher = ConceptEnricher(client, resolver, supported_languages=["en"], cache=cache, graph=None)

    enricher.import_hierarchy(Tag("cat"), "en", depth=1)
    now[0] = 100.0
    enricher.import_hierarchy(Tag("cat"), "en", depth=1)

    assert resolver.calls == [("pet", "en"), ("pet", "en")]


def test_enrich_sentence_expands_every_tag():
    client = FakeOntologyClient([edge("cat", "IsA", "animal"), edge("mat", "IsA", "rug")])
    enricher = ConceptEnricher(client, supported_languages=[])
    s = Sentence("the cat sat on the mat", 0)
    s.add_tag(Tag("cat"))
    s.add_tag(Tag("mat"))

    results = enricher.enrich_sentence(s, "en", depth=1)

    assert {k: [t.lemma for t in r.tags] for k, r in results.items()} == {"cat": ["animal"], "mat": ["rug"]}
    assert parent_ids(s.get_tag("mat")) == [("IsA", "rug_en")]


def test_depth_must_be_positive():
    with pytest.raises(ValueError):
        ConceptEnricher(FakeOntologyClient()).import_hierarchy(Tag("x"), "en", depth=0)


def test_injected_cache_is_used():
    cache = TTLCache(max_size=10, ttl=10)
    enricher = ConceptEnricher(FakeOntologyClient([edge("cat", "IsA", "pet")]), cache=cache)

    enricher.import_hierarchy(Tag("cat"), "en", depth=1)

    assert enricher.cache is cache
    assert cache.get(("pet", "en")) is enricher.graph.get("pet_en")


def test_explicit_zero_depth_is_kept_and_rejected():
    enricher = ConceptEnricher(FakeOntologyClient(), depth=0)

    assert enricher.depth == 0
    with pytest.raises(ValueError):
        enricher.import_hierarchy(Tag("x"), "en")


def test_key_reached_again_with_more_depth_is_expanded_again():
    client = FakeOntologyClient(
        [
            edge("dog", "IsA", "canine"),
            edge("canine", "IsA", "mammal"),
            edge("dog", "IsA", "mammal"),
            edge("mammal", "IsA", "vertebrate"),
        ]
    )
    enricher = ConceptEnricher(client, supported_languages=[])

    enricher.import_hierarchy(Tag("dog"), "en", depth=3, admitted_relations=["IsA"])

    assert client.calls.count(("mammal", "en")) == 2
    assert ("vertebrate", "en") in client.calls
    assert parent_ids(enricher.graph.get("mammal_en")) == [("IsA", "vertebrate_en")]


def test_same_spelling_in_two_languages_is_expanded_for_each():
    client = FakeOntologyClient(
        [
            edge("cat", "RelatedTo", "chat", end_lang="fr"),
            edge("cat", "RelatedTo", "chat", end_lang="en"),
            edge("chat", "IsA", "talk"),
        ]
    )
    enricher = ConceptEnricher(client, supported_languages=[])

    enricher.import_hierarchy(Tag("cat"), "en", depth=2)

    assert client.calls.count(("chat", "en")) == 2
    assert ("IsA", "talk_en") in parent_ids(enricher.graph.get("chat_fr"))
    assert ("IsA", "talk_en") in parent_ids(enricher.graph.get("chat_en"))
