import pytest

from nlp_graph.annotation.models import Phrase, Sentence, SentimentLevel, Tag
from nlp_graph.errors import InvalidSpanError


def test_add_tag_returns_existing_and_increments_multiplicity():
    s = Sentence("the cat saw another cat", 0)
    first = s.add_tag(Tag("cat"))
    second = s.add_tag(Tag("cat"))

    assert second is first
    assert first.multiplicity == 2
    assert list(s.tags) == ["cat"]


def test_add_tag_inserts_new_lemma():
    s = Sentence("the cat sat", 0)
    cat = s.add_tag(Tag("cat"))
    sit = s.add_tag(Tag("sit"))

    assert cat is not sit
    assert s.get_tag("sit") is sit
    assert cat.multiplicity == 1


def test_negative_begin_is_rejected():
    s = Sentence("the cat sat", 0)
    cat = s.add_tag(Tag("cat"))

    with pytest.raises(InvalidSpanError):
        s.add_tag_occurrence(-1, 3, "cat", cat)
    with pytest.raises(InvalidSpanError):
        s.add_phrase_occurrence(-5, 2, Phrase("the cat"))
    with pytest.raises(ValueError):
        s.get_tag_occurrence(-1)


def test_occurrences_at_same_begin_are_kept():
    s = Sentence("New York", 0)
    new = s.add_tag(Tag("new"))
    ny = s.add_tag(Tag("new york"))
    s.add_tag_occurrence(0, 3, "New", new)
    s.add_tag_occurrence(0, 8, "New York", ny)

    assert [o.tag for o in s.get_tag_occurrences_at(0)] == [new, ny]
    assert s.get_tag_occurrence(0) is new
    assert s.find_tag_occurrence(0, 8).tag is ny
    assert s.find_tag_occurrence(0, 5) is None


def test_phrase_occurrence_last_write_wins():
    s = Sentence("the big cat", 0)
    s.add_phrase_occurrence(0, 11, Phrase("the big cat"))
    s.add_phrase_occurrence(0, 11, Phrase("big cat", type="NP"))
    s.add_phrase_occurrence(0, 7, Phrase("the big"))

    assert s.get_phrase_occurrence(0, 11).content == "big cat"
    assert {p.content for p in s.get_phrases_at(0)} == {"big cat", "the big"}
    assert s.get_phrase_occurrence(4, 7) is None


def test_value_and_named_entity_lookups():
    s = Sentence("Paris is in France", 0)
    paris = s.add_tag(Tag("Paris", ne=["LOCATION"], original_value="Paris"))
    be = s.add_tag(Tag("be", ne=["O"]))
    s.add_tag_occurrence(0, 5, "Paris", paris)
    s.add_tag_occurrence(6, 8, "is", be)

    assert s.get_tag_occurrence_by_tag_value("be").begin == 6
    assert s.get_tag_occurrence_by_value_with_ne("Paris").tag is paris
    assert s.get_tag_occurrence_by_value_with_ne("is") is None
    assert s.get_tag_occurrence_by_value_and_ne("Paris", "LOCATION").begin == 0
    assert s.get_tag_occurrence_by_value_and_ne("Paris", "PERSON") is None


def test_sentiment_defaults_to_unset_and_accepts_ints():
    s = Sentence("fine", 3)
    assert s.sentiment is SentimentLevel.UNSET
    s.sentiment = 4
    assert s.sentiment is SentimentLevel.VERY_POSITIVE


def test_hash_is_stable_md5_of_text():
    assert Sentence("the cat sat", 0).hash() == Sentence("the cat sat", 7).hash()
    assert Sentence("the cat sat", 0).hash() != Sentence("the dog sat", 0).hash()
    assert len(Sentence("x").hash()) == 32


def test_sentences_order_by_number():
    a, b, c = Sentence("a", 2), Sentence("b", 0), Sentence("c", 1)
    assert [x.text for x in sorted([a, b, c])] == ["b", "c", "a"]
    assert b <= c <= a
    assert a >= c > b


def test_tag_parents_are_an_ordered_set():
    dog = Tag("dog")
    animal = Tag("animal")
    dog.add_parent("IsA", animal, 2.0)
    dog.add_parent("IsA", animal, 3.0)
    dog.add_parent("RelatedTo", animal)

    assert [(p.relation, p.parent_id, p.weight) for p in dog.parents] == [
        ("IsA", "animal_en", 2.0),
        ("RelatedTo", "animal_en", 1.0),
    ]


def test_phrase_identity_is_content():
    assert Phrase("the cat") == Phrase("the cat", type="NP")
    assert len({Phrase("a"), Phrase("a"), Phrase("b")}) == 2
