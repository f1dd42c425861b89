from app.utils.hashing import analysis_cache_key
from app.utils.text import (
    jaccard_similarity,
    normalize_text,
    paragraphs,
    preview,
    sentences,
    split_sentences,
    word_set_similarity,
)


def test_normalize_text_collapses_spaces_but_keeps_paragraphs():
    raw = "First   line\twith  gaps.\r\n\r\n\r\n\r\nSecond paragraph."

    assert normalize_text(raw) == "First line with gaps.\n\nSecond paragraph."


def test_sentences_never_cross_paragraph_breaks():
    text = "A heading without a period\n\nThe body starts here. It ends here."

    assert sentences(text) == ["A heading without a period", "The body starts here.", "It ends here."]
    assert len(paragraphs(text)) == 2


def test_sentence_offsets_point_into_source():
    text = "One two three.   Four five six!"

    for sentence in split_sentences(text):
        assert text[sentence.start : sentence.end] == sentence.text


def test_sentence_properties():
    first = split_sentences("Well, this has clauses; quite a few: three.")[0]

    assert first.clause_count == 4
    assert first.is_terminated
    assert first.punctuation_counts == {",": 1, ";": 1, ":": 1}


def test_punctuation_only_fragments_are_dropped():
    assert sentences("Real sentence. ... !!") == ["Real sentence."]


def test_jaccard_similarity_edges():
    assert jaccard_similarity(set(), set()) == 0.0
    assert jaccard_similarity({"a", "b"}, {"a", "b"}) == 1.0
    assert jaccard_similarity({"a", "b"}, {"b", "c"}) == 1 / 3


def test_word_set_similarity_is_case_insensitive():
    assert word_set_similarity("The Cat sat", "the cat SAT") == 1.0


def test_preview_truncates():
    assert preview("word " * 100, limit=20).endswith("...")
    assert len(preview("word " * 100, limit=20)) == 20
    assert preview("short text") == "short text"


def test_cache_key_is_stable_and_namespaced():
    key = analysis_cache_key("same text")

    assert key == analysis_cache_key("same text")
    assert key.startswith("analysis:")
    assert key != analysis_cache_key("same text ")


def test_sentences_do_not_split_inside_numbers_or_abbreviations():
    text = "Growth hit 3.5 percent in v2.1 today. See e.g. the appendix from Dr. Smith. We shipped tools etc. Then we rested."

    assert sentences(text) == [
        "Growth hit 3.5 percent in v2.1 today.",
        "See e.g. the appendix from Dr. Smith.",
        "We shipped tools etc.",
        "Then we rested.",
    ]


def test_etc_before_lowercase_continues_the_sentence():
    assert sentences("Bring pens, paper etc. and a laptop. Then leave.") == [
        "Bring pens, paper etc. and a laptop.",
        "Then leave.",
    ]
