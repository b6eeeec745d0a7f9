"""
Unit tests for sentence splitting and windowing
"""
import pytest

from app.services.text_utils import (
    chunk_text_with_offsets,
    iter_paragraphs,
    iter_sentences,
    split_into_paragraphs,
    split_into_sentences,
)


class TestSentenceSplitter:
    def test_keeps_closing_quotes_with_sentence(self):
        text = 'She said "this is over." Then she left the room quietly.'
        assert split_into_sentences(text) == ['She said "this is over."', "Then she left the room quietly."]

    def test_discards_short_units(self):
        assert split_into_sentences("Yes. No. This sentence is long enough.") == ["This sentence is long enough."]

    def test_blank_line_ends_unit_without_terminator(self):
        text = "Heading without stop\n\nBody sentence is here."
        assert split_into_sentences(text) == ["Heading without stop", "Body sentence is here."]

    def test_restartable(self):
        """Two iterations over the same text give the same units"""
        text = "One sentence goes here! Another one follows it? Ellipsis ends this one… tail text"
        assert list(iter_sentences(text)) == list(iter_sentences(text))
        assert split_into_sentences(text) == [
            "One sentence goes here!",
            "Another one follows it?",
            "Ellipsis ends this one…",
        ]

    def test_paragraphs(self):
        assert split_into_paragraphs("a\n\nb\n  \nc") == ["a", "b", "c"]

    def test_paragraph_offsets(self):
        text = "first para\n\nsecond\n  \nthird"
        paragraphs = list(iter_paragraphs(text))
        assert [p.text for p in paragraphs] == ["first para", "second", "third"]
        for p in paragraphs:
            assert text[p.start_offset:p.start_offset + len(p.text)] == p.text


class TestChunking:
    def test_short_text_is_single_chunk(self):
        chunks = chunk_text_with_offsets("short text", 100, 20)
        assert len(chunks) == 1
        assert chunks[0].start_offset == 0
        assert chunks[0].text == "short text"

    def test_windows_overlap_and_keep_offsets(self):
        text = "".join(chr(ord("a") + i % 26) for i in range(250))
        chunks = chunk_text_with_offsets(text, 100, 20)
        assert [c.start_offset for c in chunks] == [0, 80, 160]
        for chunk in chunks:
            assert text[chunk.start_offset:chunk.start_offset + len(chunk.text)] == chunk.text
        assert chunks[-1].start_offset + len(chunks[-1].text) == len(text)

    def test_overlap_must_be_smaller_than_window(self):
        with pytest.raises(ValueError):
            chunk_text_with_offsets("x" * 500, 100, 100)
