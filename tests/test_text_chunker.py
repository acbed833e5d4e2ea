"""
Unit tests for TextChunker
"""

import pytest

from speechwire.utils.text_chunker import TextChunker, split_text


class TestTextChunker:
    """Punctuation-bounded chunking for TaskRequest frames"""

    def test_split_at_every_comma(self):
        """min_len=1 splits at each boundary"""
        assert split_text("a,b,c,d", max_len=3, min_len=1) == ["a,", "b,", "c,", "d"]

    def test_forced_split_at_max_len(self):
        chunks = split_text("abcdefghij", max_len=4, min_len=2)
        assert chunks == ["abcd", "efgh", "ij"]

    def test_min_len_delays_split(self):
        chunks = split_text("好。很好。非常好。", max_len=60, min_len=3)
        assert chunks == ["好。很好。", "非常好。"]

    def test_chinese_and_ascii_boundaries(self):
        text = "第一句话！第二句话？third one; fourth."
        chunks = split_text(text, max_len=60, min_len=4)
        assert chunks == ["第一句话！", "第二句话？", "third one;", "fourth."]

    def test_newline_is_boundary(self):
        assert split_text("line one\nline two", max_len=60, min_len=4) == ["line one", "line two"]

    def test_chunks_are_trimmed(self):
        chunks = split_text("  hello,   world.  ", max_len=60, min_len=1)
        assert chunks == ["hello,", "world."]

    def test_blank_input(self):
        assert split_text("") == []
        assert split_text("   \n\t ") == []

    def test_short_text_is_single_chunk(self):
        assert split_text("你好") == ["你好"]

    def test_chunks_bounded_and_cover_input(self):
        text = "今天天气很好，我们去公园散步吧。" * 10 + "最后一句没有标点"
        chunks = split_text(text, max_len=20, min_len=5)
        assert all(chunk and len(chunk) <= 20 for chunk in chunks)
        assert "".join(chunks) == text

    def test_defaults(self):
        chunker = TextChunker()
        assert chunker.max_len == 60
        assert chunker.min_len == 12
        assert chunker.is_boundary("，")
        assert not chunker.is_boundary("a")

    def test_invalid_bounds(self):
        with pytest.raises(ValueError):
            TextChunker(max_len=0)
        with pytest.raises(ValueError):
            TextChunker(min_len=-1)
