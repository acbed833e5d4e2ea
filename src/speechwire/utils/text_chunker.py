"""
Punctuation-aware text chunker for streaming synthesis

Splits text into bounded chunks so each TaskRequest frame carries one
clause-sized piece of text:
- Forced split once a chunk reaches max_len characters
- Split at sentence/clause punctuation (full-width or ASCII) and newlines,
  once the chunk has at least min_len characters
"""

from typing import FrozenSet, List


DEFAULT_MAX_LEN = 60
DEFAULT_MIN_LEN = 12


class TextChunker:
    """
    Segments text along punctuation boundaries.

    Chunks are trimmed of surrounding whitespace and never empty.
    """

    # 。！？；，、 .!?;, and newline
    BOUNDARY_CHARS: FrozenSet[str] = frozenset("。！？；，、.!?;,\n")

    def __init__(self, max_len: int = DEFAULT_MAX_LEN, min_len: int = DEFAULT_MIN_LEN):
        if max_len < 1:
            raise ValueError(f"max_len must be positive, got {max_len}")
        if min_len < 0:
            raise ValueError(f"min_len must not be negative, got {min_len}")
        self.max_len = max_len
        self.min_len = min_len

    def is_boundary(self, char: str) -> bool:
        return char in self.BOUNDARY_CHARS

    def split(self, text: str) -> List[str]:
        """
        Split text into ordered, non-empty chunks.

        Args:
            text: Arbitrary input text

        Returns:
            Chunks in input order; empty list for blank input
        """
        trimmed = text.strip()
        if not trimmed:
            return []

        chunks: List[str] = []
        current: List[str] = []

        for char in trimmed:
            current.append(char)
            count = len(current)

            if count >= self.max_len or (self.is_boundary(char) and count >= self.min_len):
                chunk = "".join(current).strip()
                if chunk:
                    chunks.append(chunk)
                current = []

        rest = "".join(current).strip()
        if rest:
            chunks.append(rest)

        if not chunks:
            chunks.append(trimmed)

        return chunks


def split_text(text: str, max_len: int = DEFAULT_MAX_LEN, min_len: int = DEFAULT_MIN_LEN) -> List[str]:
    """Split text with a one-off TextChunker."""
    return TextChunker(max_len=max_len, min_len=min_len).split(text)
