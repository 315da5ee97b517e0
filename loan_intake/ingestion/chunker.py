"""Sentence-aware and word-window text chunkers."""

import logging
import re

from loan_intake.config import ChunkingConfig

logger = logging.getLogger(__name__)

# A sentence ends at ., ! or ? followed by whitespace.
SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


def count_words(text: str) -> int:
    """Count whitespace-separated words.

    Words stand in for tokens; no real tokenizer is used.

    Args:
        text: The text to measure.

    Returns:
        Number of words.
    """
    return len(text.split())


def split_sentences(text: str) -> list[str]:
    """Split text into sentences, keeping the terminal punctuation.

    Args:
        text: The text to split.

    Returns:
        Non-empty sentences in original order.
    """
    return [s.strip() for s in SENTENCE_BOUNDARY.split(text) if s.strip()]


def chunk_by_sentences(text: str, max_words: int) -> list[str]:
    """Accumulate whole sentences into chunks of at most ``max_words`` words.

    A chunk is flushed when the next sentence would push it over the limit
    and it already holds something. A single sentence longer than the limit
    becomes its own chunk, unmodified.

    Args:
        text: The text to chunk.
        max_words: Soft cap on words per chunk.

    Returns:
        Ordered chunks covering every word of ``text``.
    """
    chunks: list[str] = []
    current: list[str] = []
    current_words = 0

    for sentence in split_sentences(text):
        sentence_words = count_words(sentence)
        if current and current_words + sentence_words > max_words:
            chunks.append(" ".join(current))
            current = []
            current_words = 0
        current.append(sentence)
        current_words += sentence_words

    if current:
        chunks.append(" ".join(current))

    return chunks


def chunk_by_word_window(text: str, max_words: int) -> list[str]:
    """Partition the word sequence into consecutive windows of ``max_words``.

    Args:
        text: The text to chunk.
        max_words: Exact window size (the last window may be shorter).

    Returns:
        Ordered chunks covering every word of ``text``.
    """
    words = text.split()
    return [
        " ".join(words[pos : pos + max_words])
        for pos in range(0, len(words), max_words)
    ]


class DocumentChunker:
    """Splits extracted document text into ordered chunks.

    Two policies are available:
    1. ``sentence``: whole sentences packed up to ``max_words`` (soft cap)
    2. ``word_window``: fixed windows of ``max_words`` words

    Args:
        config: ChunkingConfig with the policy and max_words settings.
    """

    def __init__(self, config: ChunkingConfig) -> None:
        self._config = config

    @property
    def policy(self) -> str:
        return self._config.policy

    def chunk(self, text: str, max_words: int | None = None) -> list[str]:
        """Split text into chunks using the configured policy.

        Args:
            text: Extracted document text.
            max_words: Optional override of the configured size budget.

        Returns:
            Ordered chunk texts; empty if ``text`` holds no words.
        """
        limit = self._config.max_words if max_words is None else max_words
        if limit <= 0:
            raise ValueError(f"max_words must be positive, got {limit}")

        if not text.strip():
            return []

        if self._config.policy == "word_window":
            chunks = chunk_by_word_window(text, limit)
        else:
            chunks = chunk_by_sentences(text, limit)

        logger.debug(
            "Chunked %d words into %d chunks (policy=%s, max_words=%d)",
            count_words(text),
            len(chunks),
            self._config.policy,
            limit,
        )
        return chunks
