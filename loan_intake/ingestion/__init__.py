"""Document ingestion: extraction, chunking and indexing."""

from loan_intake.ingestion.chunker import DocumentChunker, count_words
from loan_intake.ingestion.extractor import TextExtractor
from loan_intake.ingestion.pipeline import DocumentIngestor

__all__ = ["DocumentChunker", "DocumentIngestor", "TextExtractor", "count_words"]
