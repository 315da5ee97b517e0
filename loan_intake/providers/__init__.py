"""External model providers: embeddings and chat completions."""

from loan_intake.providers.embedding import OpenAIEmbeddingClient
from loan_intake.providers.llm import OpenAILanguageModel

__all__ = ["OpenAIEmbeddingClient", "OpenAILanguageModel"]
