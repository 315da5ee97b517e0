"""OpenAI embedding client."""

import logging

import openai
from openai import AsyncOpenAI

from loan_intake.config import EmbeddingConfig
from loan_intake.exceptions import EmbeddingError
from loan_intake.timeouts import call_with_timeout

logger = logging.getLogger(__name__)


class OpenAIEmbeddingClient:
    """Turns text into a fixed-length vector with the OpenAI embeddings API.

    Args:
        client: Shared AsyncOpenAI client.
        config: EmbeddingConfig with the model name and timeout.
    """

    def __init__(self, client: AsyncOpenAI, config: EmbeddingConfig) -> None:
        self._client = client
        self._config = config

    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Raises:
            EmbeddingError: On provider failure, timeout, or an empty vector.
        """
        try:
            response = await call_with_timeout(
                self._client.embeddings.create(
                    model=self._config.model,
                    input=text,
                    encoding_format="float",
                ),
                self._config.timeout_seconds,
                lambda: EmbeddingError(
                    f"Embedding timed out after {self._config.timeout_seconds}s",
                    {"model": self._config.model},
                ),
            )
        except openai.OpenAIError as exc:
            logger.exception("Embedding request failed")
            raise EmbeddingError(
                f"Embedding provider error: {exc}", {"model": self._config.model}
            ) from exc

        if not response.data or not response.data[0].embedding:
            raise EmbeddingError(
                "Embedding provider returned no vector", {"model": self._config.model}
            )
        return list(response.data[0].embedding)
