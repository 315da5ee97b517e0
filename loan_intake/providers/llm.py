"""OpenAI chat completion client for structured and free-text output."""

import json
import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from loan_intake.config import GenerationConfig
from loan_intake.exceptions import GenerationError
from loan_intake.timeouts import call_with_timeout

logger = logging.getLogger(__name__)


class OpenAILanguageModel:
    """Chat model client with two modes.

    ``complete`` requests a JSON object constrained to a schema. The schema
    is passed with ``strict`` enforcement, but the decoded object is still
    untrusted: callers validate it on receipt. ``answer`` returns the plain
    text of a short reply.

    Args:
        client: Shared AsyncOpenAI client.
        config: GenerationConfig with model, sampling and timeout settings.
    """

    def __init__(self, client: AsyncOpenAI, config: GenerationConfig) -> None:
        self._client = client
        self._config = config

    async def complete(
        self,
        messages: list[dict[str, str]],
        schema: dict[str, Any],
        name: str = "structured_output",
    ) -> dict[str, Any]:
        """Run a chat completion and decode its JSON content.

        Args:
            messages: Chat messages (role/content dicts).
            schema: JSON schema the response must follow.
            name: Schema name reported to the provider.

        Returns:
            The decoded JSON object.

        Raises:
            GenerationError: On provider error, timeout, refusal, or a
                response that is not a JSON object.
        """
        content = await self._chat(
            messages,
            temperature=self._config.temperature,
            response_format={
                "type": "json_schema",
                "json_schema": {"name": name, "schema": schema, "strict": True},
            },
        )

        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            raise GenerationError(
                "Model response is not valid JSON", {"position": exc.pos}
            ) from exc

        if not isinstance(payload, dict):
            raise GenerationError(
                "Model response is not a JSON object",
                {"type": type(payload).__name__},
            )
        return payload

    async def answer(self, messages: list[dict[str, str]]) -> str:
        """Run a free-text chat completion and return the reply text.

        Raises:
            GenerationError: On provider error, timeout, refusal, or an
                empty reply.
        """
        content = await self._chat(messages, temperature=self._config.answer_temperature)
        return content.strip()

    async def _chat(self, messages: list[dict[str, str]], **options: Any) -> str:
        try:
            response = await call_with_timeout(
                self._client.chat.completions.create(
                    model=self._config.model,
                    messages=messages,
                    max_tokens=self._config.max_tokens,
                    **options,
                ),
                self._config.timeout_seconds,
                lambda: GenerationError(
                    f"Model call timed out after {self._config.timeout_seconds}s",
                    {"model": self._config.model},
                ),
            )
        except openai.OpenAIError as exc:
            logger.exception("Chat completion request failed")
            raise GenerationError(
                f"Language model provider error: {exc}", {"model": self._config.model}
            ) from exc

        if not response.choices:
            raise GenerationError("Model returned no choices", {"model": self._config.model})

        message = response.choices[0].message
        if getattr(message, "refusal", None):
            raise GenerationError(
                "Model refused to answer", {"refusal": message.refusal}
            )
        if not message.content or not message.content.strip():
            raise GenerationError("Model returned empty content")
        return message.content
