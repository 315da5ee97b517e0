"""Short free-text answers grounded in retrieved document context."""

import logging

from loan_intake.analysis.prompt import build_answer_messages
from loan_intake.interfaces import LanguageModel
from loan_intake.models.results import QuestionAnswer
from loan_intake.retrieval.retriever import RetrievalService

logger = logging.getLogger(__name__)


class QuestionAnswerer:
    """Answers an ad-hoc question from the chunks most similar to it.

    Args:
        retriever: Retrieval service for the question text.
        model: Language model producing the free-text reply.
        max_words: Word limit stated in the prompt.
    """

    def __init__(
        self, retriever: RetrievalService, model: LanguageModel, max_words: int = 40
    ) -> None:
        self._retriever = retriever
        self._model = model
        self._max_words = max_words

    async def ask(self, question: str) -> QuestionAnswer:
        """Retrieve context for ``question`` and ask the model about it.

        Raises:
            RetrievalError: If retrieval fails.
            GenerationError: If the model call fails or returns nothing.
        """
        context = await self._retriever.retrieve(question)
        messages = build_answer_messages(question, context.text, self._max_words)
        logger.info(
            "Answering %r from %d chunks", question[:60], len(context.chunks)
        )
        reply = await self._model.answer(messages)
        return QuestionAnswer(
            question=question,
            answer=reply,
            chunk_ids=[chunk.id for chunk in context.chunks],
        )
