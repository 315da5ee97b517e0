"""Candidate analysis generation from retrieved document context."""

import asyncio
import logging
from typing import Any

from loan_intake.analysis.prompt import SCHEMA_NAME, build_messages
from loan_intake.exceptions import GenerationError, RetrievalError
from loan_intake.interfaces import LanguageModel
from loan_intake.models.analysis import analysis_json_schema
from loan_intake.models.application import LoanApplication
from loan_intake.retrieval.retriever import RetrievalService

logger = logging.getLogger(__name__)

SECTIONS = (
    "personalInfo",
    "incomeAnalysis",
    "creditAnalysis",
    "loanEligibility",
    "documentVerification",
)


class AnalysisGenerator:
    """Produces an untrusted candidate analysis for an application.

    Args:
        retriever: Retrieval service used once per topic.
        model: Language model returning schema-constrained JSON.
    """

    def __init__(self, retriever: RetrievalService, model: LanguageModel) -> None:
        self._retriever = retriever
        self._model = model
        self._schema = analysis_json_schema()

    async def gather_context(
        self, application: LoanApplication, topic_queries: dict[str, str]
    ) -> dict[str, str]:
        """Run one retrieval per topic concurrently.

        Retrieval is scoped to the application's own chunks. Results are
        keyed by topic name, independent of completion order.

        Raises:
            RetrievalError: If any topic's retrieval fails, or a topic finds
                nothing although the application has indexed chunks.
        """
        topics = list(topic_queries)
        chunk_ids = application.documents.all_chunk_ids()
        contexts = await asyncio.gather(
            *(
                self._retriever.retrieve(topic_queries[topic], restrict_to=chunk_ids)
                for topic in topics
            )
        )
        if chunk_ids:
            for topic, context in zip(topics, contexts):
                if not context.chunks:
                    raise RetrievalError(
                        f"No chunks retrieved for topic {topic}",
                        topic_queries[topic],
                        {"topic": topic, "application_id": application.id},
                    )
        return {topic: context.text for topic, context in zip(topics, contexts)}

    async def generate(
        self, application: LoanApplication, topic_queries: dict[str, str]
    ) -> dict[str, Any]:
        """Retrieve context, prompt the model, and return its raw verdict.

        Args:
            application: The application to analyse.
            topic_queries: Query text per topic (income, credit, identity).

        Returns:
            The candidate analysis as decoded JSON. Not yet validated.

        Raises:
            RetrievalError: If a topic retrieval fails.
            GenerationError: If the model call fails or the response lacks
                the expected top-level structure.
        """
        contexts = await self.gather_context(application, topic_queries)
        messages = build_messages(application, contexts)

        logger.info(
            "Requesting analysis for application %s (%s)",
            application.id,
            ", ".join(f"{topic}={len(text)} chars" for topic, text in contexts.items()),
        )
        candidate = await self._model.complete(messages, self._schema, SCHEMA_NAME)

        for section in SECTIONS:
            if not isinstance(candidate.get(section), dict):
                raise GenerationError(
                    "Model response does not match the analysis schema",
                    {"section": section},
                )
        return candidate
