"""Chunk retrieval."""

from loan_intake.retrieval.retriever import RetrievalService

__all__ = ["RetrievalService"]
