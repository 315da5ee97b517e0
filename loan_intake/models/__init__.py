"""Data models for the loan intake application."""

from loan_intake.models.analysis import (
    AnalysisResult,
    CreditAnalysis,
    DocumentVerification,
    IncomeAnalysis,
    LoanAnalysis,
    LoanEligibility,
    PersonalInfo,
)
from loan_intake.models.application import (
    ApplicantProfile,
    ApplicationDocuments,
    DocumentRef,
    LoanApplication,
)
from loan_intake.models.chunk import Chunk, UploadedFile
from loan_intake.models.results import (
    ChunkOutcome,
    CleanupReport,
    FileIngestionResult,
    IndexMatch,
    IngestionReport,
    QuestionAnswer,
    RetrievedContext,
)

__all__ = [
    "AnalysisResult",
    "ApplicantProfile",
    "ApplicationDocuments",
    "Chunk",
    "ChunkOutcome",
    "CleanupReport",
    "CreditAnalysis",
    "DocumentRef",
    "DocumentVerification",
    "FileIngestionResult",
    "IncomeAnalysis",
    "IndexMatch",
    "IngestionReport",
    "LoanAnalysis",
    "LoanApplication",
    "LoanEligibility",
    "PersonalInfo",
    "QuestionAnswer",
    "RetrievedContext",
    "UploadedFile",
]
