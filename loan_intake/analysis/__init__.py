"""Analysis generation, validation and question answering."""

from loan_intake.analysis.answerer import QuestionAnswerer
from loan_intake.analysis.generator import AnalysisGenerator
from loan_intake.analysis.validator import validate_analysis

__all__ = ["AnalysisGenerator", "QuestionAnswerer", "validate_analysis"]
