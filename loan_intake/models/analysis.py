"""Loan analysis data models.

``AnalysisResult`` is the contract the language model must fill in. Field
names are snake_case in Python and camelCase on the wire, and the JSON schema
sent to the model is generated from these classes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, StrictBool
from pydantic.alias_generators import to_camel

RiskLevel = Literal["Low", "Medium", "High"]
AnalysisStatus = Literal["completed", "failed"]


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class PersonalInfo(_WireModel):
    """Echo of the applicant profile."""

    name: str
    age: int
    credit_score: float
    photo_url: str


class IncomeAnalysis(_WireModel):
    """Income figures derived from payslips and bank statements."""

    monthly_income: float
    annual_income: float
    income_stability: str
    average_monthly_income: float


class CreditAnalysis(_WireModel):
    """Credit history assessment."""

    credit_score: float
    credit_history: str
    credit_risk: str


class LoanEligibility(_WireModel):
    """Eligibility decision and loan amounts."""

    is_eligible: StrictBool
    max_loan_amount: float
    recommended_loan_amount: float
    risk_level: RiskLevel
    reason_for_decision: str
    suggested_interest_rate: float


class DocumentVerification(_WireModel):
    """Verification flags. Strictly true or false, never pending."""

    payslips_verified: StrictBool
    bank_statements_verified: StrictBool
    identity_documents_verified: StrictBool


class AnalysisResult(_WireModel):
    """The structured verdict for one application."""

    personal_info: PersonalInfo
    income_analysis: IncomeAnalysis
    credit_analysis: CreditAnalysis
    loan_eligibility: LoanEligibility
    document_verification: DocumentVerification


class LoanAnalysis(BaseModel):
    """A persisted analysis pass.

    Completed records carry a validated ``analysis``. Failed records carry
    only the failing stage and reason, never the rejected model output.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    application_id: str
    analysis: AnalysisResult | None = None
    status: AnalysisStatus = "completed"
    failure_stage: str | None = None
    failure_reason: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)


def analysis_json_schema() -> dict:
    """JSON schema of ``AnalysisResult`` with camelCase property names."""
    return AnalysisResult.model_json_schema(by_alias=True)
