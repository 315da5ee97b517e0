"""Completeness and consistency checks for candidate analyses.

``validate_analysis`` is the only path from model output to a persisted
analysis. It is pure: no I/O, no clock, same input gives the same answer.
Checks run in a fixed order and stop at the first violation.
"""

import math
from collections.abc import Mapping
from typing import Any

import pydantic

from loan_intake.exceptions import ValidationError
from loan_intake.models.analysis import AnalysisResult

REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "personalInfo": ("name", "age", "creditScore", "photoUrl"),
    "incomeAnalysis": (
        "monthlyIncome",
        "annualIncome",
        "incomeStability",
        "averageMonthlyIncome",
    ),
    "creditAnalysis": ("creditScore", "creditHistory", "creditRisk"),
    "loanEligibility": (
        "isEligible",
        "maxLoanAmount",
        "recommendedLoanAmount",
        "riskLevel",
        "reasonForDecision",
        "suggestedInterestRate",
    ),
    "documentVerification": (
        "payslipsVerified",
        "bankStatementsVerified",
        "identityDocumentsVerified",
    ),
}

RISK_LEVELS = frozenset({"Low", "Medium", "High"})
MIN_CREDIT_SCORE = 300
MAX_CREDIT_SCORE = 900
ANNUAL_INCOME_TOLERANCE = 1.0
AVERAGE_INCOME_BAND = (0.5, 1.5)
LOAN_TO_MONTHLY_INCOME = 50
ROUNDING_UNIT = 100
# Rounding to the nearest 100 may lift the max loan by up to half a unit.
MAX_LOAN_TOLERANCE = ROUNDING_UNIT / 2


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _finite_number(candidate: Mapping[str, Any], path: str) -> float:
    section, field = path.split(".")
    value = candidate[section][field]
    if not _is_number(value) or not math.isfinite(value):
        raise ValidationError(path, "must be a finite number")
    return float(value)


def _is_multiple_of(amount: float, unit: int) -> bool:
    return math.isclose(amount, round(amount / unit) * unit, abs_tol=1e-6)


def check_presence(candidate: Mapping[str, Any]) -> None:
    for section, fields in REQUIRED_FIELDS.items():
        block = candidate.get(section)
        if not isinstance(block, Mapping):
            raise ValidationError(section, "section is required")
        for field in fields:
            if block.get(field) is None:
                raise ValidationError(f"{section}.{field}", "is required and must not be null")


def check_income(candidate: Mapping[str, Any]) -> None:
    for path in (
        "incomeAnalysis.monthlyIncome",
        "incomeAnalysis.averageMonthlyIncome",
        "incomeAnalysis.annualIncome",
    ):
        if _finite_number(candidate, path) <= 0:
            raise ValidationError(path, "must be greater than 0")


def check_annual_income(candidate: Mapping[str, Any]) -> None:
    monthly = _finite_number(candidate, "incomeAnalysis.monthlyIncome")
    annual = _finite_number(candidate, "incomeAnalysis.annualIncome")
    if abs(annual - monthly * 12) > ANNUAL_INCOME_TOLERANCE:
        raise ValidationError(
            "incomeAnalysis.annualIncome",
            f"must equal monthlyIncome * 12 ({monthly * 12:g}), got {annual:g}",
        )


def check_average_income(candidate: Mapping[str, Any]) -> None:
    monthly = _finite_number(candidate, "incomeAnalysis.monthlyIncome")
    average = _finite_number(candidate, "incomeAnalysis.averageMonthlyIncome")
    low, high = AVERAGE_INCOME_BAND
    if not monthly * low <= average <= monthly * high:
        raise ValidationError(
            "incomeAnalysis.averageMonthlyIncome",
            f"must be within [{low}x, {high}x] of monthlyIncome ({monthly:g}), got {average:g}",
        )


def check_eligibility(candidate: Mapping[str, Any]) -> None:
    eligibility = candidate["loanEligibility"]
    if not isinstance(eligibility["isEligible"], bool):
        raise ValidationError("loanEligibility.isEligible", "must be a boolean")

    monthly = _finite_number(candidate, "incomeAnalysis.monthlyIncome")
    max_loan = _finite_number(candidate, "loanEligibility.maxLoanAmount")
    recommended = _finite_number(candidate, "loanEligibility.recommendedLoanAmount")
    rate = _finite_number(candidate, "loanEligibility.suggestedInterestRate")

    if max_loan < 0:
        raise ValidationError("loanEligibility.maxLoanAmount", "must not be negative")
    if recommended < 0:
        raise ValidationError("loanEligibility.recommendedLoanAmount", "must not be negative")
    if rate < 0:
        raise ValidationError("loanEligibility.suggestedInterestRate", "must not be negative")

    if not eligibility["isEligible"]:
        if max_loan != 0:
            raise ValidationError(
                "loanEligibility.maxLoanAmount", "must be 0 when the applicant is not eligible"
            )
    else:
        ceiling = monthly * LOAN_TO_MONTHLY_INCOME
        if max_loan > ceiling + MAX_LOAN_TOLERANCE:
            raise ValidationError(
                "loanEligibility.maxLoanAmount",
                f"must not exceed monthlyIncome * {LOAN_TO_MONTHLY_INCOME} ({ceiling:g})",
            )
        for path, amount in (
            ("loanEligibility.maxLoanAmount", max_loan),
            ("loanEligibility.recommendedLoanAmount", recommended),
        ):
            if not _is_multiple_of(amount, ROUNDING_UNIT):
                raise ValidationError(path, f"must be a multiple of {ROUNDING_UNIT}")

    if recommended > max_loan:
        raise ValidationError(
            "loanEligibility.recommendedLoanAmount", "must not exceed maxLoanAmount"
        )


def check_credit_score(candidate: Mapping[str, Any], expected_credit_score: float) -> None:
    for path in ("creditAnalysis.creditScore", "personalInfo.creditScore"):
        score = _finite_number(candidate, path)
        if not MIN_CREDIT_SCORE <= score <= MAX_CREDIT_SCORE:
            raise ValidationError(
                path, f"must be within [{MIN_CREDIT_SCORE}, {MAX_CREDIT_SCORE}]"
            )
        if score != expected_credit_score:
            raise ValidationError(
                path, f"must match the applicant's credit score ({expected_credit_score:g})"
            )


def check_verification_flags(candidate: Mapping[str, Any]) -> None:
    for field in REQUIRED_FIELDS["documentVerification"]:
        if not isinstance(candidate["documentVerification"][field], bool):
            raise ValidationError(
                f"documentVerification.{field}", "must be strictly true or false"
            )


def check_risk_level(candidate: Mapping[str, Any]) -> None:
    if candidate["loanEligibility"]["riskLevel"] not in RISK_LEVELS:
        raise ValidationError(
            "loanEligibility.riskLevel", f"must be one of {sorted(RISK_LEVELS)}"
        )


def check_reason(candidate: Mapping[str, Any]) -> None:
    reason = candidate["loanEligibility"]["reasonForDecision"]
    if not isinstance(reason, str) or not reason.strip():
        raise ValidationError("loanEligibility.reasonForDecision", "must not be empty")


def validate_analysis(
    candidate: Mapping[str, Any], expected_credit_score: float
) -> AnalysisResult:
    """Validate a candidate analysis and return it as a typed result.

    Args:
        candidate: Decoded model output with camelCase keys.
        expected_credit_score: The applicant's credit score on record.

    Returns:
        The validated AnalysisResult.

    Raises:
        ValidationError: On the first violated rule, naming the field and
            the constraint.
    """
    check_presence(candidate)
    check_income(candidate)
    check_annual_income(candidate)
    check_average_income(candidate)
    check_eligibility(candidate)
    check_credit_score(candidate, expected_credit_score)
    check_verification_flags(candidate)
    check_risk_level(candidate)
    check_reason(candidate)

    try:
        return AnalysisResult.model_validate(candidate)
    except pydantic.ValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"])
        raise ValidationError(field, error["msg"]) from exc
