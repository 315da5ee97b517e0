"""Tests for candidate analysis validation."""

import copy

import pytest

from loan_intake.analysis.validator import validate_analysis
from loan_intake.exceptions import ValidationError
from loan_intake.models import AnalysisResult
from tests.fakes import VALID_CANDIDATE, make_candidate

CREDIT_SCORE = 720


def _rejects(candidate: dict, field: str) -> ValidationError:
    with pytest.raises(ValidationError) as exc_info:
        validate_analysis(candidate, CREDIT_SCORE)
    assert exc_info.value.field == field
    return exc_info.value


class TestConsistentCandidate:
    def test_accepts_consistent_record(self) -> None:
        result = validate_analysis(make_candidate(), CREDIT_SCORE)
        assert isinstance(result, AnalysisResult)
        assert result.loan_eligibility.max_loan_amount == 2500000
        assert result.credit_analysis.credit_score == 720

    def test_is_deterministic(self) -> None:
        first = validate_analysis(make_candidate(), CREDIT_SCORE)
        second = validate_analysis(make_candidate(), CREDIT_SCORE)
        assert first == second

    def test_does_not_mutate_candidate(self) -> None:
        candidate = make_candidate()
        validate_analysis(candidate, CREDIT_SCORE)
        assert candidate == VALID_CANDIDATE

    def test_accepts_ineligible_applicant(self) -> None:
        candidate = make_candidate(
            loanEligibility={
                "isEligible": False,
                "maxLoanAmount": 0,
                "recommendedLoanAmount": 0,
                "riskLevel": "High",
                "reasonForDecision": "Salary credits missing from bank statements.",
            }
        )
        result = validate_analysis(candidate, CREDIT_SCORE)
        assert result.loan_eligibility.is_eligible is False

    def test_accepts_annual_income_within_tolerance(self) -> None:
        candidate = make_candidate(incomeAnalysis={"annualIncome": 600000.5})
        validate_analysis(candidate, CREDIT_SCORE)

    def test_accepts_max_loan_rounded_up(self) -> None:
        candidate = make_candidate(
            incomeAnalysis={
                "monthlyIncome": 50001,
                "annualIncome": 600012,
                "averageMonthlyIncome": 50001,
            },
            loanEligibility={"maxLoanAmount": 2500100, "recommendedLoanAmount": 2000000},
        )
        validate_analysis(candidate, CREDIT_SCORE)


# ── Presence ─────────────────────────────────────────────────────────────────


class TestPresence:
    def test_missing_section(self) -> None:
        candidate = make_candidate()
        del candidate["creditAnalysis"]
        _rejects(candidate, "creditAnalysis")

    def test_null_field(self) -> None:
        _rejects(make_candidate(personalInfo={"photoUrl": None}), "personalInfo.photoUrl")

    def test_missing_field(self) -> None:
        candidate = copy.deepcopy(VALID_CANDIDATE)
        del candidate["loanEligibility"]["suggestedInterestRate"]
        _rejects(candidate, "loanEligibility.suggestedInterestRate")


# ── Income ───────────────────────────────────────────────────────────────────


class TestIncome:
    def test_annual_income_mismatch(self) -> None:
        error = _rejects(
            make_candidate(incomeAnalysis={"annualIncome": 550000}),
            "incomeAnalysis.annualIncome",
        )
        assert "600000" in error.constraint

    def test_zero_monthly_income(self) -> None:
        candidate = make_candidate(
            incomeAnalysis={"monthlyIncome": 0, "annualIncome": 0},
        )
        _rejects(candidate, "incomeAnalysis.monthlyIncome")

    def test_non_numeric_income(self) -> None:
        _rejects(
            make_candidate(incomeAnalysis={"monthlyIncome": "50,000"}),
            "incomeAnalysis.monthlyIncome",
        )

    def test_infinite_income(self) -> None:
        _rejects(
            make_candidate(incomeAnalysis={"annualIncome": float("inf")}),
            "incomeAnalysis.annualIncome",
        )

    @pytest.mark.parametrize("average", [20000, 80000])
    def test_average_outside_band(self, average: int) -> None:
        _rejects(
            make_candidate(incomeAnalysis={"averageMonthlyIncome": average}),
            "incomeAnalysis.averageMonthlyIncome",
        )

    @pytest.mark.parametrize("average", [25000, 75000])
    def test_average_on_band_edges(self, average: int) -> None:
        validate_analysis(
            make_candidate(incomeAnalysis={"averageMonthlyIncome": average}), CREDIT_SCORE
        )


# ── Eligibility ──────────────────────────────────────────────────────────────


class TestEligibility:
    def test_ineligible_with_positive_max_loan(self) -> None:
        candidate = make_candidate(
            loanEligibility={"isEligible": False, "recommendedLoanAmount": 0}
        )
        _rejects(candidate, "loanEligibility.maxLoanAmount")

    def test_max_loan_above_ceiling(self) -> None:
        _rejects(
            make_candidate(loanEligibility={"maxLoanAmount": 2600000}),
            "loanEligibility.maxLoanAmount",
        )

    def test_recommended_above_max(self) -> None:
        _rejects(
            make_candidate(loanEligibility={"recommendedLoanAmount": 2500100}),
            "loanEligibility.recommendedLoanAmount",
        )

    def test_amount_not_rounded(self) -> None:
        _rejects(
            make_candidate(loanEligibility={"recommendedLoanAmount": 2000050}),
            "loanEligibility.recommendedLoanAmount",
        )

    def test_negative_recommended(self) -> None:
        _rejects(
            make_candidate(loanEligibility={"recommendedLoanAmount": -100}),
            "loanEligibility.recommendedLoanAmount",
        )

    def test_negative_interest_rate(self) -> None:
        _rejects(
            make_candidate(loanEligibility={"suggestedInterestRate": -1}),
            "loanEligibility.suggestedInterestRate",
        )

    def test_eligibility_must_be_boolean(self) -> None:
        _rejects(
            make_candidate(loanEligibility={"isEligible": "yes"}),
            "loanEligibility.isEligible",
        )


# ── Credit score ─────────────────────────────────────────────────────────────


class TestCreditScore:
    def test_mismatch_with_applicant_record(self) -> None:
        candidate = make_candidate(
            creditAnalysis={"creditScore": 750}, personalInfo={"creditScore": 750}
        )
        _rejects(candidate, "creditAnalysis.creditScore")

    def test_personal_info_score_checked(self) -> None:
        _rejects(
            make_candidate(personalInfo={"creditScore": 700}), "personalInfo.creditScore"
        )

    def test_out_of_range(self) -> None:
        candidate = make_candidate(
            creditAnalysis={"creditScore": 950}, personalInfo={"creditScore": 950}
        )
        with pytest.raises(ValidationError) as exc_info:
            validate_analysis(candidate, 950)
        assert exc_info.value.field == "creditAnalysis.creditScore"
        assert "300" in exc_info.value.constraint


# ── Flags, risk level and reason ─────────────────────────────────────────────


class TestVerificationAndRisk:
    def test_pending_flag_rejected(self) -> None:
        _rejects(
            make_candidate(documentVerification={"payslipsVerified": "pending"}),
            "documentVerification.payslipsVerified",
        )

    def test_numeric_flag_rejected(self) -> None:
        _rejects(
            make_candidate(documentVerification={"bankStatementsVerified": 1}),
            "documentVerification.bankStatementsVerified",
        )

    def test_unknown_risk_level(self) -> None:
        _rejects(
            make_candidate(loanEligibility={"riskLevel": "Moderate"}),
            "loanEligibility.riskLevel",
        )

    def test_empty_reason(self) -> None:
        _rejects(
            make_candidate(loanEligibility={"reasonForDecision": "   "}),
            "loanEligibility.reasonForDecision",
        )


class TestSchemaShape:
    def test_unexpected_field_rejected(self) -> None:
        candidate = make_candidate(creditAnalysis={"bureau": "CIBIL"})
        with pytest.raises(ValidationError) as exc_info:
            validate_analysis(candidate, CREDIT_SCORE)
        assert "bureau" in exc_info.value.field
