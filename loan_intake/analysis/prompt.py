"""Prompt construction for the loan analysis model call."""

from loan_intake.models.application import LoanApplication

SCHEMA_NAME = "loan_analysis_schema"

SYSTEM_PROMPT_TEMPLATE = """You are a financial analyst AI specialized in loan assessment. EXTRACT EXACT NUMBERS from the documents.

Applicant Profile:
- Name: {name}
- Age: {age}
- Credit Score: {credit_score}
- Photo URL: {photo_url}

STEP BY STEP ANALYSIS REQUIRED:

1. Income Analysis:
- Identify ALL salary/income amounts in the payslips
- monthlyIncome MUST be the latest payslip figure
- averageMonthlyIncome MUST be the mean of the last 3 months' salary
- annualIncome MUST be exactly 12 times monthlyIncome

2. Document Analysis:
- For each payslip, extract the exact amount
- For bank statements, verify regular salary credits
- Cross-verify amounts between payslips and bank statements
- A document is verified ONLY if its amount is clearly visible and matches

3. Loan Amount Calculation:
- If eligible: maxLoanAmount = monthlyIncome * 50
- If eligible: recommendedLoanAmount = maxLoanAmount * 0.8
- If not eligible: maxLoanAmount = 0 and recommendedLoanAmount = 0
- Both amounts MUST be rounded to the nearest 100

4. Verification Rules:
- Each verification flag is true or false. NO PENDING STATUS ALLOWED
- Mark a document verified (true) ONLY if exact amounts are found
- If amounts are unclear or missing, mark it not verified (false)

5. Credit and Risk:
- creditScore MUST equal the applicant's credit score above
- riskLevel MUST be one of: Low, Medium, High
- reasonForDecision MUST explain the eligibility decision

Income Documents Analysis:
{income_context}

Credit Profile Analysis:
{credit_context}

Identity Verification Records:
{identity_context}

Provide ALL numbers exactly as found in the documents with no modifications."""

USER_PROMPT = "Analyze this application and provide the JSON response."


def build_messages(
    application: LoanApplication, contexts: dict[str, str]
) -> list[dict[str, str]]:
    """Build the chat messages for one analysis pass.

    Args:
        application: The application being analysed.
        contexts: Retrieved text keyed by topic (income, credit, identity).

    Returns:
        System and user messages.
    """
    profile = application.profile
    system_prompt = SYSTEM_PROMPT_TEMPLATE.format(
        name=profile.name,
        age=profile.age,
        credit_score=profile.credit_score,
        photo_url=profile.photo_url or "not provided",
        income_context=contexts.get("income") or "(no income documents found)",
        credit_context=contexts.get("credit") or "(no credit documents found)",
        identity_context=contexts.get("identity") or "(no identity documents found)",
    )
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": USER_PROMPT},
    ]


ANSWER_PROMPT_TEMPLATE = (
    "You are an intelligent assistant and you answer the user's questions in "
    "not more than {max_words} words based on the existing content. "
    "The relevant content for this query is:\n{context}"
)


def build_answer_messages(
    question: str, context: str, max_words: int = 40
) -> list[dict[str, str]]:
    """Build the chat messages for a short free-text answer."""
    system_prompt = ANSWER_PROMPT_TEMPLATE.format(
        max_words=max_words, context=context or "(no relevant documents found)"
    )
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": question},
    ]
