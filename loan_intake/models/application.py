"""Loan application data models."""

from datetime import datetime
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field

ApplicationStatus = Literal["pending", "analyzed", "rejected"]


class ApplicantProfile(BaseModel):
    """Self-declared applicant details submitted with the documents."""

    name: str
    age: int = Field(gt=0)
    credit_score: int
    email: str
    photo_url: str = ""


class DocumentRef(BaseModel):
    """One uploaded file and the ids of the chunks it produced."""

    file_name: str
    chunk_ids: list[str] = Field(default_factory=list)


class ApplicationDocuments(BaseModel):
    """Document groups attached to an application."""

    payslips: list[DocumentRef] = Field(default_factory=list)
    bank_statements: list[DocumentRef] = Field(default_factory=list)
    pan_card: DocumentRef | None = None
    aadhaar_card: DocumentRef | None = None

    def all_chunk_ids(self) -> list[str]:
        """Every chunk id referenced by any document group, in group order."""
        refs = [*self.payslips, *self.bank_statements]
        if self.pan_card is not None:
            refs.append(self.pan_card)
        if self.aadhaar_card is not None:
            refs.append(self.aadhaar_card)
        return [chunk_id for ref in refs for chunk_id in ref.chunk_ids]


class LoanApplication(BaseModel):
    """A submitted loan application."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    profile: ApplicantProfile
    documents: ApplicationDocuments = Field(default_factory=ApplicationDocuments)
    status: ApplicationStatus = "pending"
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
