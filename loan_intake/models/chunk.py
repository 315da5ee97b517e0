"""Chunk and upload data models."""

from datetime import datetime

from pydantic import BaseModel, Field


class UploadedFile(BaseModel):
    """A raw file as received from the applicant."""

    file_name: str
    data: bytes


class Chunk(BaseModel):
    """A persisted slice of one file's extracted text.

    ``id`` is assigned by the chunk repository and is also the id of the
    chunk's vector index entry.
    """

    id: str
    file_name: str
    text: str
    sequence_index: int = 0
    created_at: datetime = Field(default_factory=datetime.now)
