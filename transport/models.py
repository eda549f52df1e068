"""Pydantic models for webhook message responses."""

from typing import List
from pydantic import BaseModel, field_validator


class Attachment(BaseModel):
    """An uploaded attachment."""
    id: str
    filename: str
    url: str
    size: int = 0

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return str(value)


class Message(BaseModel):
    """A webhook message, used both for blob uploads and pointer records."""
    id: str
    content: str = ""
    attachments: List[Attachment] = []

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return str(value)
