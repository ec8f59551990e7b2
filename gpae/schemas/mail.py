"""Schemas for the admin bulk mail."""

from pydantic import AliasChoices, Field

from .base import StandardizedModel


class BulkMailRequest(StandardizedModel):
    subject: str = Field(..., min_length=1, max_length=255, validation_alias=AliasChoices("subject", "sujet"))
    message: str = Field(..., min_length=1)


class BulkMailResponse(StandardizedModel):
    message: str
    count: int
