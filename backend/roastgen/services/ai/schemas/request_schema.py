"""
Generation request schema.
"""
from enum import Enum

from pydantic import BaseModel, Field


class OutputMode(str, Enum):
    """Output shape hint for the remote service."""

    TEXT = "text"
    JSON = "json"


class GenerationRequest(BaseModel):
    """
    One logical generation request.

    The prompt is opaque to the client. expected_count is advisory only.
    """

    prompt: str = Field(..., min_length=1)
    temperature: float = Field(default=1.3, ge=0.0, le=2.0)
    output_mode: OutputMode = OutputMode.TEXT
    expected_count: int = Field(default=5, ge=0)


__all__ = [
    "OutputMode",
    "GenerationRequest",
]
