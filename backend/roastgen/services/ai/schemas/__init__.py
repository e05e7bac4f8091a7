"""
AI Service Schemas Module

This module exports all Pydantic schemas for AI services.
"""
from .roast_schema import new_record_id, RoastPayload, SourceCitation, Roast
from .request_schema import OutputMode, GenerationRequest

__all__ = [
    # Records
    "new_record_id",
    "RoastPayload",
    "SourceCitation",
    "Roast",
    # Requests
    "OutputMode",
    "GenerationRequest",
]
