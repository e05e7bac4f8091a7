"""
Roastgen - resilient streaming client for short stylized text generation.
"""
from roastgen.services.roast_service import RoastService
from roastgen.services.ai.schemas import Roast
from roastgen.services.ai.errors import GenerationFailedError
from roastgen.enums.roast_style import RoastStyle

__all__ = [
    "RoastService",
    "Roast",
    "GenerationFailedError",
    "RoastStyle",
]
