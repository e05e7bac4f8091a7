"""
Roast Pydantic Schemas

This module defines the wire schema the generation service is asked to
produce, and the Record type handed to callers.

A Roast is only ever constructed from a fully parsed object, and always
gets a fresh identifier minted here (the service does not supply one).
"""
import math
import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def new_record_id() -> str:
    """Mint a fresh opaque record identifier."""
    return uuid.uuid4().hex


class RoastPayload(BaseModel):
    """
    Wire schema for one generated response.

    Used as the response schema for schema-constrained (JSON mode) calls
    and to validate the single-record response.

    Attributes:
        style: Style label
        content: Generated text
        attackPower: Score in [0, 100]
    """

    style: str = Field(..., min_length=1, description="风格标签")
    content: str = Field(..., min_length=1, description="回复内容")
    attackPower: float = Field(..., ge=0, le=100, description="攻击力 0-100")


class SourceCitation(BaseModel):
    """A (title, reference-uri) citation attached to a record."""

    title: str = ""
    uri: str = Field(..., min_length=1)


class Roast(BaseModel):
    """
    One generated record.

    Attributes:
        id: Opaque identifier minted by the client
        style: Label (free-form short string)
        content: Body text
        attack_power: Score clamped into [0, 100] (wire name: attackPower)
        explanation: Optional explanation
        sources: Optional source citations
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(default_factory=new_record_id)
    style: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    attack_power: int = Field(default=0, alias="attackPower", ge=0, le=100)
    explanation: Optional[str] = None
    sources: List[SourceCitation] = Field(default_factory=list)

    @field_validator("style", "content", mode="before")
    @classmethod
    def strip_text(cls, v):
        """Strip surrounding whitespace; blank strings then fail min_length."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("attack_power", mode="before")
    @classmethod
    def clamp_attack_power(cls, v):
        """
        Coerce the score into an int within [0, 100].

        LLMs occasionally return 120 or "88"; both are clamped rather than
        rejected. Non-numeric values are rejected.
        """
        if v is None:
            return 0
        if isinstance(v, bool):
            raise ValueError("attackPower must be a number")
        if isinstance(v, int):
            # JSON integers are unbounded; float() would overflow
            return max(0, min(100, v))
        if isinstance(v, str):
            v = float(v.strip())
        if not isinstance(v, float) or math.isnan(v):
            raise ValueError(f"attackPower must be a number, got {v!r}")
        if math.isinf(v):
            return 100 if v > 0 else 0
        return max(0, min(100, int(round(v))))

    @field_validator("sources", mode="before")
    @classmethod
    def drop_invalid_sources(cls, v):
        """Keep only citations with a usable uri; a bad citation never sinks the record."""
        if not isinstance(v, list):
            return []
        kept = []
        for item in v:
            if isinstance(item, SourceCitation):
                kept.append(item)
            elif isinstance(item, dict) and isinstance(item.get("uri"), str) and item["uri"].strip():
                title = item.get("title")
                kept.append({"title": title if isinstance(title, str) else "", "uri": item["uri"].strip()})
        return kept

    @classmethod
    def from_payload(cls, data: Any) -> "Roast":
        """
        Build a record from a parsed wire object.

        Any identifier in the payload is ignored; a fresh one is minted.

        Raises:
            ValueError: If data is not an object or lacks style/content
                        (pydantic.ValidationError is a ValueError)
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        fields: Dict[str, Any] = {k: v for k, v in data.items() if k != "id"}
        return cls.model_validate(fields)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize with wire field names."""
        return self.model_dump(by_alias=True)


__all__ = [
    "new_record_id",
    "RoastPayload",
    "SourceCitation",
    "Roast",
]
