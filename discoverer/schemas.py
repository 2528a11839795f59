"""
Address Discoverer - Pydantic Data Schemas

Candidate records produced by the extraction core, plus the name split
returned by chunk handlers. Scores are derived from populated fields so a
record with first name, last name and address always outranks one missing
any of them.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator


# Field weights for the completeness score.
FIRST_NAME_WEIGHT = 2
LAST_NAME_WEIGHT = 3
ADDRESS_WEIGHT = 5
TITLE_WEIGHT = 1


class ContactKind(str, Enum):
    """Kinds of contact address we resolve."""
    EMAIL = "email"
    WEB = "web"


class ParsedName(BaseModel):
    """Result of splitting one text chunk into name fields."""
    first_name: str = Field(default="", description="Given name(s)")
    last_name: str = Field(default="", description="Family name(s)")
    title: str = Field(default="", description="Leading honorific, e.g. 'Dr.'")
    rest: str = Field(default="", description="Residual text not used for the name")
    strategy: str = Field(default="", description="Chunk handler that produced the split")

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    @property
    def score(self) -> int:
        score = 0
        if self.first_name:
            score += FIRST_NAME_WEIGHT
        if self.last_name:
            score += LAST_NAME_WEIGHT
        if self.title:
            score += TITLE_WEIGHT
        return score


class CandidateRecord(BaseModel):
    """
    One extracted personal contact.

    `score` is computed in model_post_init and is never supplied by callers.
    """
    first_name: str = Field(default="", description="Given name(s)")
    last_name: str = Field(default="", description="Family name(s)")
    title: str = Field(default="", description="Leading honorific")
    address: str = Field(default="", description="Email address or web address")
    address_kind: Optional[ContactKind] = Field(default=None, description="Kind of `address`")
    link_url: Optional[str] = Field(default=None, description="Detail page the address was read from")
    rest: str = Field(default="", description="Unmatched residual text")
    original_text: str = Field(default="", description="Text of the region the record came from")
    strategy: str = Field(default="", description="Strategy tag that produced the record")
    score: int = Field(default=0, ge=0, description="Deterministic completeness score")

    @field_validator("first_name", "last_name", "title", "address", "rest", "original_text", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        """Collapse whitespace runs; None becomes empty."""
        if v is None:
            return ""
        return " ".join(v.split()) if isinstance(v, str) else v

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    def model_post_init(self, __context) -> None:
        score = 0
        if self.first_name:
            score += FIRST_NAME_WEIGHT
        if self.last_name:
            score += LAST_NAME_WEIGHT
        if self.address:
            score += ADDRESS_WEIGHT
        if self.title:
            score += TITLE_WEIGHT
        self.score = score

    def to_export_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data["full_name"] = self.full_name
        return data


class UnparsableRecord(BaseModel):
    """Placeholder emitted for a region no strategy could parse."""
    original_text: str = Field(..., description="Text of the region")
    reason: str = Field(default="", description="Why the region could not be parsed")
    strategy: str = Field(default="unparsable")
    score: int = Field(default=0)

    def to_export_dict(self) -> dict:
        return self.model_dump(mode="json")


ExtractionResult = Union[CandidateRecord, UnparsableRecord]
