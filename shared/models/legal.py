"""
Pydantic Models for Legal Bases and Articles

This module defines the legal-side catalog consumed by the requirement
identification pipeline:
  - Subjects (the regulatory matter, e.g. environmental, labor)
  - Aspects (tags used to match requirements to legal bases within a subject)
  - Legal bases (laws, regulations, norms) with their jurisdiction
  - Articles (segments of a legal basis with descriptive text)

These records are created by the back office (CRUD, article extraction) and
are immutable while an identification run is in progress.
"""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


class Jurisdiction(str, Enum):
    """Jurisdiction of a legal basis."""
    FEDERAL = "Federal"
    ESTATAL = "Estatal"
    LOCAL = "Local"


class Subject(BaseModel):
    """Regulatory subject shared by legal bases and requirements."""
    subject_id: int
    subject_name: str = ""
    abbreviation: Optional[str] = None


class Aspect(BaseModel):
    """
    A tag inside a subject.

    A requirement applies to a legal basis when both share the subject and
    at least one aspect.
    """
    aspect_id: int
    aspect_name: str = ""
    abbreviation: Optional[str] = None


class Article(BaseModel):
    """
    One segment of a legal basis (article, chapter, section or transitory).
    """
    id: int
    legal_basis_id: int
    article_name: str = Field(
        description="Heading of the segment, e.g. 'ARTÍCULO 5'."
    )
    description: str = Field(
        default="",
        description="Text of the segment as stored by the back office (may contain markup)."
    )
    plain_description: Optional[str] = Field(
        default=None,
        description="Plain-text version of the description, used in prompts."
    )
    article_order: int = 0

    @field_validator("article_order", mode="before")
    @classmethod
    def coerce_order_to_int(cls, v: Any) -> int:
        """Convert string to int if needed (rows may carry '3' instead of 3)."""
        if isinstance(v, str):
            return int(v)
        return v

    @property
    def text(self) -> str:
        """Text used when presenting the article to a model."""
        return self.plain_description or self.description


class LegalBasis(BaseModel):
    """
    A regulatory document decomposed into articles.

    Articles are optional on the model: job payloads usually carry the
    legal basis without them and the pipeline fetches them from the store.
    """
    id: int
    legal_name: str
    abbreviation: Optional[str] = None
    classification: Optional[str] = None
    subject: Subject
    aspects: List[Aspect] = Field(default_factory=list)
    jurisdiction: Jurisdiction = Jurisdiction.FEDERAL
    state: Optional[str] = None
    municipality: Optional[str] = None
    articles: List[Article] = Field(default_factory=list)

    @property
    def aspect_ids(self) -> set[int]:
        return {aspect.aspect_id for aspect in self.aspects}
