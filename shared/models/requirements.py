"""
Pydantic Models for the Requirement Catalog

  - Requirement: a compliance obligation item matched against legal bases
  - RequirementType: a category used to label a requirement from its
    mandatory articles
  - LegalVerb: a canonical compliance-action verb used to rephrase a
    requirement
"""

from typing import List

from pydantic import BaseModel, Field

from .legal import Aspect, Subject


class Requirement(BaseModel):
    """
    A compliance requirement belonging to one subject and a set of aspects.

    The mandatory/complementary texts are presented to the classifier when
    deciding how an article relates to this requirement.
    """
    id: int
    requirement_number: str = Field(
        description="Human-facing number, e.g. 'REQ-01'. Last part of the derived link name."
    )
    requirement_name: str = ""
    subject: Subject
    aspects: List[Aspect] = Field(default_factory=list)

    mandatory_description: str = ""
    complementary_description: str = ""
    mandatory_sentences: str = ""
    complementary_sentences: str = ""
    mandatory_keywords: str = ""
    complementary_keywords: str = ""

    @property
    def aspect_ids(self) -> set[int]:
        return {aspect.aspect_id for aspect in self.aspects}


class RequirementType(BaseModel):
    """Requirement type catalog entry."""
    id: int
    name: str
    description: str = ""
    classification: str = Field(
        default="",
        description="Classification guidelines that tell the model when this type applies."
    )


class LegalVerb(BaseModel):
    """Legal verb catalog entry."""
    id: int
    name: str
    description: str = ""
    translation: str = Field(
        default="",
        description="How a requirement is phrased when using this verb."
    )
