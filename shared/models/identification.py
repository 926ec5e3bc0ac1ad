"""
Pydantic Models for Requirement Identification Runs

A RequirementIdentification is the aggregate root of one run. The pipeline
persists a classification graph under it, one row per tuple key:

  RequirementLink        (identification, requirement)
  LegalBasisLink         (identification, requirement, legal basis)
  ArticleLink            (identification, requirement, legal basis, article)
  RequirementTypeLink    (identification, requirement, requirement type)
  LegalVerbLink          (identification, requirement, legal verb)

Every link is append-only and created at most once per key, so replaying a
job converges to the same graph.
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .classification import ArticleClassification
from .legal import LegalBasis
from .requirements import Requirement


class IdentificationStatus(str, Enum):
    """Status of a requirement identification."""
    ACTIVE = "Active"
    COMPLETED = "Completed"
    FAILED = "Failed"


class IntelligenceLevel(str, Enum):
    """Selects the model tier used for classification."""
    HIGH = "High"
    LOW = "Low"

    @classmethod
    def coerce(cls, value: Any) -> Optional["IntelligenceLevel"]:
        """HIGH selects the stronger tier; any other value falls back to LOW."""
        if value is None or isinstance(value, cls):
            return value
        return cls.HIGH if value == cls.HIGH.value else cls.LOW


class RequirementIdentification(BaseModel):
    """One identification run, owned by a user."""
    id: int
    name: str
    description: Optional[str] = None
    user_id: int
    status: IdentificationStatus = IdentificationStatus.ACTIVE
    created_at: datetime = Field(default_factory=datetime.now)


class RequirementLink(BaseModel):
    req_identification_id: int
    requirement_id: int
    requirement_name: str


class LegalBasisLink(BaseModel):
    req_identification_id: int
    requirement_id: int
    legal_basis_id: int


class ArticleLink(BaseModel):
    req_identification_id: int
    requirement_id: int
    legal_basis_id: int
    article_id: int
    classification: ArticleClassification = ArticleClassification.GENERAL
    score: int = 0


class RequirementTypeLink(BaseModel):
    req_identification_id: int
    requirement_id: int
    requirement_type_id: int


class LegalVerbLink(BaseModel):
    req_identification_id: int
    requirement_id: int
    legal_verb_id: int
    translation: str


class IdentificationGraph(BaseModel):
    """All links persisted for one identification."""
    req_identification_id: int
    requirements: List[RequirementLink] = Field(default_factory=list)
    legal_bases: List[LegalBasisLink] = Field(default_factory=list)
    articles: List[ArticleLink] = Field(default_factory=list)
    requirement_types: List[RequirementTypeLink] = Field(default_factory=list)
    legal_verbs: List[LegalVerbLink] = Field(default_factory=list)


class IdentificationJobData(BaseModel):
    """
    Payload of a requirement identification job.

    Serialized with the queue's camelCase keys:
      {reqIdentificationId, legalBases, requirements, intelligenceLevel}
    """
    model_config = ConfigDict(populate_by_name=True)

    req_identification_id: int = Field(alias="reqIdentificationId")
    legal_bases: List[LegalBasis] = Field(default_factory=list, alias="legalBases")
    requirements: List[Requirement] = Field(default_factory=list)
    intelligence_level: Optional[IntelligenceLevel] = Field(default=None, alias="intelligenceLevel")

    @field_validator("intelligence_level", mode="before")
    @classmethod
    def coerce_intelligence_level(cls, v: Any) -> Optional[IntelligenceLevel]:
        return IntelligenceLevel.coerce(v)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class IdentificationSummary(BaseModel):
    """Counts reported in the completion notification."""
    legal_basis_count: int = 0
    article_count: int = 0
    requirement_count: int = 0
    failed_articles: int = 0
    failed_steps: int = 0
