"""
Structured Model Outputs

Schemas requested from the language model. Each call asks for a JSON
response matching one of these models and validates the reply against it;
a reply that does not validate is a terminal error for that call.
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class ArticleClassification(str, Enum):
    """Verdict for one article relative to one requirement."""
    OBLIGATORIO = "Obligatorio"
    COMPLEMENTARIO = "Complementario"
    GENERAL = "General"


class ArticleClassificationOutput(BaseModel):
    """Output of the article classifier."""

    classification: ArticleClassification = Field(
        description="Obligatorio if the article imposes the requirement, Complementario if it "
                    "supports or details it, General otherwise."
    )
    score: int = Field(
        ge=0,
        le=100,
        description="Relevance of the article to the requirement, 0-100."
    )


class RequirementTypeIdentifiers(BaseModel):
    """Output of the requirement-type identifier."""

    requirement_type_ids: List[int] = Field(
        ...,
        description="IDs of the requirement types supported by the articles. Empty if none."
    )


class LegalVerbTranslation(BaseModel):
    """One rephrasing of a requirement using one legal verb."""

    legal_verb_id: int
    translation: str = Field(min_length=1)


class LegalVerbTranslations(BaseModel):
    """Output of the legal-verb translator."""

    translations: List[LegalVerbTranslation] = Field(...)
