"""
LegalEye Shared Pydantic Models

This package contains all Pydantic models used across the requirement
identification service. Models are organized by purpose:

  - legal.py: subjects, aspects, legal bases and their articles
  - requirements.py: requirements, requirement types, legal verbs
  - classification.py: structured outputs requested from the model
  - identification.py: identification runs, link rows, job payload

Usage:
    from shared.models import (
        LegalBasis, Requirement,
        IdentificationJobData,
        ArticleClassification,
    )
"""

# Legal catalog
from .legal import (
    Article,
    Aspect,
    Jurisdiction,
    LegalBasis,
    Subject,
)

# Requirement catalog
from .requirements import (
    LegalVerb,
    Requirement,
    RequirementType,
)

# Structured model outputs
from .classification import (
    ArticleClassification,
    ArticleClassificationOutput,
    LegalVerbTranslation,
    LegalVerbTranslations,
    RequirementTypeIdentifiers,
)

# Identification runs
from .identification import (
    ArticleLink,
    IdentificationGraph,
    IdentificationJobData,
    IdentificationStatus,
    IdentificationSummary,
    IntelligenceLevel,
    LegalBasisLink,
    LegalVerbLink,
    RequirementIdentification,
    RequirementLink,
    RequirementTypeLink,
)

__all__ = [
    # Legal
    "Article",
    "Aspect",
    "Jurisdiction",
    "LegalBasis",
    "Subject",
    # Requirements
    "LegalVerb",
    "Requirement",
    "RequirementType",
    # Classification
    "ArticleClassification",
    "ArticleClassificationOutput",
    "LegalVerbTranslation",
    "LegalVerbTranslations",
    "RequirementTypeIdentifiers",
    # Identification
    "ArticleLink",
    "IdentificationGraph",
    "IdentificationJobData",
    "IdentificationStatus",
    "IdentificationSummary",
    "IntelligenceLevel",
    "LegalBasisLink",
    "LegalVerbLink",
    "RequirementIdentification",
    "RequirementLink",
    "RequirementTypeLink",
]
