"""
LegalEye Classifier Agents

This package contains the three classifier agents used by the requirement
identification pipeline and the client that groups them:

  1. ArticleClassifierAgent - article × requirement → classification + score
  2. RequirementTypesAgent - top mandatory articles → requirement type ids
  3. LegalVerbsAgent - requirement text → one phrasing per legal verb

Usage:
    from agents import ClassifierClient

    classifier = ClassifierClient()
    result = await classifier.classify_article(article, requirement, IntelligenceLevel.HIGH)
    print(result.classification, result.score)
"""

from .base import AgentConfig, AgentTrace, BaseAgent, ClassificationError, build_client
from .article_classifier import ArticleClassificationInput, ArticleClassifierAgent
from .requirement_types import RequirementTypesAgent, RequirementTypesInput
from .legal_verbs import LegalVerbsAgent, LegalVerbsInput
from .classifier import ClassifierClient

__all__ = [
    # Base
    "AgentConfig",
    "AgentTrace",
    "BaseAgent",
    "ClassificationError",
    "build_client",
    # Article classification
    "ArticleClassificationInput",
    "ArticleClassifierAgent",
    # Requirement types
    "RequirementTypesAgent",
    "RequirementTypesInput",
    # Legal verbs
    "LegalVerbsAgent",
    "LegalVerbsInput",
    # Client
    "ClassifierClient",
]
