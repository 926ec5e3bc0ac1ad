"""
LegalEye Article Classifier Agent

Classifies one legal-basis article against one requirement.
"""

from .agent import ArticleClassificationInput, ArticleClassifierAgent

__all__ = ["ArticleClassificationInput", "ArticleClassifierAgent"]
