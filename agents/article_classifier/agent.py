"""
LegalEye Article Classifier Agent

This agent classifies ONE article of a legal basis against ONE requirement.
It is the unit of AI work in a requirement identification run: the pipeline
calls it once per (requirement, legal basis, article) that has no
classification yet.

CLASSIFICATION:
  - Obligatorio: the article itself imposes the obligation described by
    the requirement's mandatory text
  - Complementario: the article details, conditions or supports the
    requirement without imposing it
  - General: the article is unrelated or only tangentially related

OUTPUT:
  - ArticleClassificationOutput {classification, score 0-100}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from agents.base import BaseAgent
from shared.models import (
    Article,
    ArticleClassificationOutput,
    IntelligenceLevel,
    Requirement,
)


@dataclass
class ArticleClassificationInput:
    """Input to the Article Classifier Agent."""

    article: Article
    requirement: Requirement
    intelligence_level: Optional[IntelligenceLevel] = None


class ArticleClassifierAgent(BaseAgent[ArticleClassificationInput, ArticleClassificationOutput]):
    """
    Article Classifier Agent.

    Presents the requirement's mandatory and complementary texts together
    with the article and asks for a classification and a relevance score.
    """

    @property
    def name(self) -> str:
        return "article_classifier"

    def _get_system_prompt(self) -> str:
        return """You are a legal expert in environmental, labor and safety compliance.

Your task is to decide how ONE article of a legal basis relates to ONE compliance requirement.

CLASSIFICATION RULES:

1. Obligatorio
   - The article directly establishes the obligation described in the
     requirement's MANDATORY text (who must do what).

2. Complementario
   - The article does not impose the obligation by itself but details,
     conditions, or supports it (procedures, deadlines, formats, exceptions),
     in line with the requirement's COMPLEMENTARY text.

3. General
   - The article is unrelated to the requirement, or only mentions the
     topic without adding anything needed to comply.

SCORE:
  - An integer 0-100 measuring how relevant the article is to the requirement.
  - Obligatorio articles should normally score highest.

OUTPUT: Return a JSON object with these fields:
- classification: "Obligatorio" | "Complementario" | "General"
- score: integer 0-100"""

    async def run(self, input_data: ArticleClassificationInput) -> ArticleClassificationOutput:
        """
        Classify the article against the requirement.

        Args:
            input_data: Article, requirement and intelligence level

        Returns:
            ArticleClassificationOutput

        Raises:
            ClassificationError: if the call fails or the reply is invalid
        """
        model = self.config.model_for(input_data.intelligence_level)
        return await self._request_structured(
            model,
            self._build_prompt(input_data.article, input_data.requirement),
            ArticleClassificationOutput,
            input_summary=(
                f"Requirement {input_data.requirement.requirement_number}, "
                f"article {input_data.article.id}"
            ),
        )

    def _build_prompt(self, article: Article, requirement: Requirement) -> str:
        return f"""Classify this article against the requirement.

### REQUIREMENT ###
Number: {requirement.requirement_number}
Name: {requirement.requirement_name}

Mandatory description: {requirement.mandatory_description}
Mandatory sentences: {requirement.mandatory_sentences}
Mandatory keywords: {requirement.mandatory_keywords}

Complementary description: {requirement.complementary_description}
Complementary sentences: {requirement.complementary_sentences}
Complementary keywords: {requirement.complementary_keywords}

### ARTICLE ###
ID: {article.id}
Title: {article.article_name}
Description: {article.text}"""
