"""
Classifier Client

Groups the three classifier agents behind one object so the pipeline
depends on a single collaborator:

  classify_article(article, requirement, level)        → {classification, score}
  identify_requirement_types(articles, types, level)   → [requirement_type_id]
  translate_legal_verbs(text, verbs, level)             → [{legal_verb_id, translation}]

All agents share one AgentConfig and one OpenAI client.
"""

from __future__ import annotations

from typing import Optional

from openai import AsyncOpenAI

from shared.models import (
    Article,
    ArticleClassificationOutput,
    IntelligenceLevel,
    LegalVerb,
    LegalVerbTranslation,
    Requirement,
    RequirementType,
)

from .article_classifier import ArticleClassificationInput, ArticleClassifierAgent
from .base import AgentConfig, build_client
from .legal_verbs import LegalVerbsAgent, LegalVerbsInput
from .requirement_types import RequirementTypesAgent, RequirementTypesInput


class ClassifierClient:
    """Facade over the article, requirement-type and legal-verb agents."""

    def __init__(
        self,
        config: Optional[AgentConfig] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.config = config or AgentConfig.from_env()
        client = client or build_client()

        self.article_classifier = ArticleClassifierAgent(config=self.config, client=client)
        self.requirement_types = RequirementTypesAgent(config=self.config, client=client)
        self.legal_verbs = LegalVerbsAgent(config=self.config, client=client)

    async def classify_article(
        self,
        article: Article,
        requirement: Requirement,
        intelligence_level: Optional[IntelligenceLevel] = None,
    ) -> ArticleClassificationOutput:
        return await self.article_classifier.run(
            ArticleClassificationInput(
                article=article,
                requirement=requirement,
                intelligence_level=intelligence_level,
            )
        )

    async def identify_requirement_types(
        self,
        articles: list[Article],
        requirement_types: list[RequirementType],
        intelligence_level: Optional[IntelligenceLevel] = None,
    ) -> list[int]:
        return await self.requirement_types.run(
            RequirementTypesInput(
                articles=articles,
                requirement_types=requirement_types,
                intelligence_level=intelligence_level,
            )
        )

    async def translate_legal_verbs(
        self,
        requirement_text: str,
        legal_verbs: list[LegalVerb],
        intelligence_level: Optional[IntelligenceLevel] = None,
    ) -> list[LegalVerbTranslation]:
        return await self.legal_verbs.run(
            LegalVerbsInput(
                requirement_text=requirement_text,
                legal_verbs=legal_verbs,
                intelligence_level=intelligence_level,
            )
        )
