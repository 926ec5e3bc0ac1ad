"""
LegalEye Requirement Types Agent

Given the top mandatory articles of a requirement and the full requirement
type catalog, identifies which requirement types are supported by the
articles. An empty answer is valid.

Ids not present in the supplied catalog are dropped and duplicates are
collapsed, keeping the model's order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from agents.base import BaseAgent
from shared.models import (
    Article,
    IntelligenceLevel,
    RequirementType,
    RequirementTypeIdentifiers,
)


@dataclass
class RequirementTypesInput:
    """Input to the Requirement Types Agent."""

    articles: list[Article]
    requirement_types: list[RequirementType]
    intelligence_level: Optional[IntelligenceLevel] = None


class RequirementTypesAgent(BaseAgent[RequirementTypesInput, list[int]]):
    """Requirement Types Agent - labels a requirement from its mandatory articles."""

    @property
    def name(self) -> str:
        return "requirement_types"

    def _get_system_prompt(self) -> str:
        return (
            "You are a legal expert in normative classification. "
            "Your task is to analyze a list of legal articles and identify which requirement types "
            "from a given list match their content. "
            "Return an array of the matching requirement type IDs. "
            "If no requirement type matches any article, return an empty array []. "
            "Each requirement type includes a description and classification guidelines to help you decide."
        )

    async def run(self, input_data: RequirementTypesInput) -> list[int]:
        """
        Identify requirement types supported by the articles.

        Returns:
            Requirement type ids from the catalog, deduplicated
        """
        model = self.config.model_for(input_data.intelligence_level)
        output = await self._request_structured(
            model,
            self._build_prompt(input_data.articles, input_data.requirement_types),
            RequirementTypeIdentifiers,
            input_summary=f"{len(input_data.articles)} articles, {len(input_data.requirement_types)} types",
        )

        known_ids = {rt.id for rt in input_data.requirement_types}
        identified: list[int] = []
        for type_id in output.requirement_type_ids:
            if type_id in known_ids and type_id not in identified:
                identified.append(type_id)
            elif type_id not in known_ids:
                self.logger.warning(f"Dropping unknown requirement type id {type_id}")
        return identified

    def _build_prompt(self, articles: list[Article], requirement_types: list[RequirementType]) -> str:
        articles_info = "\n".join(
            f"ID: {article.id}\nTitle: {article.article_name}\nDescription: {article.text}\n"
            for article in articles
        )
        requirement_types_info = "\n".join(
            f"ID: {rt.id}\nName: {rt.name}\nDescription: {rt.description}\n"
            f"Classification Guidelines: {rt.classification}\n"
            for rt in requirement_types
        )

        return f"""You are tasked with classifying the following legal articles according to predefined requirement types.

Each requirement type includes a description and classification criteria. Your goal is to analyze the articles
and determine which requirement types are reasonably supported by their content.

### INSTRUCTIONS ###
- Analyze the entire list of articles.
- Return the IDs of all requirement types that are clearly supported by the articles in "requirement_type_ids".
- If no requirement type is appropriate, return an empty array [].
- Do not include duplicate IDs.
- Focus on the relevance of article content to the classification guidelines.

### REQUIREMENT TYPES ###
{requirement_types_info}

### ARTICLES ###
{articles_info}"""
