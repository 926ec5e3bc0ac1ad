"""
LegalEye Legal Verbs Agent

Rephrases a requirement (the concatenated text of its top mandatory
articles) once per legal verb of the catalog, following each verb's
"how translated" guidance.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from agents.base import BaseAgent
from shared.models import (
    IntelligenceLevel,
    LegalVerb,
    LegalVerbTranslation,
    LegalVerbTranslations,
)


@dataclass
class LegalVerbsInput:
    """Input to the Legal Verbs Agent."""

    requirement_text: str
    legal_verbs: list[LegalVerb]
    intelligence_level: Optional[IntelligenceLevel] = None


class LegalVerbsAgent(BaseAgent[LegalVerbsInput, list[LegalVerbTranslation]]):
    """Legal Verbs Agent - one translation of the requirement per legal verb."""

    @property
    def name(self) -> str:
        return "legal_verbs"

    def _get_system_prompt(self) -> str:
        return (
            "You are a legal assistant specializing in regulatory translation. "
            "Your task is to create an individual translation of a given legal requirement "
            "using **each** of the legal verbs from a provided list."
        )

    async def run(self, input_data: LegalVerbsInput) -> list[LegalVerbTranslation]:
        """
        Translate the requirement with each legal verb.

        Returns:
            At most one translation per catalog verb; unknown verb ids are dropped
        """
        model = self.config.model_for(input_data.intelligence_level)
        output = await self._request_structured(
            model,
            self._build_prompt(input_data.requirement_text, input_data.legal_verbs),
            LegalVerbTranslations,
            input_summary=f"{len(input_data.requirement_text)} chars, {len(input_data.legal_verbs)} verbs",
        )

        known_ids = {verb.id for verb in input_data.legal_verbs}
        translations: dict[int, LegalVerbTranslation] = {}
        for item in output.translations:
            if item.legal_verb_id not in known_ids:
                self.logger.warning(f"Dropping translation for unknown legal verb id {item.legal_verb_id}")
                continue
            translations.setdefault(item.legal_verb_id, item)
        return list(translations.values())

    def _build_prompt(self, requirement_text: str, legal_verbs: list[LegalVerb]) -> str:
        legal_verbs_info = "\n".join(
            f"ID: {verb.id}\nVerb: {verb.name}\nDescription: {verb.description}\n"
            f"How translated: {verb.translation}\n"
            for verb in legal_verbs
        )

        return f"""You are given a legal requirement and a list of legal verbs.
Translate the requirement individually using **each** of the provided legal verbs.
Each translation should reflect the logic and intent of the verb while maintaining the original meaning of the requirement.

### INSTRUCTIONS ###
- Analyze the full requirement content.
- For each legal verb, rewrite the requirement using the logic and intent of the verb.
- Return one entry per verb in "translations" with its "legal_verb_id" and "translation".

### LEGAL VERBS ###
{legal_verbs_info}

### REQUIREMENT TO TRANSLATE ###
{requirement_text}"""
