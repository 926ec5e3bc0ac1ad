"""
LegalEye Legal Verbs Agent

Translates a requirement into legal-verb phrasings.
"""

from .agent import LegalVerbsAgent, LegalVerbsInput

__all__ = ["LegalVerbsAgent", "LegalVerbsInput"]
