"""
LegalEye Requirement Types Agent

Identifies requirement types supported by a requirement's mandatory articles.
"""

from .agent import RequirementTypesAgent, RequirementTypesInput

__all__ = ["RequirementTypesAgent", "RequirementTypesInput"]
