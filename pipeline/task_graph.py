"""
Task Graph Builder

Sizes an identification run before any work is done.

MATCHING RULE:
  A legal basis applies to a requirement when both share the subject and
  their aspect sets intersect. Requirements matching no legal basis are
  dropped from the graph: no link, no task.

TASK COUNT (per matched requirement):
  1                       requirement link
  + |matched legal bases| legal basis links
  + Σ |articles|          article classifications
  + 2                     requirement-type identification, legal-verb translation

REQUIREMENT NAME:
  Abbreviations of the matched legal bases, their subject, their aspects,
  then states, municipalities and the requirement number. Each part is
  trimmed, empty parts are dropped, repeated parts keep their first
  position, and the parts are joined with " - ".
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from shared.models import Article, LegalBasis, Requirement
from storage import LinkStore

NAME_SEPARATOR = " - "

# Tasks per matched requirement besides its legal bases and articles
REQUIREMENT_LINK_TASKS = 1
SUMMARY_TASKS = 2


def match_legal_bases(requirement: Requirement, legal_bases: Iterable[LegalBasis]) -> list[LegalBasis]:
    """Legal bases sharing the requirement's subject and at least one aspect."""
    return [
        legal_basis
        for legal_basis in legal_bases
        if legal_basis.subject.subject_id == requirement.subject.subject_id
        and legal_basis.aspect_ids & requirement.aspect_ids
    ]


def build_requirement_name(requirement: Requirement, legal_bases: list[LegalBasis]) -> str:
    """
    Derive the display name of a requirement link from its matched legal bases.

    Parts, in order and without repeats: legal basis abbreviations, subject
    abbreviations, aspect abbreviations, states, municipalities and finally
    the requirement number, all joined with " - ". Two legal bases "A" and
    "B" on aspect "X" give "A - B - X - REQ-01"; a subject abbreviation "S"
    gives "A - B - S - X - REQ-01".

    Names written in the older format had no legal basis abbreviations and
    joined the values inside each group with ", "; they do not match this one.
    """
    parts: list[Optional[str]] = []
    parts.extend(lb.abbreviation for lb in legal_bases)
    parts.extend(lb.subject.abbreviation for lb in legal_bases)
    parts.extend(aspect.abbreviation for lb in legal_bases for aspect in lb.aspects)
    parts.extend(lb.state for lb in legal_bases)
    parts.extend(lb.municipality for lb in legal_bases)
    parts.append(requirement.requirement_number)

    unique: list[str] = []
    for part in parts:
        text = str(part).strip() if part is not None else ""
        if text and text not in unique:
            unique.append(text)
    return NAME_SEPARATOR.join(unique)


@dataclass
class RequirementTask:
    """All the work for one matched requirement."""

    requirement: Requirement
    legal_bases: list[LegalBasis]
    articles: dict[int, list[Article]] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return build_requirement_name(self.requirement, self.legal_bases)

    def articles_for(self, legal_basis_id: int) -> list[Article]:
        return self.articles.get(legal_basis_id, [])

    @property
    def task_count(self) -> int:
        article_count = sum(len(self.articles_for(lb.id)) for lb in self.legal_bases)
        return REQUIREMENT_LINK_TASKS + len(self.legal_bases) + article_count + SUMMARY_TASKS


@dataclass
class TaskGraph:
    """Matched requirements of a run, in requirement-list order."""

    requirements: list[RequirementTask] = field(default_factory=list)

    @property
    def total_tasks(self) -> int:
        return sum(task.task_count for task in self.requirements)

    @property
    def is_empty(self) -> bool:
        return self.total_tasks == 0


async def build_task_graph(
    requirements: list[Requirement],
    legal_bases: list[LegalBasis],
    store: LinkStore,
) -> TaskGraph:
    """
    Match requirements to legal bases and load the articles of every
    matched legal basis (once per legal basis).

    Args:
        requirements: Requirements of the run, in processing order
        legal_bases: Candidate legal bases
        store: Source of the articles

    Returns:
        TaskGraph with one entry per requirement that matched a legal basis
    """
    graph = TaskGraph()
    articles_cache: dict[int, list[Article]] = {}

    for requirement in requirements:
        matched = match_legal_bases(requirement, legal_bases)
        if not matched:
            continue

        for legal_basis in matched:
            if legal_basis.id not in articles_cache:
                articles_cache[legal_basis.id] = await store.get_articles(legal_basis.id)

        graph.requirements.append(
            RequirementTask(
                requirement=requirement,
                legal_bases=matched,
                articles={lb.id: articles_cache[lb.id] for lb in matched},
            )
        )

    return graph
