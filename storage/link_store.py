"""
Link Store Interface

The persistence collaborator of the identification pipeline. It exposes:

  - read access to the catalog (legal bases, articles, requirements,
    requirement types, legal verbs, user emails)
  - the identification row and its status transitions
  - one conditional insert per link kind

Every `link_*` method is a single conditional insert keyed by the link's
full tuple: it creates the row when absent and returns whether it did.
Implementations must make that decision atomically (unique constraint,
MERGE, or a critical section), so replaying a job converges to the same
graph even when two deliveries of the same job overlap.
"""

from abc import ABC, abstractmethod
from typing import Optional

from shared.models import (
    Article,
    ArticleClassification,
    IdentificationGraph,
    IdentificationStatus,
    LegalBasis,
    LegalVerb,
    LegalVerbTranslation,
    Requirement,
    RequirementIdentification,
    RequirementType,
)


class LinkStore(ABC):
    """Abstract persistence layer for requirement identifications."""

    # ------------------------------------------------------------------
    # Identification
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_identification(self, req_identification_id: int) -> Optional[RequirementIdentification]:
        """Fetch an identification, or None when it does not exist."""

    @abstractmethod
    async def update_identification_status(
        self,
        req_identification_id: int,
        status: IdentificationStatus,
    ) -> bool:
        """Set the status. Returns False when the identification does not exist."""

    @abstractmethod
    async def identification_name_exists(self, name: str) -> bool:
        pass

    @abstractmethod
    async def create_identification(
        self,
        name: str,
        description: Optional[str],
        user_id: int,
    ) -> RequirementIdentification:
        """Create an identification with status Active."""

    @abstractmethod
    async def get_user_email(self, user_id: int) -> Optional[str]:
        pass

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    @abstractmethod
    async def find_legal_bases(self, legal_basis_ids: list[int]) -> list[LegalBasis]:
        """Fetch legal bases by id; unknown ids are left out of the result."""

    @abstractmethod
    async def legal_basis_exists(self, legal_basis_id: int) -> bool:
        pass

    @abstractmethod
    async def find_requirements(self, subject_id: int, aspect_ids: list[int]) -> list[Requirement]:
        """Requirements of a subject sharing at least one of the aspects, ordered by id."""

    @abstractmethod
    async def requirement_exists(self, requirement_id: int) -> bool:
        pass

    @abstractmethod
    async def get_articles(self, legal_basis_id: int) -> list[Article]:
        """Articles of a legal basis in article order."""

    @abstractmethod
    async def get_requirement_types(self) -> list[RequirementType]:
        pass

    @abstractmethod
    async def get_legal_verbs(self) -> list[LegalVerb]:
        pass

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    @abstractmethod
    async def link_requirement(
        self,
        req_identification_id: int,
        requirement_id: int,
        requirement_name: str,
    ) -> bool:
        """Create the requirement link if absent. Returns True when created."""

    @abstractmethod
    async def link_legal_basis(
        self,
        req_identification_id: int,
        requirement_id: int,
        legal_basis_id: int,
    ) -> bool:
        """Create the legal basis link if absent. Returns True when created."""

    @abstractmethod
    async def has_article_link(
        self,
        req_identification_id: int,
        requirement_id: int,
        legal_basis_id: int,
        article_id: int,
    ) -> bool:
        """Whether the article was already classified in this identification."""

    @abstractmethod
    async def link_article(
        self,
        req_identification_id: int,
        requirement_id: int,
        legal_basis_id: int,
        article_id: int,
        classification: ArticleClassification = ArticleClassification.GENERAL,
        score: int = 0,
    ) -> bool:
        """Create the article classification link if absent. Returns True when created."""

    @abstractmethod
    async def link_requirement_types(
        self,
        req_identification_id: int,
        requirement_id: int,
        requirement_type_ids: list[int],
    ) -> int:
        """Create missing requirement type links. Returns the number created."""

    @abstractmethod
    async def link_legal_verbs(
        self,
        req_identification_id: int,
        requirement_id: int,
        translations: list[LegalVerbTranslation],
    ) -> int:
        """Create missing legal verb links. Returns the number created."""

    @abstractmethod
    async def get_top_mandatory_articles(
        self,
        req_identification_id: int,
        requirement_id: int,
        limit: int,
    ) -> list[Article]:
        """
        Articles linked as Obligatorio for the requirement, best score first.

        Ties are broken by article order.
        """

    @abstractmethod
    async def get_links(self, req_identification_id: int) -> IdentificationGraph:
        """Every link persisted for an identification."""

    async def close(self) -> None:
        """Release resources held by the store."""
