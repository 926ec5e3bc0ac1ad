"""
In-Memory Link Store

Keeps the catalog and the link graph in dictionaries keyed by each row's
full tuple. Used by the tests and for local runs without Neo4j.

None of the methods awaits between its check and its write, so every
conditional insert is atomic with respect to other coroutines on the same
event loop.
"""

import logging
from datetime import datetime
from typing import Optional

from shared.models import (
    Article,
    ArticleClassification,
    ArticleLink,
    IdentificationGraph,
    IdentificationStatus,
    LegalBasis,
    LegalBasisLink,
    LegalVerb,
    LegalVerbLink,
    LegalVerbTranslation,
    Requirement,
    RequirementIdentification,
    RequirementLink,
    RequirementType,
    RequirementTypeLink,
)

from .link_store import LinkStore

logger = logging.getLogger(__name__)


class InMemoryLinkStore(LinkStore):
    """
    Dictionary-backed LinkStore.

    Catalog rows are seeded with the `add_*` methods.
    """

    def __init__(self):
        self.identifications: dict[int, RequirementIdentification] = {}
        self.user_emails: dict[int, str] = {}
        self.legal_bases: dict[int, LegalBasis] = {}
        self.articles: dict[int, list[Article]] = {}
        self.requirements: dict[int, Requirement] = {}
        self.requirement_types: dict[int, RequirementType] = {}
        self.legal_verbs: dict[int, LegalVerb] = {}

        self.requirement_links: dict[tuple[int, int], RequirementLink] = {}
        self.legal_basis_links: dict[tuple[int, int, int], LegalBasisLink] = {}
        self.article_links: dict[tuple[int, int, int, int], ArticleLink] = {}
        self.requirement_type_links: dict[tuple[int, int, int], RequirementTypeLink] = {}
        self.legal_verb_links: dict[tuple[int, int, int], LegalVerbLink] = {}

        self._next_identification_id = 1

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def add_user(self, user_id: int, email: str) -> None:
        self.user_emails[user_id] = email

    def add_legal_basis(self, legal_basis: LegalBasis, articles: Optional[list[Article]] = None) -> None:
        """Add a legal basis; its articles come from `articles` or the model itself."""
        self.legal_bases[legal_basis.id] = legal_basis.model_copy(update={"articles": []})
        self.articles[legal_basis.id] = list(articles if articles is not None else legal_basis.articles)

    def add_requirement(self, requirement: Requirement) -> None:
        self.requirements[requirement.id] = requirement

    def add_requirement_type(self, requirement_type: RequirementType) -> None:
        self.requirement_types[requirement_type.id] = requirement_type

    def add_legal_verb(self, legal_verb: LegalVerb) -> None:
        self.legal_verbs[legal_verb.id] = legal_verb

    def add_identification(self, identification: RequirementIdentification) -> None:
        self.identifications[identification.id] = identification
        self._next_identification_id = max(self._next_identification_id, identification.id + 1)

    # ------------------------------------------------------------------
    # Identification
    # ------------------------------------------------------------------

    async def get_identification(self, req_identification_id: int) -> Optional[RequirementIdentification]:
        return self.identifications.get(req_identification_id)

    async def update_identification_status(
        self,
        req_identification_id: int,
        status: IdentificationStatus,
    ) -> bool:
        identification = self.identifications.get(req_identification_id)
        if identification is None:
            return False
        identification.status = status
        return True

    async def identification_name_exists(self, name: str) -> bool:
        return any(ri.name == name for ri in self.identifications.values())

    async def create_identification(
        self,
        name: str,
        description: Optional[str],
        user_id: int,
    ) -> RequirementIdentification:
        identification = RequirementIdentification(
            id=self._next_identification_id,
            name=name,
            description=description,
            user_id=user_id,
            status=IdentificationStatus.ACTIVE,
            created_at=datetime.now(),
        )
        self._next_identification_id += 1
        self.identifications[identification.id] = identification
        logger.debug(f"Created identification {identification.id} '{name}'")
        return identification

    async def get_user_email(self, user_id: int) -> Optional[str]:
        return self.user_emails.get(user_id)

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def find_legal_bases(self, legal_basis_ids: list[int]) -> list[LegalBasis]:
        return [self.legal_bases[lb_id] for lb_id in legal_basis_ids if lb_id in self.legal_bases]

    async def legal_basis_exists(self, legal_basis_id: int) -> bool:
        return legal_basis_id in self.legal_bases

    async def find_requirements(self, subject_id: int, aspect_ids: list[int]) -> list[Requirement]:
        wanted = set(aspect_ids)
        return [
            requirement
            for _, requirement in sorted(self.requirements.items())
            if requirement.subject.subject_id == subject_id and requirement.aspect_ids & wanted
        ]

    async def requirement_exists(self, requirement_id: int) -> bool:
        return requirement_id in self.requirements

    async def get_articles(self, legal_basis_id: int) -> list[Article]:
        return sorted(self.articles.get(legal_basis_id, []), key=lambda a: (a.article_order, a.id))

    async def get_requirement_types(self) -> list[RequirementType]:
        return [rt for _, rt in sorted(self.requirement_types.items())]

    async def get_legal_verbs(self) -> list[LegalVerb]:
        return [verb for _, verb in sorted(self.legal_verbs.items())]

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    async def link_requirement(
        self,
        req_identification_id: int,
        requirement_id: int,
        requirement_name: str,
    ) -> bool:
        key = (req_identification_id, requirement_id)
        if key in self.requirement_links:
            return False
        self.requirement_links[key] = RequirementLink(
            req_identification_id=req_identification_id,
            requirement_id=requirement_id,
            requirement_name=requirement_name,
        )
        return True

    async def link_legal_basis(
        self,
        req_identification_id: int,
        requirement_id: int,
        legal_basis_id: int,
    ) -> bool:
        key = (req_identification_id, requirement_id, legal_basis_id)
        if key in self.legal_basis_links:
            return False
        self.legal_basis_links[key] = LegalBasisLink(
            req_identification_id=req_identification_id,
            requirement_id=requirement_id,
            legal_basis_id=legal_basis_id,
        )
        return True

    async def has_article_link(
        self,
        req_identification_id: int,
        requirement_id: int,
        legal_basis_id: int,
        article_id: int,
    ) -> bool:
        return (req_identification_id, requirement_id, legal_basis_id, article_id) in self.article_links

    async def link_article(
        self,
        req_identification_id: int,
        requirement_id: int,
        legal_basis_id: int,
        article_id: int,
        classification: ArticleClassification = ArticleClassification.GENERAL,
        score: int = 0,
    ) -> bool:
        key = (req_identification_id, requirement_id, legal_basis_id, article_id)
        if key in self.article_links:
            return False
        self.article_links[key] = ArticleLink(
            req_identification_id=req_identification_id,
            requirement_id=requirement_id,
            legal_basis_id=legal_basis_id,
            article_id=article_id,
            classification=classification,
            score=score,
        )
        return True

    async def link_requirement_types(
        self,
        req_identification_id: int,
        requirement_id: int,
        requirement_type_ids: list[int],
    ) -> int:
        created = 0
        for type_id in requirement_type_ids:
            key = (req_identification_id, requirement_id, type_id)
            if key in self.requirement_type_links:
                continue
            self.requirement_type_links[key] = RequirementTypeLink(
                req_identification_id=req_identification_id,
                requirement_id=requirement_id,
                requirement_type_id=type_id,
            )
            created += 1
        return created

    async def link_legal_verbs(
        self,
        req_identification_id: int,
        requirement_id: int,
        translations: list[LegalVerbTranslation],
    ) -> int:
        created = 0
        for item in translations:
            key = (req_identification_id, requirement_id, item.legal_verb_id)
            if key in self.legal_verb_links:
                continue
            self.legal_verb_links[key] = LegalVerbLink(
                req_identification_id=req_identification_id,
                requirement_id=requirement_id,
                legal_verb_id=item.legal_verb_id,
                translation=item.translation,
            )
            created += 1
        return created

    async def get_top_mandatory_articles(
        self,
        req_identification_id: int,
        requirement_id: int,
        limit: int,
    ) -> list[Article]:
        articles_by_id = {
            article.id: article
            for articles in self.articles.values()
            for article in articles
        }
        mandatory = [
            (link, articles_by_id[link.article_id])
            for key, link in self.article_links.items()
            if key[0] == req_identification_id
            and key[1] == requirement_id
            and link.classification == ArticleClassification.OBLIGATORIO
            and link.article_id in articles_by_id
        ]
        mandatory.sort(key=lambda pair: (-pair[0].score, pair[1].article_order, pair[1].id))
        return [article for _, article in mandatory[:limit]]

    async def get_links(self, req_identification_id: int) -> IdentificationGraph:
        def for_run(rows: dict) -> list:
            return [link for key, link in sorted(rows.items()) if key[0] == req_identification_id]

        return IdentificationGraph(
            req_identification_id=req_identification_id,
            requirements=for_run(self.requirement_links),
            legal_bases=for_run(self.legal_basis_links),
            articles=for_run(self.article_links),
            requirement_types=for_run(self.requirement_type_links),
            legal_verbs=for_run(self.legal_verb_links),
        )
