"""
Neo4j Link Store

Persists identifications and their link graph in Neo4j.

Graph Schema:
  Catalog (written by the back office, read here):
    (lb:LegalBasis {id, legal_name, abbreviation, classification, jurisdiction,
                    state, municipality, subject_id, subject_name, subject_abbreviation})
      -[:HAS_ASPECT]-> (asp:Aspect {id, name, abbreviation})
      -[:HAS_ARTICLE]-> (art:Article {id, legal_basis_id, article_name,
                                      description, plain_description, article_order})
    (req:Requirement {id, requirement_number, requirement_name, subject_id, ...})
      -[:HAS_ASPECT]-> (asp:Aspect)
    (rt:RequirementType {id, name, description, classification})
    (lv:LegalVerb {id, name, description, translation})
    (u:User {id, email})

  Identification (written here):
    (ri:ReqIdentification {id, name, description, user_id, status, created_at})
    (:RequirementLink     {req_identification_id, requirement_id, requirement_name})
    (:LegalBasisLink      {req_identification_id, requirement_id, legal_basis_id})
    (:ArticleLink         {req_identification_id, requirement_id, legal_basis_id,
                           article_id, classification, score})
    (:RequirementTypeLink {req_identification_id, requirement_id, requirement_type_id})
    (:LegalVerbLink       {req_identification_id, requirement_id, legal_verb_id, translation})

Each link label carries a composite uniqueness constraint on its tuple key
and is written with MERGE ... ON CREATE SET, so the database decides
whether the row is new. `summary.counters.nodes_created` reports it back.
"""

import logging
from typing import Any, Optional

from neo4j import AsyncDriver

from shared.models import (
    Article,
    ArticleClassification,
    ArticleLink,
    Aspect,
    IdentificationGraph,
    IdentificationStatus,
    Jurisdiction,
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
    Subject,
)

from .link_store import LinkStore

logger = logging.getLogger(__name__)


CONSTRAINTS = [
    "CREATE CONSTRAINT req_identification_id IF NOT EXISTS "
    "FOR (ri:ReqIdentification) REQUIRE ri.id IS UNIQUE",
    "CREATE CONSTRAINT req_identification_name IF NOT EXISTS "
    "FOR (ri:ReqIdentification) REQUIRE ri.name IS UNIQUE",
    "CREATE CONSTRAINT requirement_link_key IF NOT EXISTS "
    "FOR (l:RequirementLink) REQUIRE (l.req_identification_id, l.requirement_id) IS UNIQUE",
    "CREATE CONSTRAINT legal_basis_link_key IF NOT EXISTS "
    "FOR (l:LegalBasisLink) REQUIRE (l.req_identification_id, l.requirement_id, l.legal_basis_id) IS UNIQUE",
    "CREATE CONSTRAINT article_link_key IF NOT EXISTS "
    "FOR (l:ArticleLink) REQUIRE "
    "(l.req_identification_id, l.requirement_id, l.legal_basis_id, l.article_id) IS UNIQUE",
    "CREATE CONSTRAINT requirement_type_link_key IF NOT EXISTS "
    "FOR (l:RequirementTypeLink) REQUIRE "
    "(l.req_identification_id, l.requirement_id, l.requirement_type_id) IS UNIQUE",
    "CREATE CONSTRAINT legal_verb_link_key IF NOT EXISTS "
    "FOR (l:LegalVerbLink) REQUIRE (l.req_identification_id, l.requirement_id, l.legal_verb_id) IS UNIQUE",
]


class Neo4jLinkStore(LinkStore):
    """
    LinkStore backed by an async Neo4j driver.

    Args:
        driver: Driver from config.neo4j_config.get_neo4j_driver()
        database: Target database (None uses the server default)
    """

    def __init__(self, driver: AsyncDriver, database: Optional[str] = None):
        self._driver = driver
        self._database = database

    async def _run(self, cypher: str, **params: Any):
        return await self._driver.execute_query(cypher, database_=self._database, **params)

    async def ensure_constraints(self) -> None:
        """Create the uniqueness constraints the link MERGEs rely on."""
        for cypher in CONSTRAINTS:
            await self._run(cypher)
        logger.info(f"Ensured {len(CONSTRAINTS)} link store constraints")

    async def close(self) -> None:
        await self._driver.close()

    # ------------------------------------------------------------------
    # Identification
    # ------------------------------------------------------------------

    async def get_identification(self, req_identification_id: int) -> Optional[RequirementIdentification]:
        result = await self._run(
            "MATCH (ri:ReqIdentification {id: $id}) RETURN ri",
            id=req_identification_id,
        )
        if not result.records:
            return None
        return _to_identification(result.records[0]["ri"])

    async def update_identification_status(
        self,
        req_identification_id: int,
        status: IdentificationStatus,
    ) -> bool:
        result = await self._run(
            """
            MATCH (ri:ReqIdentification {id: $id})
            SET ri.status = $status
            RETURN ri.id AS id
            """,
            id=req_identification_id,
            status=status.value,
        )
        return bool(result.records)

    async def identification_name_exists(self, name: str) -> bool:
        result = await self._run(
            "MATCH (ri:ReqIdentification {name: $name}) RETURN ri.id AS id LIMIT 1",
            name=name,
        )
        return bool(result.records)

    async def create_identification(
        self,
        name: str,
        description: Optional[str],
        user_id: int,
    ) -> RequirementIdentification:
        result = await self._run(
            """
            MERGE (seq:Sequence {name: 'ReqIdentification'})
            ON CREATE SET seq.value = 0
            SET seq.value = seq.value + 1
            WITH seq
            CREATE (ri:ReqIdentification {
                id: seq.value,
                name: $name,
                description: $description,
                user_id: $user_id,
                status: $status,
                created_at: datetime()
            })
            RETURN ri
            """,
            name=name,
            description=description,
            user_id=user_id,
            status=IdentificationStatus.ACTIVE.value,
        )
        return _to_identification(result.records[0]["ri"])

    async def get_user_email(self, user_id: int) -> Optional[str]:
        result = await self._run(
            "MATCH (u:User {id: $id}) RETURN u.email AS email",
            id=user_id,
        )
        if not result.records:
            return None
        return result.records[0]["email"]

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def find_legal_bases(self, legal_basis_ids: list[int]) -> list[LegalBasis]:
        result = await self._run(
            """
            MATCH (lb:LegalBasis)
            WHERE lb.id IN $ids
            OPTIONAL MATCH (lb)-[:HAS_ASPECT]->(asp:Aspect)
            WITH lb, collect(asp) AS aspects
            RETURN lb, aspects
            ORDER BY lb.id
            """,
            ids=legal_basis_ids,
        )
        return [_to_legal_basis(record["lb"], record["aspects"]) for record in result.records]

    async def legal_basis_exists(self, legal_basis_id: int) -> bool:
        result = await self._run(
            "MATCH (lb:LegalBasis {id: $id}) RETURN lb.id AS id LIMIT 1",
            id=legal_basis_id,
        )
        return bool(result.records)

    async def find_requirements(self, subject_id: int, aspect_ids: list[int]) -> list[Requirement]:
        result = await self._run(
            """
            MATCH (req:Requirement {subject_id: $subject_id})-[:HAS_ASPECT]->(match:Aspect)
            WHERE match.id IN $aspect_ids
            WITH DISTINCT req
            OPTIONAL MATCH (req)-[:HAS_ASPECT]->(asp:Aspect)
            WITH req, collect(asp) AS aspects
            RETURN req, aspects
            ORDER BY req.id
            """,
            subject_id=subject_id,
            aspect_ids=aspect_ids,
        )
        return [_to_requirement(record["req"], record["aspects"]) for record in result.records]

    async def requirement_exists(self, requirement_id: int) -> bool:
        result = await self._run(
            "MATCH (req:Requirement {id: $id}) RETURN req.id AS id LIMIT 1",
            id=requirement_id,
        )
        return bool(result.records)

    async def get_articles(self, legal_basis_id: int) -> list[Article]:
        result = await self._run(
            """
            MATCH (:LegalBasis {id: $id})-[:HAS_ARTICLE]->(art:Article)
            RETURN art
            ORDER BY art.article_order, art.id
            """,
            id=legal_basis_id,
        )
        return [Article(**dict(record["art"])) for record in result.records]

    async def get_requirement_types(self) -> list[RequirementType]:
        result = await self._run("MATCH (rt:RequirementType) RETURN rt ORDER BY rt.id")
        return [RequirementType(**dict(record["rt"])) for record in result.records]

    async def get_legal_verbs(self) -> list[LegalVerb]:
        result = await self._run("MATCH (lv:LegalVerb) RETURN lv ORDER BY lv.id")
        return [LegalVerb(**dict(record["lv"])) for record in result.records]

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    async def link_requirement(
        self,
        req_identification_id: int,
        requirement_id: int,
        requirement_name: str,
    ) -> bool:
        result = await self._run(
            """
            MERGE (l:RequirementLink {req_identification_id: $ri, requirement_id: $req})
            ON CREATE SET l.requirement_name = $name, l.created_at = datetime()
            """,
            ri=req_identification_id,
            req=requirement_id,
            name=requirement_name,
        )
        return result.summary.counters.nodes_created > 0

    async def link_legal_basis(
        self,
        req_identification_id: int,
        requirement_id: int,
        legal_basis_id: int,
    ) -> bool:
        result = await self._run(
            """
            MERGE (l:LegalBasisLink {req_identification_id: $ri, requirement_id: $req,
                                     legal_basis_id: $lb})
            ON CREATE SET l.created_at = datetime()
            """,
            ri=req_identification_id,
            req=requirement_id,
            lb=legal_basis_id,
        )
        return result.summary.counters.nodes_created > 0

    async def has_article_link(
        self,
        req_identification_id: int,
        requirement_id: int,
        legal_basis_id: int,
        article_id: int,
    ) -> bool:
        result = await self._run(
            """
            MATCH (l:ArticleLink {req_identification_id: $ri, requirement_id: $req,
                                  legal_basis_id: $lb, article_id: $art})
            RETURN l.article_id AS id LIMIT 1
            """,
            ri=req_identification_id,
            req=requirement_id,
            lb=legal_basis_id,
            art=article_id,
        )
        return bool(result.records)

    async def link_article(
        self,
        req_identification_id: int,
        requirement_id: int,
        legal_basis_id: int,
        article_id: int,
        classification: ArticleClassification = ArticleClassification.GENERAL,
        score: int = 0,
    ) -> bool:
        result = await self._run(
            """
            MERGE (l:ArticleLink {req_identification_id: $ri, requirement_id: $req,
                                  legal_basis_id: $lb, article_id: $art})
            ON CREATE SET l.classification = $classification,
                          l.score = $score,
                          l.created_at = datetime()
            """,
            ri=req_identification_id,
            req=requirement_id,
            lb=legal_basis_id,
            art=article_id,
            classification=ArticleClassification(classification).value,
            score=score,
        )
        return result.summary.counters.nodes_created > 0

    async def link_requirement_types(
        self,
        req_identification_id: int,
        requirement_id: int,
        requirement_type_ids: list[int],
    ) -> int:
        if not requirement_type_ids:
            return 0
        result = await self._run(
            """
            UNWIND $type_ids AS type_id
            MERGE (l:RequirementTypeLink {req_identification_id: $ri, requirement_id: $req,
                                          requirement_type_id: type_id})
            ON CREATE SET l.created_at = datetime()
            """,
            ri=req_identification_id,
            req=requirement_id,
            type_ids=requirement_type_ids,
        )
        return result.summary.counters.nodes_created

    async def link_legal_verbs(
        self,
        req_identification_id: int,
        requirement_id: int,
        translations: list[LegalVerbTranslation],
    ) -> int:
        if not translations:
            return 0
        result = await self._run(
            """
            UNWIND $translations AS item
            MERGE (l:LegalVerbLink {req_identification_id: $ri, requirement_id: $req,
                                    legal_verb_id: item.legal_verb_id})
            ON CREATE SET l.translation = item.translation, l.created_at = datetime()
            """,
            ri=req_identification_id,
            req=requirement_id,
            translations=[item.model_dump() for item in translations],
        )
        return result.summary.counters.nodes_created

    async def get_top_mandatory_articles(
        self,
        req_identification_id: int,
        requirement_id: int,
        limit: int,
    ) -> list[Article]:
        result = await self._run(
            """
            MATCH (l:ArticleLink {req_identification_id: $ri, requirement_id: $req,
                                  classification: $classification})
            MATCH (art:Article {id: l.article_id})
            RETURN art
            ORDER BY l.score DESC, art.article_order, art.id
            LIMIT $limit
            """,
            ri=req_identification_id,
            req=requirement_id,
            classification=ArticleClassification.OBLIGATORIO.value,
            limit=limit,
        )
        return [Article(**dict(record["art"])) for record in result.records]

    async def get_links(self, req_identification_id: int) -> IdentificationGraph:
        async def fetch(label: str, order: str) -> list[dict]:
            result = await self._run(
                f"MATCH (l:{label} {{req_identification_id: $ri}}) RETURN l ORDER BY {order}",
                ri=req_identification_id,
            )
            return [dict(record["l"]) for record in result.records]

        return IdentificationGraph(
            req_identification_id=req_identification_id,
            requirements=[
                RequirementLink(**row)
                for row in await fetch("RequirementLink", "l.requirement_id")
            ],
            legal_bases=[
                LegalBasisLink(**row)
                for row in await fetch("LegalBasisLink", "l.requirement_id, l.legal_basis_id")
            ],
            articles=[
                ArticleLink(**row)
                for row in await fetch("ArticleLink", "l.requirement_id, l.legal_basis_id, l.article_id")
            ],
            requirement_types=[
                RequirementTypeLink(**row)
                for row in await fetch("RequirementTypeLink", "l.requirement_id, l.requirement_type_id")
            ],
            legal_verbs=[
                LegalVerbLink(**row)
                for row in await fetch("LegalVerbLink", "l.requirement_id, l.legal_verb_id")
            ],
        )


# ============================================================================
# Record conversion
# ============================================================================

def _to_identification(node) -> RequirementIdentification:
    data = dict(node)
    created_at = data.get("created_at")
    if created_at is not None and hasattr(created_at, "to_native"):
        data["created_at"] = created_at.to_native()
    return RequirementIdentification(**data)


def _to_aspects(nodes) -> list[Aspect]:
    return [
        Aspect(
            aspect_id=node["id"],
            aspect_name=node.get("name", ""),
            abbreviation=node.get("abbreviation"),
        )
        for node in nodes
    ]


def _to_subject(data: dict) -> Subject:
    return Subject(
        subject_id=data["subject_id"],
        subject_name=data.get("subject_name", ""),
        abbreviation=data.get("subject_abbreviation"),
    )


def _to_legal_basis(node, aspect_nodes) -> LegalBasis:
    data = dict(node)
    return LegalBasis(
        id=data["id"],
        legal_name=data.get("legal_name", ""),
        abbreviation=data.get("abbreviation"),
        classification=data.get("classification"),
        subject=_to_subject(data),
        aspects=_to_aspects(aspect_nodes),
        jurisdiction=Jurisdiction(data.get("jurisdiction", Jurisdiction.FEDERAL.value)),
        state=data.get("state"),
        municipality=data.get("municipality"),
    )


def _to_requirement(node, aspect_nodes) -> Requirement:
    data = dict(node)
    fields = {
        key: data[key]
        for key in (
            "mandatory_description",
            "complementary_description",
            "mandatory_sentences",
            "complementary_sentences",
            "mandatory_keywords",
            "complementary_keywords",
        )
        if data.get(key) is not None
    }
    return Requirement(
        id=data["id"],
        requirement_number=str(data.get("requirement_number", "")),
        requirement_name=data.get("requirement_name", ""),
        subject=_to_subject(data),
        aspects=_to_aspects(aspect_nodes),
        **fields,
    )
