"""
Unit Tests for the Neo4j Link Store

The async driver is mocked; these tests check query parameters, the
nodes_created → bool/int contract and record conversion.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from shared.models import (
    ArticleClassification,
    IdentificationStatus,
    Jurisdiction,
    LegalVerbTranslation,
)
from storage import Neo4jLinkStore
from storage.neo4j_store import CONSTRAINTS


def eager_result(records=None, nodes_created=0):
    """Shape of neo4j.EagerResult as used by the store."""
    return SimpleNamespace(
        records=records or [],
        summary=SimpleNamespace(counters=SimpleNamespace(nodes_created=nodes_created)),
        keys=[],
    )


@pytest.fixture
def driver():
    driver = MagicMock()
    driver.execute_query = AsyncMock(return_value=eager_result())
    driver.close = AsyncMock()
    return driver


@pytest.fixture
def neo4j_store(driver):
    return Neo4jLinkStore(driver, database="legaleye")


class TestLinks:
    """Conditional inserts report whether a node was created."""

    @pytest.mark.asyncio
    async def test_link_article_created(self, neo4j_store, driver):
        driver.execute_query.return_value = eager_result(nodes_created=1)

        created = await neo4j_store.link_article(1, 2, 3, 4, ArticleClassification.OBLIGATORIO, 88)

        assert created is True
        cypher = driver.execute_query.await_args.args[0]
        kwargs = driver.execute_query.await_args.kwargs
        assert "MERGE (l:ArticleLink" in cypher
        assert "ON CREATE SET" in cypher
        assert kwargs["database_"] == "legaleye"
        assert kwargs["classification"] == "Obligatorio"
        assert (kwargs["ri"], kwargs["req"], kwargs["lb"], kwargs["art"], kwargs["score"]) == (1, 2, 3, 4, 88)

    @pytest.mark.asyncio
    async def test_link_article_existing(self, neo4j_store, driver):
        driver.execute_query.return_value = eager_result(nodes_created=0)
        assert await neo4j_store.link_article(1, 2, 3, 4) is False

    @pytest.mark.asyncio
    async def test_link_requirement_types_counts_created(self, neo4j_store, driver):
        driver.execute_query.return_value = eager_result(nodes_created=2)

        assert await neo4j_store.link_requirement_types(1, 2, [5, 6, 7]) == 2
        assert driver.execute_query.await_args.kwargs["type_ids"] == [5, 6, 7]

    @pytest.mark.asyncio
    async def test_empty_batches_skip_the_query(self, neo4j_store, driver):
        assert await neo4j_store.link_requirement_types(1, 2, []) == 0
        assert await neo4j_store.link_legal_verbs(1, 2, []) == 0
        driver.execute_query.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_link_legal_verbs_parameters(self, neo4j_store, driver):
        driver.execute_query.return_value = eager_result(nodes_created=1)
        translations = [LegalVerbTranslation(legal_verb_id=3, translation="Obtener la licencia")]

        assert await neo4j_store.link_legal_verbs(1, 2, translations) == 1
        assert driver.execute_query.await_args.kwargs["translations"] == [
            {"legal_verb_id": 3, "translation": "Obtener la licencia"}
        ]


class TestRecordConversion:
    """Rows come back as the shared models."""

    @pytest.mark.asyncio
    async def test_get_identification(self, neo4j_store, driver):
        driver.execute_query.return_value = eager_result(records=[{
            "ri": {"id": 4, "name": "Planta", "description": None, "user_id": 7, "status": "Completed"},
        }])

        identification = await neo4j_store.get_identification(4)

        assert identification.id == 4
        assert identification.status == IdentificationStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_get_identification_missing(self, neo4j_store):
        assert await neo4j_store.get_identification(4) is None

    @pytest.mark.asyncio
    async def test_find_legal_bases(self, neo4j_store, driver):
        driver.execute_query.return_value = eager_result(records=[{
            "lb": {
                "id": 100,
                "legal_name": "Ley de Aguas",
                "abbreviation": "LAN",
                "jurisdiction": "Estatal",
                "state": "Jalisco",
                "subject_id": 1,
                "subject_name": "Ambiental",
                "subject_abbreviation": "AMB",
            },
            "aspects": [{"id": 10, "name": "Agua", "abbreviation": "AG"}],
        }])

        [legal_basis] = await neo4j_store.find_legal_bases([100])

        assert legal_basis.jurisdiction == Jurisdiction.ESTATAL
        assert legal_basis.subject.abbreviation == "AMB"
        assert legal_basis.aspect_ids == {10}

    @pytest.mark.asyncio
    async def test_find_requirements(self, neo4j_store, driver):
        driver.execute_query.return_value = eager_result(records=[{
            "req": {
                "id": 1,
                "requirement_number": 12,
                "requirement_name": "Descargas",
                "subject_id": 1,
                "mandatory_description": "Contar con permiso",
                "complementary_keywords": None,
            },
            "aspects": [{"id": 10, "name": "Agua"}],
        }])

        [requirement] = await neo4j_store.find_requirements(1, [10])

        assert requirement.requirement_number == "12"
        assert requirement.mandatory_description == "Contar con permiso"
        assert requirement.complementary_keywords == ""

    @pytest.mark.asyncio
    async def test_get_links(self, neo4j_store, driver):
        async def execute_query(cypher, **params):
            if "RequirementLink" in cypher:
                return eager_result(records=[{"l": {
                    "req_identification_id": 1, "requirement_id": 2, "requirement_name": "A - REQ-01",
                    "created_at": "ignored",
                }}])
            return eager_result()

        driver.execute_query.side_effect = execute_query

        graph = await neo4j_store.get_links(1)

        assert graph.requirements[0].requirement_name == "A - REQ-01"
        assert graph.articles == []


class TestLifecycle:
    """Constraints and shutdown."""

    @pytest.mark.asyncio
    async def test_ensure_constraints(self, neo4j_store, driver):
        await neo4j_store.ensure_constraints()
        assert driver.execute_query.await_count == len(CONSTRAINTS)

    @pytest.mark.asyncio
    async def test_close(self, neo4j_store, driver):
        await neo4j_store.close()
        driver.close.assert_awaited_once()
