"""
LegalEye Test Configuration

Shared pytest fixtures and configuration for all tests.
"""

import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from agents.classifier import ClassifierClient
from config.worker_config import WorkerConfig
from pipeline.notifier import LoggingNotifier
from shared.models import (
    Article,
    ArticleClassification,
    ArticleClassificationOutput,
    Aspect,
    IdentificationJobData,
    IntelligenceLevel,
    LegalBasis,
    LegalVerb,
    LegalVerbTranslation,
    Requirement,
    RequirementIdentification,
    RequirementType,
    Subject,
)
from storage import InMemoryLinkStore


# =============================================================================
# Environment Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (requires running services)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow (long-running)"
    )


@pytest.fixture(scope="session")
def project_root_path():
    """Return the project root path."""
    return project_root


# =============================================================================
# Fixtures: Catalog
# =============================================================================

@pytest.fixture
def subject():
    return Subject(subject_id=1, subject_name="Ambiental", abbreviation=None)


@pytest.fixture
def aspect_water():
    return Aspect(aspect_id=10, aspect_name="Agua", abbreviation="X")


@pytest.fixture
def aspect_air():
    return Aspect(aspect_id=11, aspect_name="Aire", abbreviation="Y")


@pytest.fixture
def legal_basis_a(subject, aspect_water):
    return LegalBasis(
        id=100,
        legal_name="Ley General del Agua",
        abbreviation="A",
        classification="Ley",
        subject=subject,
        aspects=[aspect_water],
    )


@pytest.fixture
def legal_basis_b(subject, aspect_water):
    return LegalBasis(
        id=200,
        legal_name="Reglamento de Aguas Nacionales",
        abbreviation="B",
        classification="Reglamento",
        subject=subject,
        aspects=[aspect_water],
    )


@pytest.fixture
def legal_basis_air(subject, aspect_air):
    """Same subject as the others but only the air aspect."""
    return LegalBasis(
        id=300,
        legal_name="Norma de Emisiones",
        abbreviation="NE",
        classification="Norma",
        subject=subject,
        aspects=[aspect_air],
    )


def make_articles(legal_basis_id: int, count: int, first_id: int) -> list[Article]:
    return [
        Article(
            id=first_id + index,
            legal_basis_id=legal_basis_id,
            article_name=f"ARTÍCULO {index + 1}",
            description=f"<p>Texto del artículo {index + 1}</p>",
            plain_description=f"Texto del artículo {index + 1}",
            article_order=index + 1,
        )
        for index in range(count)
    ]


@pytest.fixture
def articles_a():
    return make_articles(100, 3, first_id=1001)


@pytest.fixture
def articles_b():
    return make_articles(200, 2, first_id=2001)


@pytest.fixture
def articles_air():
    return make_articles(300, 2, first_id=3001)


@pytest.fixture
def requirement_water(subject, aspect_water):
    return Requirement(
        id=1,
        requirement_number="REQ-01",
        requirement_name="Descargas de aguas residuales",
        subject=subject,
        aspects=[aspect_water],
        mandatory_description="Contar con permiso de descarga",
        complementary_description="Monitorear la calidad del agua descargada",
        mandatory_sentences="El responsable deberá contar con permiso.",
        complementary_sentences="Se realizarán muestreos trimestrales.",
        mandatory_keywords="permiso, descarga",
        complementary_keywords="muestreo, calidad",
    )


@pytest.fixture
def requirement_unmatched(aspect_water):
    """Different subject: matches no legal basis."""
    return Requirement(
        id=2,
        requirement_number="REQ-02",
        requirement_name="Seguridad laboral",
        subject=Subject(subject_id=2, subject_name="Laboral"),
        aspects=[aspect_water],
    )


@pytest.fixture
def requirement_types():
    return [
        RequirementType(id=1, name="Permiso", description="Autorizaciones", classification="Trámites"),
        RequirementType(id=2, name="Reporte", description="Informes periódicos", classification="Reportes"),
    ]


@pytest.fixture
def legal_verbs():
    return [
        LegalVerb(id=1, name="Obtener", description="Conseguir una autorización", translation="Obtener el ..."),
        LegalVerb(id=2, name="Presentar", description="Entregar a la autoridad", translation="Presentar el ..."),
    ]


# =============================================================================
# Fixtures: Store
# =============================================================================

@pytest.fixture
def identification():
    return RequirementIdentification(id=1, name="Identificación planta norte", user_id=7)


@pytest.fixture
def store(
    identification,
    legal_basis_a,
    legal_basis_b,
    legal_basis_air,
    articles_a,
    articles_b,
    articles_air,
    requirement_water,
    requirement_unmatched,
    requirement_types,
    legal_verbs,
):
    """In-memory store seeded with the sample catalog and identification 1."""
    store = InMemoryLinkStore()
    store.add_user(7, "owner@example.com")
    store.add_identification(identification)
    store.add_legal_basis(legal_basis_a, articles_a)
    store.add_legal_basis(legal_basis_b, articles_b)
    store.add_legal_basis(legal_basis_air, articles_air)
    store.add_requirement(requirement_water)
    store.add_requirement(requirement_unmatched)
    for requirement_type in requirement_types:
        store.add_requirement_type(requirement_type)
    for legal_verb in legal_verbs:
        store.add_legal_verb(legal_verb)
    return store


@pytest.fixture
def job_data(identification, legal_basis_a, legal_basis_b, requirement_water):
    return IdentificationJobData(
        req_identification_id=identification.id,
        legal_bases=[legal_basis_a, legal_basis_b],
        requirements=[requirement_water],
        intelligence_level=IntelligenceLevel.HIGH,
    )


# =============================================================================
# Fixtures: Collaborators
# =============================================================================

@pytest.fixture
def mock_classifier():
    """Classifier that labels every article Obligatorio with score 80."""
    classifier = MagicMock(spec=ClassifierClient)
    classifier.classify_article = AsyncMock(
        return_value=ArticleClassificationOutput(
            classification=ArticleClassification.OBLIGATORIO,
            score=80,
        )
    )
    classifier.identify_requirement_types = AsyncMock(return_value=[1])
    classifier.translate_legal_verbs = AsyncMock(
        return_value=[
            LegalVerbTranslation(legal_verb_id=1, translation="Obtener el permiso de descarga"),
            LegalVerbTranslation(legal_verb_id=2, translation="Presentar el permiso de descarga"),
        ]
    )
    return classifier


@pytest.fixture
def notifier():
    return LoggingNotifier()


@pytest.fixture
def worker_config():
    return WorkerConfig(concurrency=1, top_mandatory_articles=5, notification_attempts=2)


class FakeJobContext:
    """
    JobContext for pipeline tests.

    `cancel_after_checks` cancels the job once that many checkpoints passed.
    """

    def __init__(self, job_id: str = "job-1", present: bool = True, cancel_after_checks=None):
        self.job_id = job_id
        self.present = present
        self.canceled = False
        self.cancel_after_checks = cancel_after_checks
        self.checks = 0
        self.progress: list[int] = []

    async def exists(self) -> bool:
        return self.present

    async def is_canceled(self) -> bool:
        self.checks += 1
        if self.cancel_after_checks is not None and self.checks > self.cancel_after_checks:
            self.canceled = True
        return self.canceled

    async def report_progress(self, progress: int) -> None:
        self.progress.append(progress)


@pytest.fixture
def job_context():
    return FakeJobContext()


@pytest.fixture
def make_job_context():
    """Factory for FakeJobContext with custom presence/cancellation."""
    return FakeJobContext


# =============================================================================
# Skip Markers
# =============================================================================

@pytest.fixture(scope="session")
def skip_if_no_openai():
    """Skip test if OpenAI API key is not configured."""
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key or api_key.startswith("sk-your"):
        pytest.skip("OpenAI API key not configured")
    return True
