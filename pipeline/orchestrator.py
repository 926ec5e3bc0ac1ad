"""
LegalEye Identification Pipeline

Runs one requirement identification job to completion.

PIPELINE FLOW (per requirement, in payload order):
  checkpoint
  → requirement link                           (+1 task)
  → for each matched legal basis:
      checkpoint
      → legal basis link                       (+1 task)
      → for each article: classify unless already linked   (+1 task each)
  → checkpoint
  → top mandatory articles
      → requirement types                      (+1 task)
      → legal verb translations                (+1 task)

A checkpoint aborts the run when the queue job has disappeared or was
canceled. Those conditions are job-fatal, as are a missing identification,
an invalid payload and any unexpected error. The run is marked Failed,
progress is forced to 100 and the owner gets one failure notification.
JobFatalError is then raised with a message safe to show in the job status.

Everything else is isolated:
  - one article failing → article failure notification, continue
  - one summary step failing → continue with the next step
  - a requirement or legal basis link failing → skip to the next requirement

Replaying a job is safe: every link is a conditional insert and articles
that already carry a classification are not sent to the model again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from pydantic import ValidationError

from agents.classifier import ClassifierClient
from config.worker_config import WorkerConfig
from shared.models import (
    Article,
    IdentificationJobData,
    IdentificationSummary,
    IntelligenceLevel,
    LegalBasis,
    RequirementIdentification,
)
from storage import LinkStore

from .context import JobContext
from .errors import IdentificationNotFoundError, JobCanceledError, JobFatalError, JobNotFoundError
from .finalizer import Finalizer
from .notifier import Notifier
from .progress import ProgressTracker
from .task_graph import RequirementTask, build_task_graph

UNEXPECTED_ERROR = "Unexpected error identifying requirements"
INVALID_PAYLOAD = "Invalid identification job payload"


@dataclass
class _Run:
    """Mutable state of one pipeline execution."""

    identification: RequirementIdentification
    job: JobContext
    tracker: ProgressTracker
    intelligence_level: Optional[IntelligenceLevel]
    summary: IdentificationSummary = field(default_factory=IdentificationSummary)
    legal_basis_ids: set[int] = field(default_factory=set)


class IdentificationPipeline:
    """
    Requirement identification pipeline.

    Owns its collaborators; nothing is looked up from module state.

    Usage:
        pipeline = IdentificationPipeline(store, ClassifierClient(), LoggingNotifier())
        summary = await pipeline.run(job_data, job_context)
    """

    def __init__(
        self,
        store: LinkStore,
        classifier: ClassifierClient,
        notifier: Notifier,
        config: Optional[WorkerConfig] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            store: Link store for the catalog and the link graph
            classifier: Client for the three classification calls
            notifier: Delivery channel for owner notifications
            config: Worker settings (uses environment if not provided)
        """
        self.store = store
        self.classifier = classifier
        self.config = config or WorkerConfig.from_env()
        self.finalizer = Finalizer(store, notifier, self.config.notification_attempts)

        self.logger = logging.getLogger("legaleye.pipeline")

    async def run_payload(self, payload: dict[str, Any], job: JobContext) -> IdentificationSummary:
        """
        Parse a raw queue payload and run it.

        A payload that does not validate is job-fatal: when it still names an
        identification, that identification is marked Failed and its owner
        notified before JobFatalError is raised.
        """
        try:
            data = IdentificationJobData.model_validate(payload)
        except ValidationError as e:
            self.logger.error(f"Job {job.job_id}: invalid payload: {e}")
            await self._reject_payload(payload, job)
            raise JobFatalError(INVALID_PAYLOAD) from e
        return await self.run(data, job)

    async def _reject_payload(self, payload: dict[str, Any], job: JobContext) -> None:
        tracker = ProgressTracker(0, job.report_progress)
        try:
            req_identification_id = int(payload["reqIdentificationId"])
        except (KeyError, TypeError, ValueError):
            self.logger.error(f"Job {job.job_id}: payload names no identification")
            await tracker.complete()
            return

        identification: Optional[RequirementIdentification] = None
        try:
            identification = await self.store.get_identification(req_identification_id)
        except Exception:
            self.logger.exception(f"Could not load identification {req_identification_id}")
        await self.finalizer.fail(req_identification_id, identification, INVALID_PAYLOAD, tracker)

    async def run(self, data: IdentificationJobData, job: JobContext) -> IdentificationSummary:
        """
        Execute an identification job.

        Args:
            data: Job payload
            job: Queue job handle for cancellation checks and progress

        Returns:
            IdentificationSummary of the completed run

        Raises:
            JobFatalError: after the run has been marked Failed
        """
        start_time = datetime.now()
        tracker = ProgressTracker(0, job.report_progress)
        identification: Optional[RequirementIdentification] = None

        self.logger.info(
            f"Starting identification {data.req_identification_id} (job {job.job_id}): "
            f"{len(data.requirements)} requirements, {len(data.legal_bases)} legal bases"
        )

        try:
            identification = await self.store.get_identification(data.req_identification_id)
            if identification is None:
                raise IdentificationNotFoundError(data.req_identification_id)

            await self._checkpoint(job)

            graph = await build_task_graph(data.requirements, data.legal_bases, self.store)
            tracker.total_tasks = graph.total_tasks

            run = _Run(
                identification=identification,
                job=job,
                tracker=tracker,
                intelligence_level=data.intelligence_level,
            )
            run.summary.requirement_count = len(graph.requirements)

            if graph.is_empty:
                self.logger.info(f"Identification {identification.id}: no requirement matched a legal basis")
            else:
                self.logger.info(
                    f"Identification {identification.id}: {len(graph.requirements)} matched requirements, "
                    f"{graph.total_tasks} tasks"
                )

            for task in graph.requirements:
                await self._checkpoint(job)
                await self._process_requirement(run, task)

            run.summary.legal_basis_count = len(run.legal_basis_ids)
            await self.finalizer.complete(identification, run.summary, tracker)

        except JobFatalError as e:
            await self.finalizer.fail(data.req_identification_id, identification, str(e), tracker)
            raise
        except Exception as e:
            self.logger.exception(f"Unexpected error in identification {data.req_identification_id}")
            await self.finalizer.fail(data.req_identification_id, identification, UNEXPECTED_ERROR, tracker)
            raise JobFatalError(UNEXPECTED_ERROR) from e

        duration_ms = (datetime.now() - start_time).total_seconds() * 1000
        self.logger.info(f"Identification {identification.id} finished in {duration_ms:.0f}ms")
        return run.summary

    async def _checkpoint(self, job: JobContext) -> None:
        if not await job.exists():
            raise JobNotFoundError(job.job_id)
        if await job.is_canceled():
            raise JobCanceledError(job.job_id)

    # ------------------------------------------------------------------
    # Requirement
    # ------------------------------------------------------------------

    async def _process_requirement(self, run: _Run, task: RequirementTask) -> None:
        requirement = task.requirement
        started_at = run.tracker.completed_tasks

        try:
            await self.store.link_requirement(run.identification.id, requirement.id, task.name)
            await run.tracker.advance()

            for legal_basis in task.legal_bases:
                await self._checkpoint(run.job)
                await self._process_legal_basis(run, task, legal_basis)

            await self._checkpoint(run.job)
            await self._summarize_requirement(run, task)

        except JobFatalError:
            raise
        except Exception:
            self.logger.exception(
                f"Identification {run.identification.id}: requirement {requirement.id} aborted"
            )
            run.summary.failed_steps += 1
            remaining = task.task_count - (run.tracker.completed_tasks - started_at)
            if remaining > 0:
                await run.tracker.advance(remaining)

    async def _process_legal_basis(self, run: _Run, task: RequirementTask, legal_basis: LegalBasis) -> None:
        await self.store.link_legal_basis(run.identification.id, task.requirement.id, legal_basis.id)
        run.legal_basis_ids.add(legal_basis.id)
        await run.tracker.advance()

        for article in task.articles_for(legal_basis.id):
            await self._classify_article(run, task, legal_basis, article)
            await run.tracker.advance()

    async def _classify_article(
        self,
        run: _Run,
        task: RequirementTask,
        legal_basis: LegalBasis,
        article: Article,
    ) -> None:
        identification_id = run.identification.id
        requirement = task.requirement

        try:
            if await self.store.has_article_link(identification_id, requirement.id, legal_basis.id, article.id):
                self.logger.debug(f"Article {article.id} already classified for requirement {requirement.id}")
                return

            result = await self.classifier.classify_article(article, requirement, run.intelligence_level)
            created = await self.store.link_article(
                identification_id,
                requirement.id,
                legal_basis.id,
                article.id,
                result.classification,
                result.score,
            )
            if created:
                run.summary.article_count += 1

        except Exception as e:
            self.logger.exception(
                f"Identification {identification_id}: article {article.id} failed for requirement {requirement.id}"
            )
            run.summary.failed_articles += 1
            await self.finalizer.notify_article_failure(
                run.identification, requirement, legal_basis, article, str(e)
            )

    # ------------------------------------------------------------------
    # Requirement types and legal verbs
    # ------------------------------------------------------------------

    async def _summarize_requirement(self, run: _Run, task: RequirementTask) -> None:
        identification_id = run.identification.id
        requirement = task.requirement

        articles = await self.store.get_top_mandatory_articles(
            identification_id, requirement.id, self.config.top_mandatory_articles
        )
        if not articles:
            self.logger.info(f"Requirement {requirement.id}: no mandatory articles, skipping summary")
            await run.tracker.advance(2)
            return

        try:
            requirement_types = await self.store.get_requirement_types()
            if requirement_types:
                type_ids = await self.classifier.identify_requirement_types(
                    articles, requirement_types, run.intelligence_level
                )
                await self.store.link_requirement_types(identification_id, requirement.id, type_ids)
        except Exception:
            self.logger.exception(f"Requirement {requirement.id}: requirement type identification failed")
            run.summary.failed_steps += 1
        await run.tracker.advance()

        try:
            legal_verbs = await self.store.get_legal_verbs()
            if legal_verbs:
                translations = await self.classifier.translate_legal_verbs(
                    _requirement_text(articles), legal_verbs, run.intelligence_level
                )
                await self.store.link_legal_verbs(identification_id, requirement.id, translations)
        except Exception:
            self.logger.exception(f"Requirement {requirement.id}: legal verb translation failed")
            run.summary.failed_steps += 1
        await run.tracker.advance()


def _requirement_text(articles: list[Article]) -> str:
    """Concatenated text of the mandatory articles."""
    return "\n\n".join(f"{article.article_name}\n{article.text}".strip() for article in articles)
