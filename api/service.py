"""
Identification Service

Entry points behind the HTTP routes:

  - create(): validate the selected legal bases, create the identification
    row and enqueue its job
  - job lookups: status, cancel, pending jobs per identification, legal
    basis or requirement
  - get_links(): the persisted link graph of an identification

Validation failures raise IdentificationRequestError carrying the HTTP
status to answer with.
"""

import logging
from typing import Any, Optional

from api.job_queue import PENDING_STATES, Job, JobQueue, JobState
from api.job_status import job_status
from api.models import CreateIdentificationRequest, JobStatusResponse, PendingJobsResponse
from shared.models import IdentificationGraph, IdentificationJobData, Jurisdiction, LegalBasis
from storage import LinkStore

logger = logging.getLogger(__name__)


class IdentificationRequestError(Exception):
    """A request that cannot be served, with the HTTP status to report."""

    def __init__(self, status_code: int, message: str, errors: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors


class IdentificationService:
    """Creates identifications and answers queue questions about them."""

    def __init__(self, store: LinkStore, queue: JobQueue):
        self.store = store
        self.queue = queue

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create(self, request: CreateIdentificationRequest, user_id: int) -> tuple[int, Job]:
        """
        Create an identification and enqueue its job.

        Args:
            request: Validated request body
            user_id: Owner of the identification

        Returns:
            (identification id, queued job)

        Raises:
            IdentificationRequestError: on missing legal bases, duplicate
                name, or legal bases that do not share subject/jurisdiction/place
        """
        legal_basis_ids = list(dict.fromkeys(request.legal_basis_ids))
        legal_bases = await self.store.find_legal_bases(legal_basis_ids)
        if len(legal_bases) != len(legal_basis_ids):
            found = {lb.id for lb in legal_bases}
            raise IdentificationRequestError(
                400,
                "LegalBasis not found for IDs",
                {"notFoundIds": [lb_id for lb_id in legal_basis_ids if lb_id not in found]},
            )

        if await self.store.identification_name_exists(request.req_identification_name):
            raise IdentificationRequestError(409, "Requirement Identification name already exists")

        _check_same_scope(legal_bases)

        subject_id = legal_bases[0].subject.subject_id
        aspect_ids = list(dict.fromkeys(
            aspect.aspect_id for lb in legal_bases for aspect in lb.aspects
        ))
        requirements = await self.store.find_requirements(subject_id, aspect_ids)

        identification = await self.store.create_identification(
            request.req_identification_name,
            request.req_identification_description,
            user_id,
        )
        job_data = IdentificationJobData(
            req_identification_id=identification.id,
            legal_bases=legal_bases,
            requirements=requirements,
            intelligence_level=request.intelligence_level,
        )
        job = await self.queue.add(job_data.to_payload())

        logger.info(
            f"Identification {identification.id} created with {len(legal_bases)} legal bases "
            f"and {len(requirements)} candidate requirements (job {job.job_id})"
        )
        return identification.id, job

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    async def get_job_status(self, job_id: str) -> Optional[JobStatusResponse]:
        job = await self.queue.get_job(job_id)
        if job is None:
            return None
        return job_status(job)

    async def cancel_job(self, job_id: str) -> Optional[JobState]:
        """Cancel a job; raises JobStateError for finished jobs."""
        return await self.queue.cancel_job(job_id)

    async def pending_jobs_for_identification(self, req_identification_id: int) -> PendingJobsResponse:
        if await self.store.get_identification(req_identification_id) is None:
            raise IdentificationRequestError(404, "Requirement Identification not found")
        return await self._find_pending(
            lambda data: data.get("reqIdentificationId") == req_identification_id
        )

    async def pending_jobs_for_legal_basis(self, legal_basis_id: int) -> PendingJobsResponse:
        if not await self.store.legal_basis_exists(legal_basis_id):
            raise IdentificationRequestError(404, "LegalBasis not found")
        return await self._find_pending(
            lambda data: any(lb.get("id") == legal_basis_id for lb in data.get("legalBases", []))
        )

    async def pending_jobs_for_requirement(self, requirement_id: int) -> PendingJobsResponse:
        if not await self.store.requirement_exists(requirement_id):
            raise IdentificationRequestError(404, "Requirement not found")
        return await self._find_pending(
            lambda data: any(req.get("id") == requirement_id for req in data.get("requirements", []))
        )

    async def _find_pending(self, matches) -> PendingJobsResponse:
        for job in await self.queue.get_jobs(PENDING_STATES):
            if matches(job.data):
                return PendingJobsResponse(has_pending_jobs=True, job_id=job.job_id)
        return PendingJobsResponse(has_pending_jobs=False, job_id=None)

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    async def get_links(self, req_identification_id: int) -> IdentificationGraph:
        if await self.store.get_identification(req_identification_id) is None:
            raise IdentificationRequestError(404, "Requirement Identification not found")
        return await self.store.get_links(req_identification_id)


def _check_same_scope(legal_bases: list[LegalBasis]) -> None:
    """All legal bases must share subject and jurisdiction, and state/municipality where it applies."""
    if len({lb.subject.subject_id for lb in legal_bases}) != 1:
        raise IdentificationRequestError(400, "All selected legal bases must have the same subject")

    jurisdictions = {lb.jurisdiction for lb in legal_bases}
    if len(jurisdictions) != 1:
        raise IdentificationRequestError(400, "All selected legal bases must have the same jurisdiction")
    jurisdiction = jurisdictions.pop()

    if jurisdiction in (Jurisdiction.ESTATAL, Jurisdiction.LOCAL):
        if len({lb.state for lb in legal_bases}) != 1:
            raise IdentificationRequestError(400, "All selected legal bases must have the same state")
        if jurisdiction == Jurisdiction.LOCAL and len({lb.municipality for lb in legal_bases}) != 1:
            raise IdentificationRequestError(400, "All selected legal bases must have the same municipality")
