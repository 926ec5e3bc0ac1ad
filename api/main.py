"""
LegalEye Identification API

FastAPI application for requirement identifications.
Provides endpoints for:
  - Creating an identification and enqueuing its job
  - Tracking and canceling identification jobs
  - Looking up pending jobs per identification, legal basis or requirement
  - Reading the persisted link graph

The app is built by `create_app(services)`. When no services are given,
they are built from the environment at startup. The worker pool starts in
the lifespan and stops on shutdown.
"""

import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agents.classifier import ClassifierClient
from api.job_queue import JobQueue, JobStateError
from api.models import (
    CancelJobResponse,
    CreateIdentificationRequest,
    CreateIdentificationResponse,
    JobStatusResponse,
    PendingJobsResponse,
)
from api.service import IdentificationRequestError, IdentificationService
from api.worker import IdentificationWorker
from config.neo4j_config import get_neo4j_driver, verify_connection
from config.worker_config import WorkerConfig
from pipeline import IdentificationPipeline, build_notifier
from shared.models import IdentificationGraph
from storage import InMemoryLinkStore, LinkStore, Neo4jLinkStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("legaleye.api")


@dataclass
class AppServices:
    """Everything the API and the worker pool share."""

    store: LinkStore
    queue: JobQueue
    pipeline: IdentificationPipeline
    config: WorkerConfig

    @property
    def service(self) -> IdentificationService:
        return IdentificationService(self.store, self.queue)


async def build_services() -> AppServices:
    """
    Build services from the environment.

    LEGALEYE_STORE selects the link store: "neo4j" (default) or "memory".
    """
    config = WorkerConfig.from_env()

    store: LinkStore
    if os.environ.get("LEGALEYE_STORE", "neo4j").lower() == "memory":
        store = InMemoryLinkStore()
    else:
        driver = get_neo4j_driver()
        if not await verify_connection(driver):
            raise RuntimeError("Cannot connect to Neo4j, check NEO4J_URI and credentials")
        neo4j_store = Neo4jLinkStore(driver, database=os.environ.get("NEO4J_DATABASE") or None)
        await neo4j_store.ensure_constraints()
        store = neo4j_store

    pipeline = IdentificationPipeline(store, ClassifierClient(), build_notifier(config), config)
    return AppServices(store=store, queue=JobQueue(), pipeline=pipeline, config=config)


def create_app(services: Optional[AppServices] = None) -> FastAPI:
    """Create the FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler"""
        logger.info("Starting LegalEye identification API")
        app.state.services = services or await build_services()
        worker = IdentificationWorker(
            app.state.services.queue,
            app.state.services.pipeline,
            app.state.services.config.concurrency,
        )
        worker.start()
        yield
        await worker.stop()
        await app.state.services.store.close()
        logger.info("Shutting down LegalEye identification API")

    app = FastAPI(
        title="LegalEye Identification API",
        description="Requirement identification over legal bases",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Configure CORS for frontend (configurable via environment)
    cors_origins = os.environ.get("CORS_ORIGINS", "*").split(",")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ========================================================================
    # Error handlers
    # ========================================================================

    @app.exception_handler(IdentificationRequestError)
    async def identification_request_error(request: Request, exc: IdentificationRequestError):
        content = {"message": exc.message}
        if exc.errors is not None:
            content["errors"] = exc.errors
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(JobStateError)
    async def job_state_error(request: Request, exc: JobStateError):
        return JSONResponse(status_code=400, content={"message": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {"field": str(error["loc"][-1]) if error["loc"] else "", "message": error["msg"]}
            for error in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": errors})

    def get_service(request: Request) -> IdentificationService:
        return request.app.state.services.service

    # ========================================================================
    # API Endpoints
    # ========================================================================

    @app.post(
        "/api/req-identifications",
        response_model=CreateIdentificationResponse,
        status_code=201,
    )
    async def create_identification(
        body: CreateIdentificationRequest,
        request: Request,
        x_user_id: int = Header(..., alias="X-User-Id"),
    ):
        """
        Create a requirement identification.

        Validates the selected legal bases, creates the identification with
        status Active and enqueues its job. Poll
        /api/req-identifications/jobs/{job_id} for progress.
        """
        identification_id, job = await get_service(request).create(body, x_user_id)
        return CreateIdentificationResponse(req_identification_id=identification_id, job_id=job.job_id)

    @app.get(
        "/api/req-identifications/jobs/{job_id}",
        response_model=JobStatusResponse,
        response_model_exclude_none=True,
    )
    async def get_job_status(job_id: str, request: Request):
        """Get the state of an identification job with its progress (0-100)."""
        status = await get_service(request).get_job_status(job_id)
        if status is None:
            return JSONResponse(status_code=404, content={"message": "Job not found"})
        return status

    @app.delete("/api/req-identifications/jobs/{job_id}", response_model=CancelJobResponse)
    async def cancel_job(job_id: str, request: Request):
        """
        Cancel an identification job.

        Active jobs are marked failed and stop at their next checkpoint;
        queued jobs are removed. Finished jobs cannot be canceled (400).
        """
        previous = await get_service(request).cancel_job(job_id)
        if previous is None:
            return JSONResponse(status_code=404, content={"message": "Job not found"})
        return CancelJobResponse(message=f"Job {job_id} canceled successfully", job_id=job_id)

    @app.get("/api/req-identifications/{req_identification_id}/pending-jobs", response_model=PendingJobsResponse)
    async def identification_pending_jobs(req_identification_id: int, request: Request):
        return await get_service(request).pending_jobs_for_identification(req_identification_id)

    @app.get("/api/legal-basis/{legal_basis_id}/pending-jobs", response_model=PendingJobsResponse)
    async def legal_basis_pending_jobs(legal_basis_id: int, request: Request):
        return await get_service(request).pending_jobs_for_legal_basis(legal_basis_id)

    @app.get("/api/requirements/{requirement_id}/pending-jobs", response_model=PendingJobsResponse)
    async def requirement_pending_jobs(requirement_id: int, request: Request):
        return await get_service(request).pending_jobs_for_requirement(requirement_id)

    @app.get("/api/req-identifications/{req_identification_id}/links", response_model=IdentificationGraph)
    async def identification_links(req_identification_id: int, request: Request):
        """All links persisted for an identification."""
        return await get_service(request).get_links(req_identification_id)

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "timestamp": datetime.now().isoformat()}

    return app


app = create_app()


# ============================================================================
# Entry Point
# ============================================================================

def main():
    """Run the API server"""
    import uvicorn

    host = os.environ.get("LEGALEYE_HOST", "0.0.0.0")
    port = int(os.environ.get("LEGALEYE_PORT", "8000"))

    uvicorn.run(
        "api.main:app",
        host=host,
        port=port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
