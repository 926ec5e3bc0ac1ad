"""
Unit Tests for the LegalEye Identification API

This module tests:
- api/models.py: request validation and camelCase serialization
- api/service.py: legal basis validation rules
- api/main.py: endpoints, error bodies and the worker lifespan

The app runs with an in-memory store and a mocked classifier, so jobs
created through the API are processed by the real pipeline.
"""

import time
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from api.job_queue import Job, JobQueue, JobState
from api.main import AppServices, create_app
from api.models import CreateIdentificationRequest, JobStatusResponse, PendingJobsResponse
from pipeline import IdentificationPipeline
from shared.models import IdentificationStatus, IntelligenceLevel, LegalBasis, Subject

USER_HEADERS = {"X-User-Id": "7"}


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def services(store, mock_classifier, notifier, worker_config):
    pipeline = IdentificationPipeline(store, mock_classifier, notifier, worker_config)
    return AppServices(store=store, queue=JobQueue(), pipeline=pipeline, config=worker_config)


@pytest.fixture
def client(services):
    """TestClient with the lifespan (and worker pool) running."""
    with TestClient(create_app(services)) as test_client:
        yield test_client


def put_job(queue: JobQueue, state: JobState, data=None, **fields) -> Job:
    """Place a job directly in the queue in a state no worker will pick up."""
    job = Job(job_id=f"job-{len(queue.jobs) + 1}", data=data or {}, state=state, **fields)
    queue.jobs[job.job_id] = job
    return job


def wait_for_job(client: TestClient, job_id: str, timeout: float = 5.0) -> dict:
    deadline = time.monotonic() + timeout
    while True:
        body = client.get(f"/api/req-identifications/jobs/{job_id}").json()
        if body["status"] in ("completed", "failed") or time.monotonic() > deadline:
            return body
        time.sleep(0.02)


def create_body(**overrides) -> dict:
    body = {
        "reqIdentificationName": "Identificación planta sur",
        "reqIdentificationDescription": "Planta de tratamiento",
        "legalBasisIds": [100, 200],
        "intelligenceLevel": "High",
    }
    body.update(overrides)
    return body


# ============================================================================
# MODEL TESTS
# ============================================================================

class TestCreateIdentificationRequest:
    """Tests for CreateIdentificationRequest."""

    def test_valid_request(self):
        request = CreateIdentificationRequest.model_validate(create_body())
        assert request.req_identification_name == "Identificación planta sur"
        assert request.legal_basis_ids == [100, 200]

    def test_name_max_length_boundary(self):
        request = CreateIdentificationRequest.model_validate(create_body(reqIdentificationName="x" * 255))
        assert len(request.req_identification_name) == 255

    def test_name_above_max_length(self):
        with pytest.raises(ValidationError):
            CreateIdentificationRequest.model_validate(create_body(reqIdentificationName="x" * 256))

    def test_empty_legal_basis_ids(self):
        with pytest.raises(ValidationError):
            CreateIdentificationRequest.model_validate(create_body(legalBasisIds=[]))

    def test_intelligence_level_optional(self):
        body = create_body()
        del body["intelligenceLevel"]
        assert CreateIdentificationRequest.model_validate(body).intelligence_level is None

    def test_unknown_intelligence_level_uses_fast_tier(self):
        request = CreateIdentificationRequest.model_validate(create_body(intelligenceLevel="Medium"))
        assert request.intelligence_level == IntelligenceLevel.LOW


class TestResponseModels:
    """Tests for camelCase serialization."""

    def test_job_status_aliases(self):
        response = JobStatusResponse(status="active", message="Job is still processing", job_progress=40)
        assert response.model_dump(by_alias=True, exclude_none=True) == {
            "status": "active",
            "message": "Job is still processing",
            "jobProgress": 40,
        }

    def test_pending_jobs_aliases(self):
        response = PendingJobsResponse(has_pending_jobs=False)
        assert response.model_dump(by_alias=True) == {"hasPendingJobs": False, "jobId": None}


# ============================================================================
# CREATE ENDPOINT
# ============================================================================

class TestCreateEndpoint:
    """Tests for POST /api/req-identifications."""

    def test_create_runs_identification(self, client, store, notifier):
        response = client.post("/api/req-identifications", json=create_body(), headers=USER_HEADERS)

        assert response.status_code == 201
        body = response.json()
        assert body["reqIdentificationId"] == 2

        status = wait_for_job(client, body["jobId"])
        assert status["status"] == "completed"
        assert status["jobProgress"] == 100

        identification = store.identifications[2]
        assert identification.user_id == 7
        assert identification.status == IdentificationStatus.COMPLETED
        assert len([key for key in store.article_links if key[0] == 2]) == 5
        assert notifier.sent[-1].to == "owner@example.com"

    def test_missing_legal_bases(self, client):
        response = client.post(
            "/api/req-identifications",
            json=create_body(legalBasisIds=[100, 999]),
            headers=USER_HEADERS,
        )

        assert response.status_code == 400
        assert response.json() == {
            "message": "LegalBasis not found for IDs",
            "errors": {"notFoundIds": [999]},
        }

    def test_duplicate_name(self, client):
        response = client.post(
            "/api/req-identifications",
            json=create_body(reqIdentificationName="Identificación planta norte"),
            headers=USER_HEADERS,
        )

        assert response.status_code == 409
        assert response.json()["message"] == "Requirement Identification name already exists"

    def test_mixed_subjects(self, store, client, aspect_water):
        store.add_legal_basis(
            LegalBasis(
                id=400,
                legal_name="Ley Federal del Trabajo",
                subject=Subject(subject_id=2, subject_name="Laboral"),
                aspects=[aspect_water],
            ),
            [],
        )

        response = client.post(
            "/api/req-identifications",
            json=create_body(legalBasisIds=[100, 400]),
            headers=USER_HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "All selected legal bases must have the same subject"

    def test_mixed_states(self, store, client, subject, aspect_water):
        for lb_id, state in ((501, "Jalisco"), (502, "Sonora")):
            store.add_legal_basis(
                LegalBasis(
                    id=lb_id,
                    legal_name=f"Ley Estatal {state}",
                    subject=subject,
                    aspects=[aspect_water],
                    jurisdiction="Estatal",
                    state=state,
                ),
                [],
            )

        response = client.post(
            "/api/req-identifications",
            json=create_body(legalBasisIds=[501, 502]),
            headers=USER_HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "All selected legal bases must have the same state"

    def test_validation_error_body(self, client):
        response = client.post(
            "/api/req-identifications",
            json=create_body(legalBasisIds=[]),
            headers=USER_HEADERS,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation failed"
        assert body["errors"][0]["field"] == "legalBasisIds"

    def test_nothing_created_on_rejection(self, client, store, services):
        client.post("/api/req-identifications", json=create_body(legalBasisIds=[999]), headers=USER_HEADERS)

        assert list(store.identifications) == [1]
        assert services.queue.jobs == {}


# ============================================================================
# JOB ENDPOINTS
# ============================================================================

class TestJobStatusEndpoint:
    """Tests for GET /api/req-identifications/jobs/{job_id}."""

    def test_unknown_job(self, client):
        response = client.get("/api/req-identifications/jobs/nope")
        assert response.status_code == 404
        assert response.json() == {"message": "Job not found"}

    def test_active_job(self, client, services):
        job = put_job(services.queue, JobState.ACTIVE, progress=35)

        response = client.get(f"/api/req-identifications/jobs/{job.job_id}")

        assert response.status_code == 200
        assert response.json() == {"status": "active", "message": "Job is still processing", "jobProgress": 35}

    def test_failed_job(self, client, services):
        job = put_job(services.queue, JobState.FAILED, failed_reason="Job was canceled")

        body = client.get(f"/api/req-identifications/jobs/{job.job_id}").json()

        assert body == {"status": "failed", "message": "Job failed", "error": "Job was canceled"}

    def test_delayed_job(self, client, services):
        job = put_job(services.queue, JobState.DELAYED, delay_until=datetime(2999, 1, 1))

        body = client.get(f"/api/req-identifications/jobs/{job.job_id}").json()

        assert body == {"status": "delayed", "message": "Job is delayed and will be processed later"}


class TestCancelEndpoint:
    """Tests for DELETE /api/req-identifications/jobs/{job_id}."""

    def test_cancel_active_job(self, client, services):
        job = put_job(services.queue, JobState.ACTIVE)

        response = client.delete(f"/api/req-identifications/jobs/{job.job_id}")

        assert response.status_code == 200
        assert response.json() == {"message": f"Job {job.job_id} canceled successfully", "jobId": job.job_id}
        assert job.state == JobState.FAILED

    def test_cancel_delayed_job_removes_it(self, client, services):
        job = put_job(services.queue, JobState.DELAYED, delay_until=datetime(2999, 1, 1))

        assert client.delete(f"/api/req-identifications/jobs/{job.job_id}").status_code == 200
        assert job.job_id not in services.queue.jobs

    def test_cancel_completed_job(self, client, services):
        job = put_job(services.queue, JobState.COMPLETED)

        response = client.delete(f"/api/req-identifications/jobs/{job.job_id}")

        assert response.status_code == 400
        assert "completed" in response.json()["message"]

    def test_cancel_unknown_job(self, client):
        assert client.delete("/api/req-identifications/jobs/nope").status_code == 404


class TestPendingJobsEndpoints:
    """Tests for the pending-job lookups."""

    @pytest.fixture
    def pending_job(self, services):
        return put_job(
            services.queue,
            JobState.DELAYED,
            data={"reqIdentificationId": 1, "legalBases": [{"id": 100}], "requirements": [{"id": 1}]},
            delay_until=datetime(2999, 1, 1),
        )

    def test_identification_pending(self, client, pending_job):
        response = client.get("/api/req-identifications/1/pending-jobs")
        assert response.json() == {"hasPendingJobs": True, "jobId": pending_job.job_id}

    def test_identification_not_found(self, client):
        response = client.get("/api/req-identifications/99/pending-jobs")
        assert response.status_code == 404
        assert response.json() == {"message": "Requirement Identification not found"}

    def test_legal_basis_pending(self, client, pending_job):
        assert client.get("/api/legal-basis/100/pending-jobs").json()["hasPendingJobs"] is True
        assert client.get("/api/legal-basis/300/pending-jobs").json() == {"hasPendingJobs": False, "jobId": None}

    def test_legal_basis_not_found(self, client):
        assert client.get("/api/legal-basis/999/pending-jobs").status_code == 404

    def test_requirement_pending(self, client, pending_job):
        assert client.get("/api/requirements/1/pending-jobs").json()["jobId"] == pending_job.job_id
        assert client.get("/api/requirements/2/pending-jobs").json()["hasPendingJobs"] is False

    def test_finished_jobs_are_not_pending(self, client, services):
        put_job(services.queue, JobState.COMPLETED, data={"reqIdentificationId": 1})
        assert client.get("/api/req-identifications/1/pending-jobs").json()["hasPendingJobs"] is False


# ============================================================================
# LINKS AND HEALTH
# ============================================================================

class TestLinksEndpoint:
    """Tests for GET /api/req-identifications/{id}/links."""

    def test_links_after_run(self, client):
        created = client.post("/api/req-identifications", json=create_body(), headers=USER_HEADERS).json()
        wait_for_job(client, created["jobId"])

        response = client.get(f"/api/req-identifications/{created['reqIdentificationId']}/links")

        assert response.status_code == 200
        body = response.json()
        assert [link["requirement_name"] for link in body["requirements"]] == ["A - B - X - REQ-01"]
        assert len(body["articles"]) == 5
        assert len(body["legal_verbs"]) == 2

    def test_links_not_found(self, client):
        assert client.get("/api/req-identifications/99/links").status_code == 404


class TestHealthEndpoint:
    """Tests for the /api/health endpoint."""

    def test_health_check_returns_healthy(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_health_check_timestamp_is_valid_iso_format(self, client):
        timestamp = client.get("/api/health").json()["timestamp"]
        assert datetime.fromisoformat(timestamp)
