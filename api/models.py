"""
API Request/Response Models

Pydantic models for the FastAPI endpoints. Field names on the wire follow
the camelCase keys used by the front end.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.models import IntelligenceLevel


class CreateIdentificationRequest(BaseModel):
    """Request model for POST /api/req-identifications"""

    model_config = ConfigDict(populate_by_name=True)

    req_identification_name: str = Field(
        ...,
        alias="reqIdentificationName",
        min_length=1,
        max_length=255,
        description="Unique name of the identification"
    )
    req_identification_description: Optional[str] = Field(
        None,
        alias="reqIdentificationDescription",
        description="Optional description"
    )
    legal_basis_ids: list[int] = Field(
        ...,
        alias="legalBasisIds",
        min_length=1,
        description="Legal bases to identify requirements for"
    )
    intelligence_level: Optional[IntelligenceLevel] = Field(
        None,
        alias="intelligenceLevel",
        description="High selects the stronger model, anything else the faster one"
    )

    @field_validator("intelligence_level", mode="before")
    @classmethod
    def coerce_intelligence_level(cls, v: Any) -> Optional[IntelligenceLevel]:
        return IntelligenceLevel.coerce(v)


class CreateIdentificationResponse(BaseModel):
    """Response model for POST /api/req-identifications"""

    req_identification_id: int = Field(..., serialization_alias="reqIdentificationId")
    job_id: str = Field(..., serialization_alias="jobId")


class JobStatusResponse(BaseModel):
    """Response model for GET /api/req-identifications/jobs/{job_id}"""

    status: str
    message: str
    job_progress: Optional[int] = Field(
        None,
        serialization_alias="jobProgress",
        ge=0,
        le=100,
        description="Progress percentage 0-100"
    )
    error: Optional[str] = None


class PendingJobsResponse(BaseModel):
    """Response model for the pending-job lookups"""

    has_pending_jobs: bool = Field(..., serialization_alias="hasPendingJobs")
    job_id: Optional[str] = Field(None, serialization_alias="jobId")


class CancelJobResponse(BaseModel):
    """Response model for DELETE /api/req-identifications/jobs/{job_id}"""

    message: str
    job_id: str = Field(..., serialization_alias="jobId")
