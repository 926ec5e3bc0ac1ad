"""
Job-fatal errors of the identification pipeline.

These abort the whole run: the identification is marked Failed and a single
failure notification is sent. Per-node failures (one article, one summary
step) are not represented here; they are caught where they happen.
"""


class JobFatalError(Exception):
    """Base class for errors that abort an identification run."""


class JobNotFoundError(JobFatalError):
    def __init__(self, job_id: str):
        super().__init__("Job not found")
        self.job_id = job_id


class JobCanceledError(JobFatalError):
    def __init__(self, job_id: str):
        super().__init__("Job was canceled")
        self.job_id = job_id


class IdentificationNotFoundError(JobFatalError):
    def __init__(self, req_identification_id: int):
        super().__init__(f"Requirement identification {req_identification_id} not found")
        self.req_identification_id = req_identification_id
