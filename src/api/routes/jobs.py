"""Job status API routes."""

import logging
from fastapi import APIRouter, Depends

from api.dependencies import error_response, get_job_store
from api.models import JobSnapshot, JobStatusResponse
from port.job_store import JobStore
from services.webhook_service import job_links

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["jobs"])


@router.get("/test-status/{job_id}", response_model=JobStatusResponse)
async def get_test_status(job_id: str, store: JobStore = Depends(get_job_store)):
    """Get job status by ID.

    Clients poll this endpoint until the job is completed or failed.

    Status flow:
    - queued: waiting for the runner
    - running: test command in progress
    - completed: command exited 0
    - failed: non-zero exit, spawn error or timeout
    """
    try:
        job = store.get(job_id)
        if job is None:
            return error_response(404, "Job not found")

        return JobStatusResponse(
            job=JobSnapshot(**job.to_snapshot()),
            report_url=job_links(job_id)['reportUrl'],
        )
    except Exception as e:
        logger.error("Status check error", extra={"jobId": job_id, "error": str(e)}, exc_info=True)
        return error_response(500, "Internal server error", str(e))
