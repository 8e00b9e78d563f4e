"""Report API routes: collected HTML report files and the text summary."""

import logging
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from api.dependencies import error_response, get_job_store
from api.models import NotReadyResponse, ReportListingResponse
from domain.model.job import JobStatus
from port.job_store import JobStore
from services.report_formatting import content_type_for, reconstruct_text_report

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["reports"])

DEFAULT_REPORT_FILE = 'index.html'


def _not_ready(message: str, job_status: JobStatus) -> JSONResponse:
    body = NotReadyResponse(message=message, status=job_status.value)
    return JSONResponse(status_code=202, content=body.model_dump(by_alias=True))


@router.get("/reports/{job_id}")
async def get_report(
    job_id: str,
    file: str = Query(DEFAULT_REPORT_FILE, description="Report file name"),
    store: JobStore = Depends(get_job_store),
):
    """Serve one file of the collected report.

    - 200 with the file content when the file is part of the report
    - 200 with the file listing when it is not
    - 202 while the report has not been collected
    - 404 for unknown jobs
    """
    try:
        job = store.get(job_id)
        if job is None:
            return error_response(404, "Job not found")

        if not job.has_report:
            return _not_ready("Report not ready yet", job.status)

        if file in job.report_data:
            return Response(content=job.report_data[file], media_type=content_type_for(file))

        listing = ReportListingResponse(
            job_id=job_id,
            status=job.status.value,
            report_files=job.report_files,
            report_url=f"/api/reports/{job_id}?file={DEFAULT_REPORT_FILE}",
            created_at=job.created_at,
            completed_at=job.completed_at,
        )
        return JSONResponse(content=listing.model_dump(mode='json', by_alias=True))
    except Exception as e:
        logger.error("Report serving error", extra={"jobId": job_id, "error": str(e)}, exc_info=True)
        return error_response(500, "Internal server error", str(e))


@router.get("/report-text/{job_id}")
async def get_report_text(job_id: str, store: JobStore = Depends(get_job_store)):
    """Plain-text report; rebuilt from captured output if none was formatted."""
    try:
        job = store.get(job_id)
        if job is None:
            return error_response(404, "Job not found")

        if not job.status.is_terminal:
            return _not_ready("Tests still running", job.status)

        text = job.text_report or reconstruct_text_report(job)
        return PlainTextResponse(text)
    except Exception as e:
        logger.error("Text report error", extra={"jobId": job_id, "error": str(e)}, exc_info=True)
        return error_response(500, "Internal server error", str(e))
