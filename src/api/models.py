"""Pydantic models for API request/response.

JSON bodies use camelCase keys; Python attributes stay snake_case.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobSnapshot(CamelModel):
    """Job record as exposed to clients (report contents excluded)."""
    id: str = Field(..., description="Job ID")
    status: str = Field(..., description="Job status: queued, running, completed, failed")
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    source_event: str = Field(..., description="Webhook event that triggered the run")
    subject_id: Optional[str] = Field(None, description="Site ID from the webhook payload")
    stdout: str = ''
    stderr: str = ''
    error: Optional[str] = Field(None, description="Error message if failed")
    report_files: Optional[list[str]] = Field(None, description="Collected report file names")
    text_report: Optional[str] = None


class JobStatusResponse(CamelModel):
    success: bool = True
    job: JobSnapshot
    report_url: str


class RunTestsResponse(CamelModel):
    success: bool = True
    message: str
    job_id: str
    status: str
    status_url: str
    report_url: str


class ReportListingResponse(CamelModel):
    """Returned when the requested file is not part of the collected report."""
    success: bool = True
    job_id: str
    status: str
    report_files: list[str]
    report_url: str
    created_at: datetime
    completed_at: Optional[datetime] = None


class NotReadyResponse(CamelModel):
    success: bool = False
    message: str
    status: str


class ErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None
