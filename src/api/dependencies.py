"""FastAPI dependencies and application state wiring."""

import logging

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from adapter.memory.job_store import InMemoryJobStore
from adapter.process.test_command import SubprocessTestCommand
from api.models import ErrorResponse
from port.job_store import JobStore
from port.test_runner import TestRunnerPort
from services.webhook_service import WebhookHandler
from utils.config import Settings
from worker.test_runner import TestRunner

logger = logging.getLogger(__name__)


def init_app_state(app: FastAPI, settings: Settings) -> None:
    """Build the job store and test runner once per process."""
    store = InMemoryJobStore()
    command = SubprocessTestCommand(
        command=settings.test_command,
        cwd=settings.test_workdir,
        timeout_seconds=settings.test_timeout_seconds,
        max_output_bytes=settings.max_output_bytes,
        extra_env={'PLAYWRIGHT_JSON_OUTPUT_NAME': str(settings.results_path)},
    )
    app.state.settings = settings
    app.state.job_store = store
    app.state.test_runner = TestRunner(
        store=store,
        command=command,
        report_dir=settings.report_path,
        results_file=settings.results_path,
        serialize_runs=settings.serialize_test_runs,
    )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_job_store(request: Request) -> JobStore:
    return request.app.state.job_store


def get_test_runner(request: Request) -> TestRunnerPort:
    return request.app.state.test_runner


def get_webhook_handler(
    settings: Settings = Depends(get_settings),
    store: JobStore = Depends(get_job_store),
    runner: TestRunnerPort = Depends(get_test_runner),
) -> WebhookHandler:
    return WebhookHandler(secret=settings.webhook_secret, store=store, runner=runner)


def error_response(status_code: int, error: str, message: str | None = None) -> JSONResponse:
    """JSON error body shared by all routes: {"error": ..., "message": ...}."""
    body = ErrorResponse(error=error, message=message).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)
