"""FastAPI application entry point."""

import sys
import logging
import tomllib
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load environment variables from .env file
# Must be called before Settings.from_env()
load_dotenv()

# main.py is at <root>/src/api/main.py, src is two levels up
_src_path = Path(__file__).parent.parent
sys.path.insert(0, str(_src_path))

from api.dependencies import init_app_state
from api.routes import health, jobs, reports, run_tests, webhook
from utils.config import Settings
from utils.logging import setup_structured_logging

# Set up structured JSON logging
setup_structured_logging()

logger = logging.getLogger(__name__)

# Read version from pyproject.toml (single source of truth)
_project_root = _src_path.parent
with open(_project_root / "pyproject.toml", "rb") as f:
    VERSION = tomllib.load(f)["project"]["version"]

SERVICE_NAME = "Publish Test Hook API"

settings = Settings.from_env()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown logic."""
    if not app.state.settings.webhook_secret:
        logger.warning("WEBFLOW_WEBHOOK_SECRET not configured; webhook requests will fail with 500")
    logger.info("Service ready", extra={
        "reportDir": str(app.state.settings.report_path),
        "serializeTestRuns": app.state.settings.serialize_test_runs,
    })

    yield  # App runs here

    # Shutdown: stop in-flight test runs
    runner = getattr(app.state, "test_runner", None)
    if runner is not None and hasattr(runner, "shutdown"):
        await runner.shutdown()


# Create FastAPI app
app = FastAPI(
    title=SERVICE_NAME,
    description="Receives CMS publish webhooks and runs the browser test suite",
    version=VERSION,
    lifespan=lifespan,
)
init_app_state(app, settings)

# CORS: wildcard origins cannot be combined with credentials
if settings.cors_origins == "*":
    cors_origins = ["*"]
    allow_credentials = False
else:
    cors_origins = [origin.strip() for origin in settings.cors_origins.split(",")]
    allow_credentials = True
    logger.info(f"CORS configured with specific origins: {cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routes
app.include_router(webhook.router)
app.include_router(run_tests.router)
app.include_router(jobs.router)
app.include_router(reports.router)
app.include_router(health.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "status": "running",
        "endpoints": {
            "webhook": "/api/webhook",
            "runTests": "/api/run-tests",
            "testStatus": "/api/test-status/:jobId",
            "reports": "/api/reports/:jobId",
            "reportText": "/api/report-text/:jobId",
            "health": "/health",
        },
    }


if __name__ == "__main__":
    import uvicorn
    # Disable uvicorn access logs to reduce noise
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=settings.port,
        access_log=False,
    )
