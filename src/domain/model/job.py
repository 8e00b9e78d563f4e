"""Job domain model: one tracked execution of the external test suite."""

from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from domain.model.errors import InvalidTransitionError

_ID_ALPHABET = string.ascii_lowercase + string.digits


class JobStatus(str, Enum):
    """Enumeration of possible job statuses."""
    QUEUED = 'queued'
    RUNNING = 'running'
    COMPLETED = 'completed'
    FAILED = 'failed'

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


# queued -> failed covers a run refused before the command was spawned
_ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.QUEUED: frozenset({JobStatus.RUNNING, JobStatus.FAILED}),
    JobStatus.RUNNING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


def can_transition(current: JobStatus, requested: JobStatus) -> bool:
    """Return True if the lifecycle allows moving from current to requested."""
    if current == requested:
        return True
    return requested in _ALLOWED_TRANSITIONS[current]


def generate_job_id() -> str:
    """Time-based id with a random suffix, e.g. ``test-1730000000000-k3j9x0a1b``."""
    suffix = ''.join(random.choices(_ID_ALPHABET, k=9))
    return f"test-{int(time.time() * 1000)}-{suffix}"


@dataclass
class Job:
    """Domain model representing a single test run."""
    id: str
    status: JobStatus
    created_at: datetime
    source_event: str

    subject_id: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    stdout: str = ''
    stderr: str = ''
    error: str | None = None
    report_files: list[str] | None = None
    report_data: dict[str, str] | None = None
    text_report: str | None = None

    @classmethod
    def create(
        cls,
        source_event: str,
        subject_id: str | None = None,
        job_id: str | None = None,
    ) -> Job:
        """Factory for a new queued job."""
        return cls(
            id=job_id or generate_job_id(),
            status=JobStatus.QUEUED,
            created_at=datetime.now(timezone.utc),
            source_event=source_event,
            subject_id=subject_id,
        )

    # ── lifecycle ────────────────────────────────────────────

    def _transition(self, requested: JobStatus) -> None:
        if self.status == requested or not can_transition(self.status, requested):
            raise InvalidTransitionError(self.id, self.status.value, requested.value)
        self.status = requested

    def mark_running(self) -> None:
        self._transition(JobStatus.RUNNING)
        self.started_at = datetime.now(timezone.utc)

    def mark_completed(self, stdout: str, stderr: str, text_report: str | None = None) -> None:
        self._transition(JobStatus.COMPLETED)
        self.stdout = stdout
        self.stderr = stderr
        self.text_report = text_report
        self.completed_at = datetime.now(timezone.utc)

    def mark_failed(
        self,
        error: str,
        stdout: str = '',
        stderr: str = '',
        text_report: str | None = None,
    ) -> None:
        self._transition(JobStatus.FAILED)
        self.error = error
        self.stdout = stdout
        self.stderr = stderr
        self.text_report = text_report
        self.completed_at = datetime.now(timezone.utc)

    def attach_report(self, files: list[str], data: dict[str, str]) -> None:
        """Store collected report files; both fields are always set together."""
        self.report_files = list(files)
        self.report_data = dict(data)

    # ── views ────────────────────────────────────────────────

    @property
    def has_report(self) -> bool:
        return self.report_files is not None and self.report_data is not None

    @property
    def log_extra(self) -> dict:
        """Common extra fields for structured logging."""
        return {"jobId": self.id, "status": self.status.value}

    def to_snapshot(self) -> dict:
        """Job fields without the bulky report contents."""
        return {
            'id': self.id,
            'status': self.status.value,
            'created_at': self.created_at,
            'started_at': self.started_at,
            'completed_at': self.completed_at,
            'source_event': self.source_event,
            'subject_id': self.subject_id,
            'stdout': self.stdout,
            'stderr': self.stderr,
            'error': self.error,
            'report_files': list(self.report_files) if self.report_files is not None else None,
            'text_report': self.text_report,
        }
