"""In-memory implementation of JobStore.

Jobs live only for the lifetime of the process. The id map is guarded by a
store-wide lock; each job additionally has its own lock so that updates to
different jobs never wait on each other while read-modify-write on one job
stays atomic.

Updates are copy-on-write: the mutator runs against a copy and the copy is
committed only if it did not break the job lifecycle.
"""

import copy
import logging
import threading
from collections import Counter
from typing import Callable

from domain.model.errors import DuplicateJobError, InvalidTransitionError, JobNotFoundError
from domain.model.job import Job, JobStatus, can_transition

logger = logging.getLogger(__name__)


class InMemoryJobStore:
    def __init__(self):
        self._jobs: dict[str, Job] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._map_lock = threading.Lock()

    # ── write operations ─────────────────────────────────────

    def create(self, job: Job) -> None:
        with self._map_lock:
            if job.id in self._jobs:
                raise DuplicateJobError(job.id)
            self._jobs[job.id] = copy.deepcopy(job)
            self._locks[job.id] = threading.Lock()
        logger.info("Job created", extra=job.log_extra)

    def update(self, job_id: str, mutator: Callable[[Job], None]) -> Job:
        """Apply mutator to the job atomically and return the committed copy.

        Raises:
            JobNotFoundError: no job with this id.
            InvalidTransitionError: the mutation would move the job out of
                a terminal status or along a path the lifecycle forbids.
        """
        with self._map_lock:
            lock = self._locks.get(job_id)
        if lock is None:
            raise JobNotFoundError(job_id)

        with lock:
            current = self._jobs[job_id]
            draft = copy.deepcopy(current)
            mutator(draft)

            if draft.id != current.id:
                raise ValueError(f"Job id is immutable (got {draft.id!r} for {job_id!r})")
            if not can_transition(current.status, draft.status):
                logger.warning("Rejected job status change", extra={
                    "jobId": job_id,
                    "status": current.status.value,
                    "requestedStatus": draft.status.value,
                })
                raise InvalidTransitionError(job_id, current.status.value, draft.status.value)

            self._jobs[job_id] = draft
            if draft.status != current.status:
                logger.info("Job status changed", extra={
                    "jobId": job_id,
                    "status": draft.status.value,
                    "previousStatus": current.status.value,
                })
            return copy.deepcopy(draft)

    # ── read operations ──────────────────────────────────────

    def get(self, job_id: str) -> Job | None:
        with self._map_lock:
            lock = self._locks.get(job_id)
        if lock is None:
            return None
        with lock:
            return copy.deepcopy(self._jobs[job_id])

    def list(self) -> list[Job]:
        with self._map_lock:
            job_ids = list(self._jobs)
        jobs = [self.get(job_id) for job_id in job_ids]
        return sorted((job for job in jobs if job), key=lambda job: job.created_at)

    def stats(self) -> dict[str, int]:
        counts = Counter(job.status for job in self.list())
        stats = {status.value: counts.get(status, 0) for status in JobStatus}
        stats['total'] = sum(counts.values())
        return stats
