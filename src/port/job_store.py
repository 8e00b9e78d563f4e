"""Port definition for JobStore."""

from typing import Callable, Protocol

from domain.model.job import Job


class JobStore(Protocol):
    def create(self, job: Job) -> None: ...
    def get(self, job_id: str) -> Job | None: ...
    def update(self, job_id: str, mutator: Callable[[Job], None]) -> Job: ...
    def list(self) -> list[Job]: ...
    def stats(self) -> dict[str, int]: ...
