"""Domain-level exceptions.

Services raise these errors to express business rule violations.
Route handlers catch them and map to appropriate HTTP status codes.
"""


class DomainError(Exception):
    """Base class for all domain errors."""


class NotFoundError(DomainError):
    """Requested entity does not exist."""


class DuplicateError(DomainError):
    """Entity with the same unique key already exists."""


class ConfigurationError(DomainError):
    """Service is missing required configuration (e.g. webhook secret)."""


class AuthenticationError(DomainError):
    """Inbound request could not be authenticated."""


class JobNotFoundError(NotFoundError):
    """No job is registered under the given id."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job {job_id} not found")


class DuplicateJobError(DuplicateError):
    """A job with the same id is already registered."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job {job_id} already exists")


class InvalidTransitionError(DomainError):
    """Job status change is not allowed by the lifecycle."""

    def __init__(self, job_id: str, current: str, requested: str):
        self.job_id = job_id
        self.current = current
        self.requested = requested
        super().__init__(f"Job {job_id} cannot move from {current} to {requested}")


class TestRunError(DomainError):
    """External test command failed for a job."""

    __test__ = False

    def __init__(self, job_id: str, message: str):
        self.job_id = job_id
        super().__init__(message)
