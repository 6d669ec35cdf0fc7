from .job_queue import (
    ADMIN_CONFIRMATION_EMAIL,
    CRITICAL_USER_EMAIL,
    JOB_WORKFLOWS,
    InMemoryJobQueue,
    JobInput,
    JobQueue,
    TemporalJobQueue,
)
from .temporal_client import TemporalClientService

__all__ = [
    "ADMIN_CONFIRMATION_EMAIL",
    "CRITICAL_USER_EMAIL",
    "JOB_WORKFLOWS",
    "InMemoryJobQueue",
    "JobInput",
    "JobQueue",
    "TemporalClientService",
    "TemporalJobQueue",
]
