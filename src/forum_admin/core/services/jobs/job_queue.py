"""Fire-and-forget background job dispatch.

Callers hand a job name and a flat payload to ``JobQueue.enqueue`` and move
on; delivery failures are logged, never raised to the caller.
"""

import asyncio
import uuid
from concurrent.futures import Future
from datetime import timedelta
from typing import Any, Protocol

from loguru import logger
from pydantic import BaseModel, Field

from src.forum_admin.core.errors import JobEnqueueError
from src.forum_admin.core.services.jobs.temporal_client import TemporalClientService

CRITICAL_USER_EMAIL = "critical_user_email"
ADMIN_CONFIRMATION_EMAIL = "admin_confirmation_email"

# job name -> Temporal workflow type
JOB_WORKFLOWS: dict[str, str] = {
    CRITICAL_USER_EMAIL: "CriticalUserEmailWorkflow",
    ADMIN_CONFIRMATION_EMAIL: "AdminConfirmationEmailWorkflow",
}


class JobInput(BaseModel):
    """What a job carries to the worker."""

    job_name: str
    payload: dict[str, Any] = Field(default_factory=dict)


class JobQueue(Protocol):
    def enqueue(self, job_name: str, **payload: Any) -> None: ...


class InMemoryJobQueue:
    """Records jobs instead of running them; the default outside production."""

    def __init__(self) -> None:
        self.jobs: list[JobInput] = []

    def enqueue(self, job_name: str, **payload: Any) -> None:
        self.jobs.append(JobInput(job_name=job_name, payload=payload))
        logger.bind(job_name=job_name).debug("Job recorded")

    def named(self, job_name: str) -> list[JobInput]:
        return [job for job in self.jobs if job.job_name == job_name]

    def clear(self) -> None:
        self.jobs.clear()


class TemporalJobQueue:
    """Starts one Temporal workflow per job without waiting on it.

    ``bind_loop`` must be called from the application's event loop at
    startup; sync route handlers run in worker threads and schedule onto it.
    """

    def __init__(self, temporal_service: TemporalClientService) -> None:
        self._temporal = temporal_service
        self._loop: asyncio.AbstractEventLoop | None = None
        self._pending: set[asyncio.Task[None] | Future[None]] = set()

    def bind_loop(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()

    def enqueue(self, job_name: str, **payload: Any) -> None:
        workflow = JOB_WORKFLOWS.get(job_name)
        if workflow is None:
            raise JobEnqueueError(f"Unknown job: {job_name}", {"job_name": job_name})
        if self._loop is None:
            raise JobEnqueueError(
                "Job queue is not bound to an event loop", {"job_name": job_name}
            )

        coro = self._start(workflow, JobInput(job_name=job_name, payload=payload))
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            pending: asyncio.Task[None] | Future[None] = self._loop.create_task(coro)
        else:
            pending = asyncio.run_coroutine_threadsafe(coro, self._loop)

        self._pending.add(pending)
        pending.add_done_callback(self._finished)

    async def _start(self, workflow: str, job: JobInput) -> None:
        client = await self._temporal.get_client()
        workflow_id = f"{job.job_name}-{uuid.uuid4()}"
        await client.start_workflow(
            workflow,
            job,
            id=workflow_id,
            task_queue=self._temporal.task_queue,
            execution_timeout=timedelta(seconds=self._temporal.execution_timeout_s),
        )
        logger.bind(job_name=job.job_name, workflow_id=workflow_id).info(
            "Job workflow started"
        )

    def _finished(self, pending: "asyncio.Task[None] | Future[None]") -> None:
        self._pending.discard(pending)
        if pending.cancelled():
            return
        error = pending.exception()
        if error is not None:
            logger.bind(error_type=type(error).__name__, error_message=str(error)).error(
                "Failed to start job workflow"
            )

    async def drain(self) -> None:
        """Wait for in-flight workflow starts; used at shutdown."""
        tasks = [
            asyncio.wrap_future(p) if isinstance(p, Future) else p
            for p in self._pending
        ]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
