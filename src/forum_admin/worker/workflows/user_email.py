# worker/workflows/user_email.py
from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from src.forum_admin.core.services.jobs.job_queue import JobInput
    from src.forum_admin.worker.activities.user_email import (
        EMAIL_QUEUE,
        send_user_email,
    )
    from src.forum_admin.worker.registry import workflow_defn

EMAIL_RETRY = RetryPolicy(
    initial_interval=timedelta(seconds=5),
    backoff_coefficient=2.0,
    maximum_interval=timedelta(minutes=10),
    maximum_attempts=10,
    non_retryable_error_types=["ValidationError", "ConfigurationError"],
)


async def _send(job: JobInput) -> None:
    await workflow.execute_activity(
        send_user_email,
        job,
        start_to_close_timeout=timedelta(seconds=30),
        retry_policy=EMAIL_RETRY,
    )


@workflow_defn(queue=EMAIL_QUEUE)
class CriticalUserEmailWorkflow:
    """Suspension, silence and account-created notices to a user."""

    @workflow.run
    async def run(self, job: JobInput) -> None:
        workflow.logger.info("critical user email: %s", job.payload.get("type"))
        await _send(job)


@workflow_defn(queue=EMAIL_QUEUE)
class AdminConfirmationEmailWorkflow:
    """Asks the granting admin to confirm a new admin."""

    @workflow.run
    async def run(self, job: JobInput) -> None:
        await _send(job)
