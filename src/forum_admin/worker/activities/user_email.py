# worker/activities/user_email.py
from __future__ import annotations

import hashlib

import httpx
from pydantic import BaseModel
from temporalio import activity
from temporalio.exceptions import ApplicationError

from src.forum_admin.core.services.jobs.job_queue import (
    ADMIN_CONFIRMATION_EMAIL,
    CRITICAL_USER_EMAIL,
    JobInput,
)
from src.forum_admin.runtime.config.config_data import EmailConfig
from src.forum_admin.runtime.context import get_config
from src.forum_admin.worker.registry import activity_defn

EMAIL_QUEUE = "email"


class EmailMessage(BaseModel):
    to: str
    subject: str
    body: str


def _critical_user_email(payload: dict) -> EmailMessage:
    kind = payload.get("type")
    reason = payload.get("reason") or "No reason was given."
    message = payload.get("message") or ""

    if kind == "account_suspended":
        subject = "Your account has been suspended"
        body = (
            f"Your account is suspended until {payload.get('suspended_till')}.\n\n"
            f"Reason: {reason}\n\n{message}"
        )
    elif kind == "account_silenced":
        subject = "Your account has been silenced"
        body = (
            f"You cannot post until {payload.get('silenced_till')}.\n\n"
            f"Reason: {reason}\n\n{message}"
        )
    elif kind == "account_created":
        subject = "An administrator account was created for you"
        body = (
            "An account with administrator access was created for you.\n\n"
            f"Choose a password here: {payload.get('password_url')}"
        )
    else:
        raise ApplicationError(
            f"Unknown critical email type: {kind}",
            type="ValidationError",
            non_retryable=True,
        )
    return EmailMessage(to=payload["to_address"], subject=subject, body=body.strip())


def _admin_confirmation_email(payload: dict) -> EmailMessage:
    return EmailMessage(
        to=payload["to_address"],
        subject=f"Confirm admin access for {payload.get('target_username')}",
        body=(
            f"You asked to grant admin access to {payload.get('target_username')}.\n\n"
            f"Confirm the grant here: {payload.get('confirm_url')}"
        ),
    )


def render_email(job: JobInput) -> EmailMessage:
    """Build the outgoing message for a job.

    Raises:
        ApplicationError: non-retryable, when the job cannot be rendered
    """
    if not job.payload.get("to_address"):
        raise ApplicationError(
            f"{job.job_name} has no recipient",
            type="ValidationError",
            non_retryable=True,
        )
    if job.job_name == CRITICAL_USER_EMAIL:
        return _critical_user_email(job.payload)
    if job.job_name == ADMIN_CONFIRMATION_EMAIL:
        return _admin_confirmation_email(job.payload)
    raise ApplicationError(
        f"No email template for job {job.job_name}",
        type="ValidationError",
        non_retryable=True,
    )


def _idempotency_key(message: EmailMessage) -> str:
    """Stable across retries of the same activity so the provider sends once."""
    info = activity.info()
    payload_hash = hashlib.sha256(
        (message.to + "\x1f" + message.subject + "\x1f" + message.body).encode("utf-8")
    ).hexdigest()
    return f"email:{info.workflow_id}:{info.activity_id}:{payload_hash}"


async def deliver(
    message: EmailMessage,
    config: EmailConfig,
    idempotency_key: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """POST ``message`` to the email provider.

    5xx and 429 responses raise plain errors so Temporal retries them; any
    other failure status is non-retryable.
    """
    if not config.api_url or not config.api_key:
        raise ApplicationError(
            "Email provider not configured",
            type="ConfigurationError",
            non_retryable=True,
        )

    payload = {
        "from": {"email": config.sender},
        "personalizations": [{"to": [{"email": message.to}], "subject": message.subject}],
        "content": [{"type": "text/plain", "value": message.body}],
    }
    headers = {
        "Authorization": f"Bearer {config.api_key}",
        "Idempotency-Key": idempotency_key,
        "Content-Type": "application/json",
        "User-Agent": "forum-admin-worker/email",
    }

    async with httpx.AsyncClient(
        timeout=config.http_timeout, transport=transport
    ) as client:
        resp = await client.post(config.api_url, json=payload, headers=headers)

    if 200 <= resp.status_code < 300:
        return

    if 500 <= resp.status_code < 600 or resp.status_code == 429:
        raise RuntimeError(f"Provider {resp.status_code}: {resp.text[:200]}")

    raise ApplicationError(
        f"Email send failed {resp.status_code}: {resp.text[:200]}",
        type="ValidationError",
        non_retryable=True,
    )


@activity_defn(queue=EMAIL_QUEUE)
async def send_user_email(job: JobInput) -> None:
    """Render and send the email a job asks for."""
    message = render_email(job)
    activity.logger.info("Sending %s email", job.job_name)
    await deliver(message, get_config().email, _idempotency_key(message))
