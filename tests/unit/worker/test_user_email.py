"""Unit tests for the email worker: rendering, delivery and registration."""

import json

import httpx
import pytest
from temporalio.exceptions import ApplicationError
from typer.testing import CliRunner

from src.forum_admin.core.services.jobs import (
    ADMIN_CONFIRMATION_EMAIL,
    CRITICAL_USER_EMAIL,
    JOB_WORKFLOWS,
    JobInput,
)
from src.forum_admin.runtime.config.config_data import (
    ConfigData,
    EmailConfig,
    TemporalConfig,
)
from src.forum_admin.runtime.context import with_context
from src.forum_admin.worker.activities.user_email import (
    EMAIL_QUEUE,
    EmailMessage,
    deliver,
    render_email,
)
from src.forum_admin.worker.main import app as worker_app
from src.forum_admin.worker.manager import TemporalWorkerManager

EMAIL_CONFIG = EmailConfig(
    api_url="https://mail.test/send", api_key="mail-key", sender="forum@example.com"
)
MESSAGE = EmailMessage(to="bob@bob.com", subject="Hello", body="Body")


def _job(job_name: str = CRITICAL_USER_EMAIL, **payload) -> JobInput:
    return JobInput(job_name=job_name, payload={"to_address": "bob@bob.com", **payload})


class TestRenderEmail:
    def test_suspension_email(self):
        message = render_email(
            _job(
                type="account_suspended",
                reason="spam",
                message="Please stop.",
                suspended_till="2100-01-01T00:00:00+00:00",
            )
        )

        assert message.to == "bob@bob.com"
        assert message.subject == "Your account has been suspended"
        assert "2100-01-01" in message.body
        assert "Reason: spam" in message.body
        assert message.body.endswith("Please stop.")

    def test_silence_email_without_reason(self):
        message = render_email(_job(type="account_silenced", silenced_till="soon"))

        assert "No reason was given." in message.body

    def test_account_created_email_links_password_page(self):
        message = render_email(
            _job(type="account_created", password_url="http://forum.test/u/p/abc")
        )

        assert "http://forum.test/u/p/abc" in message.body

    def test_admin_confirmation_email(self):
        message = render_email(
            _job(
                ADMIN_CONFIRMATION_EMAIL,
                target_username="regular",
                confirm_url="http://forum.test/admin/users/confirm-admin/t",
            )
        )

        assert message.subject == "Confirm admin access for regular"
        assert "confirm-admin/t" in message.body

    @pytest.mark.parametrize(
        "job",
        [
            _job(type="account_exploded"),
            _job("unknown_job"),
            JobInput(job_name=CRITICAL_USER_EMAIL, payload={"type": "account_created"}),
        ],
    )
    def test_unrenderable_jobs_are_not_retried(self, job):
        with pytest.raises(ApplicationError) as exc_info:
            render_email(job)

        assert exc_info.value.non_retryable is True


class TestDeliver:
    async def test_posts_message_with_idempotency_key(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(202)

        await deliver(MESSAGE, EMAIL_CONFIG, "key-1", httpx.MockTransport(handler))

        [request] = seen
        assert str(request.url) == "https://mail.test/send"
        assert request.headers["Authorization"] == "Bearer mail-key"
        assert request.headers["Idempotency-Key"] == "key-1"
        body = json.loads(request.content)
        assert body["from"] == {"email": "forum@example.com"}
        assert body["personalizations"][0]["to"] == [{"email": "bob@bob.com"}]

    @pytest.mark.parametrize("status", [429, 500, 503])
    async def test_transient_failures_are_retryable(self, status):
        transport = httpx.MockTransport(lambda request: httpx.Response(status))

        with pytest.raises(RuntimeError):
            await deliver(MESSAGE, EMAIL_CONFIG, "key", transport)

    async def test_client_errors_are_final(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(400, text="bad"))

        with pytest.raises(ApplicationError) as exc_info:
            await deliver(MESSAGE, EMAIL_CONFIG, "key", transport)

        assert exc_info.value.non_retryable is True

    async def test_missing_provider_config_is_final(self):
        with pytest.raises(ApplicationError) as exc_info:
            await deliver(MESSAGE, EmailConfig(), "key")

        assert exc_info.value.type == "ConfigurationError"


class TestRegistration:
    def test_workflows_match_job_names(self):
        """Every job the API can enqueue has a workflow on the email queue."""
        pool = TemporalWorkerManager().pools[EMAIL_QUEUE]

        names = {wf.__name__ for wf in pool.workflows}
        assert set(JOB_WORKFLOWS.values()) <= names
        assert [act.__name__ for act in pool.activities] == ["send_user_email"]

    def test_serve_refuses_when_temporal_disabled(self):
        runner = CliRunner()

        with with_context(ConfigData(temporal=TemporalConfig(enabled=False))):
            result = runner.invoke(worker_app, ["serve"])

        assert result.exit_code == 2

    def test_serve_rejects_unknown_queue(self):
        runner = CliRunner()

        with with_context(ConfigData(temporal=TemporalConfig(enabled=True))):
            result = runner.invoke(worker_app, ["serve", "--queue", "nope"])

        assert result.exit_code == 2
