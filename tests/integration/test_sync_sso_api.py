"""HTTP tests for provider-initiated SSO account sync."""

import pytest
from sqlmodel import select

from src.forum_admin.core.security import sign_payload
from src.forum_admin.core.services.sso import ExternalIdentityClaim, encode
from src.forum_admin.entities.core.single_sign_on_record import (
    SingleSignOnRecordTable,
)
from src.forum_admin.entities.core.user import UserTable
from tests.fixtures.api import SSO_SECRET

pytestmark = pytest.mark.integration

SYNC = "/admin/users/sync_sso"

BOB = ExternalIdentityClaim(
    external_id="1", name="Bob The Bob", username="bob", email="bob@bob.com"
)


def _form(claim: ExternalIdentityClaim, secret: str = SSO_SECRET) -> dict[str, str]:
    sso, sig = encode(claim, secret)
    return {"sso": sso, "sig": sig}


def _count(session, table) -> int:
    session.expire_all()
    return len(session.exec(select(table)).all())


class TestSyncSSO:
    def test_creates_user(self, client, session, admin, admin_headers):
        """An unseen identity becomes one new user with its mapping."""
        response = client.post(SYNC, data=_form(BOB), headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["username"] == "bob"
        assert body["name"] == "Bob The Bob"
        assert body["email"] == "bob@bob.com"
        assert body["single_sign_on_record"]["external_id"] == "1"
        # the admin plus bob
        assert _count(session, UserTable) == 2
        assert _count(session, SingleSignOnRecordTable) == 1

    def test_overrides_update_existing_user(
        self, client, session, admin_headers, use_sso_config
    ):
        client.post(SYNC, data=_form(BOB), headers=admin_headers)
        use_sso_config(
            email_editable=False,
            overrides_email=True,
            overrides_name=True,
            overrides_username=True,
        )
        changed = ExternalIdentityClaim(
            external_id="1", name="Bill", username="Hokli$$!!", email="bob2@bob.com"
        )

        response = client.post(SYNC, data=_form(changed), headers=admin_headers)

        body = response.json()
        assert (body["username"], body["name"], body["email"]) == (
            "Hokli",
            "Bill",
            "bob2@bob.com",
        )
        assert _count(session, UserTable) == 2

    def test_without_overrides_fields_are_kept(self, client, admin_headers):
        client.post(SYNC, data=_form(BOB), headers=admin_headers)
        changed = BOB.model_copy(update={"name": "Bill", "email": "bob2@bob.com"})

        body = client.post(SYNC, data=_form(changed), headers=admin_headers).json()

        assert body["name"] == "Bob The Bob"
        assert body["email"] == "bob@bob.com"

    def test_blank_email_is_rejected(self, client, session, admin_headers):
        claim = ExternalIdentityClaim(external_id="1")

        response = client.post(SYNC, data=_form(claim), headers=admin_headers)

        assert response.status_code == 403
        assert "Primary email can't be blank" in response.json()["message"]
        assert _count(session, SingleSignOnRecordTable) == 0

    def test_repeated_sync_is_idempotent(self, client, session, admin_headers):
        first = client.post(SYNC, data=_form(BOB), headers=admin_headers).json()
        second = client.post(SYNC, data=_form(BOB), headers=admin_headers).json()

        assert first["id"] == second["id"]
        assert _count(session, SingleSignOnRecordTable) == 1

    def test_bad_signature_is_forbidden(self, client, admin_headers):
        response = client.post(
            SYNC, data=_form(BOB, secret="wrong"), headers=admin_headers
        )

        assert response.status_code == 403
        assert response.json()["failed"] == "FAILED"

    def test_non_ascii_signature_is_forbidden(self, client, session, admin_headers):
        form = {**_form(BOB), "sig": "é" * 64}

        response = client.post(SYNC, data=form, headers=admin_headers)

        assert response.status_code == 403
        assert response.json()["failed"] == "FAILED"
        assert _count(session, SingleSignOnRecordTable) == 0

    def test_signed_non_ascii_payload_is_forbidden(self, client, admin_headers):
        sso = "YWJjé"
        form = {"sso": sso, "sig": sign_payload(sso, SSO_SECRET)}

        response = client.post(SYNC, data=form, headers=admin_headers)

        assert response.status_code == 403

    def test_missing_fields_are_rejected(self, client, admin_headers):
        response = client.post(SYNC, data={}, headers=admin_headers)

        assert response.status_code == 403

    def test_moderator_is_forbidden_before_decoding(
        self, client, session, moderator_headers
    ):
        response = client.post(
            SYNC, data=_form(BOB, secret="wrong"), headers=moderator_headers
        )

        assert response.status_code == 403
        assert response.json()["message"] == (
            "You are not permitted to view the requested resource."
        )
        assert _count(session, SingleSignOnRecordTable) == 0

    def test_disabled_sso_is_not_found(self, client, admin_headers, use_sso_config):
        use_sso_config(enabled=False)

        response = client.post(SYNC, data=_form(BOB), headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "SSO is not enabled"
