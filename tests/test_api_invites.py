from datetime import datetime, timedelta, timezone

from dataroom.models.dataroom import Invite

SIGNATURE = {"signer_name": "Jane Investor", "signer_title": "Partner"}


def _create_invite(client, headers, document, email="viewer@example.com"):
    return client.post(
        "/invite",
        json={"email": email, "document_id": str(document.id)},
        headers=headers,
    )


class TestInviteEndpoints:
    def test_invite_claim_approve_flow(
        self, client, auth_headers, viewer, admin_user, confidential_document
    ):
        admin_headers = auth_headers(admin_user)
        viewer_headers = auth_headers(viewer)

        created = _create_invite(client, admin_headers, confidential_document)
        assert created.status_code == 201
        token = created.json()["token"]
        assert created.json()["invite_url"].endswith(f"/invite/{token}")

        preview = client.get(f"/invite/{token}")
        assert preview.status_code == 200
        assert preview.json()["email"] == "viewer@example.com"
        assert preview.json()["document"]["slug"] == "financials"
        assert "content" not in preview.json()["document"]

        claim = client.post(
            f"/invite/{token}/claim", json=SIGNATURE, headers=viewer_headers
        )
        assert claim.status_code == 200
        assert claim.json()["status"] == "pending"
        assert claim.json()["document_slug"] == "financials"
        request_id = claim.json()["request"]["id"]

        denied = client.get("/documents/financials/content", headers=viewer_headers)
        assert denied.status_code == 403
        assert denied.json()["details"] == {"access_status": "pending"}

        approved = client.patch(
            "/admin/access",
            json={"requestId": request_id, "status": "approved"},
            headers=admin_headers,
        )
        assert approved.status_code == 200

        content = client.get("/documents/financials/content", headers=viewer_headers)
        assert content.status_code == 200
        assert content.json()["content"] == confidential_document.content

        reused = client.post(
            f"/invite/{token}/claim", json=SIGNATURE, headers=viewer_headers
        )
        assert reused.status_code == 410
        assert client.get(f"/invite/{token}").status_code == 410

    def test_create_requires_admin(self, client, auth_headers, viewer, confidential_document):
        resp = _create_invite(client, auth_headers(viewer), confidential_document)
        assert resp.status_code == 403

    def test_create_rejects_bad_email(
        self, client, auth_headers, admin_user, confidential_document
    ):
        resp = _create_invite(
            client, auth_headers(admin_user), confidential_document, email="nope"
        )
        assert resp.status_code == 422

    def test_unknown_token(self, client):
        resp = client.get("/invite/does-not-exist")
        assert resp.status_code == 404

    def test_expired_token(self, client, db_session, admin_user, confidential_document):
        invite = Invite(
            token="expired-token",
            email="viewer@example.com",
            document_id=confidential_document.id,
            created_by=admin_user.id,
            expires_at=datetime.now(timezone.utc) - timedelta(hours=1),
        )
        db_session.add(invite)
        db_session.commit()
        resp = client.get("/invite/expired-token")
        assert resp.status_code == 410
        assert resp.json()["code"] == "invite_invalid"

    def test_claim_requires_login(
        self, client, auth_headers, admin_user, confidential_document
    ):
        token = _create_invite(
            client, auth_headers(admin_user), confidential_document
        ).json()["token"]
        resp = client.post(f"/invite/{token}/claim", json=SIGNATURE)
        assert resp.status_code == 401

    def test_claim_with_other_email(
        self, client, auth_headers, admin_user, other_viewer, confidential_document
    ):
        token = _create_invite(
            client, auth_headers(admin_user), confidential_document
        ).json()["token"]
        resp = client.post(
            f"/invite/{token}/claim", json=SIGNATURE, headers=auth_headers(other_viewer)
        )
        assert resp.status_code == 403
        assert client.get(f"/invite/{token}").status_code == 200

    def test_admin_list_invites(
        self, client, auth_headers, admin_user, confidential_document
    ):
        headers = auth_headers(admin_user)
        _create_invite(client, headers, confidential_document)
        resp = client.get("/admin/invites", params={"claimed": False}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["count"] == 1
        assert resp.json()["items"][0]["email"] == "viewer@example.com"
