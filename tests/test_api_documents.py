import uuid
from unittest.mock import patch


class TestCatalogEndpoints:
    def test_anonymous_catalog(self, client, public_document, confidential_document):
        resp = client.get("/documents")
        assert resp.status_code == 200
        data = resp.json()
        assert data["count"] == 1
        assert data["items"][0]["slug"] == "overview"
        assert data["items"][0]["access_status"] == "approved"
        assert "content" not in data["items"][0]

    def test_admin_catalog(
        self, client, auth_headers, admin_user, public_document, confidential_document
    ):
        resp = client.get("/documents", headers=auth_headers(admin_user))
        slugs = {item["slug"] for item in resp.json()["items"]}
        assert slugs == {"overview", "financials"}

    def test_document_metadata(self, client, auth_headers, viewer, confidential_document):
        resp = client.get("/documents/financials", headers=auth_headers(viewer))
        assert resp.status_code == 200
        assert resp.json()["access_status"] == "none"
        assert "content" not in resp.json()

    def test_public_content_is_open(self, client, public_document):
        resp = client.get("/documents/overview/content")
        assert resp.status_code == 200
        assert resp.json()["content"] == "Public overview."

    def test_confidential_content_anonymous(self, client, confidential_document):
        resp = client.get("/documents/financials/content")
        assert resp.status_code == 401

    def test_confidential_content_without_request(
        self, client, auth_headers, viewer, confidential_document
    ):
        resp = client.get("/documents/financials/content", headers=auth_headers(viewer))
        assert resp.status_code == 403
        assert resp.json()["details"] == {"access_status": "none"}

    def test_admin_reads_without_request(
        self, client, auth_headers, owner, confidential_document
    ):
        resp = client.get("/documents/financials/content", headers=auth_headers(owner))
        assert resp.status_code == 200

    def test_unknown_slug(self, client):
        assert client.get("/documents/missing/content").status_code == 404

    def test_me(self, client, auth_headers, owner):
        resp = client.get("/me", headers=auth_headers(owner))
        assert resp.status_code == 200
        assert resp.json() == {
            "id": str(owner.id),
            "email": "owner@example.com",
            "role": "viewer",
            "is_admin": True,
        }

    def test_me_requires_login(self, client):
        assert client.get("/me").status_code == 401


class TestAdminDocumentEndpoints:
    def test_crud(self, client, auth_headers, admin_user):
        headers = auth_headers(admin_user)
        created = client.post(
            "/admin/documents",
            json={
                "slug": "board-minutes",
                "title": "Board Minutes",
                "tier": "restricted",
                "content": "Minutes.",
            },
            headers=headers,
        )
        assert created.status_code == 201
        doc_id = created.json()["id"]
        assert created.json()["visibility"] == ["admin"]

        updated = client.patch(
            f"/admin/documents/{doc_id}",
            json={"title": "Board Minutes 2026"},
            headers=headers,
        )
        assert updated.status_code == 200
        assert updated.json()["title"] == "Board Minutes 2026"

        listed = client.get("/admin/documents", headers=headers)
        assert listed.json()["count"] == 1

        deleted = client.delete(f"/admin/documents/{doc_id}", headers=headers)
        assert deleted.status_code == 204
        assert client.get("/documents/board-minutes", headers=headers).status_code == 404
        fetched = client.get(f"/admin/documents/{doc_id}", headers=headers)
        assert fetched.json()["is_active"] is False

    def test_duplicate_slug(self, client, auth_headers, admin_user, confidential_document):
        resp = client.post(
            "/admin/documents",
            json={"slug": "financials", "title": "Again"},
            headers=auth_headers(admin_user),
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == "conflict"

    def test_slug_change_rejected(
        self, client, auth_headers, admin_user, confidential_document
    ):
        resp = client.patch(
            f"/admin/documents/{confidential_document.id}",
            json={"slug": "renamed"},
            headers=auth_headers(admin_user),
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == "validation_error"
        assert all("url" not in err for err in resp.json()["details"])

    def test_null_title_rejected(
        self, client, auth_headers, admin_user, confidential_document
    ):
        resp = client.patch(
            f"/admin/documents/{confidential_document.id}",
            json={"title": None},
            headers=auth_headers(admin_user),
        )
        assert resp.status_code == 422
        assert resp.json()["details"][0]["loc"] == ["body", "title"]
        fetched = client.get(
            f"/admin/documents/{confidential_document.id}",
            headers=auth_headers(admin_user),
        )
        assert fetched.json()["title"] == "Financial Model"

    def test_requires_admin(self, client, auth_headers, viewer):
        resp = client.post(
            "/admin/documents",
            json={"slug": "x", "title": "X"},
            headers=auth_headers(viewer),
        )
        assert resp.status_code == 403

    def test_upload_url(self, client, auth_headers, admin_user, confidential_document):
        with patch("dataroom.services.documents.storage") as mock_storage:
            mock_storage.generate_content_key.return_value = "documents/financials/k/m.md"
            mock_storage.generate_upload_url.return_value = "https://s3.test/put"
            resp = client.post(
                f"/admin/documents/{confidential_document.id}/upload-url",
                json={"file_name": "m.md"},
                headers=auth_headers(admin_user),
            )
        assert resp.status_code == 200
        assert resp.json() == {
            "upload_url": "https://s3.test/put",
            "content_ref": "documents/financials/k/m.md",
        }
        mock_storage.generate_upload_url.assert_called_once_with(
            "documents/financials/k/m.md", "text/markdown"
        )

    def test_upload_url_without_storage(
        self, client, auth_headers, admin_user, confidential_document
    ):
        resp = client.post(
            f"/admin/documents/{confidential_document.id}/upload-url",
            json={"file_name": "m.md"},
            headers=auth_headers(admin_user),
        )
        assert resp.status_code == 503
        assert resp.json()["code"] == "storage_unavailable"


class TestAdminUserEndpoints:
    def test_list_and_promote(self, client, auth_headers, owner, viewer):
        headers = auth_headers(owner)
        users = client.get("/admin/users", params={"order_by": "email"}, headers=headers)
        assert users.status_code == 200
        assert {u["email"] for u in users.json()["items"]} == {
            "owner@example.com",
            "viewer@example.com",
        }

        resp = client.put(
            f"/admin/users/{viewer.id}/role", json={"role": "admin"}, headers=headers
        )
        assert resp.status_code == 200
        assert resp.json()["role"] == "admin"

        me = client.get("/me", headers=auth_headers(viewer))
        assert me.json()["is_admin"] is True

    def test_unknown_user(self, client, auth_headers, owner):
        resp = client.put(
            f"/admin/users/{uuid.uuid4()}/role",
            json={"role": "investor"},
            headers=auth_headers(owner),
        )
        assert resp.status_code == 404


class TestServiceEndpoints:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_metrics(self, client):
        client.get("/health")
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert "dataroom_http_requests_total" in resp.text
