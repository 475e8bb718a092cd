import uuid

from dataroom.models.dataroom import Notification


def _create_notification(db_session, user, **kwargs):
    n = Notification(
        user_id=user.id,
        title=kwargs.get("title", "Access approved"),
        body=kwargs.get("body", 'Your access to "Financial Model" has been approved.'),
        event_type=kwargs.get("event_type", "access.approved"),
        entity_type="access_request",
        entity_id=str(uuid.uuid4()),
        is_read=kwargs.get("is_read", False),
    )
    db_session.add(n)
    db_session.commit()
    db_session.refresh(n)
    return n


class TestNotificationEndpoints:
    def test_list_own_notifications(
        self, client, auth_headers, db_session, viewer, other_viewer
    ):
        _create_notification(db_session, viewer)
        _create_notification(db_session, other_viewer)
        resp = client.get("/notifications", headers=auth_headers(viewer))
        assert resp.status_code == 200
        data = resp.json()
        assert data["count"] == 1
        assert data["items"][0]["user_id"] == str(viewer.id)

    def test_unread_count_and_mark_all(self, client, auth_headers, db_session, viewer):
        headers = auth_headers(viewer)
        _create_notification(db_session, viewer)
        _create_notification(db_session, viewer)
        _create_notification(db_session, viewer, is_read=True)

        assert client.get("/notifications/unread-count", headers=headers).json() == {
            "count": 2
        }
        resp = client.post("/notifications/mark-all-read", headers=headers)
        assert resp.json() == {"marked": 2}
        count = client.get("/notifications/unread-count", headers=headers).json()
        assert count == {"count": 0}

    def test_mark_read_ignores_other_users(
        self, client, auth_headers, db_session, viewer, other_viewer
    ):
        mine = _create_notification(db_session, viewer)
        theirs = _create_notification(db_session, other_viewer)
        resp = client.post(
            "/notifications/mark-read",
            json={"notification_ids": [str(mine.id), str(theirs.id)]},
            headers=auth_headers(viewer),
        )
        assert resp.json() == {"marked": 1}

    def test_other_users_notification_is_not_found(
        self, client, auth_headers, db_session, viewer, other_viewer
    ):
        theirs = _create_notification(db_session, other_viewer)
        resp = client.get(f"/notifications/{theirs.id}", headers=auth_headers(viewer))
        assert resp.status_code == 404

    def test_dismiss(self, client, auth_headers, db_session, viewer):
        headers = auth_headers(viewer)
        n = _create_notification(db_session, viewer)
        resp = client.delete(f"/notifications/{n.id}", headers=headers)
        assert resp.status_code == 204
        assert client.get("/notifications", headers=headers).json()["count"] == 0

    def test_requires_login(self, client):
        assert client.get("/notifications").status_code == 401
