import json
import uuid
from unittest.mock import MagicMock, patch

from dataroom.tasks.events import process_event
from dataroom.tasks.realtime import (
    build_message,
    channel_for_user,
    relay_access_change,
)

from tests.mocks import FakeRedis


class TestProcessEvent:
    @patch("dataroom.tasks.notifications.dispatch_notifications.delay")
    @patch("dataroom.tasks.realtime.relay_access_change.delay")
    def test_access_event_fans_out_to_both(
        self, mock_relay: MagicMock, mock_notify: MagicMock
    ) -> None:
        user_id = str(uuid.uuid4())
        process_event(
            event_type="access.approved",
            entity_type="access_request",
            entity_id=str(uuid.uuid4()),
            user_id=user_id,
            payload={"status": "approved"},
        )
        mock_relay.assert_called_once()
        assert mock_relay.call_args.kwargs["user_id"] == user_id
        mock_notify.assert_called_once()

    @patch("dataroom.tasks.notifications.dispatch_notifications.delay")
    @patch("dataroom.tasks.realtime.relay_access_change.delay")
    def test_document_event_is_not_relayed(
        self, mock_relay: MagicMock, mock_notify: MagicMock
    ) -> None:
        process_event(
            event_type="document.created",
            entity_type="document",
            entity_id=str(uuid.uuid4()),
        )
        mock_relay.assert_not_called()
        mock_notify.assert_called_once()

    @patch("dataroom.tasks.notifications.dispatch_notifications.delay")
    @patch(
        "dataroom.tasks.realtime.relay_access_change.delay",
        side_effect=RuntimeError("broker down"),
    )
    def test_relay_failure_does_not_block_notifications(
        self, mock_relay: MagicMock, mock_notify: MagicMock
    ) -> None:
        process_event(
            event_type="access.requested",
            entity_type="access_request",
            entity_id=str(uuid.uuid4()),
            user_id=str(uuid.uuid4()),
        )
        mock_notify.assert_called_once()


class TestRealtimeRelay:
    def test_channel_is_per_user(self) -> None:
        assert channel_for_user("abc") == "dataroom:access:abc"

    def test_build_message(self) -> None:
        message = build_message(
            "access.revoked", "access_request", "r1", "d1", "u1", {"status": "revoked"}
        )
        assert message["event"] == "access.revoked"
        assert message["record"] == {
            "id": "r1",
            "user_id": "u1",
            "document_id": "d1",
            "status": "revoked",
        }
        assert message["sent_at"]

    def test_publishes_to_user_channel(self) -> None:
        redis = FakeRedis()
        with patch("dataroom.tasks.realtime._redis_client", return_value=redis):
            relay_access_change(
                event_type="access.approved",
                entity_type="access_request",
                entity_id="r1",
                document_id="d1",
                user_id="u1",
                payload={"status": "approved"},
            )
        channel, raw = redis.published[0]
        assert channel == "dataroom:access:u1"
        assert json.loads(raw)["record"]["status"] == "approved"

    def test_without_user_does_nothing(self) -> None:
        redis = FakeRedis()
        with patch("dataroom.tasks.realtime._redis_client", return_value=redis):
            relay_access_change(
                event_type="access.approved",
                entity_type="access_request",
                entity_id="r1",
            )
        assert redis.published == []
