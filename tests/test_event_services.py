import uuid
from unittest.mock import MagicMock, patch

from dataroom.services.event import EventType, publish_event


class TestEventType:
    def test_all_event_types_have_dotted_values(self) -> None:
        for et in EventType:
            assert "." in et.value, f"{et.name} value should contain a dot"

    def test_access_events(self) -> None:
        assert EventType.access_requested.value == "access.requested"
        assert EventType.access_approved.value == "access.approved"
        assert EventType.access_revoked.value == "access.revoked"

    def test_invite_events(self) -> None:
        assert EventType.invite_created.value == "invite.created"
        assert EventType.invite_claimed.value == "invite.claimed"


class TestPublishEvent:
    @patch("dataroom.tasks.events.process_event.delay")
    def test_publish_event_calls_delay(self, mock_delay: MagicMock) -> None:
        entity_id = uuid.uuid4()
        actor_id = uuid.uuid4()
        doc_id = uuid.uuid4()
        user_id = uuid.uuid4()
        publish_event(
            EventType.access_approved,
            entity_type="access_request",
            entity_id=entity_id,
            actor_id=actor_id,
            document_id=doc_id,
            user_id=user_id,
            payload={"status": "approved"},
        )
        mock_delay.assert_called_once_with(
            event_type="access.approved",
            entity_type="access_request",
            entity_id=str(entity_id),
            actor_id=str(actor_id),
            document_id=str(doc_id),
            user_id=str(user_id),
            payload={"status": "approved"},
        )

    @patch("dataroom.tasks.events.process_event.delay")
    def test_optional_ids_are_none(self, mock_delay: MagicMock) -> None:
        publish_event(EventType.document_created, "document", "abc")
        kwargs = mock_delay.call_args.kwargs
        assert kwargs["actor_id"] is None
        assert kwargs["user_id"] is None
        assert kwargs["payload"] == {}

    @patch(
        "dataroom.tasks.events.process_event.delay",
        side_effect=ConnectionError("broker down"),
    )
    def test_publish_event_never_raises(self, mock_delay: MagicMock) -> None:
        publish_event(EventType.invite_claimed, "invite", uuid.uuid4())
        mock_delay.assert_called_once()
