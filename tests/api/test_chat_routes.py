"""Integration tests for chat screen routes.

These tests verify the behavior of the /chat endpoints:
- GET /chat/state - Full screen snapshot
- POST /chat/query - Filtered message listing
- GET /chat/messages/{id} - Single message lookup
- POST /chat/send, /chat/image - Sending
- POST /chat/photo-access - Capability prompt
- POST /chat/typing - Remote typing indicator
- POST /chat/react - Reactions
- POST /chat/connect, /chat/disconnect - Simulated connection
- POST /chat/sample-messages - Canned conversation
"""

from datetime import datetime, timedelta

import pytest

from models.capability import PHOTO_LIBRARY
from tests.fixtures.core.times import START_TIME
from tests.fixtures.screens.chat import REPLY_POOL


def parse_time(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class TestChatState:
    def test_initial_state(self, client_with_chat):
        client, _, _ = client_with_chat

        response = client.get("/chat/state")

        assert response.status_code == 200
        data = response.json()
        assert data["messages"] == []
        assert data["message_count"] == 0
        assert data["typing"] == {"other-user": False}
        assert data["typing_users"] == []
        assert data["connection_status"] == "connected"
        assert data["capabilities"][PHOTO_LIBRARY] == "not_determined"
        assert data["last_fault"] is None
        assert parse_time(data["current_time"]) == START_TIME

    def test_state_reflects_manager(self, client_with_chat):
        client, _, chat = client_with_chat
        chat.send_message("from the model side")

        data = client.get("/chat/state").json()

        assert data["message_count"] == 1
        assert data["messages"][0]["content"] == "from the model side"
        assert data["pending_callbacks"] == 2


class TestSend:
    def test_send_returns_sending_message(self, client_with_chat):
        client, _, chat = client_with_chat

        response = client.post("/chat/send", json={"content": "Hello!"})

        assert response.status_code == 200
        data = response.json()
        assert data["action"] == "send_message"
        assert data["applied"] is True
        assert data["chat_message"]["status"] == "sending"
        assert data["chat_message"]["sender_id"] == "current-user"
        assert chat.messages[0].message_id == data["chat_message"]["message_id"]

    def test_delivery_and_reply_through_time_control(self, client_with_chat):
        client, _, _ = client_with_chat
        client.post("/chat/send", json={"content": "Hello!"})

        client.post("/scheduler/time/advance", json={"seconds": 0.5})
        messages = client.get("/chat/state").json()["messages"]
        assert [m["status"] for m in messages] == ["delivered"]

        client.post("/scheduler/time/advance", json={"seconds": 1.5})
        messages = client.get("/chat/state").json()["messages"]
        assert len(messages) == 2
        assert messages[1]["sender_id"] == "other-user"
        assert messages[1]["content"] in REPLY_POOL

    def test_send_with_reply_to(self, client_with_chat):
        client, _, _ = client_with_chat
        first = client.post("/chat/send", json={"content": "question"}).json()["chat_message"]

        response = client.post(
            "/chat/send",
            json={"content": "follow-up", "reply_to_id": first["message_id"]},
        )

        assert response.json()["chat_message"]["reply_to_id"] == first["message_id"]

    def test_blank_content_rejected(self, client_with_chat):
        client, _, chat = client_with_chat

        assert client.post("/chat/send", json={"content": ""}).status_code == 422
        assert client.post("/chat/send", json={"content": "   "}).status_code == 422
        assert chat.messages == ()

    def test_send_does_not_need_running_scheduler(self, client_stopped):
        client, _, chat = client_stopped

        response = client.post("/chat/send", json={"content": "queued"})

        assert response.status_code == 200
        assert len(chat.messages) == 1


class TestImages:
    def test_image_without_permission_is_403(self, client_with_chat):
        client, _, chat = client_with_chat

        response = client.post("/chat/image", json={"attachment_ref": "photo-1", "caption": "sunset"})

        assert response.status_code == 403
        data = response.json()
        assert data["kind"] == "permission_denied"
        assert data["recoverable"] is True
        assert data["details"] == {"capability": PHOTO_LIBRARY}
        assert chat.messages == ()
        assert client.get("/chat/state").json()["last_fault"]["kind"] == "permission_denied"

    def test_photo_access_then_image(self, client_with_chat):
        client, _, _ = client_with_chat

        prompt = client.post("/chat/photo-access")
        assert prompt.status_code == 200
        assert prompt.json()["status"] == "not_determined"
        assert prompt.json()["request_id"] is not None

        client.post("/scheduler/time/advance", json={"seconds": 0.3})
        state = client.get("/chat/state").json()
        assert state["capabilities"][PHOTO_LIBRARY] == "granted"

        response = client.post("/chat/image", json={"attachment_ref": "photo-1", "caption": "sunset"})

        assert response.status_code == 200
        sent = response.json()["chat_message"]
        assert sent["message_type"] == "image"
        assert sent["attachment_ref"] == "photo-1"

    def test_photo_access_when_already_granted(self, client_with_chat):
        client, _, chat = client_with_chat
        chat.capabilities.set_status(PHOTO_LIBRARY, True)

        data = client.post("/chat/photo-access").json()

        assert data["status"] == "granted"
        assert data["request_id"] is None

    def test_missing_attachment_rejected(self, client_with_chat):
        client, _, _ = client_with_chat

        assert client.post("/chat/image", json={"caption": "no photo"}).status_code == 422


class TestTyping:
    def test_typing_on_and_timeout(self, client_with_chat):
        client, _, _ = client_with_chat

        response = client.post("/chat/typing", json={"is_typing": True})
        assert response.status_code == 200
        assert client.get("/chat/state").json()["typing_users"] == ["other-user"]

        client.post("/scheduler/time/advance", json={"seconds": 3})

        assert client.get("/chat/state").json()["typing_users"] == []

    def test_typing_off(self, client_with_chat):
        client, _, _ = client_with_chat
        client.post("/chat/typing", json={"is_typing": True})

        response = client.post("/chat/typing", json={"is_typing": False})

        assert response.json()["message"] == "Typing stopped"
        assert client.get("/chat/state").json()["typing"] == {"other-user": False}


class TestReactions:
    def test_react(self, client_with_chat):
        client, _, _ = client_with_chat
        sent = client.post("/chat/send", json={"content": "react"}).json()["chat_message"]

        client.post("/chat/react", json={"message_id": sent["message_id"], "symbol": "👍"})
        response = client.post("/chat/react", json={"message_id": sent["message_id"], "symbol": "👍"})

        assert response.status_code == 200
        assert response.json()["chat_message"]["reactions"] == {"👍": 2}

    def test_react_to_unknown_message_is_noop(self, client_with_chat):
        client, _, _ = client_with_chat

        response = client.post("/chat/react", json={"message_id": "nope", "symbol": "👍"})

        assert response.status_code == 200
        assert response.json()["applied"] is False
        assert response.json()["chat_message"] is None

    def test_empty_symbol_rejected(self, client_with_chat):
        client, _, _ = client_with_chat

        response = client.post("/chat/react", json={"message_id": "x", "symbol": ""})

        assert response.status_code == 422


class TestConnection:
    def test_connect_then_connected(self, client_with_chat):
        client, _, _ = client_with_chat

        response = client.post("/chat/connect")

        assert response.status_code == 200
        assert response.json()["connection_status"] == "connecting"
        assert response.json()["request_id"] is not None

        client.post("/scheduler/time/advance", json={"seconds": 1})
        assert client.get("/chat/state").json()["connection_status"] == "connected"

    def test_connect_timeout_records_fault(self, client_with_chat):
        client, _, chat = client_with_chat
        chat.config = chat.config.model_copy(update={"connect_delay": 5.0})

        client.post("/chat/connect", json={"timeout": 1.0})
        client.post("/scheduler/time/advance", json={"seconds": 1})

        state = client.get("/chat/state").json()
        assert state["connection_status"] == "disconnected"
        assert state["last_fault"]["kind"] == "timeout"

    def test_disconnect(self, client_with_chat):
        client, _, _ = client_with_chat
        client.post("/chat/connect")

        response = client.post("/chat/disconnect")

        assert response.json()["connection_status"] == "disconnected"
        client.post("/scheduler/time/advance", json={"seconds": 5})
        assert client.get("/chat/state").json()["connection_status"] == "disconnected"


class TestMessagesAndQuery:
    def test_sample_messages(self, client_with_chat):
        client, _, _ = client_with_chat

        response = client.post("/chat/sample-messages")

        assert response.status_code == 200
        data = response.json()
        assert data["message_count"] == 4
        assert data["messages"][0]["message_type"] == "system"
        assert all(m["status"] == "read" for m in data["messages"])

    def test_get_message(self, client_with_chat):
        client, _, _ = client_with_chat
        sent = client.post("/chat/send", json={"content": "find me"}).json()["chat_message"]

        response = client.get(f"/chat/messages/{sent['message_id']}")

        assert response.status_code == 200
        assert response.json()["content"] == "find me"

    def test_get_missing_message_is_404(self, client_with_chat):
        client, _, _ = client_with_chat

        response = client.get("/chat/messages/missing")

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"
        assert response.json()["detail"] == "Message 'missing' not found"

    def test_query(self, client_with_chat):
        client, _, _ = client_with_chat
        client.post("/chat/sample-messages")

        response = client.post("/chat/query", json={"sender_id": "other-user", "limit": 1})

        assert response.status_code == 200
        data = response.json()
        assert data["total_count"] == 2
        assert data["returned_count"] == 1
        assert data["messages"][0]["content"] == "Hey! How's it going?"
        assert data["query"] == {"sender_id": "other-user", "limit": 1, "offset": 0}

    def test_query_by_time_window(self, client_with_chat):
        client, _, _ = client_with_chat
        client.post("/chat/sample-messages")
        since = (START_TIME - timedelta(seconds=3550)).isoformat()

        data = client.post("/chat/query", json={"since": since}).json()

        assert data["total_count"] == 2

    @pytest.mark.parametrize("bound", ["since", "until"])
    def test_query_rejects_naive_time_bounds(self, client_with_chat, bound):
        client, _, _ = client_with_chat

        response = client.post("/chat/query", json={bound: "2020-01-01T00:00:00"})

        assert response.status_code == 422

    def test_query_rejects_unknown_status(self, client_with_chat):
        client, _, _ = client_with_chat

        assert client.post("/chat/query", json={"status": "lost"}).status_code == 422
