"""
Tests for the conversation HTTP API.

Covers the request/response contract, the end-to-end scenarios of the
messaging core and the {error, code} error shape.
"""

from datetime import datetime

import pytest

from squadzone.models.message import Message


def _ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _open_conversation(client, headers, other_id) -> dict:
    response = client.post("/api/conversations", json={"otherId": other_id}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


class TestCreateConversation:
    def test_users_5_and_9_share_conversation_1(self, client, make_user, auth_headers_for):
        user_5 = make_user("Five", user_id=5)
        user_9 = make_user("Nine", user_id=9)

        first = _open_conversation(client, auth_headers_for(user_5), 9)
        second = _open_conversation(client, auth_headers_for(user_9), 5)

        assert first["created"] is True
        assert first["conversation"]["id"] == 1
        assert first["conversation"]["user_a"] == 5
        assert first["conversation"]["user_b"] == 9
        assert second["created"] is False
        assert second["conversation"]["id"] == 1

    def test_response_names_the_other_user(self, client, alice, bob, auth_headers_for):
        body = _open_conversation(client, auth_headers_for(alice), bob.id)
        assert body["conversation"]["other_user"]["name"] == "Bob"

    def test_missing_other_id_is_invalid_argument(self, client, alice, auth_headers_for):
        response = client.post("/api/conversations", json={}, headers=auth_headers_for(alice))

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ARGUMENT"

    def test_non_integer_other_id_is_invalid_argument(self, client, alice, auth_headers_for):
        response = client.post(
            "/api/conversations", json={"otherId": "abc"}, headers=auth_headers_for(alice)
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INVALID_ARGUMENT"
        assert "error" in body

    def test_self_conversation_is_invalid_argument(self, client, alice, auth_headers_for):
        response = client.post(
            "/api/conversations", json={"otherId": alice.id}, headers=auth_headers_for(alice)
        )
        assert response.status_code == 400

    def test_unknown_user_is_not_found(self, client, alice, auth_headers_for):
        response = client.post(
            "/api/conversations", json={"otherId": 777}, headers=auth_headers_for(alice)
        )

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    @pytest.mark.parametrize("other_id", [10**30, "100000000000000000000000000000", -1])
    def test_out_of_range_other_id_is_invalid_argument(
        self, client, alice, auth_headers_for, other_id
    ):
        response = client.post(
            "/api/conversations", json={"otherId": other_id}, headers=auth_headers_for(alice)
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ARGUMENT"

    def test_requires_session(self, client, bob):
        response = client.post("/api/conversations", json={"otherId": bob.id})

        assert response.status_code == 401
        assert response.json() == {"error": "not authenticated", "code": "UNAUTHENTICATED"}

    def test_unknown_token_is_unauthenticated(self, client, bob):
        response = client.post(
            "/api/conversations",
            json={"otherId": bob.id},
            headers={"Authorization": "Bearer not-a-session"},
        )
        assert response.status_code == 401


class TestMessages:
    def test_hi_then_hey_in_order(self, client, alice, bob, auth_headers_for):
        alice_headers = auth_headers_for(alice)
        bob_headers = auth_headers_for(bob)
        conversation_id = _open_conversation(client, alice_headers, bob.id)["conversation"]["id"]

        hi = client.post(
            f"/api/conversations/{conversation_id}/messages", json={"text": "hi"}, headers=alice_headers
        )
        hey = client.post(
            f"/api/conversations/{conversation_id}/messages", json={"text": "hey"}, headers=bob_headers
        )
        assert hi.status_code == 200
        assert hey.status_code == 200

        response = client.get(f"/api/conversations/{conversation_id}/messages", headers=bob_headers)
        assert response.status_code == 200
        messages = response.json()["messages"]

        assert [m["text"] for m in messages] == ["hi", "hey"]
        assert [m["sender_id"] for m in messages] == [alice.id, bob.id]
        assert _ts(messages[0]["created"]) <= _ts(messages[1]["created"])
        assert messages[0]["id"] < messages[1]["id"]
        assert messages[0]["sender_name"] == "Alice"

    def test_send_bumps_last_updated_for_both_sides(self, client, alice, bob, auth_headers_for):
        alice_headers = auth_headers_for(alice)
        conversation_id = _open_conversation(client, alice_headers, bob.id)["conversation"]["id"]

        sent = client.post(
            f"/api/conversations/{conversation_id}/messages",
            json={"text": "hello"},
            headers=alice_headers,
        ).json()["message"]

        for headers in (alice_headers, auth_headers_for(bob)):
            listed = client.get("/api/conversations", headers=headers).json()["conversations"]
            assert listed[0]["id"] == conversation_id
            assert _ts(listed[0]["last_updated"]) >= _ts(sent["created"])

    @pytest.mark.parametrize("body", [{}, {"text": None}, {"text": ""}])
    def test_empty_text_is_persisted(self, client, db, alice, bob, auth_headers_for, body):
        headers = auth_headers_for(alice)
        conversation_id = _open_conversation(client, headers, bob.id)["conversation"]["id"]

        response = client.post(
            f"/api/conversations/{conversation_id}/messages", json=body, headers=headers
        )

        assert response.status_code == 200
        assert response.json()["message"]["text"] == ""
        assert db.query(Message).filter(Message.conversation_id == conversation_id).one().text == ""

    def test_non_string_text_is_invalid_argument(self, client, alice, bob, auth_headers_for):
        headers = auth_headers_for(alice)
        conversation_id = _open_conversation(client, headers, bob.id)["conversation"]["id"]

        response = client.post(
            f"/api/conversations/{conversation_id}/messages", json={"text": 12}, headers=headers
        )
        assert response.status_code == 400

    def test_unauthenticated_send_inserts_nothing(self, client, db, alice, bob, auth_headers_for):
        conversation_id = _open_conversation(client, auth_headers_for(alice), bob.id)[
            "conversation"
        ]["id"]

        response = client.post(
            f"/api/conversations/{conversation_id}/messages", json={"text": "sneaky"}
        )

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHENTICATED"
        assert db.query(Message).count() == 0

    def test_outsider_is_forbidden(self, client, db, alice, bob, carol, auth_headers_for):
        conversation_id = _open_conversation(client, auth_headers_for(alice), bob.id)[
            "conversation"
        ]["id"]
        carol_headers = auth_headers_for(carol)

        send = client.post(
            f"/api/conversations/{conversation_id}/messages",
            json={"text": "hi"},
            headers=carol_headers,
        )
        read = client.get(f"/api/conversations/{conversation_id}/messages", headers=carol_headers)
        detail = client.get(f"/api/conversations/{conversation_id}", headers=carol_headers)

        assert send.status_code == 403
        assert send.json()["code"] == "FORBIDDEN"
        assert read.status_code == 403
        assert detail.status_code == 403
        assert db.query(Message).count() == 0

    def test_missing_conversation_is_not_found(self, client, alice, auth_headers_for):
        response = client.post(
            "/api/conversations/999/messages", json={"text": "hi"}, headers=auth_headers_for(alice)
        )

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_non_integer_path_id_is_invalid_argument(self, client, alice, auth_headers_for):
        response = client.get("/api/conversations/abc/messages", headers=auth_headers_for(alice))
        assert response.status_code == 400

    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/api/conversations/{id}"),
            ("get", "/api/conversations/{id}/messages"),
            ("post", "/api/conversations/{id}/messages"),
        ],
    )
    @pytest.mark.parametrize("bad_id", [10**30, 0])
    def test_out_of_range_path_id_is_invalid_argument(
        self, client, db, alice, auth_headers_for, method, path, bad_id
    ):
        kwargs = {"json": {"text": "hi"}} if method == "post" else {}
        response = getattr(client, method)(
            path.format(id=bad_id), headers=auth_headers_for(alice), **kwargs
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ARGUMENT"
        assert db.query(Message).count() == 0


class TestListConversations:
    def test_lists_by_recency_with_cursor(self, client, make_user, alice, auth_headers_for):
        headers = auth_headers_for(alice)
        ids = [
            _open_conversation(client, headers, make_user(f"Friend {i}").id)["conversation"]["id"]
            for i in range(3)
        ]

        first = client.get("/api/conversations", params={"limit": 2}, headers=headers).json()
        assert [c["id"] for c in first["conversations"]] == [ids[2], ids[1]]
        assert first["next_cursor"]

        second = client.get(
            "/api/conversations",
            params={"limit": 2, "cursor": first["next_cursor"]},
            headers=headers,
        ).json()
        assert [c["id"] for c in second["conversations"]] == [ids[0]]
        assert second["next_cursor"] is None

    def test_invalid_limit(self, client, alice, auth_headers_for):
        response = client.get(
            "/api/conversations", params={"limit": 500}, headers=auth_headers_for(alice)
        )
        assert response.status_code == 400

    def test_get_single_conversation(self, client, alice, bob, auth_headers_for):
        conversation_id = _open_conversation(client, auth_headers_for(alice), bob.id)[
            "conversation"
        ]["id"]

        response = client.get(f"/api/conversations/{conversation_id}", headers=auth_headers_for(bob))

        assert response.status_code == 200
        assert response.json()["conversation"]["other_user"]["id"] == alice.id
