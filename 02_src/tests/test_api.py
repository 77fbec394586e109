"""Tests for the HTTP and WebSocket API."""

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient

from teamchat import Application
from teamchat.api import create_fastapi_app, set_app
from teamchat.api.routes.realtime import parse_filters
from teamchat.sounds import MemorySink

OWNER = "owner-1"


@pytest.fixture
def client(tmp_path):
    set_app(Application(db_path=":memory:", files_dir=tmp_path / "files", sound_sink=MemorySink()))
    with TestClient(create_fastapi_app()) as test_client:
        yield test_client
    set_app(None)


def post_team(client, user_id="alice-1", text="hello", **extra):
    return client.post(
        f"/api/teams/{OWNER}/messages",
        json={"user_id": user_id, "name": user_id.split("-")[0].title(), "text": text, **extra},
    )


def join(client, name, email, user_id):
    client.post(f"/api/teams/{OWNER}/members", json={"name": name, "email": email})
    return client.post("/api/members/link", json={"user_id": user_id, "email": email})


class TestMessagingApi:
    """Tests for messaging routes."""

    def test_send_and_list(self, client):
        first = post_team(client, text="hello")
        assert first.status_code == 200
        post_team(client, user_id="bob-1", text="hi alice", reply_to_id=first.json()["id"])

        response = client.get(f"/api/teams/{OWNER}/messages")

        assert response.status_code == 200
        messages = response.json()
        assert [m["body"] for m in messages] == ["hello", "hi alice"]
        assert messages[1]["reply_to_sender"] == "Alice"

    def test_empty_message_is_rejected(self, client):
        assert post_team(client, text="   ").status_code == 400

    def test_blocked_member_gets_403(self, client):
        members = join(client, "Alice", "alice@example.com", "alice-1").json()
        client.post(
            f"/api/teams/{OWNER}/members/{members[0]['id']}/block",
            json={"requester_id": OWNER, "blocked": True},
        )

        assert post_team(client, text="hello?").status_code == 403

    def test_block_is_checked_per_team(self, client):
        for owner_id in (OWNER, "owner-2"):
            client.post(
                f"/api/teams/{owner_id}/members", json={"name": "Alice", "email": "alice@example.com"}
            )
        members = client.post(
            "/api/members/link", json={"user_id": "alice-1", "email": "alice@example.com"}
        ).json()
        second = next(m for m in members if m["owner_id"] == "owner-2")
        client.post(
            f"/api/teams/owner-2/members/{second['id']}/block",
            json={"requester_id": "owner-2", "blocked": True},
        )

        blocked = client.post(
            "/api/teams/owner-2/messages", json={"user_id": "alice-1", "name": "Alice", "text": "hi"}
        )
        assert blocked.status_code == 403
        assert post_team(client, text="still here").status_code == 200

    def test_private_messages_and_unread(self, client):
        payload = {"user_id": "alice-1", "name": "Alice", "receiver_id": "bob-1", "text": "psst"}
        assert client.post(f"/api/teams/{OWNER}/private", json=payload).status_code == 200

        assert client.get(f"/api/teams/{OWNER}/unread/bob-1").json() == {"alice-1": 1}

        read = client.post(
            f"/api/teams/{OWNER}/private/read",
            json={"receiver_id": "bob-1", "sender_id": "alice-1"},
        )
        assert read.json() == {"updated": 1}
        assert client.get(f"/api/teams/{OWNER}/unread/bob-1").json() == {}

        thread = client.get(f"/api/teams/{OWNER}/private/bob-1/alice-1").json()
        assert thread[0]["is_read"] is True

    def test_private_message_to_self(self, client):
        payload = {"user_id": "alice-1", "name": "Alice", "receiver_id": "alice-1", "text": "me"}
        assert client.post(f"/api/teams/{OWNER}/private", json=payload).status_code == 400

    def test_reaction_toggle(self, client):
        message_id = post_team(client).json()["id"]
        body = {"user_id": "bob-1", "user_name": "Bob", "value": "👍"}

        added = client.post(f"/api/reactions/team/{message_id}", json=body)
        grouped = client.get(f"/api/reactions/team/{message_id}", params={"viewer_id": "bob-1"})
        removed = client.post(f"/api/reactions/team/{message_id}", json=body)

        assert added.json() == {"result": "added"}
        assert grouped.json()[0]["count"] == 1
        assert grouped.json()[0]["has_current_user"] is True
        assert removed.json() == {"result": "removed"}

    def test_unknown_reaction_kind(self, client):
        body = {"user_id": "bob-1", "user_name": "Bob", "value": "👍"}
        assert client.post("/api/reactions/channel/m1", json=body).status_code == 400


class TestMembersApi:
    """Tests for member and presence routes."""

    def test_invite_link_and_roster(self, client):
        invited = client.post(
            f"/api/teams/{OWNER}/members", json={"name": "Alice", "email": "alice@example.com"}
        )
        assert invited.json()["status"] == "Pending"

        linked = client.post(
            "/api/members/link", json={"user_id": "alice-1", "email": "alice@example.com"}
        )
        assert linked.json()[0]["status"] == "Active"

        roster = client.get(f"/api/teams/{OWNER}/members", params={"viewer_id": "alice-1"}).json()
        assert roster[0]["role"] == "Owner"
        assert roster[1]["presence"] == "Online"

    def test_invalid_invite(self, client):
        response = client.post(f"/api/teams/{OWNER}/members", json={"name": "X", "email": "nope"})
        assert response.status_code == 400

    def test_only_owner_can_block(self, client):
        member_id = join(client, "Alice", "alice@example.com", "alice-1").json()[0]["id"]

        response = client.post(
            f"/api/teams/{OWNER}/members/{member_id}/block",
            json={"requester_id": "alice-1", "blocked": True},
        )
        assert response.status_code == 403

    def test_block_unknown_member(self, client):
        response = client.post(
            f"/api/teams/{OWNER}/members/missing/block",
            json={"requester_id": OWNER, "blocked": True},
        )
        assert response.status_code == 404

    def test_offline_beacon(self, client):
        join(client, "Alice", "alice@example.com", "alice-1")

        assert client.post("/api/presence/offline", json={"user_id": "alice-1"}).json() == {"status": "ok"}
        roster = client.get(f"/api/teams/{OWNER}/members").json()
        assert roster[0]["status"] == "Offline"
        assert roster[0]["presence"] == "Offline"

    def test_offline_beacon_requires_user(self, client):
        assert client.post("/api/presence/offline", json={}).status_code == 400


class TestRealtimeApi:
    """Tests for the change feed WebSocket."""

    def test_ping_pong(self, client):
        with client.websocket_connect("/ws/feed/team_messages") as ws:
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

    def test_events_are_filtered_and_forwarded(self, client):
        with client.websocket_connect(f"/ws/feed/team_messages?owner_id={OWNER}") as ws:
            ws.send_json({"type": "ping"})
            ws.receive_json()

            client.post(
                "/api/teams/owner-2/messages",
                json={"user_id": "x-1", "name": "X", "text": "elsewhere"},
            )
            post_team(client, text="live")

            event = ws.receive_json()
            assert event["type"] == "INSERT"
            assert event["table"] == "team_messages"
            assert event["record"]["message"] == "live"

    def test_boolean_filter_matches_row(self, client):
        with client.websocket_connect("/ws/feed/private_messages?receiver_id=bob-1&is_read=false") as ws:
            ws.send_json({"type": "ping"})
            ws.receive_json()

            payload = {"user_id": "alice-1", "name": "Alice", "receiver_id": "bob-1", "text": "psst"}
            client.post(f"/api/teams/{OWNER}/private", json=payload)

            event = ws.receive_json()
            assert event["type"] == "INSERT"
            assert event["record"]["message"] == "psst"

    def test_parse_filters(self):
        assert parse_filters({"is_read": "False", "owner_id": "owner-1", "file_url": "null"}) == {
            "is_read": False,
            "owner_id": "owner-1",
            "file_url": None,
        }

    def test_unknown_table(self, client):
        with client.websocket_connect("/ws/feed/nope") as ws:
            with pytest.raises(WebSocketDisconnect) as exc:
                ws.receive_text()
            assert exc.value.code == 1008


class TestControlApi:
    """Tests for control routes."""

    def test_reset(self, client):
        post_team(client)

        assert client.post("/api/control/reset").json() == {"status": "ok"}
        assert client.get(f"/api/teams/{OWNER}/messages").json() == []

    def test_sim_not_configured(self, client):
        assert client.post("/api/control/sim/start").status_code == 404
