"""WebSocket push channel tests.

TestClient 以上下文管理器方式使用，HTTP 请求的后台任务在响应返回前
执行完毕，因此推送消息在请求返回时已经进入 WebSocket 队列。
"""

from fastapi.testclient import TestClient

from tests.helpers import create_note, create_notebook, login, register


def authenticate(ws, user_id):
    ws.send_json({"event": "authenticate", "userId": user_id})
    message = ws.receive_json()
    assert message == {"event": "authenticated", "userId": user_id}


def assert_no_pending_push(ws):
    """ping 之前没有积压的推送时，下一条消息就是 pong"""
    ws.send_json({"event": "ping"})
    assert ws.receive_json() == {"event": "pong"}


class TestHandshake:
    def test_authenticate_and_ping(self, client, alice):
        with client.websocket_connect("/api/ws") as ws:
            authenticate(ws, alice)
            assert_no_pending_push(ws)

    def test_session_user_wins_when_user_id_omitted(self, client, alice):
        with client.websocket_connect("/api/ws") as ws:
            ws.send_json({"event": "authenticate"})
            assert ws.receive_json() == {"event": "authenticated", "userId": alice}

    def test_mismatching_user_is_rejected(self, client, alice, registry):
        with client.websocket_connect("/api/ws") as ws:
            ws.send_json({"event": "authenticate", "userId": "someone-else"})
            assert ws.receive_json() == {"event": "error", "error": "User does not match session"}
            assert not registry.get("connection_manager").is_connected("someone-else")

    def test_without_session_is_rejected(self, client, registry):
        with client.websocket_connect("/api/ws") as ws:
            ws.send_json({"event": "authenticate", "userId": "user-1"})
            assert ws.receive_json() == {"event": "error", "error": "Authentication required"}
            assert not registry.get("connection_manager").is_connected("user-1")

    def test_announced_id_does_not_expose_another_users_pushes(self, app, client, alice, registry):
        # 没有会话 Cookie 的独立客户端
        stranger = TestClient(app)
        with stranger.websocket_connect("/api/ws") as stranger_ws:
            stranger_ws.send_json({"event": "authenticate", "userId": alice})
            assert stranger_ws.receive_json() == {"event": "error", "error": "Authentication required"}

            create_notebook(client, "Diary")

            assert registry.get("connection_manager").connection_count(alice) == 0
            assert_no_pending_push(stranger_ws)

    def test_invalid_messages(self, client, alice):
        with client.websocket_connect("/api/ws") as ws:
            ws.send_text("not json")
            assert ws.receive_json() == {"event": "error", "error": "Invalid JSON"}
            ws.send_json({"event": "subscribe"})
            assert ws.receive_json() == {"event": "error", "error": "Unknown event: subscribe"}


class TestPushDelivery:
    def test_create_notebook_pushes_notebook_list(self, client, alice):
        with client.websocket_connect("/api/ws") as ws:
            authenticate(ws, alice)
            notebook = create_notebook(client, "Groceries")

            message = ws.receive_json()
            assert message["event"] == "notebooks_updated"
            assert message["section"] == "regular"
            assert message["notebooks"] == client.get("/api/notebooks/regular").json()
            assert message["notebooks"][0]["_id"] == notebook["_id"]

    def test_create_note_pushes_notebook_view_and_counts(self, client, alice):
        notebook = create_notebook(client, "Groceries")
        with client.websocket_connect("/api/ws") as ws:
            authenticate(ws, alice)
            create_note(client, "milk", "regular", notebook["_id"])

            notes = ws.receive_json()
            assert notes["event"] == "notes_updated"
            assert notes["section"] == "regular"
            assert notes["notebookId"] == notebook["_id"]
            assert [n["content"] for n in notes["notes"]] == ["milk"]
            assert notes["notes"] == client.get(f"/api/notes/regular/{notebook['_id']}").json()

            notebooks = ws.receive_json()
            assert notebooks["event"] == "notebooks_updated"
            assert notebooks["notebooks"][0]["noteCount"] == 1

            assert_no_pending_push(ws)

    def test_toggle_favorite_pushes_favorites_view(self, client, alice):
        notebook = create_notebook(client, "Groceries")
        note = create_note(client, "milk", "regular", notebook["_id"])

        with client.websocket_connect("/api/ws") as ws:
            authenticate(ws, alice)
            client.post(f"/api/notes/{note['_id']}/favorite")
            pushes = [ws.receive_json() for _ in range(3)]

            favorites = next(p for p in pushes if p["section"] == "favorites")
            assert favorites["event"] == "notes_updated"
            assert favorites["notebookId"] is None
            assert [(n["_id"], n["notebookName"]) for n in favorites["notes"]] == [(note["_id"], "Groceries")]

            client.post(f"/api/notes/{note['_id']}/favorite")
            pushes = [ws.receive_json() for _ in range(3)]
            favorites = next(p for p in pushes if p["section"] == "favorites")
            assert favorites["notes"] == []

    def test_locked_note_pushes_locked_view(self, client, alice):
        with client.websocket_connect("/api/ws") as ws:
            authenticate(ws, alice)
            create_note(client, "secret", "locked")

            message = ws.receive_json()
            assert message["event"] == "notes_updated"
            assert message["section"] == "locked"
            assert [n["content"] for n in message["notes"]] == ["secret"]
            assert_no_pending_push(ws)

    def test_delete_notebook_pushes_list_and_favorites(self, client, alice):
        notebook = create_notebook(client, "Groceries")
        create_note(client, "milk", "regular", notebook["_id"], isFavorite=True)

        with client.websocket_connect("/api/ws") as ws:
            authenticate(ws, alice)
            client.delete(f"/api/notebooks/{notebook['_id']}")

            notebooks = ws.receive_json()
            assert notebooks == {"event": "notebooks_updated", "section": "regular", "notebooks": []}
            favorites = ws.receive_json()
            assert favorites["section"] == "favorites"
            assert favorites["notes"] == []

    def test_failed_mutation_pushes_nothing(self, client, alice):
        with client.websocket_connect("/api/ws") as ws:
            authenticate(ws, alice)
            assert client.delete("/api/notes/missing").status_code == 404
            assert_no_pending_push(ws)


class TestMultipleConnections:
    def test_same_user_clients_both_receive(self, client, alice, registry):
        notebook = create_notebook(client, "N")

        with client.websocket_connect("/api/ws") as device_a, client.websocket_connect("/api/ws") as device_b:
            authenticate(device_a, alice)
            authenticate(device_b, alice)
            assert registry.get("connection_manager").connection_count(alice) == 2

            # A 创建笔记，正在查看 N 的 B 不发请求就收到完整列表
            create_note(client, "from A", "regular", notebook["_id"])

            for ws in (device_a, device_b):
                message = ws.receive_json()
                assert message["notebookId"] == notebook["_id"]
                assert [n["content"] for n in message["notes"]] == ["from A"]

    def test_pushes_are_isolated_per_user(self, client):
        alice = register(client, "alice", "1234")
        with client.websocket_connect("/api/ws") as alice_ws:
            authenticate(alice_ws, alice)

            bob = register(client, "bob", "0000")
            with client.websocket_connect("/api/ws") as bob_ws:
                authenticate(bob_ws, bob)
                create_notebook(client, "bob's")

                assert bob_ws.receive_json()["event"] == "notebooks_updated"
                assert_no_pending_push(alice_ws)

            login(client, "alice", "1234")
            create_notebook(client, "alice's")
            message = alice_ws.receive_json()
            assert [nb["name"] for nb in message["notebooks"]] == ["alice's"]

    def test_disconnect_unbinds(self, client, alice, registry):
        with client.websocket_connect("/api/ws") as ws:
            authenticate(ws, alice)
        assert not registry.get("connection_manager").is_connected(alice)

        # 没有在线连接时变更照常完成
        create_notebook(client, "offline")
        assert len(client.get("/api/notebooks/regular").json()) == 1
