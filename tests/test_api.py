import asyncio

import pytest
from fastapi import WebSocketDisconnect

from gamechooser import main
from gamechooser.main import ConnectionManager


def create(client, titles, host_name="Ann"):
    res = client.post(
        "/rooms", json={"hostName": host_name, "games": [{"title": t} for t in titles]}
    )
    assert res.status_code == 201
    return res.json()


def join(client, code, name):
    res = client.post("/rooms/join", json={"joinCode": code, "name": name})
    assert res.status_code == 201
    return res.json()["participant"]


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "ok"
    assert client.get("/health").json() == {"status": "healthy"}


def test_create_and_snapshot(client):
    room = create(client, ["Chess", "Go"])
    assert len(room["joinCode"]) == 6
    assert [g["title"] for g in room["games"]] == ["Chess", "Go"]

    res = client.get(f"/rooms/{room['joinCode'].lower()}")
    assert res.status_code == 200
    snapshot = res.json()
    assert snapshot["roomId"] == room["roomId"]
    assert snapshot["hostId"] == room["hostId"]
    assert snapshot["participants"][0]["name"] == "Ann"
    assert snapshot["selectedGameId"] is None
    for game in room["games"]:
        assert snapshot["votes"][game["id"]] == {"positive": 0, "negative": 0, "random": 0}


def test_full_flow(client):
    room = create(client, ["Chess", "Go"])
    code = room["joinCode"]
    chess, go = room["games"]
    bob = join(client, code, "Bob")
    cid = join(client, code, "Cid")

    for pid, game, kind in (
        (room["hostId"], chess, "up"),
        (bob["id"], chess, "up"),
        (cid["id"], go, "down"),
    ):
        res = client.post(f"/rooms/{code}/vote", json={"participantId": pid, "gameId": game["id"], "type": kind})
        assert res.status_code == 200

    assert res.json()["votes"][go["id"]]["negative"] == 1

    res = client.post(f"/rooms/{code}/start", json={"participantId": room["hostId"]})
    assert res.status_code == 200
    assert res.json()["game"]["title"] == "Chess"
    assert client.get(f"/rooms/{code}").json()["selectedGameId"] == chess["id"]


def test_add_game(client):
    room = create(client, [])
    res = client.post(f"/rooms/{room['joinCode']}/games", json={"title": "Risk"})
    assert res.status_code == 201
    assert res.json()["title"] == "Risk"
    assert client.post(f"/rooms/{room['joinCode']}/games", json={"title": " "}).status_code == 400


def test_error_statuses(client):
    room = create(client, [])
    code = room["joinCode"]
    bob = join(client, code, "Bob")

    assert client.get("/rooms/000000").status_code == 404
    assert client.post("/rooms/join", json={"joinCode": "000000"}).status_code == 404
    assert client.post(f"/rooms/{code}/start", json={"participantId": bob["id"]}).status_code == 403
    assert client.post(f"/rooms/{code}/start", json={"participantId": room["hostId"]}).status_code == 409

    game = client.post(f"/rooms/{code}/games", json={"title": "Risk"}).json()
    res = client.post(f"/rooms/{code}/vote", json={"participantId": bob["id"], "gameId": game["id"], "type": "meh"})
    assert res.status_code == 400
    res = client.post(f"/rooms/{code}/vote", json={"participantId": "ghost", "gameId": game["id"], "type": "up"})
    assert res.status_code == 404
    assert client.post(f"/rooms/{code}/vote", json={"participantId": bob["id"]}).status_code == 422


def test_websocket_sends_snapshot_on_connect(client):
    room = create(client, ["Chess"])
    code = room["joinCode"]
    with client.websocket_connect(f"/rooms/{code}/ws") as ws:
        assert ws.receive_json()["joinCode"] == code

    join(client, code, "Bob")
    with client.websocket_connect(f"/rooms/{code.lower()}/ws") as ws:
        snapshot = ws.receive_json()
        assert [p["name"] for p in snapshot["participants"]] == ["Ann", "Bob"]


class FakeSocket:
    def __init__(self):
        self.accepted = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        self.sent.append(message)


def test_connection_manager_broadcasts_per_room():
    connections = ConnectionManager()
    here, there = FakeSocket(), FakeSocket()

    async def scenario():
        await connections.connect("abc123", here)
        await connections.connect("FFF000", there)
        await connections.broadcast("ABC123", {"n": 1})
        connections.disconnect("ABC123", here)
        await connections.broadcast("abc123", {"n": 2})

    asyncio.run(scenario())
    assert here.accepted
    assert here.sent == [{"n": 1}]
    assert there.sent == []
    assert "ABC123" not in connections.active


class BrokenSocket(FakeSocket):
    async def send_json(self, message):
        raise RuntimeError("socket is closed")


def test_broadcast_drops_failing_socket():
    connections = ConnectionManager()
    broken, healthy = BrokenSocket(), FakeSocket()

    async def scenario():
        await connections.connect("ABC123", broken)
        await connections.connect("ABC123", healthy)
        await connections.broadcast("ABC123", {"n": 1})
        await connections.broadcast("ABC123", {"n": 2})

    asyncio.run(scenario())
    assert healthy.sent == [{"n": 1}, {"n": 2}]
    assert connections.active["ABC123"] == [healthy]


def test_vote_succeeds_when_a_watcher_is_gone(client):
    room = create(client, ["Chess"])
    code = room["joinCode"]
    main.connections.active[code] = [BrokenSocket()]
    try:
        res = client.post(
            f"/rooms/{code}/vote",
            json={"participantId": room["hostId"], "gameId": room["games"][0]["id"], "type": "up"},
        )
        assert res.status_code == 200
        assert res.json()["votes"][room["games"][0]["id"]]["positive"] == 1
        assert code not in main.connections.active
    finally:
        main.connections.active.pop(code, None)


def test_websocket_unknown_room(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/rooms/000000/ws") as ws:
            ws.receive_json()
