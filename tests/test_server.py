"""End-to-end tests through the FastAPI application."""
from typing import Any, Dict

from fastapi.testclient import TestClient

from coredefense.config import RoomSettings
from coredefense.server import create_app


def receive_until(websocket, message_type: str, limit: int = 50) -> Dict[str, Any]:
    """Read frames, skipping periodic snapshots, until ``message_type`` arrives."""
    for _ in range(limit):
        message = websocket.receive_json()
        if message["type"] == message_type:
            return message
    raise AssertionError(f"no {message_type} message received")


def quiet_settings(**overrides: Any) -> RoomSettings:
    return RoomSettings(broadcast_interval=60.0, **overrides)


def test_join_over_websocket_greets_player() -> None:
    with TestClient(create_app(quiet_settings())) as client:
        with client.websocket_connect("/ws") as websocket:
            websocket.send_json({"type": "join_room", "room": "alpha"})
            joined = websocket.receive_json()
            assert joined["type"] == "room_joined"
            assert joined["room"] == "alpha"
            assert joined["max_players"] == 5
            current = websocket.receive_json()
            assert current["type"] == "current_players"
            assert current["my_id"] == joined["player_id"]
            assert list(current["players"]) == [joined["player_id"]]
            assert websocket.receive_json()["type"] == "game_state_changed"

            health = client.get("/health")
            assert health.status_code == 200
            assert health.json() == {"status": "ok", "rooms": 1}


def test_malformed_frames_are_ignored() -> None:
    with TestClient(create_app(quiet_settings())) as client:
        with client.websocket_connect("/ws") as websocket:
            websocket.send_text("not json")
            websocket.send_json({"type": "launch_missiles"})
            websocket.send_json({"type": "shoot_arrow", "target_x": "left"})
            websocket.send_json({"type": "join_room", "room": "alpha"})
            assert websocket.receive_json()["type"] == "room_joined"


def test_second_player_is_refused_when_room_is_full() -> None:
    with TestClient(create_app(quiet_settings(max_players=1))) as client:
        with client.websocket_connect("/ws/alpha") as first:
            receive_until(first, "room_joined")
            with client.websocket_connect("/ws") as second:
                second.send_json({"type": "join_room", "room": "alpha"})
                refusal = receive_until(second, "room_full")
                assert refusal == {"type": "room_full", "room": "alpha", "max_players": 1}


def test_path_parameter_joins_room_on_connect() -> None:
    with TestClient(create_app(quiet_settings())) as client:
        with client.websocket_connect("/ws/bravo") as websocket:
            joined = receive_until(websocket, "room_joined")
            assert joined["room"] == "bravo"

            rooms = client.get("/api/rooms").json()["rooms"]
            assert rooms == [
                {"name": "bravo", "players": 1, "max_players": 5, "state": "LOBBY"}
            ]


def test_players_in_room_see_each_others_moves() -> None:
    with TestClient(create_app(quiet_settings())) as client:
        with client.websocket_connect("/ws/alpha") as first:
            first_id = receive_until(first, "room_joined")["player_id"]
            with client.websocket_connect("/ws/alpha") as second:
                second_id = receive_until(second, "room_joined")["player_id"]
                assert receive_until(first, "new_player")["player"]["id"] == second_id

                second.send_json({"type": "input", "down": True})
                moved = receive_until(first, "player_moved")
                assert moved["player"]["id"] == second_id
            left = receive_until(first, "player_disconnected")
            assert left["player_id"] == second_id
            assert first_id != second_id


def test_binary_frames_are_skipped_without_dropping_the_connection() -> None:
    with TestClient(create_app(quiet_settings())) as client:
        with client.websocket_connect("/ws/alpha") as websocket:
            player_id = receive_until(websocket, "room_joined")["player_id"]
            websocket.send_bytes(b"\x00\x01")
            websocket.send_json({"type": "input", "down": True})
            moved = receive_until(websocket, "player_moved")
            assert moved["player"]["id"] == player_id
