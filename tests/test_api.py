"""Tests for the controller HTTP and WebSocket API."""

import time

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from livecheck.app.main import create_app, run
from livecheck.app.session_manager import SessionManager


def _face_payload(**overrides):
    payload = {
        "roll_angle": 0.0,
        "yaw_angle": 0.0,
        "smiling_probability": 0.0,
        "left_eye_open_probability": 0.9,
        "right_eye_open_probability": 0.9,
        "bounding_box": {"min_x": 95.0, "min_y": 112.5, "width": 200.0, "height": 200.0},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def client(settings):
    app = create_app(SessionManager(settings=settings.model_copy(update={"completion_delay_s": 30.0})))
    with TestClient(app) as test_client:
        yield test_client


class TestHealth:
    def test_healthz_idle(self, client):
        resp = client.get("/healthz")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "phase": "idle"}


class TestSessionEndpoints:
    def test_no_session(self, client):
        assert client.get("/session").status_code == 404
        resp = client.post("/session/frames", json={"faces": [_face_payload()]})
        assert resp.status_code == 404

    def test_start_and_get(self, client):
        resp = client.post("/session")
        assert resp.status_code == 201
        body = resp.json()
        assert body["phase"] == "no_face"
        assert body["challenge_order"] == ["blink", "turn_head_left", "turn_head_right", "nod", "smile"]
        assert body["prompt"] == "Position your face in the circle"
        assert client.get("/session").json()["session_id"] == body["session_id"]
        assert client.get("/healthz").json()["phase"] == "no_face"

    def test_cancel(self, client):
        client.post("/session")
        assert client.delete("/session").status_code == 204
        assert client.get("/session").status_code == 404

    def test_frame_advances_challenge(self, client):
        client.post("/session")
        resp = client.post(
            "/session/frames",
            json={"faces": [_face_payload(left_eye_open_probability=0.1, right_eye_open_probability=0.1)]},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["accepted"] is True
        assert body["phase"] == "detecting"
        assert body["current_challenge"] == "turn_head_left"
        assert body["progress"] == pytest.approx(100.0 / 6 * 2)

    def test_empty_frame_resets(self, client):
        client.post("/session")
        client.post("/session/frames", json={"faces": [_face_payload()]})
        body = client.post("/session/frames", json={"faces": []}).json()
        assert body["phase"] == "no_face"
        assert body["face_detected"] is False

    def test_invalid_probability_rejected(self, client):
        client.post("/session")
        resp = client.post("/session/frames", json={"faces": [_face_payload(smiling_probability=1.5)]})
        assert resp.status_code == 422

    def test_negative_box_rejected(self, client):
        client.post("/session")
        box = {"min_x": 0.0, "min_y": 0.0, "width": -1.0, "height": 10.0}
        resp = client.post("/session/frames", json={"faces": [_face_payload(bounding_box=box)]})
        assert resp.status_code == 422

    def test_full_sequence_completes(self, client):
        client.post("/session")
        frames = [
            _face_payload(left_eye_open_probability=0.1, right_eye_open_probability=0.1),
            _face_payload(yaw_angle=-20.0),
            _face_payload(yaw_angle=20.0),
        ]
        frames += [_face_payload(roll_angle=0.0)] * 9 + [_face_payload(roll_angle=5.0)]
        frames += [_face_payload(smiling_probability=0.9)]
        for frame in frames:
            body = client.post("/session/frames", json={"faces": [frame]}).json()
        assert body["complete"] is True
        assert body["progress"] == 100.0
        assert body["phase"] == "complete"

        again = client.post("/session/frames", json={"faces": [_face_payload(smiling_probability=0.9)]}).json()
        assert again["accepted"] is False
        assert again["complete"] is True


class TestUiSocket:
    def test_state_events_streamed(self, client):
        with client.websocket_connect("/ws/ui") as ws:
            client.post("/session")
            event = ws.receive_json()
            assert event["type"] == "state"
            assert event["phase"] == "no_face"
            client.post("/session/frames", json={"faces": [_face_payload()]})
            event = ws.receive_json()
            assert event["phase"] == "detecting"
            assert event["data"]["current_challenge"] == "blink"

    def test_disconnect_unregisters_queue(self, client):
        manager = client.app.state.manager
        with client.websocket_connect("/ws/ui"):
            assert len(manager._ui_subscribers) == 1
        for _ in range(100):
            if not manager._ui_subscribers:
                break
            time.sleep(0.01)
        assert manager._ui_subscribers == []
        # broadcasting after the disconnect reaches no stale queue
        assert client.post("/session").status_code == 201


class TestRun:
    def test_serves_on_configured_host_and_port(self, monkeypatch):
        calls = []
        monkeypatch.setenv("CONTROLLER_HOST", "127.0.0.1")
        monkeypatch.setenv("CONTROLLER_PORT", "8765")
        monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append((app, kwargs)))

        run()

        assert len(calls) == 1
        app, kwargs = calls[0]
        assert isinstance(app, FastAPI)
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 8765
