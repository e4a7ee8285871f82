"""
API tests for the CodeIDE backend.

These tests exercise the HTTP endpoints and the interactive WebSocket
endpoint using FastAPI's TestClient.  The Judge0 backend is replaced by an
``httpx.MockTransport`` so no network access is needed, and interactive
sessions run on the interpreter executing the tests.
"""

from __future__ import annotations

import json
import sys

import httpx
import pytest
from fastapi.testclient import TestClient

from codeide.api import main
from codeide.api.judge0 import Judge0Client
from codeide.api.main import app
from codeide.config import Toolchain


def use_judge0(monkeypatch, handler):
    client = Judge0Client(
        base_url="https://judge0.test",
        api_key="secret",
        host="judge0.test",
        timeout=1,
        transport=httpx.MockTransport(handler),
    )
    monkeypatch.setattr(main, "judge0", client)


@pytest.fixture(autouse=True)
def isolate_sessions(tmp_path, monkeypatch):
    """Run interactive sessions with the test interpreter in a temp dir."""
    monkeypatch.setattr(main, "toolchain", Toolchain(python=sys.executable))
    monkeypatch.setattr(main.config, "workspace_root", str(tmp_path))
    yield


def test_health():
    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "OK", "message": "CodeIDE Backend is running"}


def test_languages():
    client = TestClient(app)
    response = client.get("/languages")
    assert response.status_code == 200
    assert response.json() == [
        {"id": 71, "name": "Python"},
        {"id": 50, "name": "C"},
        {"id": 54, "name": "C++"},
        {"id": 62, "name": "Java"},
    ]


def test_cors_preflight():
    client = TestClient(app)
    response = client.options(
        "/run",
        headers={"Origin": "http://editor.test", "Access-Control-Request-Method": "POST"},
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "POST" in response.headers["access-control-allow-methods"]


def test_run_requires_source_and_language():
    client = TestClient(app)
    res = client.post("/run", json={"language_id": 71})
    assert res.status_code == 400
    assert res.json() == {"error": "Source code is required"}
    res = client.post("/run", json={"source_code": "print(1)"})
    assert res.status_code == 400
    assert res.json() == {"error": "Language ID is required"}


def test_run_forwards_to_judge0(monkeypatch):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["headers"] = request.headers
        seen["body"] = request.read()
        return httpx.Response(
            200, json={"status": {"id": 3, "description": "Accepted"}, "stdout": "2\n"}
        )

    use_judge0(monkeypatch, handler)
    client = TestClient(app)
    res = client.post("/run", json={"source_code": "print(1 + 1)", "language_id": 71})
    assert res.status_code == 200
    assert res.json() == {"status": {"id": 3, "description": "Accepted"}, "stdout": "2\n"}

    assert seen["url"].path == "/submissions"
    assert seen["url"].params["wait"] == "true"
    assert seen["url"].params["base64_encoded"] == "false"
    assert seen["headers"]["x-rapidapi-key"] == "secret"
    assert seen["headers"]["x-rapidapi-host"] == "judge0.test"
    assert b'"stdin": ""' in seen["body"] or b'"stdin":""' in seen["body"]


def test_run_timeout(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    use_judge0(monkeypatch, handler)
    client = TestClient(app)
    res = client.post("/run", json={"source_code": "while True: pass", "language_id": 71})
    assert res.status_code == 408
    assert "timed out" in res.json()["error"]


def test_run_upstream_error(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"message": "Too many requests"})

    use_judge0(monkeypatch, handler)
    client = TestClient(app)
    res = client.post("/run", json={"source_code": "print(1)", "language_id": 71})
    assert res.status_code == 500
    assert res.json() == {
        "error": "Code execution failed",
        "details": {"message": "Too many requests"},
    }


def test_run_connection_error(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("name resolution failed", request=request)

    use_judge0(monkeypatch, handler)
    client = TestClient(app)
    res = client.post("/run", json={"source_code": "print(1)", "language_id": 71})
    assert res.status_code == 500
    assert res.json()["error"] == "Failed to connect to code execution service"
    assert "name resolution failed" in res.json()["details"]


def receive_until_exit(ws) -> list:
    messages = []
    while True:
        message = ws.receive_json()
        messages.append(message)
        if message["type"] == "exit":
            return messages


def test_ws_python_session():
    client = TestClient(app)
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"code": "name = input()\nprint('hi ' + name)", "language": "python"})
        ws.send_json({"input": "ada"})
        messages = receive_until_exit(ws)

        stdout = "".join(m["data"] for m in messages if m["type"] == "stdout")
        assert stdout == "hi ada\n"
        assert messages[-1] == {"type": "exit", "code": 0}

        ws.send_json({"input": "again"})
        assert ws.receive_json() == {"type": "error", "error": "Process is not running"}


def test_ws_protocol_errors_keep_connection_open():
    client = TestClient(app)
    with client.websocket_connect("/ws") as ws:
        ws.send_text("this is not json")
        assert ws.receive_json()["type"] == "error"
        ws.send_json({"input": "early"})
        assert ws.receive_json() == {"type": "error", "error": "Session has not been started"}

        ws.send_json({"code": "print('still alive')"})
        messages = receive_until_exit(ws)
        assert "still alive" in "".join(m.get("data", "") for m in messages)


def test_ws_unencodable_input_is_rejected_and_session_survives():
    client = TestClient(app)
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"code": "name = input()\nprint('hi ' + name)"})
        ws.send_text(json.dumps({"input": "\ud800"}))
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["error"].startswith("Invalid message: input: ")

        ws.send_json({"input": "ada"})
        messages = receive_until_exit(ws)
        assert "".join(m["data"] for m in messages if m["type"] == "stdout") == "hi ada\n"
        assert messages[-1] == {"type": "exit", "code": 0}


def test_ws_code_with_nul_is_rejected():
    client = TestClient(app)
    with client.websocket_connect("/ws") as ws:
        ws.send_text(json.dumps({"code": "print(1)\x00"}))
        assert ws.receive_json() == {
            "type": "error",
            "error": "Invalid message: code: code must not contain NUL characters",
        }
        ws.send_json({"code": "print(2)"})
        messages = receive_until_exit(ws)
        assert messages[-1] == {"type": "exit", "code": 0}
