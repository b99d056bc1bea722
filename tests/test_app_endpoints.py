import asyncio
import json
from typing import Optional
from urllib.parse import urlencode

import pytest

import app
from prompts.curriculum import OUTLINE_SYSTEM_PROMPT


async def _call_app(method: str, path: str, *, payload: Optional[dict] = None, query: Optional[dict] = None):
    body = b""
    headers = [(b"host", b"testserver")]
    if payload is not None:
        body = json.dumps(payload).encode("utf-8")
        headers.extend(
            [
                (b"content-type", b"application/json"),
                (b"content-length", str(len(body)).encode()),
            ]
        )
    query_string = urlencode(query or {}, doseq=True).encode()
    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": method.upper(),
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "scheme": "http",
        "query_string": query_string,
        "headers": headers,
        "client": ("testclient", 12345),
        "server": ("testserver", 80),
        "state": {},
    }

    messages = []

    async def receive():
        nonlocal body
        if body:
            chunk, body = body, b""
            return {"type": "http.request", "body": chunk, "more_body": False}
        return {"type": "http.disconnect"}

    async def send(message):
        messages.append(message)

    await app.app(scope, receive, send)
    status = 500
    body_bytes = b""
    for message in messages:
        if message["type"] == "http.response.start":
            status = message["status"]
        elif message["type"] == "http.response.body":
            body_bytes += message.get("body", b"")
    data = json.loads(body_bytes.decode("utf-8") or "{}")
    return status, data


def _post(path: str, payload: dict) -> tuple[int, dict]:
    return asyncio.run(_call_app("POST", path, payload=payload))


def _get(path: str, query: Optional[dict] = None) -> tuple[int, dict]:
    return asyncio.run(_call_app("GET", path, query=query))


@pytest.fixture
def injected_client(monkeypatch):
    def _inject(client):
        monkeypatch.setattr(app.app.state, "llm_client", client, raising=False)
        return client

    return _inject


def test_health_reports_credential_presence(clean_env):
    status, data = _get("/health")

    assert status == 200
    assert data["status"] == "ok"
    assert data["api_key_configured"] is False

    clean_env.setenv("ANTHROPIC_API_KEY", "secret")
    _, data = _get("/health")
    assert data["api_key_configured"] is True
    assert "secret" not in json.dumps(data)


def test_list_tools():
    status, data = _get("/tools")

    assert status == 200
    assert [tool["name"] for tool in data["tools"]] == ["generate_curriculum", "adapt_vark"]


def test_call_unknown_tool_returns_error_payload():
    status, data = _post("/tools/call", {"name": "nope", "arguments": {}})

    assert status == 200
    assert data["isError"] is True


def test_call_tool_dry_run():
    status, data = _post(
        "/tools/call",
        {"name": "generate_curriculum", "arguments": {"topic": "Time management", "dryRun": True}},
    )

    assert status == 200
    assert data["isError"] is False
    assert "Time management" in data["content"][0]["text"]


def test_call_tool_uses_injected_client(tmp_path, injected_client, scripted_client, make_chapter, make_content):
    chapter = make_chapter(1)

    def reply(system, user):
        return {"chaptersData": [chapter]} if system == OUTLINE_SYSTEM_PROMPT else make_content(chapter)

    client = injected_client(scripted_client(reply))

    status, data = _post(
        "/tools/call",
        {"name": "generate_curriculum", "arguments": {"topic": "T", "chapters": 1, "outputDir": str(tmp_path)}},
    )

    assert status == 200
    assert data["isError"] is False
    assert len(client.calls) == 2
    assert (tmp_path / "curriculum.json").exists()


def test_call_tool_request_requires_name():
    status, _ = _post("/tools/call", {"arguments": {}})

    assert status == 422


def test_vark_questions_payload():
    status, data = _get("/vark/questions")

    assert status == 200
    assert len(data["questions"]) == 12
    assert set(data["questions"][0]["options"]) == {"visual", "auditory", "readWrite", "kinesthetic"}
    assert data["styles"]["readWrite"]["name"] == "Read/Write"


def test_vark_score_returns_result_and_preference():
    answers = {"1": "kinesthetic", "2": "kinesthetic", "3": "visual", "4": "unknown"}

    status, data = _post("/vark/score", {"answers": answers})

    assert status == 200
    assert data["result"]["primary_style"] == "kinesthetic"
    assert data["result"]["percentages"]["kinesthetic"] == 67
    assert data["preference"]["primaryStyle"] == "kinesthetic"
    assert data["preference"]["assessmentCompleted"] is True
    assert data["style"]["name"] == "Kinesthetic"
    assert data["answered"] == 4
    assert data["total_questions"] == 12
