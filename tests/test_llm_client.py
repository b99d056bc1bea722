import asyncio
import json

import httpx
import pytest

from engines import llm_client
from engines.llm_client import (
    API_VERSION,
    MAX_OUTPUT_TOKENS,
    ClientConfig,
    LLMClient,
    classify_response_error,
)
from engines.llm_errors import (
    APIError,
    BadRequestError,
    ErrorType,
    InsufficientBalanceError,
    InvalidCredentialError,
    LLMClientError,
    NetworkError,
    ParseError,
    RateLimitedError,
    RequestCancelledError,
    RetryExhaustedError,
    ServerError,
)


def _config(**overrides) -> ClientConfig:
    values = {"api_key": "test-key", "retry_delays": (0.0, 0.0, 0.0)}
    values.update(overrides)
    return ClientConfig(**values)


def _text_reply(text: str) -> httpx.Response:
    return httpx.Response(200, json={"content": [{"type": "text", "text": text}]})


def _error_reply(status: int, message: str) -> httpx.Response:
    return httpx.Response(status, json={"type": "error", "error": {"type": "x", "message": message}})


class _Recorder:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def _client(recorder: _Recorder, **overrides) -> LLMClient:
    return LLMClient(_config(**overrides), transport=httpx.MockTransport(recorder))


@pytest.mark.anyio("asyncio")
async def test_send_message_returns_first_text_block_and_sends_expected_request():
    recorder = _Recorder(_text_reply("hello"))
    client = _client(recorder, model="test-model")

    reply = await client.send_message("system text", "user text", 1024)

    assert reply == "hello"
    request = recorder.requests[0]
    assert request.headers["x-api-key"] == "test-key"
    assert request.headers["anthropic-version"] == API_VERSION
    body = json.loads(request.content)
    assert body == {
        "model": "test-model",
        "max_tokens": 1024,
        "system": "system text",
        "messages": [{"role": "user", "content": "user text"}],
    }


@pytest.mark.anyio("asyncio")
async def test_max_tokens_defaults_to_config_and_is_clamped():
    recorder = _Recorder(_text_reply("ok"))
    client = _client(recorder, max_tokens=2048)

    await client.send_message("s", "u")
    await client.send_message("s", "u", MAX_OUTPUT_TOKENS * 2)

    assert json.loads(recorder.requests[0].content)["max_tokens"] == 2048
    assert json.loads(recorder.requests[1].content)["max_tokens"] == MAX_OUTPUT_TOKENS


@pytest.mark.anyio("asyncio")
async def test_server_errors_are_retried_until_exhausted():
    recorder = _Recorder(_error_reply(500, "overloaded"))
    client = _client(recorder)

    with pytest.raises(RetryExhaustedError) as excinfo:
        await client.send_message("s", "u")

    assert len(recorder.requests) == 3
    assert excinfo.value.message == "Failed after 3 attempts. Last error: Server error: overloaded"
    assert excinfo.value.error_type is ErrorType.SERVER_ERROR
    assert isinstance(excinfo.value.last_error, ServerError)


@pytest.mark.anyio("asyncio")
async def test_invalid_credential_is_not_retried():
    recorder = _Recorder(_error_reply(401, "invalid x-api-key"))
    client = _client(recorder)

    with pytest.raises(InvalidCredentialError) as excinfo:
        await client.send_message("s", "u")

    assert len(recorder.requests) == 1
    assert excinfo.value.status == 401
    assert "console.anthropic.com" in str(excinfo.value)


@pytest.mark.anyio("asyncio")
async def test_bad_request_carries_api_message():
    recorder = _Recorder(_error_reply(400, "max_tokens too large"))
    client = _client(recorder)

    with pytest.raises(BadRequestError) as excinfo:
        await client.send_message("s", "u")

    assert len(recorder.requests) == 1
    assert excinfo.value.message == "Bad request: max_tokens too large"


@pytest.mark.anyio("asyncio")
async def test_rate_limit_then_success_notifies_retry_observer():
    recorder = _Recorder(_error_reply(429, "slow down"), _text_reply("done"))
    client = _client(recorder, retry_delays=(0.0, 0.0, 0.0))
    events = []

    reply = await client.send_message("s", "u", on_retry=events.append)

    assert reply == "done"
    assert len(recorder.requests) == 2
    assert len(events) == 1
    assert events[0].attempt == 1
    assert events[0].max_retries == 3
    assert isinstance(events[0].error, RateLimitedError)


@pytest.mark.anyio("asyncio")
async def test_transport_failures_are_classified_as_network_errors():
    recorder = _Recorder(httpx.ConnectError("connection reset"))
    client = _client(recorder)

    with pytest.raises(RetryExhaustedError) as excinfo:
        await client.send_message("s", "u")

    assert len(recorder.requests) == 3
    assert isinstance(excinfo.value.last_error, NetworkError)
    assert excinfo.value.error_type is ErrorType.NETWORK_ERROR


@pytest.mark.anyio("asyncio")
async def test_reply_without_text_block_is_a_parse_error():
    recorder = _Recorder(httpx.Response(200, json={"content": [{"type": "tool_use"}]}))
    client = _client(recorder)

    with pytest.raises(ParseError):
        await client.send_message("s", "u")

    assert len(recorder.requests) == 1


@pytest.mark.anyio("asyncio")
async def test_cancelled_before_first_attempt_sends_nothing():
    recorder = _Recorder(_text_reply("never"))
    client = _client(recorder)
    cancel = asyncio.Event()
    cancel.set()

    with pytest.raises(RequestCancelledError):
        await client.send_message("s", "u", cancel_event=cancel)

    assert recorder.requests == []


@pytest.mark.anyio("asyncio")
async def test_cancel_during_backoff_stops_retrying():
    recorder = _Recorder(_error_reply(503, "unavailable"))
    client = _client(recorder, retry_delays=(30.0, 30.0, 30.0))
    cancel = asyncio.Event()

    def _cancel_on_retry(event):
        cancel.set()

    with pytest.raises(RequestCancelledError):
        await client.send_message("s", "u", cancel_event=cancel, on_retry=_cancel_on_retry)

    assert len(recorder.requests) == 1


@pytest.mark.anyio("asyncio")
async def test_cancel_while_request_in_flight_abandons_it():
    cancel = asyncio.Event()
    requests = []

    async def slow_handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        cancel.set()
        await asyncio.sleep(30)
        return _text_reply("too late")

    client = LLMClient(_config(), transport=httpx.MockTransport(slow_handler))

    with pytest.raises(RequestCancelledError):
        await asyncio.wait_for(client.send_message("s", "u", cancel_event=cancel), timeout=5)

    assert len(requests) == 1


@pytest.mark.anyio("asyncio")
async def test_zero_attempts_raises_client_error(monkeypatch):
    monkeypatch.setattr(llm_client, "MAX_RETRIES", 0)
    recorder = _Recorder(_text_reply("unused"))

    with pytest.raises(LLMClientError, match="no attempts"):
        await _client(recorder).send_message("s", "u")

    assert recorder.requests == []


@pytest.mark.anyio("asyncio")
async def test_send_message_for_json_strips_fences():
    recorder = _Recorder(_text_reply('```json\n{"sections": []}\n```'))
    client = _client(recorder)

    assert await client.send_message_for_json("s", "u") == {"sections": []}


def test_missing_api_key_fails_before_any_request():
    with pytest.raises(InvalidCredentialError):
        LLMClient(ClientConfig(api_key=None))


def test_classify_response_error_maps_statuses():
    def classify(status):
        return classify_response_error(_error_reply(status, "msg"))

    assert isinstance(classify(402), InsufficientBalanceError)
    assert isinstance(classify(429), RateLimitedError)
    assert isinstance(classify(502), ServerError)
    assert isinstance(classify(404), APIError)
    assert classify(404).message == "msg"


def test_config_from_env_reads_overrides(clean_env):
    clean_env.setenv("ANTHROPIC_API_KEY", "  env-key  ")
    clean_env.setenv("ANTHROPIC_MODEL", "custom-model")
    clean_env.setenv("ANTHROPIC_MAX_TOKENS", "not-a-number")
    clean_env.setenv("LLM_TIMEOUT", "30")

    config = ClientConfig.from_env(model="override-model")

    assert config.api_key == "env-key"
    assert config.model == "override-model"
    assert config.max_tokens == 16384
    assert config.timeout == 30.0
