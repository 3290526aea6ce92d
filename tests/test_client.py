"""Tests for the completion client against a mocked HTTP transport."""

import json

import httpx
import pytest

from conduit.agents.agent import CompletionClient
from conduit.agents.agent.client import placeholder_response
from conduit.agents.exceptions import UpstreamError
from conduit.agents.graph import AgentNode


def completion_body(content: str) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "gpt-4o",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


def sse(*contents: str) -> str:
    lines = [
        "data: " + json.dumps({"choices": [{"index": 0, "delta": {"content": c}}]})
        for c in contents
    ]
    return "\n\n".join(lines + ["data: [DONE]"]) + "\n\n"


class Recorder:
    """MockTransport handler that records requests and replays a response."""

    def __init__(self, respond):
        self.respond = respond
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def bodies(self):
        return [json.loads(r.content) for r in self.requests]


def make_client(recorder: Recorder, api_key="sk-test", **kwargs) -> CompletionClient:
    return CompletionClient(
        api_key=api_key,
        api_base="https://llm.test/v1",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(recorder)),
        placeholder_delay=0,
        **kwargs
    )


async def test_complete_returns_message_content():
    recorder = Recorder(lambda request: httpx.Response(200, json=completion_body("Hi there")))
    client = make_client(recorder)

    text = await client.complete("gpt-4o", "Be brief.", "Hello", 0.3, 256)

    assert text == "Hi there"
    request = recorder.requests[0]
    assert request.url.path.endswith("/chat/completions")
    assert request.headers["authorization"] == "Bearer sk-test"
    assert recorder.bodies[0] == {
        "model": "gpt-4o",
        "messages": [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hello"},
        ],
        "max_tokens": 256,
        "temperature": 0.3,
    }


async def test_reasoning_models_use_completion_token_limit():
    recorder = Recorder(lambda request: httpx.Response(200, json=completion_body("ok")))
    client = make_client(recorder)

    await client.complete("gpt-5-mini", "sys", "user", 0.9, 1024, reasoning_effort="low")

    body = recorder.bodies[0]
    assert body["max_completion_tokens"] == 1024
    assert body["reasoning_effort"] == "low"
    assert "temperature" not in body
    assert "max_tokens" not in body


def test_standard_models_ignore_reasoning_effort():
    client = CompletionClient(api_key="sk-test")

    body = client.build_request("gpt-4o", "sys", "user", 0.5, 100, reasoning_effort="high")

    assert body["temperature"] == 0.5
    assert "reasoning_effort" not in body


def test_reasoning_prefixes_are_configurable():
    client = CompletionClient(api_key="sk-test", reasoning_model_prefixes=["deep-"])

    assert client.is_reasoning_model("deep-think")
    assert not client.is_reasoning_model("gpt-5")


async def test_upstream_error_message_is_surfaced():
    recorder = Recorder(lambda request: httpx.Response(
        400, json={"error": {"message": "Invalid model: gpt-9", "type": "invalid_request_error"}}
    ))
    client = make_client(recorder)

    with pytest.raises(UpstreamError) as excinfo:
        await client.complete("gpt-9", "sys", "user", 0.7, 10)

    assert excinfo.value.message == "Invalid model: gpt-9"
    assert excinfo.value.status_code == 400
    assert len(recorder.requests) == 1  # never retried


async def test_upstream_error_without_message_is_generic():
    recorder = Recorder(lambda request: httpx.Response(502, text="bad gateway"))
    client = make_client(recorder)

    with pytest.raises(UpstreamError) as excinfo:
        await client.complete("gpt-4o", "sys", "user", 0.7, 10)

    assert excinfo.value.message == "API call failed"
    assert len(recorder.requests) == 1


async def test_transport_failure_is_upstream_error():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(Recorder(refuse))

    with pytest.raises(UpstreamError):
        await client.complete("gpt-4o", "sys", "user", 0.7, 10)


async def test_streaming_delivers_deltas_in_order():
    recorder = Recorder(lambda request: httpx.Response(
        200, headers={"content-type": "text/event-stream"}, text=sse("Hel", "lo")
    ))
    client = make_client(recorder)
    deltas = []

    text = await client.complete_streaming("gpt-4o", "sys", "user", 0.7, 10, deltas.append)

    assert deltas == ["Hel", "lo"]
    assert text == "Hello"
    assert recorder.bodies[0]["stream"] is True


async def test_streaming_reassembles_events_split_across_reads():
    payload = sse("Hello", ", ", "world").encode()

    async def body():
        for i in range(0, len(payload), 7):
            yield payload[i:i + 7]

    recorder = Recorder(lambda request: httpx.Response(
        200, headers={"content-type": "text/event-stream"}, content=body()
    ))
    client = make_client(recorder)
    deltas = []

    text = await client.complete_streaming("gpt-4o", "sys", "user", 0.7, 10, deltas.append)

    assert deltas == ["Hello", ", ", "world"]
    assert text == "Hello, world"


async def test_streaming_skips_malformed_events():
    body = "data: {broken\n\n" + sse("fine")
    recorder = Recorder(lambda request: httpx.Response(
        200, headers={"content-type": "text/event-stream"}, text=body
    ))
    client = make_client(recorder)

    text = await client.complete_streaming("gpt-4o", "sys", "user", 0.7, 10, lambda d: None)

    assert text == "fine"


async def test_streaming_accepts_async_callbacks():
    recorder = Recorder(lambda request: httpx.Response(
        200, headers={"content-type": "text/event-stream"}, text=sse("a", "b")
    ))
    client = make_client(recorder)
    deltas = []

    async def on_delta(text):
        deltas.append(text)

    await client.complete_streaming("gpt-4o", "sys", "user", 0.7, 10, on_delta)

    assert deltas == ["a", "b"]


async def test_streaming_error_status_raises():
    recorder = Recorder(lambda request: httpx.Response(
        401, json={"error": {"message": "Incorrect API key provided"}}
    ))
    client = make_client(recorder)
    deltas = []

    with pytest.raises(UpstreamError) as excinfo:
        await client.complete_streaming("gpt-4o", "sys", "user", 0.7, 10, deltas.append)

    assert excinfo.value.message == "Incorrect API key provided"
    assert deltas == []


async def test_placeholder_mode_never_calls_the_network():
    recorder = Recorder(lambda request: httpx.Response(200, json=completion_body("real")))
    client = make_client(recorder, api_key=None, placeholder_chunk_size=10)
    deltas = []

    blocking = await client.complete("gpt-4o", "sys", "user", 0.7, 10)
    streamed = await client.complete_streaming("gpt-4o", "sys", "user", 0.7, 10, deltas.append)

    expected = placeholder_response("gpt-4o", "sys", "user")
    assert client.placeholder_mode
    assert blocking == expected
    assert streamed == expected
    assert "placeholder" in blocking
    assert blocking.startswith("[Mock response for gpt-4o]")
    assert "".join(deltas) == expected
    assert len(deltas) > 1
    assert all(len(d) <= 10 for d in deltas)
    assert recorder.requests == []


def test_empty_api_key_means_placeholder_mode():
    assert CompletionClient(api_key="").placeholder_mode


def test_node_with_temperature_and_effort_sends_one_per_family():
    node = AgentNode(id="a", temperature=1.2, reasoning_effort="high")
    client = CompletionClient(api_key="sk-test")

    standard = client.build_request(
        "gpt-4o", "sys", "user", node.temperature, node.max_tokens, node.reasoning_effort
    )
    reasoning = client.build_request(
        "o3-mini", "sys", "user", node.temperature, node.max_tokens, node.reasoning_effort
    )

    assert standard["temperature"] == 1.2
    assert "reasoning_effort" not in standard
    assert reasoning["reasoning_effort"] == "high"
    assert "temperature" not in reasoning
