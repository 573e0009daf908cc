import json

import httpx
import pytest

from botanai.services.inference import (
    ConfigurationError,
    InferenceClient,
    UnknownModelError,
    UpstreamError,
    extract_reply_text,
)


def make_client(handler, api_key="sk-test") -> InferenceClient:
    return InferenceClient(api_key=api_key, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_complete_sends_headers_and_returns_first_text_block():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "content": [
                {"type": "thinking", "thinking": "..."},
                {"type": "text", "text": '{"healthStatus": "Healthy"}'},
                {"type": "text", "text": "second block"},
            ]
        })

    text = await make_client(handler).complete({"model": "m", "messages": []})

    assert text == '{"healthStatus": "Healthy"}'
    assert seen["url"] == "https://api.anthropic.com/v1/messages"
    assert seen["headers"]["x-api-key"] == "sk-test"
    assert seen["headers"]["anthropic-version"] == "2023-06-01"
    assert seen["body"] == {"model": "m", "messages": []}


@pytest.mark.asyncio
async def test_missing_key_is_a_configuration_error():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(ConfigurationError):
        await make_client(handler, api_key="  ").complete({})


@pytest.mark.asyncio
async def test_unknown_model_is_reported_separately():
    def handler(request):
        return httpx.Response(404, json={
            "type": "error",
            "error": {"type": "not_found_error", "message": "model: claude-nope"},
        })

    with pytest.raises(UnknownModelError) as exc_info:
        await make_client(handler).complete({})
    assert exc_info.value.status_code == 404
    assert exc_info.value.detail == "model: claude-nope"


@pytest.mark.asyncio
async def test_error_status_carries_upstream_detail():
    def handler(request):
        return httpx.Response(529, text="overloaded")

    with pytest.raises(UpstreamError) as exc_info:
        await make_client(handler).complete({})
    assert not isinstance(exc_info.value, UnknownModelError)
    assert exc_info.value.status_code == 529
    assert exc_info.value.detail == "overloaded"


@pytest.mark.asyncio
async def test_transport_failure_becomes_upstream_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamError):
        await make_client(handler).complete({})


@pytest.mark.asyncio
async def test_forward_returns_upstream_answer_unchanged():
    def handler(request):
        return httpx.Response(400, content=b'{"error":"bad"}', headers={"content-type": "application/json"})

    response = await make_client(handler).forward({"anything": True})

    assert response.status_code == 400
    assert response.content == b'{"error":"bad"}'
    assert response.content_type == "application/json"


def test_base_url_with_version_suffix():
    client = InferenceClient(api_key="k", base_url="https://proxy.local/v1/")
    assert client.endpoint == "https://proxy.local/v1/messages"


@pytest.mark.parametrize("body, expected", [
    ({"content": [{"text": "untyped"}]}, "untyped"),
    ({"text": "top level"}, "top level"),
])
def test_extract_reply_text_fallbacks(body, expected):
    assert extract_reply_text(body) == expected


@pytest.mark.parametrize("body", [{"content": []}, {}, ["not", "a", "dict"]])
def test_extract_reply_text_without_text_fails(body):
    with pytest.raises(UpstreamError):
        extract_reply_text(body)
