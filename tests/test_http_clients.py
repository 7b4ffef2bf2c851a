"""Tests for HTTP-based adapters."""

import asyncio
import json

import httpx
import pytest

from tryon_bot.adapters.gemini_client import GeminiGenerationClient
from tryon_bot.adapters.media_client import HttpxMediaClient
from tryon_bot.adapters.messages_client import HttpxVonageMessagesClient
from tryon_bot.domain.errors import TooLarge
from tryon_bot.domain.generation import GenerationRequest

REQUEST = GenerationRequest(
    model="gemini-test",
    images=((b"\xff\xd8\xff", "image/jpeg"), (b"\x89PNG", "image/png")),
    prompt="Try it on",
)


def test_media_client_probe_and_download() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "HEAD":
            return httpx.Response(
                200, headers={"content-type": "image/png", "content-length": "4"}
            )
        return httpx.Response(
            200, content=b"\x89PNG", headers={"content-type": "image/png"}
        )

    transport = httpx.MockTransport(handler)
    client = HttpxMediaClient(http_client=httpx.AsyncClient(transport=transport))

    probe = asyncio.run(client.probe("https://media.example.com/a.png"))
    download = asyncio.run(client.download("https://media.example.com/a.png"))

    assert probe.content_type == "image/png"
    assert probe.content_length == 4
    assert probe.content == b""
    assert download.is_success
    assert download.content == b"\x89PNG"


def test_media_client_reports_forbidden() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(403))
    client = HttpxMediaClient(http_client=httpx.AsyncClient(transport=transport))

    probe = asyncio.run(client.probe("https://media.example.com/a.png"))

    assert probe.is_forbidden


def test_media_client_stops_unbounded_download_at_limit() -> None:
    produced: list[int] = []

    async def body():  # type: ignore[no-untyped-def]
        for index in range(10):
            produced.append(index)
            yield b"\xff" * 64

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, headers={"content-type": "image/jpeg"}, content=body()
        )

    transport = httpx.MockTransport(handler)
    client = HttpxMediaClient(http_client=httpx.AsyncClient(transport=transport))

    with pytest.raises(TooLarge) as excinfo:
        asyncio.run(client.download("https://media.example.com/a.jpg", max_bytes=100))

    assert excinfo.value.size_bytes == 128
    assert len(produced) < 10


def test_media_client_rejects_declared_length_before_reading() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, headers={"content-type": "image/jpeg"}, content=b"\xff" * 500
        )

    transport = httpx.MockTransport(handler)
    client = HttpxMediaClient(http_client=httpx.AsyncClient(transport=transport))

    with pytest.raises(TooLarge) as excinfo:
        asyncio.run(client.download("https://media.example.com/a.jpg", max_bytes=100))

    assert excinfo.value.size_bytes == 500


def test_media_client_download_error_status_has_no_body() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(404, text="gone"))
    client = HttpxMediaClient(http_client=httpx.AsyncClient(transport=transport))

    response = asyncio.run(client.download("https://media.example.com/a.jpg"))

    assert response.status_code == 404
    assert response.content == b""


def test_vonage_client_payloads() -> None:
    payloads: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/messages"
        assert request.headers["authorization"].startswith("Basic ")
        payloads.append(json.loads(request.content.decode()))
        return httpx.Response(202, json={"message_uuid": "abc"})

    client = HttpxVonageMessagesClient(
        api_key="key",
        api_secret="secret",
        sender_id="TryOnBot",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    asyncio.run(client.send_rich_image("15550001", "https://x/photos/a.png", "Nice"))
    asyncio.run(client.send_image("15550001", "https://x/photos/a.png"))
    asyncio.run(client.send_text("15550001", "hello"))

    rich, image, text = payloads
    assert rich["message_type"] == "custom"
    card = rich["custom"]["contentMessage"]["richCard"]["standaloneCard"]
    content_info = card["cardContent"]["media"]["contentInfo"]
    assert content_info["fileUrl"] == "https://x/photos/a.png"
    assert card["cardContent"]["description"] == "Nice"
    assert image == {
        "channel": "rcs",
        "message_type": "image",
        "to": "15550001",
        "from": "TryOnBot",
        "image": {"url": "https://x/photos/a.png"},
    }
    assert text["text"] == "hello"


def test_vonage_client_raises_on_error_status() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(422))
    client = HttpxVonageMessagesClient(
        api_key="key",
        api_secret="secret",
        sender_id="TryOnBot",
        http_client=httpx.AsyncClient(transport=transport),
    )

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.send_text("15550001", "hello"))


class _FakeResponse:
    def __init__(self, payload: dict[str, object]) -> None:
        self.payload = payload

    def model_dump(self, **kwargs):  # type: ignore[no-untyped-def]
        return self.payload


class _FakeModels:
    def __init__(self) -> None:
        self.calls: list[dict[str, object]] = []

    async def generate_content(self, **kwargs):  # type: ignore[no-untyped-def]
        self.calls.append(kwargs)
        return _FakeResponse({"candidates": []})

    async def generate_content_stream(self, **kwargs):  # type: ignore[no-untyped-def]
        self.calls.append(kwargs)

        async def chunks():  # type: ignore[no-untyped-def]
            yield _FakeResponse({"candidates": [{"content": {"parts": [{"text": "a"}]}}]})
            yield _FakeResponse({"candidates": [{"content": {"parts": [{"text": "b"}]}}]})

        return chunks()


class _FakeGenai:
    def __init__(self) -> None:
        self.aio = type("Aio", (), {"models": _FakeModels()})()


def test_gemini_client_streams_chunks_as_mappings() -> None:
    fake = _FakeGenai()
    client = GeminiGenerationClient(client=fake)  # type: ignore[arg-type]

    async def collect() -> list[object]:
        return [chunk async for chunk in client.stream(REQUEST)]

    chunks = asyncio.run(collect())

    assert len(chunks) == 2
    call = fake.aio.models.calls[0]
    assert call["model"] == "gemini-test"
    parts = call["contents"][0].parts
    assert parts[0].inline_data.mime_type == "image/jpeg"
    assert parts[-1].text == "Try it on"
    assert call["config"].response_modalities == ["IMAGE", "TEXT"]


def test_gemini_client_generate_returns_mapping() -> None:
    client = GeminiGenerationClient(client=_FakeGenai())  # type: ignore[arg-type]

    response = asyncio.run(client.generate(REQUEST))

    assert response == {"candidates": []}


def test_gemini_client_without_key_fails() -> None:
    client = GeminiGenerationClient.create(None)

    assert client.is_configured is False
    with pytest.raises(RuntimeError):
        asyncio.run(client.generate(REQUEST))
