"""Shared test fixtures."""

import asyncio
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from tryon_bot.adapters.artifact_store import LocalArtifactStore
from tryon_bot.adapters.media_client import MediaClient, MediaResponse
from tryon_bot.adapters.messages_client import MessagesClient
from tryon_bot.config import Settings
from tryon_bot.containers import AppContainer
from tryon_bot.domain.generation import GenerationRequest
from tryon_bot.services.conversation import ConversationController
from tryon_bot.services.delivery import DeliveryPipeline
from tryon_bot.services.generation import GenerationClient, GenerationOrchestrator
from tryon_bot.services.images import ImageFetcher
from tryon_bot.services.sessions import InMemorySessionStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64
WEBP_BYTES = b"RIFF\x00\x00\x00\x00WEBPVP8 " + b"\x00" * 32
GENERATED_PNG = b"\x89PNG\r\n\x1a\n" + b"generated"


def image_chunk(data: bytes = GENERATED_PNG, key: str = "inline_data") -> dict:
    """Build a response chunk carrying an inline image."""
    return {
        "candidates": [
            {"content": {"parts": [{key: {"data": data, "mime_type": "image/png"}}]}}
        ]
    }


def text_chunk(text: str, finish_reason: str | None = None) -> dict:
    """Build a response chunk carrying only text."""
    candidate: dict[str, object] = {"content": {"parts": [{"text": text}]}}
    if finish_reason:
        candidate["finish_reason"] = finish_reason
    return {"candidates": [candidate]}


@dataclass
class FakeMessagesClient(MessagesClient):
    """Fake messages client that records sends and can fail chosen tiers."""

    sent: list[tuple[str, str, str]] = field(default_factory=list)
    failing: set[str] = field(default_factory=set)

    async def send_rich_image(self, to: str, image_url: str, text: str) -> None:
        self._record("rich_image", to, image_url)

    async def send_image(self, to: str, image_url: str) -> None:
        self._record("image", to, image_url)

    async def send_text(self, to: str, text: str) -> None:
        self._record("text", to, text)

    def texts(self) -> list[str]:
        return [body for kind, _, body in self.sent if kind == "text"]

    def _record(self, kind: str, to: str, body: str) -> None:
        if kind in self.failing:
            raise RuntimeError(f"{kind} send failed")
        self.sent.append((kind, to, body))


@dataclass
class FakeMediaClient(MediaClient):
    """Fake media client serving canned responses by URL."""

    downloads: dict[str, MediaResponse] = field(default_factory=dict)
    probes: dict[str, MediaResponse] = field(default_factory=dict)
    download_calls: list[str] = field(default_factory=list)
    pause_on_download: bool = False

    def add_image(self, url: str, content: bytes, content_type: str) -> None:
        self.downloads[url] = MediaResponse(
            status_code=200,
            content_type=content_type,
            content_length=len(content),
            content=content,
        )

    async def probe(self, url: str) -> MediaResponse:
        if url in self.probes:
            return self.probes[url]
        download = self.downloads.get(url)
        if download is None:
            return MediaResponse(status_code=404)
        return MediaResponse(
            status_code=download.status_code,
            content_type=download.content_type,
            content_length=download.content_length,
        )

    async def download(self, url: str, max_bytes: int | None = None) -> MediaResponse:
        self.download_calls.append(url)
        if self.pause_on_download:
            await asyncio.sleep(0)
        return self.downloads.get(url, MediaResponse(status_code=404))


@dataclass
class FakeGenerationClient(GenerationClient):
    """Fake generation backend with scripted stream and full responses."""

    stream_chunks: list[Mapping[str, object]] = field(
        default_factory=lambda: [text_chunk("Here you go! "), image_chunk()]
    )
    full_response: Mapping[str, object] = field(default_factory=dict)
    stream_error: Exception | None = None
    full_error: Exception | None = None
    stream_calls: int = 0
    full_calls: int = 0
    requests: list[GenerationRequest] = field(default_factory=list)

    async def stream(
        self, request: GenerationRequest
    ) -> AsyncIterator[Mapping[str, object]]:
        self.stream_calls += 1
        self.requests.append(request)
        for chunk in self.stream_chunks:
            yield chunk
        if self.stream_error is not None:
            raise self.stream_error

    async def generate(self, request: GenerationRequest) -> Mapping[str, object]:
        self.full_calls += 1
        self.requests.append(request)
        if self.full_error is not None:
            raise self.full_error
        return self.full_response


@pytest.fixture
def photos_dir(tmp_path: Path) -> Path:
    return tmp_path / "photos"


@pytest.fixture
def settings(photos_dir: Path) -> Settings:
    return Settings(
        vonage_api_key="vonage-key",
        vonage_api_secret="vonage-secret",
        rcs_sender_id="TryOnBot",
        gemini_api_key="gemini-key",
        public_base_url="https://bot.example.com",
        photos_dir=str(photos_dir),
        vonage_signature_secret=None,
        phone_number=None,
        environment="test",
    )


@pytest.fixture
def messages_client() -> FakeMessagesClient:
    return FakeMessagesClient()


@pytest.fixture
def media_client() -> FakeMediaClient:
    return FakeMediaClient()


@pytest.fixture
def generation_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def container(
    settings: Settings,
    messages_client: FakeMessagesClient,
    media_client: FakeMediaClient,
    generation_client: FakeGenerationClient,
    session_store: InMemorySessionStore,
    photos_dir: Path,
) -> AppContainer:
    artifact_store = LocalArtifactStore(photos_dir)
    image_fetcher = ImageFetcher(client=media_client, max_bytes=settings.max_image_bytes)
    orchestrator = GenerationOrchestrator(
        client=generation_client, model=settings.gemini_model
    )
    delivery = DeliveryPipeline(
        artifact_store=artifact_store,
        messages_client=messages_client,
        public_base_url=settings.public_base_url,
    )
    conversation = ConversationController(
        session_store=session_store,
        image_fetcher=image_fetcher,
        orchestrator=orchestrator,
        delivery=delivery,
        messages_client=messages_client,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        messages_client=messages_client,
        artifact_store=artifact_store,
        session_store=session_store,
        image_fetcher=image_fetcher,
        orchestrator=orchestrator,
        delivery=delivery,
        conversation=conversation,
        close_resources=close_resources,
    )
