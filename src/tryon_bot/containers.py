"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from tryon_bot.adapters.artifact_store import ArtifactStore, LocalArtifactStore
from tryon_bot.adapters.gemini_client import GeminiGenerationClient
from tryon_bot.adapters.media_client import HttpxMediaClient
from tryon_bot.adapters.messages_client import (
    HttpxVonageMessagesClient,
    MessagesClient,
)
from tryon_bot.config import Settings
from tryon_bot.services.conversation import ConversationController
from tryon_bot.services.delivery import DeliveryPipeline
from tryon_bot.services.generation import GenerationOrchestrator
from tryon_bot.services.images import ImageFetcher
from tryon_bot.services.sessions import InMemorySessionStore, SessionStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    messages_client: MessagesClient
    artifact_store: ArtifactStore
    session_store: SessionStore
    image_fetcher: ImageFetcher
    orchestrator: GenerationOrchestrator
    delivery: DeliveryPipeline
    conversation: ConversationController
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    messages_client = HttpxVonageMessagesClient.create(
        api_key=resolved_settings.vonage_api_key,
        api_secret=resolved_settings.vonage_api_secret,
        sender_id=resolved_settings.rcs_sender_id,
        messages_url=resolved_settings.vonage_messages_url,
    )
    media_client = HttpxMediaClient.create()
    artifact_store = LocalArtifactStore(Path(resolved_settings.photos_dir))
    session_store = InMemorySessionStore.from_ttl_ms(resolved_settings.session_ttl_ms)
    image_fetcher = ImageFetcher(
        client=media_client, max_bytes=resolved_settings.max_image_bytes
    )
    orchestrator = GenerationOrchestrator(
        client=GeminiGenerationClient.create(resolved_settings.gemini_api_key),
        model=resolved_settings.gemini_model,
    )
    delivery = DeliveryPipeline(
        artifact_store=artifact_store,
        messages_client=messages_client,
        public_base_url=resolved_settings.public_base_url,
    )
    conversation = ConversationController(
        session_store=session_store,
        image_fetcher=image_fetcher,
        orchestrator=orchestrator,
        delivery=delivery,
        messages_client=messages_client,
        debug_errors=resolved_settings.environment == "local",
    )

    async def close_resources() -> None:
        await messages_client.close()
        await media_client.close()

    return AppContainer(
        settings=resolved_settings,
        messages_client=messages_client,
        artifact_store=artifact_store,
        session_store=session_store,
        image_fetcher=image_fetcher,
        orchestrator=orchestrator,
        delivery=delivery,
        conversation=conversation,
        close_resources=close_resources,
    )
