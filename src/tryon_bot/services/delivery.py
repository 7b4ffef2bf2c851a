"""Artifact persistence and tiered delivery of generated images."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from tryon_bot.adapters.artifact_store import ArtifactStore
from tryon_bot.adapters.messages_client import MessagesClient
from tryon_bot.config import normalize_base_url
from tryon_bot.domain.errors import DeliveryExhausted

logger = logging.getLogger(__name__)

PHOTOS_ROUTE = "/photos"


@dataclass
class DeliveryPipeline:
    """Persist a generated image and send it through descending tiers."""

    artifact_store: ArtifactStore
    messages_client: MessagesClient
    public_base_url: str | None = None

    async def deliver(
        self,
        user_id: str,
        image_bytes: bytes,
        text: str,
        request_base_url: str | None = None,
        mime_type: str = "image/png",
    ) -> bool:
        """Return True if any tier reached the user."""
        filename = await self.artifact_store.save(user_id, image_bytes, mime_type)
        image_url = self.public_url(filename, request_base_url)
        caption = text.strip()
        fallback_text = (
            f"{caption}\n{image_url}" if caption else f"Here is your try-on: {image_url}"
        )
        tiers: list[tuple[str, Callable[[], Awaitable[None]]]] = [
            (
                "rich_image",
                lambda: self.messages_client.send_rich_image(
                    user_id, image_url, caption
                ),
            ),
            ("image", lambda: self.messages_client.send_image(user_id, image_url)),
            ("text", lambda: self.messages_client.send_text(user_id, fallback_text)),
        ]
        for tier, send in tiers:
            try:
                await send()
            except Exception:
                logger.exception(
                    "Delivery tier failed", extra={"tier": tier, "user_id": user_id}
                )
                continue
            logger.info("Delivered try-on", extra={"tier": tier, "user_id": user_id})
            return True
        logger.error(str(DeliveryExhausted(user_id, len(tiers))))
        return False

    def public_url(self, filename: str, request_base_url: str | None = None) -> str:
        """Build the public URL for an artifact, preferring the configured base."""
        base = normalize_base_url(self.public_base_url) or normalize_base_url(
            request_base_url
        )
        if base is None:
            raise ValueError("No public base URL is available for artifacts")
        return f"{base}{PHOTOS_ROUTE}/{filename}"
