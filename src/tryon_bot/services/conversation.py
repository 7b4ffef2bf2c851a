"""Turn-taking protocol for the two-image try-on conversation."""

import logging
from dataclasses import dataclass
from enum import StrEnum

from tryon_bot.adapters.messages_client import MessagesClient
from tryon_bot.domain.errors import FetchFailed, GenerationEmpty, ImageFetchError
from tryon_bot.domain.messages import InboundMessage
from tryon_bot.domain.sessions import Session, SessionState, Slot
from tryon_bot.services.classifier import classify
from tryon_bot.services.delivery import DeliveryPipeline
from tryon_bot.services.generation import GenerationOrchestrator
from tryon_bot.services.images import ImageFetcher
from tryon_bot.services.sessions import SessionStore

logger = logging.getLogger(__name__)

GREETING = "Hi! Send me a selfie and a clothing image to try on."
SELFIE_RECEIVED = "Got your selfie! Now send a photo of the clothing you want to try on."
CLOTHING_RECEIVED = "Got the clothing! Now send a selfie so I can try it on you."


class TurnOutcome(StrEnum):
    """How a single inbound event was handled."""

    PROMPTED = "prompted"
    REJECTED = "rejected"
    STORED = "stored"
    BUSY = "busy"
    DELIVERED = "delivered"
    UNDELIVERED = "undelivered"
    FAILED = "failed"


@dataclass
class ConversationController:
    """Compose classification, ingestion, generation and delivery per event."""

    session_store: SessionStore
    image_fetcher: ImageFetcher
    orchestrator: GenerationOrchestrator
    delivery: DeliveryPipeline
    messages_client: MessagesClient
    debug_errors: bool = False

    async def handle(
        self, message: InboundMessage, request_base_url: str | None = None
    ) -> TurnOutcome:
        """Process one inbound event for a user."""
        user_id = message.user_id
        if not message.has_media:
            session = self.session_store.get(user_id)
            slot = classify(message, session)
            if slot == Slot.NONE:
                await self._reply(user_id, _missing_prompt(session))
            else:
                await self._reply(user_id, f"Please send your {slot} as an image.")
            return TurnOutcome.PROMPTED

        try:
            asset = await self.image_fetcher.fetch(str(message.media_url))
        except ImageFetchError as exc:
            logger.info(
                "Rejected inbound image",
                extra={"user_id": user_id, "reason": type(exc).__name__},
            )
            await self._reply(user_id, exc.user_message)
            return TurnOutcome.REJECTED
        except Exception as exc:
            logger.exception(
                "Failed to fetch inbound image", extra={"user_id": user_id}
            )
            await self._reply(user_id, self._format_error(exc, FetchFailed.user_message))
            return TurnOutcome.REJECTED

        # No await between classify and claim: overlapping turns must observe
        # each other's stored slots.
        slot = classify(message, self.session_store.get(user_id))
        session = self.session_store.store_image(user_id, slot, asset)
        snapshot = self.session_store.try_begin_generation(user_id)
        if snapshot is None:
            if session.state == SessionState.GENERATING:
                logger.info("Generation already running", extra={"user_id": user_id})
                return TurnOutcome.BUSY
            await self._reply(
                user_id, SELFIE_RECEIVED if slot == Slot.SELFIE else CLOTHING_RECEIVED
            )
            return TurnOutcome.STORED

        try:
            return await self._generate_and_deliver(snapshot, request_base_url)
        finally:
            self.session_store.reset(user_id)

    async def greet(self, user_id: str) -> None:
        """Send the opening instructions; errors propagate to the caller."""
        await self.messages_client.send_text(user_id, GREETING)

    async def _generate_and_deliver(
        self, session: Session, request_base_url: str | None
    ) -> TurnOutcome:
        result = await self.orchestrator.generate(
            session.selfie,  # type: ignore[arg-type]
            session.clothing,  # type: ignore[arg-type]
        )
        if not result.has_image:
            error = GenerationEmpty(result.termination_reason)
            logger.warning(str(error), extra={"user_id": session.user_id})
            await self._reply(session.user_id, error.user_message)
            return TurnOutcome.FAILED
        try:
            delivered = await self.delivery.deliver(
                session.user_id,
                result.image_bytes or b"",
                result.text,
                request_base_url=request_base_url,
                mime_type=result.mime_type or "image/png",
            )
        except Exception:
            logger.exception(
                "Failed to deliver try-on", extra={"user_id": session.user_id}
            )
            return TurnOutcome.UNDELIVERED
        return TurnOutcome.DELIVERED if delivered else TurnOutcome.UNDELIVERED

    async def _reply(self, user_id: str, text: str) -> None:
        try:
            await self.messages_client.send_text(user_id, text)
        except Exception:
            logger.exception("Failed to send reply", extra={"user_id": user_id})

    def _format_error(self, exc: Exception, fallback: str) -> str:
        """Return a user-facing error message with debug info when enabled."""
        if self.debug_errors:
            detail = f"{type(exc).__name__}: {exc}".strip()
            if detail:
                return f"{fallback} (debug: {detail})"
        return fallback


def _missing_prompt(session: Session) -> str:
    if session.state == SessionState.HAS_SELFIE:
        return "I have your selfie. Now send a photo of the clothing to try on."
    if session.state == SessionState.HAS_CLOTHING:
        return "I have the clothing. Now send a selfie."
    if session.state == SessionState.GENERATING:
        return "I'm still working on your try-on. Hang tight!"
    return GREETING
