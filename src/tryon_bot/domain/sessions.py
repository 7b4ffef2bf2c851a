"""Domain models for try-on conversation sessions."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from tryon_bot.domain.images import ImageAsset


class Slot(StrEnum):
    """Image role an inbound message fills."""

    SELFIE = "selfie"
    CLOTHING = "clothing"
    NONE = "none"


class SessionState(StrEnum):
    """Conversation state derived from the session fields."""

    EMPTY = "EMPTY"
    HAS_SELFIE = "HAS_SELFIE"
    HAS_CLOTHING = "HAS_CLOTHING"
    READY = "READY"
    GENERATING = "GENERATING"


@dataclass(frozen=True)
class Session:
    """Per-user try-on session snapshot."""

    user_id: str
    selfie: ImageAsset | None = None
    clothing: ImageAsset | None = None
    in_progress: bool = False
    last_updated: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def state(self) -> SessionState:
        if self.in_progress:
            return SessionState.GENERATING
        if self.selfie and self.clothing:
            return SessionState.READY
        if self.selfie:
            return SessionState.HAS_SELFIE
        if self.clothing:
            return SessionState.HAS_CLOTHING
        return SessionState.EMPTY

    @property
    def is_ready(self) -> bool:
        return self.state == SessionState.READY
