"""Normalized inbound messages."""

from dataclasses import dataclass


@dataclass(frozen=True)
class InboundMessage:
    """Provider-independent view of an inbound webhook event."""

    user_id: str
    text: str | None = None
    media_url: str | None = None

    @property
    def has_media(self) -> bool:
        return bool(self.media_url)
