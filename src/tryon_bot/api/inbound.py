"""Normalization of inbound Vonage webhook payloads."""

from collections.abc import Mapping

from tryon_bot.domain.messages import InboundMessage


def normalize_inbound(body: Mapping[str, object]) -> InboundMessage | None:
    """Extract sender, text and media URL from a provider envelope.

    Each field is looked up on ``body.message``, then ``body.message.message``,
    then ``body`` itself. Returns None when no sender can be found.
    """
    envelopes = _envelopes(body)
    user_id = _first_text(envelopes, "from")
    if user_id is None:
        return None
    return InboundMessage(
        user_id=user_id,
        text=_first_text(envelopes, "text"),
        media_url=_first_media_url(envelopes),
    )


def _envelopes(body: Mapping[str, object]) -> list[Mapping[str, object]]:
    envelopes: list[Mapping[str, object]] = []
    message = body.get("message")
    if isinstance(message, Mapping):
        envelopes.append(message)
        nested = message.get("message")
        if isinstance(nested, Mapping):
            envelopes.append(nested)
    envelopes.append(body)
    return envelopes


def _first_text(envelopes: list[Mapping[str, object]], key: str) -> str | None:
    for envelope in envelopes:
        value = envelope.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _first_media_url(envelopes: list[Mapping[str, object]]) -> str | None:
    for envelope in envelopes:
        media = envelope.get("image")
        if isinstance(media, Mapping):
            media = media.get("url")
        if isinstance(media, str) and media.strip():
            return media.strip()
    return None
