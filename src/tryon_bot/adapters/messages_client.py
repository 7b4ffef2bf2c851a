"""Vonage Messages API client adapter."""

from dataclasses import dataclass
from typing import Protocol

import httpx

RICH_CARD_TITLE = "Your virtual try-on"
_MAX_DESCRIPTION = 2000


class MessagesClient(Protocol):
    """Interface for sending messages to a user over RCS."""

    async def send_rich_image(self, to: str, image_url: str, text: str) -> None:
        """Send a rich card with an image and description."""

    async def send_image(self, to: str, image_url: str) -> None:
        """Send a plain image message."""

    async def send_text(self, to: str, text: str) -> None:
        """Send a plain text message."""


@dataclass
class HttpxVonageMessagesClient(MessagesClient):
    """Vonage Messages client implemented with httpx."""

    api_key: str
    api_secret: str
    sender_id: str
    http_client: httpx.AsyncClient
    messages_url: str = "https://api.nexmo.com/v1/messages"

    @classmethod
    def create(
        cls, api_key: str, api_secret: str, sender_id: str, messages_url: str
    ) -> "HttpxVonageMessagesClient":
        """Create a messages client with a managed httpx session."""
        return cls(
            api_key=api_key,
            api_secret=api_secret,
            sender_id=sender_id,
            messages_url=messages_url,
            http_client=httpx.AsyncClient(),
        )

    async def send_rich_image(self, to: str, image_url: str, text: str) -> None:
        """Send an RCS standalone rich card."""
        card_content: dict[str, object] = {
            "title": RICH_CARD_TITLE,
            "media": {
                "height": "TALL",
                "contentInfo": {"fileUrl": image_url, "forceRefresh": True},
            },
        }
        if text:
            card_content["description"] = text[:_MAX_DESCRIPTION]
        await self._send(
            to,
            "custom",
            {
                "custom": {
                    "contentMessage": {
                        "richCard": {
                            "standaloneCard": {
                                "cardOrientation": "VERTICAL",
                                "cardContent": card_content,
                            }
                        }
                    }
                }
            },
        )

    async def send_image(self, to: str, image_url: str) -> None:
        """Send an RCS image message."""
        await self._send(to, "image", {"image": {"url": image_url}})

    async def send_text(self, to: str, text: str) -> None:
        """Send an RCS text message."""
        await self._send(to, "text", {"text": text})

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

    async def _send(
        self, to: str, message_type: str, content: dict[str, object]
    ) -> None:
        payload: dict[str, object] = {
            "channel": "rcs",
            "message_type": message_type,
            "to": to,
            "from": self.sender_id,
            **content,
        }
        response = await self.http_client.post(
            self.messages_url,
            json=payload,
            auth=(self.api_key, self.api_secret),
            timeout=10,
        )
        response.raise_for_status()
