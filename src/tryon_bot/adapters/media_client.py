"""HTTP client for downloading inbound media."""

from dataclasses import dataclass, replace
from typing import Protocol

import httpx

from tryon_bot.domain.errors import TooLarge


@dataclass(frozen=True)
class MediaResponse:
    """Status, headers of interest and body of a media request."""

    status_code: int
    content_type: str | None = None
    content_length: int | None = None
    content: bytes = b""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_forbidden(self) -> bool:
        return self.status_code in {401, 403}


class MediaClient(Protocol):
    """Interface for fetching remote media."""

    async def probe(self, url: str) -> MediaResponse:
        """Read media metadata without downloading the body."""

    async def download(self, url: str, max_bytes: int | None = None) -> MediaResponse:
        """Download media, raising TooLarge once the body exceeds ``max_bytes``."""


@dataclass
class HttpxMediaClient(MediaClient):
    """Media client implemented with httpx."""

    http_client: httpx.AsyncClient

    @classmethod
    def create(cls) -> "HttpxMediaClient":
        """Create a media client with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient(follow_redirects=True))

    async def probe(self, url: str) -> MediaResponse:
        """Issue a HEAD request for the media URL."""
        response = await self.http_client.head(url, timeout=10)
        return _to_media_response(response)

    async def download(self, url: str, max_bytes: int | None = None) -> MediaResponse:
        """Stream a GET of the media URL, stopping once ``max_bytes`` is exceeded."""
        async with self.http_client.stream("GET", url, timeout=20) as response:
            meta = _to_media_response(response)
            if not meta.is_success:
                return meta
            if max_bytes is not None and (meta.content_length or 0) > max_bytes:
                raise TooLarge(meta.content_length or 0, max_bytes)
            body = bytearray()
            async for chunk in response.aiter_bytes():
                body.extend(chunk)
                if max_bytes is not None and len(body) > max_bytes:
                    raise TooLarge(len(body), max_bytes)
        return replace(meta, content=bytes(body))

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()


def _to_media_response(response: httpx.Response) -> MediaResponse:
    return MediaResponse(
        status_code=response.status_code,
        content_type=response.headers.get("content-type"),
        content_length=_parse_length(response.headers.get("content-length")),
    )


def _parse_length(raw: str | None) -> int | None:
    if raw is None:
        return None
    value = raw.strip()
    return int(value) if value.isdigit() else None
