"""Inbound image retrieval and acceptance policy."""

import logging
from dataclasses import dataclass

import httpx

from tryon_bot.adapters.media_client import MediaClient, MediaResponse
from tryon_bot.config import DEFAULT_MAX_IMAGE_BYTES
from tryon_bot.domain.errors import (
    FetchFailed,
    FetchForbidden,
    TooLarge,
    UnsupportedHeic,
    UnsupportedType,
    UnsupportedWebp,
)
from tryon_bot.domain.images import ImageAsset, ImageMimeType

logger = logging.getLogger(__name__)

_ACCEPTED_TYPES: dict[str, ImageMimeType] = {
    "image/png": ImageMimeType.PNG,
    "image/jpeg": ImageMimeType.JPEG,
    "image/jpg": ImageMimeType.JPEG,
    "image/pjpeg": ImageMimeType.JPEG,
}
_WEBP_TYPES = {"image/webp"}
_HEIC_TYPES = {"image/heic", "image/heif", "image/heic-sequence", "image/heif-sequence"}
_GENERIC_TYPES = {"application/octet-stream", "binary/octet-stream"}
_HEIC_BRANDS = {b"heic", b"heix", b"hevc", b"heim", b"heis", b"mif1", b"msf1"}


@dataclass
class ImageFetcher:
    """Download an inbound media URL and accept only PNG or JPEG images."""

    client: MediaClient
    max_bytes: int = DEFAULT_MAX_IMAGE_BYTES

    async def fetch(self, url: str) -> ImageAsset:
        """Fetch and validate an image, raising ImageFetchError on rejection."""
        probe = await self._probe(url)
        if probe is not None and probe.is_forbidden:
            raise FetchForbidden(f"probe returned {probe.status_code}")
        if probe is not None and probe.content_length is not None:
            self._check_size(probe.content_length)

        try:
            response = await self.client.download(url, max_bytes=self.max_bytes)
        except httpx.HTTPError as exc:
            raise FetchFailed(f"{type(exc).__name__}: {exc}") from exc
        if response.is_forbidden:
            raise FetchForbidden(f"download returned {response.status_code}")
        if not response.is_success:
            raise FetchFailed(f"download returned {response.status_code}")

        declared_length = (
            probe.content_length
            if probe is not None and probe.content_length is not None
            else response.content_length
        )
        if declared_length is not None:
            self._check_size(declared_length)
        self._check_size(len(response.content))

        declared_type = (probe.content_type if probe is not None else None) or (
            response.content_type
        )
        mime_type = resolve_mime_type(declared_type, response.content)
        return ImageAsset(payload=response.content, mime_type=mime_type)

    async def _probe(self, url: str) -> MediaResponse | None:
        """Return probe metadata, or None when the provider can't be probed."""
        try:
            probe = await self.client.probe(url)
        except httpx.HTTPError:
            logger.info("Media probe failed, falling back to download")
            return None
        if probe.is_forbidden or probe.is_success:
            return probe
        return None

    def _check_size(self, size_bytes: int) -> None:
        if size_bytes > self.max_bytes:
            raise TooLarge(size_bytes, self.max_bytes)


def resolve_mime_type(declared: str | None, payload: bytes) -> ImageMimeType:
    """Accept PNG or JPEG by the payload's signature.

    The declared content type only chooses which rejection to raise.
    """
    detected = detect_mime_type(payload)
    accepted = _ACCEPTED_TYPES.get(detected or "")
    if accepted is not None:
        return accepted
    content_type = _normalize_content_type(declared)
    if content_type in _GENERIC_TYPES:
        content_type = None
    if detected in _WEBP_TYPES or (detected is None and content_type in _WEBP_TYPES):
        raise UnsupportedWebp(detected or content_type)
    if detected in _HEIC_TYPES or (detected is None and content_type in _HEIC_TYPES):
        raise UnsupportedHeic(detected or content_type)
    raise UnsupportedType(detected or content_type)


def detect_mime_type(payload: bytes) -> str | None:
    """Infer an image MIME type from file signatures."""
    if payload.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if payload.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if payload[:4] == b"RIFF" and payload[8:12] == b"WEBP":
        return "image/webp"
    if payload[4:8] == b"ftyp" and payload[8:12] in _HEIC_BRANDS:
        return "image/heic"
    return None


def _normalize_content_type(raw: str | None) -> str | None:
    if not raw:
        return None
    value = raw.split(";", maxsplit=1)[0].strip().lower()
    return value or None
