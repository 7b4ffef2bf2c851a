"""Domain models for inbound images."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum


class ImageMimeType(StrEnum):
    """Image formats accepted for try-on input."""

    PNG = "image/png"
    JPEG = "image/jpeg"


@dataclass(frozen=True)
class ImageAsset:
    """An accepted image held in a session slot."""

    payload: bytes
    mime_type: ImageMimeType
    received_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def size_bytes(self) -> int:
        return len(self.payload)
