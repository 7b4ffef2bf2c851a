"""Filesystem storage for generated try-on images."""

import asyncio
import re
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]+")
_EXTENSIONS = {"image/png": "png", "image/jpeg": "jpg", "image/webp": "webp"}


class ArtifactStore(Protocol):
    """Interface for persisting generated images."""

    async def save(self, user_id: str, data: bytes, mime_type: str = "image/png") -> str:
        """Persist image bytes and return the stored filename."""

    def resolve(self, filename: str) -> Path | None:
        """Return the path of a stored artifact, if present."""


@dataclass
class LocalArtifactStore(ArtifactStore):
    """Writes generated images under a local directory."""

    directory: Path
    clock: Callable[[], datetime] = lambda: datetime.now(tz=UTC)

    async def save(self, user_id: str, data: bytes, mime_type: str = "image/png") -> str:
        """Write bytes to a filename that is never reused."""
        filename = build_artifact_filename(user_id, self.clock(), mime_type)
        await asyncio.to_thread(self._write, filename, data)
        return filename

    def resolve(self, filename: str) -> Path | None:
        """Return the path of a stored artifact, rejecting traversal."""
        if not filename or filename != Path(filename).name:
            return None
        path = self.directory / filename
        return path if path.is_file() else None

    def _write(self, filename: str, data: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        (self.directory / filename).write_bytes(data)


def build_artifact_filename(user_id: str, now: datetime, mime_type: str) -> str:
    """Build ``tryon_<user>_<epoch ms>_<random>.<ext>``."""
    safe_user = _UNSAFE_CHARS.sub("", user_id) or "user"
    millis = int(now.timestamp() * 1000)
    extension = _EXTENSIONS.get(mime_type, "png")
    return f"tryon_{safe_user}_{millis}_{secrets.token_hex(4)}.{extension}"
