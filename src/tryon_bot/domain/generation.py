"""Models for generation backend results."""

from dataclasses import dataclass


@dataclass(frozen=True)
class InlineImage:
    """Inline binary fragment located in a backend response."""

    data: bytes
    mime_type: str = "image/png"


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of a single try-on generation."""

    image_bytes: bytes | None = None
    mime_type: str | None = None
    text: str = ""
    termination_reason: str | None = None

    @property
    def has_image(self) -> bool:
        return bool(self.image_bytes)


@dataclass(frozen=True)
class GenerationRequest:
    """Backend-independent multimodal generation request."""

    model: str
    images: tuple[tuple[bytes, str], ...]
    prompt: str
    response_modalities: tuple[str, ...] = ("IMAGE", "TEXT")
