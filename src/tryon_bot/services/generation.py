"""Try-on image generation with stream-then-full fallback."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from tryon_bot.domain.generation import GenerationRequest, GenerationResult, InlineImage
from tryon_bot.domain.images import ImageAsset

logger = logging.getLogger(__name__)

TRYON_PROMPT = (
    "Create a stylized, non-photorealistic illustration of the person in the "
    "first image wearing the clothing item from the second image. Overlay the "
    "garment naturally on the person's body, keep their facial features, hair "
    "and skin tone recognizable, and place them on a simple plain background."
)

INLINE_KEYS = ("inline_data", "inlineData", "inline", "image")
MAX_SEARCH_DEPTH = 32


class GenerationClient(Protocol):
    """Interface for a multimodal image generation backend.

    Responses are plain mappings; their nesting is not guaranteed to be stable.
    """

    def stream(self, request: GenerationRequest) -> AsyncIterator[Mapping[str, object]]:
        """Yield response chunks from a streaming call."""

    async def generate(self, request: GenerationRequest) -> Mapping[str, object]:
        """Return the full response of a non-streaming call."""


@dataclass
class GenerationOrchestrator:
    """Drive the backend and reconcile its response into a GenerationResult."""

    client: GenerationClient
    model: str
    prompt: str = TRYON_PROMPT

    def build_request(
        self, selfie: ImageAsset, clothing: ImageAsset
    ) -> GenerationRequest:
        """Build the two-image request with the fixed try-on instruction."""
        return GenerationRequest(
            model=self.model,
            images=(
                (selfie.payload, str(selfie.mime_type)),
                (clothing.payload, str(clothing.mime_type)),
            ),
            prompt=self.prompt,
        )

    async def generate(
        self, selfie: ImageAsset, clothing: ImageAsset
    ) -> GenerationResult:
        """Generate a try-on image; never raises."""
        return await self.run(self.build_request(selfie, clothing))

    async def run(self, request: GenerationRequest) -> GenerationResult:
        """Stream first; if no image arrives, issue exactly one full call."""
        image: InlineImage | None = None
        texts: list[str] = []
        reason: str | None = None
        try:
            async for chunk in self.client.stream(request):
                texts.extend(extract_text(chunk))
                if image is None:
                    image = find_inline_image(chunk)
                reason = extract_termination_reason(chunk) or reason
        except Exception:
            logger.exception("Streaming generation failed")
            texts = []

        if image is not None:
            return GenerationResult(
                image_bytes=image.data,
                mime_type=image.mime_type,
                text="".join(texts),
                termination_reason=reason,
            )

        logger.info("Stream produced no image, retrying without streaming")
        try:
            response = await self.client.generate(request)
        except Exception:
            logger.exception("Generation fallback failed")
            return GenerationResult()

        image = find_inline_image(response)
        text = "".join(extract_text(response)) or "".join(texts)
        reason = extract_termination_reason(response) or reason
        if image is None:
            logger.warning(
                "Generation produced no image",
                extra={"termination_reason": reason, "text": text[:200]},
            )
            return GenerationResult(text=text, termination_reason=reason)
        return GenerationResult(
            image_bytes=image.data,
            mime_type=image.mime_type,
            text=text,
            termination_reason=reason,
        )


def find_inline_image(response: object) -> InlineImage | None:
    """Locate the first inline image in a response of unknown shape."""
    for part in _candidate_parts(response):
        for key in ("inline_data", "inlineData"):
            image = _as_inline_image(part.get(key))
            if image is not None:
                return image
    return _search(response, depth=0, visited=set())


def extract_text(response: object) -> list[str]:
    """Return the non-thought text parts of a response."""
    texts = []
    for part in _candidate_parts(response):
        text = part.get("text")
        if isinstance(text, str) and not part.get("thought"):
            texts.append(text)
    return texts


def extract_termination_reason(response: object) -> str | None:
    """Return the finish or block reason reported by the backend, if any."""
    if not isinstance(response, Mapping):
        return None
    for candidate in _as_list(response.get("candidates")):
        if isinstance(candidate, Mapping):
            reason = candidate.get("finish_reason") or candidate.get("finishReason")
            if reason:
                return _enum_text(reason)
    feedback = response.get("prompt_feedback") or response.get("promptFeedback")
    if isinstance(feedback, Mapping):
        reason = feedback.get("block_reason") or feedback.get("blockReason")
        if reason:
            return _enum_text(reason)
    return None


def _candidate_parts(response: object) -> list[Mapping[str, object]]:
    """Parts under candidates[*].content.parts, the documented response shape."""
    if not isinstance(response, Mapping):
        return []
    parts: list[Mapping[str, object]] = []
    for candidate in _as_list(response.get("candidates")):
        if not isinstance(candidate, Mapping):
            continue
        content = candidate.get("content")
        if not isinstance(content, Mapping):
            continue
        parts.extend(p for p in _as_list(content.get("parts")) if isinstance(p, Mapping))
    return parts


def _search(node: object, depth: int, visited: set[int]) -> InlineImage | None:
    """Depth-first walk for an inline image, guarded against cycles."""
    if depth > MAX_SEARCH_DEPTH or isinstance(node, str | bytes | bytearray):
        return None
    if id(node) in visited:
        return None
    if isinstance(node, Mapping):
        visited.add(id(node))
        for key in INLINE_KEYS:
            image = _as_inline_image(node.get(key))
            if image is not None:
                return image
        children = list(node.values())
    elif isinstance(node, list | tuple):
        visited.add(id(node))
        children = list(node)
    else:
        return None
    for child in children:
        image = _search(child, depth + 1, visited)
        if image is not None:
            return image
    return None


def _as_inline_image(value: object) -> InlineImage | None:
    if not isinstance(value, Mapping):
        return None
    data = _decode_data(value.get("data"))
    if not data:
        return None
    mime_type = value.get("mime_type") or value.get("mimeType") or "image/png"
    return InlineImage(data=data, mime_type=str(mime_type))


def _decode_data(data: object) -> bytes | None:
    if isinstance(data, bytes | bytearray):
        return bytes(data)
    if isinstance(data, str) and data:
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError):
            return None
    return None


def _as_list(value: object) -> list[object]:
    return list(value) if isinstance(value, list | tuple) else []


def _enum_text(value: object) -> str:
    return str(value.value) if isinstance(value, Enum) else str(value)
