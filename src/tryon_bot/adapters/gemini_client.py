"""Gemini client for try-on image generation."""

from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass

from google import genai
from google.genai import types

from tryon_bot.domain.generation import GenerationRequest
from tryon_bot.services.generation import GenerationClient


@dataclass
class GeminiGenerationClient(GenerationClient):
    """Generation client backed by the google-genai async API."""

    client: genai.Client | None

    @classmethod
    def create(cls, api_key: str | None) -> "GeminiGenerationClient":
        """Create a Gemini generation client; without a key every call fails."""
        return cls(client=genai.Client(api_key=api_key) if api_key else None)

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    async def stream(
        self, request: GenerationRequest
    ) -> AsyncIterator[Mapping[str, object]]:
        """Call generate_content_stream and yield each chunk as a mapping."""
        client = self._require_client()
        chunks = await client.aio.models.generate_content_stream(
            model=request.model,
            contents=_build_contents(request),
            config=_build_config(request),
        )
        async for chunk in chunks:
            yield chunk.model_dump(exclude_none=True)

    async def generate(self, request: GenerationRequest) -> Mapping[str, object]:
        """Call generate_content and return the response as a mapping."""
        client = self._require_client()
        response = await client.aio.models.generate_content(
            model=request.model,
            contents=_build_contents(request),
            config=_build_config(request),
        )
        return response.model_dump(exclude_none=True)

    def _require_client(self) -> genai.Client:
        if self.client is None:
            raise RuntimeError("GEMINI_API_KEY is not set")
        return self.client


def _build_contents(request: GenerationRequest) -> list[types.Content]:
    parts = [
        types.Part.from_bytes(data=data, mime_type=mime_type)
        for data, mime_type in request.images
    ]
    parts.append(types.Part.from_text(text=request.prompt))
    return [types.Content(role="user", parts=parts)]


def _build_config(request: GenerationRequest) -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        response_modalities=list(request.response_modalities)
    )
