"""Pydantic models for the direct try-on endpoint."""

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TRYON_PROMPT = (
    "Given my picture, I want to try on the piece of clothing in the second picture"
)


class TryOnRequest(BaseModel):
    """Clothing image to try on against the default selfie."""

    model_config = ConfigDict(populate_by_name=True)

    clothing_image_data: str | None = Field(default=None, alias="clothingImageData")
    clothing_mime_type: str = Field(default="image/jpeg", alias="clothingMimeType")
    prompt: str | None = None


class TryOnResponse(BaseModel):
    """Outcome of a direct try-on request, serialized with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    image_data: str | None = Field(default=None, alias="imageData")
    mime_type: str | None = Field(default=None, alias="mimeType")
    text_response: str = Field(default="", alias="textResponse")
    timestamp: str
