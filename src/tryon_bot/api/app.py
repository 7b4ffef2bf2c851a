"""FastAPI application factory."""

import asyncio
import base64
import binascii
import logging
import mimetypes
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse, Response

from tryon_bot.api.auth import require_signed_webhook
from tryon_bot.api.inbound import normalize_inbound
from tryon_bot.api.models import DEFAULT_TRYON_PROMPT, TryOnRequest, TryOnResponse
from tryon_bot.app_logging import configure_logging
from tryon_bot.containers import AppContainer
from tryon_bot.domain.errors import ImageFetchError
from tryon_bot.domain.images import ImageAsset, ImageMimeType
from tryon_bot.services.delivery import PHOTOS_ROUTE
from tryon_bot.services.images import resolve_mime_type

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}
DEFAULT_SELFIE_NAME = "me.png"


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(status.HTTP_404_NOT_FOUND)
    async def not_found(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": "Not found"})

    @app.exception_handler(Exception)
    async def internal_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", extra={"path": request.url.path})
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/test")
    async def send_test_greeting(request: Request) -> JSONResponse:
        """Send the greeting to the configured phone number."""
        state_container: AppContainer = request.app.state.container
        to = state_container.settings.phone_number
        if not to:
            return JSONResponse(
                status_code=400, content={"error": "Set PHONE_NUMBER in .env"}
            )
        try:
            await state_container.conversation.greet(to)
        except Exception as exc:
            logger.exception("Failed to send test greeting")
            return JSONResponse(status_code=500, content={"error": str(exc)})
        return JSONResponse(content={"ok": True, "to": to})

    @app.post("/webhooks/inbound", dependencies=[Depends(require_signed_webhook)])
    async def inbound_webhook(
        payload: dict[str, Any], request: Request
    ) -> dict[str, str]:
        """Handle an inbound message webhook."""
        state_container: AppContainer = request.app.state.container
        message = normalize_inbound(payload)
        if message is None:
            return {"status": "ok"}
        outcome = await state_container.conversation.handle(
            message, request_base_url=_request_base_url(request)
        )
        logger.info(
            "Handled inbound message",
            extra={"user_id": message.user_id, "outcome": str(outcome)},
        )
        return {"status": "ok"}

    @app.get(PHOTOS_ROUTE + "/{filename}")
    async def serve_photo(filename: str, request: Request) -> Response:
        """Serve a generated artifact without cache validators."""
        state_container: AppContainer = request.app.state.container
        path = state_container.artifact_store.resolve(filename)
        if path is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        content = await asyncio.to_thread(path.read_bytes)
        media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return Response(content=content, media_type=media_type, headers=NO_STORE_HEADERS)

    @app.post(
        "/try-on",
        dependencies=[Depends(require_signed_webhook)],
        response_model=TryOnResponse,
    )
    async def try_on(body: TryOnRequest, request: Request) -> TryOnResponse:
        """Try a base64 clothing image on the default selfie."""
        state_container: AppContainer = request.app.state.container
        if not state_container.settings.gemini_api_key:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="GEMINI_API_KEY environment variable is not set",
            )
        clothing = _decode_clothing(body)
        selfie_path = Path(state_container.settings.photos_dir) / DEFAULT_SELFIE_NAME
        try:
            selfie_bytes = await asyncio.to_thread(selfie_path.read_bytes)
        except OSError as exc:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Default selfie not found at {selfie_path}",
            ) from exc
        selfie = ImageAsset(payload=selfie_bytes, mime_type=ImageMimeType.PNG)

        orchestrator = state_container.orchestrator
        generation_request = replace(
            orchestrator.build_request(selfie, clothing),
            prompt=body.prompt or DEFAULT_TRYON_PROMPT,
        )
        result = await orchestrator.run(generation_request)
        timestamp = datetime.now(tz=UTC).isoformat()
        if not result.has_image:
            return TryOnResponse(
                success=False,
                message="No image was generated",
                text_response=result.text,
                timestamp=timestamp,
            )
        return TryOnResponse(
            success=True,
            message="Virtual try-on completed successfully",
            image_data=base64.b64encode(result.image_bytes or b"").decode("ascii"),
            mime_type=result.mime_type,
            text_response=result.text,
            timestamp=timestamp,
        )

    return app


def _request_base_url(request: Request) -> str:
    """Derive the public scheme and host from the inbound request."""
    scheme = request.headers.get("x-forwarded-proto") or request.url.scheme
    host = (
        request.headers.get("x-forwarded-host")
        or request.headers.get("host")
        or request.url.netloc
    )
    return f"{scheme.split(',')[0].strip()}://{host.split(',')[0].strip()}"


def _decode_clothing(body: TryOnRequest) -> ImageAsset:
    """Decode and validate the base64 clothing image from the request."""
    if not body.clothing_image_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                "No clothing image data provided. Please include "
                "clothingImageData (base64) in request body."
            ),
        )
    try:
        data = base64.b64decode(body.clothing_image_data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="clothingImageData is not valid base64.",
        ) from exc
    try:
        mime_type = resolve_mime_type(body.clothing_mime_type, data)
    except ImageFetchError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=exc.user_message
        ) from exc
    return ImageAsset(payload=data, mime_type=mime_type)
