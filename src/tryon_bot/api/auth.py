"""Signed webhook verification."""

from __future__ import annotations

from typing import TYPE_CHECKING

import jwt
from fastapi import Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from tryon_bot.containers import AppContainer


def _get_signature_secret(request: Request) -> str | None:
    container: AppContainer = request.app.state.container
    return container.settings.vonage_signature_secret


async def require_signed_webhook(
    authorization: str | None = Header(default=None),
    secret: str | None = Depends(_get_signature_secret),
) -> None:
    """Verify the HS256 bearer token Vonage attaches to webhooks."""
    if secret is None:
        return
    token = _bearer_token(authorization)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No JWT token provided.",
        )
    try:
        jwt.decode(token, secret, algorithms=["HS256"])
    except jwt.PyJWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid JWT signature.",
        ) from exc


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
