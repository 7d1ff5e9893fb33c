"""Who is calling: Supabase-issued bearer tokens for the shared feed.

Local tracking, history and habits need no identity. Publishing, deleting,
liking, commenting and the profile endpoints do.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import jwt
from fastapi import HTTPException, Request

from habitumap.config import settings

log = logging.getLogger(__name__)

_AUDIENCE = "authenticated"
_ALGORITHMS = ["HS256"]


def _bearer(request: Request) -> Optional[str]:
    scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()


def _claims(token: str) -> Dict[str, Any]:
    if not settings.supabase_jwt_secret:
        raise HTTPException(status_code=503, detail="Sign-in is not configured")
    return jwt.decode(
        token,
        settings.supabase_jwt_secret,
        algorithms=_ALGORITHMS,
        audience=_AUDIENCE,
    )


async def get_current_user(request: Request) -> str:
    """Feed author id (the token's ``sub``); 401 when absent or unusable."""
    token = _bearer(request)
    if token is None:
        raise HTTPException(status_code=401, detail="Missing authorization header")
    try:
        claims = _claims(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail=f"Invalid token: {exc}")
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token: no sub claim")
    return str(user_id)


async def get_optional_user(request: Request) -> Optional[str]:
    """Same check, but anonymous callers and bad tokens read as ``None``."""
    try:
        return await get_current_user(request)
    except HTTPException as exc:
        if request.headers.get("authorization"):
            log.debug("Treating caller as anonymous: %s", exc.detail)
        return None
