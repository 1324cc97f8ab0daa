# app/routers/auth.py
from typing import Optional

import jwt
from fastapi import HTTPException, Request

from app.services.auth import decode_jwt


def _bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None


def get_current_user_id(request: Request) -> str:
    token = _bearer_token(request)
    if not token:
        raise HTTPException(401, "missing bearer token")
    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        raise HTTPException(401, "invalid token")
    if not payload.get("sub"):
        raise HTTPException(401, "invalid token")
    return str(payload["sub"])


def get_optional_user_id(request: Request) -> Optional[str]:
    """Tracking endpoints accept anonymous callers, so a bad token is ignored."""
    token = _bearer_token(request)
    if not token:
        return None
    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        return None
    sub = payload.get("sub")
    return str(sub) if sub else None
