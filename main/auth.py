# main/auth.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import wraps

from django.conf import settings
from jose import JWTError, jwt

from . import errors
from .models import CustomUser, Role

log = logging.getLogger(__name__)


# ---------- tokens ----------
def issue_token(user: CustomUser) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "id": user.pk,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(days=settings.JWT_TTL_DAYS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        log.info("rejected token: %s", e)
        raise errors.AuthError("Invalid or expired token.")
    if not payload.get("id"):
        raise errors.AuthError("Invalid or expired token.")
    return payload


def user_from_request(request) -> CustomUser:
    header = request.headers.get("Authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise errors.AuthError("Authentication token required.")
    payload = decode_token(token.strip())
    user = CustomUser.objects.filter(pk=payload["id"], is_active=True).first()
    if user is None:
        raise errors.AuthError("User for this token no longer exists.")
    return user


# ---------- guards ----------
def jwt_required(view):
    """Resolve the bearer token to request.auth_user or fail with 401."""
    @wraps(view)
    def _wrapped(request, *args, **kwargs):
        request.auth_user = user_from_request(request)
        return view(request, *args, **kwargs)
    return _wrapped


def admin_required(view):
    """jwt_required + role check (403 for non-admins)."""
    @wraps(view)
    def _wrapped(request, *args, **kwargs):
        user = user_from_request(request)
        if user.role != Role.ADMIN:
            raise errors.Forbidden("Access denied. Administrator privileges required.")
        request.auth_user = user
        return view(request, *args, **kwargs)
    return _wrapped
