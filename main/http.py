# main/http.py
"""JSON plumbing shared by the API views: body parsing and error mapping."""
from __future__ import annotations

import json
import logging
from functools import wraps

from django.db import DatabaseError
from django.http import JsonResponse
from django_ratelimit.exceptions import Ratelimited

from . import errors

log = logging.getLogger(__name__)


def json_body(request) -> dict:
    if not request.body:
        return {}
    try:
        data = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise errors.ValidationError("invalid JSON")
    if not isinstance(data, dict):
        raise errors.ValidationError("invalid JSON")
    return data


def json_errors(view):
    """
    Outermost decorator of every API view.
    ServiceError -> its status + {"message": ...}; storage failures -> logged 500.
    """
    @wraps(view)
    def _wrapped(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except errors.ServiceError as e:
            if e.status >= 500:
                log.error("%s %s failed: %s", request.method, request.path, e.message)
            return JsonResponse(e.payload(), status=e.status)
        except Ratelimited:
            return JsonResponse({"message": "Too many attempts. Try again later."}, status=429)
        except DatabaseError:
            log.exception("%s %s: database error", request.method, request.path)
            return JsonResponse({"message": "Internal server error."}, status=500)
    return _wrapped


def int_param(value, *, name: str, minimum: int | None = None) -> int:
    if isinstance(value, bool):
        raise errors.ValidationError(f"Invalid {name}.")
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise errors.ValidationError(f"Invalid {name}.")
    if isinstance(value, float) and value != n:
        raise errors.ValidationError(f"Invalid {name}.")
    if minimum is not None and n < minimum:
        raise errors.ValidationError(f"Invalid {name}.")
    return n
