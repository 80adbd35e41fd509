# main/user_taskview.py
from __future__ import annotations

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from . import task as tasks
from .auth import jwt_required
from .http import json_body, json_errors


@json_errors
@require_http_methods(["GET"])
@jwt_required
def get_task(request):
    """Next product to rate; task is null with a message when none is available."""
    return JsonResponse(tasks.get_task(request.auth_user))


@csrf_exempt
@json_errors
@require_http_methods(["POST"])
@jwt_required
def submit_rating(request):
    data = json_body(request)
    result = tasks.submit_rating(request.auth_user.pk, data.get("productId"), data.get("rating"))
    return JsonResponse(result)


@json_errors
@require_http_methods(["GET"])
@jwt_required
def dashboard_summary(request):
    return JsonResponse(tasks.dashboard_summary(request.auth_user))
