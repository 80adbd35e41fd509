# support_app/views_admin.py
from __future__ import annotations

from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from main.auth import admin_required
from main.http import json_errors

from . import chat


@json_errors
@require_http_methods(["GET"])
@admin_required
def unread_conversations(request):
    return JsonResponse({"conversations": chat.unread_conversations()})
