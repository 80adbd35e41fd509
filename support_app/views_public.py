# support_app/views_public.py
from __future__ import annotations

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from main.auth import jwt_required
from main.http import json_body, json_errors

from . import chat


@csrf_exempt
@json_errors
@require_http_methods(["POST"])
@jwt_required
def send(request):
    """
    POST {"message": "...", "image_url": "...", "user_id": <conversation>}
    user_id defaults to the sender's own conversation.
    """
    data = json_body(request)
    conversation = data.get("user_id") or request.auth_user.pk
    msg = chat.send_message(request.auth_user, conversation, data, request.notifier)
    return JsonResponse({"message": "Message sent.", "data": msg.as_dict()}, status=201)


@json_errors
@require_http_methods(["GET"])
@jwt_required
def messages(request, user_id: int):
    return JsonResponse({"messages": chat.get_messages(request.auth_user, user_id)})
