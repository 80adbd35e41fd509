# support_app/chat.py
from __future__ import annotations

import logging

from django.db.models import Count, Max

from main import errors
from main.models import CustomUser

from .models import ChatMessage, SenderRole, DEPOSIT_ADDRESS_PREFIX

log = logging.getLogger(__name__)

MAX_MESSAGE_LEN = 4000


def _check_access(requester: CustomUser, conversation_user_id: int) -> None:
    if not requester.is_admin and requester.pk != conversation_user_id:
        raise errors.Forbidden("You can only access your own conversation.")


def send_message(requester: CustomUser, conversation_user_id, data: dict, notifier) -> ChatMessage:
    """Users post to their own conversation only; admins may post to any."""
    try:
        conversation_user_id = int(conversation_user_id)
    except (TypeError, ValueError):
        raise errors.ValidationError("A valid conversation user id is required.")
    _check_access(requester, conversation_user_id)

    text = str(data.get("message") or "").strip()
    image_url = str(data.get("image_url") or "").strip()
    if not text and not image_url:
        raise errors.ValidationError("Message text or image is required.")
    if len(text) > MAX_MESSAGE_LEN:
        raise errors.ValidationError("Message is too long.")

    if not CustomUser.objects.filter(pk=conversation_user_id).exists():
        raise errors.UserNotFound("User not found.")

    from_admin = requester.is_admin
    msg = ChatMessage.objects.create(
        user_id=conversation_user_id,
        sender=requester,
        sender_role=SenderRole.ADMIN if from_admin else SenderRole.USER,
        message=text,
        image_url=image_url[:500],
        is_read_by_admin=from_admin,
        is_read_by_user=not from_admin,
    )

    payload = msg.as_dict()
    notifier.to_user(conversation_user_id, "newMessage", payload)
    notifier.to_admins("newMessage", payload)
    return msg


def get_messages(requester: CustomUser, conversation_user_id: int) -> list[dict]:
    """
    The whole conversation, oldest first. Marks the other side's messages as read
    for the requester's side. Users never see deposit-address system messages.
    """
    _check_access(requester, conversation_user_id)
    qs = ChatMessage.objects.filter(user_id=conversation_user_id)

    if requester.is_admin:
        qs.filter(sender_role=SenderRole.USER, is_read_by_admin=False).update(is_read_by_admin=True)
    else:
        qs.filter(sender_role=SenderRole.ADMIN, is_read_by_user=False).update(is_read_by_user=True)
        qs = qs.exclude(sender_role=SenderRole.ADMIN, message__startswith=DEPOSIT_ADDRESS_PREFIX)

    return [m.as_dict() for m in qs.order_by("created_at", "id")]


def unread_conversations() -> list[dict]:
    """Users with messages admins have not read yet, most recent first."""
    rows = (
        ChatMessage.objects
        .filter(sender_role=SenderRole.USER, is_read_by_admin=False)
        .values("user_id", "user__username", "user__phone")
        .annotate(unread_count=Count("id"), last_message_at=Max("created_at"))
        .order_by("-last_message_at")
    )
    return [
        {
            "user_id": r["user_id"],
            "username": r["user__username"],
            "phone": r["user__phone"],
            "unread_count": r["unread_count"],
            "last_message_at": r["last_message_at"].isoformat() if r["last_message_at"] else None,
        }
        for r in rows
    ]
