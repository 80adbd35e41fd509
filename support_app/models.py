# support_app/models.py
from django.conf import settings
from django.db import models

User = settings.AUTH_USER_MODEL


class SenderRole(models.TextChoices):
    USER = "user", "User"
    ADMIN = "admin", "Admin"


class ChatMessage(models.Model):
    """
    One message in a user's support conversation.
    The conversation is keyed by `user` whichever side sends; `sender` is who wrote it.
    """
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="chat_messages")
    sender = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name="sent_chat_messages"
    )
    sender_role = models.CharField(max_length=10, choices=SenderRole.choices)
    message = models.TextField(blank=True, default="")
    image_url = models.CharField(max_length=500, blank=True, default="")

    is_read_by_user = models.BooleanField(default=False)
    is_read_by_admin = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["user", "created_at"], name="chat_user_created_idx"),
            models.Index(fields=["is_read_by_admin", "sender_role"], name="chat_unread_idx"),
        ]

    def __str__(self):
        return f"Msg#{self.pk} conv={self.user_id} from={self.sender_role}"

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "sender_id": self.sender_id,
            "sender_role": self.sender_role,
            "message": self.message,
            "image_url": self.image_url or None,
            "is_read_by_user": self.is_read_by_user,
            "is_read_by_admin": self.is_read_by_admin,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# system message posted when an admin assigns a deposit address; hidden from the user's view
DEPOSIT_ADDRESS_PREFIX = "Your unique TRC20/TRX deposit address"
