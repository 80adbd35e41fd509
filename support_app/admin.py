from django.contrib import admin

from .models import ChatMessage


@admin.register(ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "sender_role", "short_message", "is_read_by_user", "is_read_by_admin", "created_at")
    list_filter = ("sender_role", "is_read_by_admin", "is_read_by_user")
    search_fields = ("user__username", "user__phone", "message")
    list_select_related = ("user",)
    raw_id_fields = ("user", "sender")

    @admin.display(description="Message")
    def short_message(self, obj):
        return (obj.message[:60] + "…") if len(obj.message) > 60 else obj.message
