#support_app/urls.py
from django.urls import path
from . import views_public as pub
from . import views_admin as adm

urlpatterns = [
    path("messages", pub.send, name="chat_send"),
    path("messages/<int:user_id>", pub.messages, name="chat_messages"),
    path("unread-conversations", adm.unread_conversations, name="chat_unread_conversations"),
]
