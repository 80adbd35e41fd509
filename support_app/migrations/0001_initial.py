import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ChatMessage",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("sender_role", models.CharField(choices=[("user", "User"), ("admin", "Admin")], max_length=10)),
                ("message", models.TextField(blank=True, default="")),
                ("image_url", models.CharField(blank=True, default="", max_length=500)),
                ("is_read_by_user", models.BooleanField(default=False)),
                ("is_read_by_admin", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("sender", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="sent_chat_messages", to=settings.AUTH_USER_MODEL)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="chat_messages", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["user", "created_at"], name="chat_user_created_idx"),
                    models.Index(fields=["is_read_by_admin", "sender_role"], name="chat_unread_idx"),
                ],
            },
        ),
    ]
