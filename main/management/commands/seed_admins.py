# main/management/commands/seed_admins.py
from __future__ import annotations

import uuid

from django.core.management.base import BaseCommand, CommandError
from django.contrib.auth import get_user_model
from django.db import transaction

from main.models import Role

User = get_user_model()


class Command(BaseCommand):
    help = "Create admin accounts (login by username). Existing usernames are skipped."

    def add_arguments(self, parser):
        parser.add_argument("usernames", nargs="+", help="Admin usernames to create")
        parser.add_argument("--password", required=True, help="Password for every created admin")
        parser.add_argument(
            "--withdrawal-password", default=None,
            help="Withdrawal password (defaults to --password)",
        )

    @transaction.atomic
    def handle(self, *args, **opts):
        password = opts["password"]
        if len(password) < 6:
            raise CommandError("Password must be at least 6 characters long.")
        wd_password = opts.get("withdrawal_password") or password

        created = 0
        for username in opts["usernames"]:
            if User.objects.filter(username=username).exists():
                self.stdout.write(self.style.WARNING(f"- Admin '{username}' already exists. Skipping."))
                continue
            # phone is required and unique but admins never log in with it
            phone = f"admin-{uuid.uuid4().hex[:12]}"
            user = User.objects.create_user(
                username, phone, password, role=Role.ADMIN, is_staff=True,
            )
            user.set_withdrawal_password(wd_password)
            user.save(update_fields=["withdrawal_password"])
            created += 1
            self.stdout.write(self.style.SUCCESS(f"Created admin: {username}"))

        self.stdout.write(self.style.SUCCESS(f"Seeding complete. Created {created} new admin account(s)."))
