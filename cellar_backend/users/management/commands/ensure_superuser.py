"""
PATH: users/management/commands/ensure_superuser.py

Idempotent admin bootstrap.

- Reads AUTO_ADMIN_EMAIL + AUTO_ADMIN_PASSWORD from the environment.
- Creates the superuser if missing; otherwise re-asserts admin flags and password.
- Never prints the password.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from backend.settings.base import env


class Command(BaseCommand):
    help = "Create/update an initial admin superuser from env vars (idempotent)."

    def handle(self, *args, **options):
        email = (env("AUTO_ADMIN_EMAIL", default="") or "").strip()
        password = (env("AUTO_ADMIN_PASSWORD", default="") or "").strip()

        if not email or not password:
            self.stdout.write(self.style.WARNING("AUTO_ADMIN_* env vars not set. Skipping."))
            return

        User = get_user_model()

        with transaction.atomic():
            user = User.objects.filter(email__iexact=email).first()

            if user is None:
                User.objects.create_superuser(email=email, password=password)
                self.stdout.write(self.style.SUCCESS(f"Superuser ensured: {email} (created)"))
                return

            user.role = User.ROLE_ADMIN
            user.is_active = True
            user.is_staff = True
            user.is_superuser = True
            user.set_password(password)
            user.save()

        self.stdout.write(self.style.SUCCESS(f"Superuser ensured: {email} (updated)"))
