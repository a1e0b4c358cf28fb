"""
PATH: users/auth_backends.py

AUTH BACKEND: email OR username login

- An identifier containing "@" is looked up by email, anything else by username.
- Inactive users never authenticate.
- Passing both email= and username= explicitly is rejected.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import BaseBackend

User = get_user_model()


class EmailOrUsernameBackend(BaseBackend):
    def authenticate(self, request, username=None, password=None, **kwargs):
        email_kw = (kwargs.get("email") or "").strip()

        if username and email_kw:
            return None

        identifier = (username or email_kw or "").strip()
        if not identifier or password is None:
            return None

        lookup = {"email__iexact": identifier} if "@" in identifier else {"username__iexact": identifier}

        user = User.objects.filter(**lookup).first()
        if user is None or not user.is_active:
            return None

        return user if user.check_password(password) else None

    def get_user(self, user_id):
        return User.objects.filter(pk=user_id).first()
