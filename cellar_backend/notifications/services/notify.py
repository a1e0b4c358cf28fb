# notifications/services/notify.py

"""
======================================================
PATH: notifications/services/notify.py
======================================================
NOTIFICATION FAN-OUT

Rules:
- Notifications are a SIDE EFFECT of business transitions.
- A failed notification must never roll back or block the transition that
  triggered it: failures are logged (with traceback) and the call returns 0.
- Each fan-out runs in its own savepoint so a DB error inside it cannot poison
  the caller's transaction.
======================================================
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction

from notifications.models import Notification
from partners.services.membership import list_member_users

logger = logging.getLogger(__name__)


def _build_action_url(path: str) -> str:
    if not path:
        return ""
    if path.startswith("http"):
        return path
    base = (getattr(settings, "FRONTEND_BASE_URL", "") or "").rstrip("/")
    return f"{base}/{path.lstrip('/')}"


def notify_users(
    *,
    users,
    type: str,
    title: str,
    message: str = "",
    partner=None,
    entity_type: str = "",
    entity_id="",
    action_url: str = "",
    metadata: dict | None = None,
) -> int:
    url = _build_action_url(action_url)

    try:
        with transaction.atomic():
            rows = [
                Notification(
                    user=user,
                    partner=partner,
                    type=type,
                    title=title,
                    message=message,
                    entity_type=entity_type,
                    entity_id=str(entity_id or ""),
                    action_url=url,
                    metadata=metadata or {},
                )
                for user in users
            ]
            Notification.objects.bulk_create(rows)
    except DatabaseError:
        logger.exception(
            "Notification fan-out failed",
            extra={"type": type, "entity_type": entity_type, "entity_id": str(entity_id)},
        )
        return 0

    logger.info(
        "Notifications sent",
        extra={"type": type, "count": len(rows), "entity_id": str(entity_id)},
    )
    return len(rows)


def notify_partner_members(*, partner, **kwargs) -> int:
    if partner is None:
        return 0
    return notify_users(users=list(list_member_users(partner)), partner=partner, **kwargs)


def notify_admins(**kwargs) -> int:
    User = get_user_model()
    admins = User.objects.filter(role=User.ROLE_ADMIN, is_active=True)
    return notify_users(users=list(admins), **kwargs)
