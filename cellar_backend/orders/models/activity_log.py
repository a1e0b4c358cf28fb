# orders/models/activity_log.py

"""
PCO ACTIVITY LOG

Append-only audit trail of everything that happens to a private client order.
Rows are written by orders.services.order_service inside the same transaction
as the change they describe.
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from .order import PrivateClientOrder


class PrivateClientOrderActivityLog(models.Model):
    ACTION_CREATED = "created"
    ACTION_ITEM_ADDED = "item_added"
    ACTION_ITEM_UPDATED = "item_updated"
    ACTION_ITEM_REMOVED = "item_removed"
    ACTION_SUBMITTED = "submitted"
    ACTION_REVIEW_STARTED = "review_started"
    ACTION_REVISION_REQUESTED = "revision_requested"
    ACTION_APPROVED = "approved"
    ACTION_DISTRIBUTOR_ASSIGNED = "distributor_assigned"
    ACTION_PARTNER_VERIFICATION = "partner_verification"
    ACTION_DISTRIBUTOR_VERIFICATION = "distributor_verification"
    ACTION_VERIFICATION_UNLOCKED = "verification_unlocked"
    ACTION_VERIFICATION_RESET = "verification_reset"
    ACTION_PAYMENT_CONFIRMED = "payment_confirmed"
    ACTION_PAYMENT_VERIFIED = "payment_verified"
    ACTION_STATUS_CHANGED = "status_changed"
    ACTION_STOCK_STATUS_UPDATED = "stock_status_updated"
    ACTION_STOCK_RECEIVED = "stock_received"
    ACTION_STOCK_RESERVED = "stock_reserved"
    ACTION_CANCELLED = "cancelled"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        PrivateClientOrder,
        on_delete=models.CASCADE,
        related_name="activity_logs",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    partner = models.ForeignKey(
        "partners.Partner",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    action = models.CharField(max_length=50, db_index=True)
    previous_status = models.CharField(max_length=40, blank=True)
    new_status = models.CharField(max_length=40, blank=True)
    notes = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["order", "created_at"]),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Order activity log entries are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Order activity log entries cannot be deleted")

    def __str__(self):
        return f"{self.order_id} | {self.action}"
