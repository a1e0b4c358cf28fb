# wms/models/movement.py

"""
WAREHOUSE MOVEMENT LEDGER

Append-only. Every change to a Stock row is paired with exactly one movement
written in the same transaction.

- quantity_cases is positive for all movement types except "count", where
  the sign carries the direction of the correction.
- movement_number is MOV<YYYYMMDD>-<8 hex>.
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


class StockMovement(models.Model):
    TYPE_RECEIVE = "receive"
    TYPE_PUTAWAY = "putaway"
    TYPE_TRANSFER = "transfer"
    TYPE_PICK = "pick"
    TYPE_DISPATCH = "dispatch"
    TYPE_OWNERSHIP_TRANSFER = "ownership_transfer"
    TYPE_COUNT = "count"
    TYPE_ADJUSTMENT = "adjustment"

    TYPE_CHOICES = [
        (TYPE_RECEIVE, "Receive"),
        (TYPE_PUTAWAY, "Putaway"),
        (TYPE_TRANSFER, "Transfer"),
        (TYPE_PICK, "Pick"),
        (TYPE_DISPATCH, "Dispatch"),
        (TYPE_OWNERSHIP_TRANSFER, "Ownership transfer"),
        (TYPE_COUNT, "Cycle count"),
        (TYPE_ADJUSTMENT, "Adjustment"),
    ]

    SIGNED_TYPES = {TYPE_COUNT, TYPE_ADJUSTMENT}

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    movement_number = models.CharField(max_length=32, unique=True)
    movement_type = models.CharField(max_length=24, choices=TYPE_CHOICES, db_index=True)

    lwin18 = models.CharField(max_length=18, db_index=True)
    product_name = models.CharField(max_length=255, blank=True)
    quantity_cases = models.IntegerField()

    from_location = models.ForeignKey(
        "wms.Location",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    to_location = models.ForeignKey(
        "wms.Location",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    from_owner = models.ForeignKey(
        "partners.Partner",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    to_owner = models.ForeignKey(
        "partners.Partner",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    lot_number = models.CharField(max_length=64, blank=True)

    order_type = models.CharField(max_length=10, blank=True)
    order_id = models.CharField(max_length=64, blank=True)
    reason_code = models.CharField(max_length=50, blank=True)
    notes = models.TextField(blank=True)

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="wms_movements",
    )
    performed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-performed_at"]
        indexes = [
            models.Index(fields=["movement_type", "performed_at"]),
            models.Index(fields=["order_type", "order_id"]),
        ]

    def clean(self):
        if self.quantity_cases == 0:
            raise ValidationError("quantity must not be zero")
        if self.quantity_cases < 0 and self.movement_type not in self.SIGNED_TYPES:
            raise ValidationError(f"{self.movement_type} movements must be positive")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockMovement records are immutable")

        if not self.movement_number:
            stamp = timezone.now().strftime("%Y%m%d")
            self.movement_number = f"MOV{stamp}-{uuid.uuid4().hex[:8].upper()}"

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("StockMovement records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.movement_number} | {self.movement_type} | {self.quantity_cases}"
