# sourcing/models/rfq_item.py

import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q

from .rfq import Rfq


class RfqItem(models.Model):
    """
    One wine requested on an RFQ.

    calculated_price_usd is the sum of the selected quotes' per-case prices;
    final_price_usd starts equal to it and may be adjusted by an admin.
    """

    UNIT_CASES = "cases"
    UNIT_BOTTLES = "bottles"

    UNIT_CHOICES = [
        (UNIT_CASES, "Cases"),
        (UNIT_BOTTLES, "Bottles"),
    ]

    STATUS_PENDING = "pending"
    STATUS_QUOTED = "quoted"
    STATUS_SELECTED = "selected"
    STATUS_SELF_SOURCED = "self_sourced"
    STATUS_UNSOURCEABLE = "unsourceable"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_QUOTED, "Quoted"),
        (STATUS_SELECTED, "Selected"),
        (STATUS_SELF_SOURCED, "Self-sourced"),
        (STATUS_UNSOURCEABLE, "Unsourceable"),
    ]

    RESOLVED_STATUSES = {STATUS_SELECTED, STATUS_SELF_SOURCED, STATUS_UNSOURCEABLE}

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    rfq = models.ForeignKey(Rfq, on_delete=models.CASCADE, related_name="items")

    product_name = models.CharField(max_length=255)
    producer = models.CharField(max_length=255, blank=True)
    vintage = models.CharField(max_length=10, blank=True)
    lwin = models.CharField(max_length=18, blank=True, db_index=True)
    quantity = models.PositiveIntegerField(default=1)
    quantity_unit = models.CharField(max_length=10, choices=UNIT_CHOICES, default=UNIT_CASES)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)

    selected_quote = models.ForeignKey(
        "sourcing.RfqQuote",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    selected_at = models.DateTimeField(null=True, blank=True)
    selected_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    calculated_price_usd = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    final_price_usd = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    price_adjusted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name="chk_rfq_item_qty_gt_zero"),
        ]

    def __str__(self):
        return f"{self.product_name} x{self.quantity} {self.quantity_unit}"
