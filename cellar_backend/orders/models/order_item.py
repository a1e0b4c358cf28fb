# orders/models/order_item.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from .order import PrivateClientOrder


class PrivateClientOrderItem(models.Model):
    """
    One wine line on a private client order, quantity in cases.

    source decides where the stock comes from and therefore the initial
    stock_status at approval time:
    - cc_inventory        → confirmed immediately (already in our bond)
    - partner_airfreight  → pending until it lands
    - partner_local       → pending until the partner delivers it
    - manual              → pending, tracked by hand
    """

    SOURCE_CC_INVENTORY = "cc_inventory"
    SOURCE_PARTNER_AIRFREIGHT = "partner_airfreight"
    SOURCE_PARTNER_LOCAL = "partner_local"
    SOURCE_MANUAL = "manual"

    SOURCE_CHOICES = [
        (SOURCE_CC_INVENTORY, "C&C Inventory"),
        (SOURCE_PARTNER_AIRFREIGHT, "Partner Airfreight"),
        (SOURCE_PARTNER_LOCAL, "Partner Local"),
        (SOURCE_MANUAL, "Manual"),
    ]

    STOCK_PENDING = "pending"
    STOCK_CONFIRMED = "confirmed"
    STOCK_AT_CC_BONDED = "at_cc_bonded"
    STOCK_IN_TRANSIT_TO_CC = "in_transit_to_cc"
    STOCK_AT_DISTRIBUTOR = "at_distributor"
    STOCK_DELIVERED = "delivered"

    STOCK_STATUS_CHOICES = [
        (STOCK_PENDING, "Pending"),
        (STOCK_CONFIRMED, "Confirmed"),
        (STOCK_AT_CC_BONDED, "At C&C Bonded"),
        (STOCK_IN_TRANSIT_TO_CC, "In Transit to C&C"),
        (STOCK_AT_DISTRIBUTOR, "At Distributor"),
        (STOCK_DELIVERED, "Delivered"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        PrivateClientOrder,
        on_delete=models.CASCADE,
        related_name="items",
    )

    product_name = models.CharField(max_length=255)
    producer = models.CharField(max_length=255, blank=True)
    vintage = models.CharField(max_length=10, blank=True)
    lwin = models.CharField(max_length=18, blank=True, db_index=True)
    bottle_size = models.CharField(max_length=20, default="750ml")
    case_config = models.PositiveIntegerField(default=12)

    quantity = models.PositiveIntegerField(help_text="Cases")
    price_per_case_usd = models.DecimalField(max_digits=14, decimal_places=2)
    line_total_usd = models.DecimalField(max_digits=14, decimal_places=2, default=0)

    source = models.CharField(max_length=32, choices=SOURCE_CHOICES, default=SOURCE_MANUAL)
    stock_status = models.CharField(
        max_length=32,
        choices=STOCK_STATUS_CHOICES,
        default=STOCK_PENDING,
        db_index=True,
    )
    stock_confirmed_at = models.DateTimeField(null=True, blank=True)
    stock_expected_at = models.DateTimeField(null=True, blank=True)
    stock_notes = models.TextField(blank=True)

    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name="chk_pco_item_qty_gt_zero"),
            models.CheckConstraint(
                condition=Q(price_per_case_usd__gte=0),
                name="chk_pco_item_price_gte_zero",
            ),
        ]

    def __str__(self):
        return f"{self.product_name} x{self.quantity}"

    def clean(self):
        if self.quantity is None or self.quantity <= 0:
            raise ValidationError({"quantity": "quantity must be at least 1 case"})
        if self.price_per_case_usd is not None and self.price_per_case_usd < 0:
            raise ValidationError({"price_per_case_usd": "price cannot be negative"})

    def save(self, *args, **kwargs):
        self.line_total_usd = (
            Decimal(str(self.price_per_case_usd or 0)) * int(self.quantity or 0)
        ).quantize(Decimal("0.01"))
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "line_total_usd" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["line_total_usd"]
        self.full_clean()
        return super().save(*args, **kwargs)
