# wms/models/stock.py

"""
STOCK RECORD

One row per (location, owner, lwin18, lot). Quantities are in cases.

INVARIANTS (enforced on every save):
- available_cases == quantity_cases - reserved_cases
- quantity, reserved and available are never negative

Only wms.services mutate quantities; rows that reach zero are deleted by the
service that consumed them.
"""

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Stock(models.Model):
    ARRANGEMENT_CONSIGNMENT = "consignment"
    ARRANGEMENT_PURCHASED = "purchased"

    ARRANGEMENT_CHOICES = [
        (ARRANGEMENT_CONSIGNMENT, "Consignment"),
        (ARRANGEMENT_PURCHASED, "Purchased"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    location = models.ForeignKey(
        "wms.Location",
        on_delete=models.PROTECT,
        related_name="stock",
    )
    owner = models.ForeignKey(
        "partners.Partner",
        on_delete=models.PROTECT,
        related_name="wms_stock",
    )

    lwin18 = models.CharField(max_length=18, db_index=True)
    product_name = models.CharField(max_length=255)
    producer = models.CharField(max_length=255, blank=True)
    vintage = models.CharField(max_length=10, blank=True)
    bottle_size = models.CharField(max_length=20, default="750ml")
    case_config = models.PositiveIntegerField(default=12)
    lot_number = models.CharField(max_length=64, blank=True)

    quantity_cases = models.IntegerField(default=0)
    reserved_cases = models.IntegerField(default=0)
    available_cases = models.IntegerField(default=0)

    sales_arrangement = models.CharField(
        max_length=20,
        choices=ARRANGEMENT_CHOICES,
        default=ARRANGEMENT_CONSIGNMENT,
    )
    consignment_commission_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
    )

    received_at = models.DateTimeField(null=True, blank=True)
    shipment = models.ForeignKey(
        "logistics.Shipment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock",
    )
    expiry_date = models.DateField(null=True, blank=True)
    is_perishable = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["product_name", "location__location_code"]
        indexes = [
            models.Index(fields=["lwin18", "owner"]),
            models.Index(fields=["location", "lwin18"]),
            models.Index(fields=["expiry_date"]),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(quantity_cases__gte=0), name="chk_stock_qty_gte_zero"),
            models.CheckConstraint(condition=Q(reserved_cases__gte=0), name="chk_stock_reserved_gte_zero"),
            models.CheckConstraint(condition=Q(available_cases__gte=0), name="chk_stock_available_gte_zero"),
        ]

    def clean(self):
        if self.quantity_cases < 0:
            raise ValidationError({"quantity_cases": "quantity cannot be negative"})
        if self.reserved_cases < 0:
            raise ValidationError({"reserved_cases": "reserved cannot be negative"})
        if self.reserved_cases > self.quantity_cases:
            raise ValidationError({"reserved_cases": "cannot reserve more than is on hand"})
        if self.available_cases != self.quantity_cases - self.reserved_cases:
            raise ValidationError({"available_cases": "available must equal quantity - reserved"})

    def save(self, *args, **kwargs):
        self.available_cases = int(self.quantity_cases or 0) - int(self.reserved_cases or 0)
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.product_name} @ {self.location_id} ({self.quantity_cases})"
