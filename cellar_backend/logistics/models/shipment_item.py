# logistics/models/shipment_item.py

import uuid

from django.db import models
from django.db.models import Q

from .shipment import Shipment


class ShipmentItem(models.Model):
    """
    A wine line on a shipment. The allocated_* / landed_* / margin fields are
    written by logistics.services.shipments.recalculate_shipment only.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    shipment = models.ForeignKey(Shipment, on_delete=models.CASCADE, related_name="items")

    product_name = models.CharField(max_length=255)
    lwin = models.CharField(max_length=18, blank=True, db_index=True)

    cases = models.PositiveIntegerField(default=0)
    bottles_per_case = models.PositiveIntegerField(default=12)
    total_bottles = models.PositiveIntegerField(null=True, blank=True)
    gross_weight_kg = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    product_cost_per_bottle = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    declared_value_usd = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    target_selling_price = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)

    allocated_freight = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    allocated_insurance = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    allocated_handling = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    allocated_government = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    landed_cost_total = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    landed_cost_per_bottle = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    margin_percent = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(product_cost_per_bottle__isnull=True) | Q(product_cost_per_bottle__gte=0),
                name="chk_shipment_item_cost_gte_zero",
            ),
        ]

    def __str__(self):
        return f"{self.product_name} x{self.cases}"

    @property
    def bottle_count(self) -> int:
        if self.total_bottles is not None:
            return int(self.total_bottles)
        return int(self.cases or 0) * int(self.bottles_per_case or 12)
