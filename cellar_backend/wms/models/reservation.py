# wms/models/reservation.py

import uuid

from django.db import models
from django.db.models import Q


class StockReservation(models.Model):
    ORDER_TYPE_ZOHO = "zoho"
    ORDER_TYPE_PCO = "pco"

    ORDER_TYPE_CHOICES = [
        (ORDER_TYPE_ZOHO, "Zoho sales order"),
        (ORDER_TYPE_PCO, "Private client order"),
    ]

    STATUS_ACTIVE = "active"
    STATUS_RELEASED = "released"
    STATUS_FULFILLED = "fulfilled"

    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_RELEASED, "Released"),
        (STATUS_FULFILLED, "Fulfilled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    stock = models.ForeignKey(
        "wms.Stock",
        on_delete=models.SET_NULL,
        null=True,
        related_name="reservations",
    )

    order_type = models.CharField(max_length=10, choices=ORDER_TYPE_CHOICES)
    order_id = models.CharField(max_length=64, db_index=True)
    order_number = models.CharField(max_length=64, blank=True)
    order_item_id = models.CharField(max_length=64, blank=True)

    lwin18 = models.CharField(max_length=18)
    product_name = models.CharField(max_length=255, blank=True)
    quantity_cases = models.PositiveIntegerField()

    status = models.CharField(
        max_length=12,
        choices=STATUS_CHOICES,
        default=STATUS_ACTIVE,
        db_index=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    released_at = models.DateTimeField(null=True, blank=True)
    fulfilled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["order_type", "order_id", "status"]),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(quantity_cases__gt=0), name="chk_reservation_qty_gt_zero"),
        ]

    def __str__(self):
        return f"{self.order_type}:{self.order_number or self.order_id} {self.lwin18} x{self.quantity_cases}"
