# wms/models/dispatch.py

"""
DISPATCH BATCHES

A batch groups orders going to one distributor on one truck.
Status only moves forward: draft → picking → staged → dispatched → delivered.
Orders can be added or removed while the batch is draft or picking.
"""

import uuid

from django.conf import settings
from django.db import models

from backend.numbering import next_sequential_number


class DispatchBatch(models.Model):
    STATUS_DRAFT = "draft"
    STATUS_PICKING = "picking"
    STATUS_STAGED = "staged"
    STATUS_DISPATCHED = "dispatched"
    STATUS_DELIVERED = "delivered"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_PICKING, "Picking"),
        (STATUS_STAGED, "Staged"),
        (STATUS_DISPATCHED, "Dispatched"),
        (STATUS_DELIVERED, "Delivered"),
    ]

    STATUS_ORDER = [s for s, _ in STATUS_CHOICES]
    EDITABLE_STATUSES = {STATUS_DRAFT, STATUS_PICKING}

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    batch_number = models.CharField(max_length=32, unique=True)
    distributor = models.ForeignKey(
        "partners.Partner",
        on_delete=models.PROTECT,
        related_name="dispatch_batches",
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT, db_index=True)

    order_count = models.PositiveIntegerField(default=0)
    total_cases = models.PositiveIntegerField(default=0)

    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    dispatched_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "dispatch batches"

    def save(self, *args, **kwargs):
        if not self.batch_number:
            self.batch_number = next_sequential_number(DispatchBatch, "batch_number", "BATCH")
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.batch_number} ({self.status})"


class DispatchBatchOrder(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    batch = models.ForeignKey(DispatchBatch, on_delete=models.CASCADE, related_name="orders")
    order_type = models.CharField(max_length=10, default="pco")
    order_id = models.CharField(max_length=64)
    order_number = models.CharField(max_length=64, blank=True)
    case_count = models.PositiveIntegerField(default=0)

    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["added_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["batch", "order_type", "order_id"],
                name="uniq_dispatch_batch_order",
            ),
        ]

    def __str__(self):
        return f"{self.batch_id} → {self.order_number or self.order_id}"
