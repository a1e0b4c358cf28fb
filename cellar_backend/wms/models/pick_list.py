# wms/models/pick_list.py

import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q

from backend.numbering import next_sequential_number


class PickList(models.Model):
    STATUS_PENDING = "pending"
    STATUS_IN_PROGRESS = "in_progress"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_IN_PROGRESS, "In progress"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    CLOSED_STATUSES = {STATUS_COMPLETED, STATUS_CANCELLED}

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pick_list_number = models.CharField(max_length=32, unique=True)
    order_type = models.CharField(max_length=10)
    order_id = models.CharField(max_length=64, db_index=True)
    order_number = models.CharField(max_length=64, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    total_items = models.PositiveIntegerField(default=0)
    picked_items = models.PositiveIntegerField(default=0)

    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_pick_lists",
    )
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def save(self, *args, **kwargs):
        if not self.pick_list_number:
            self.pick_list_number = next_sequential_number(PickList, "pick_list_number", "PICK")
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.pick_list_number} ({self.status})"


class PickListItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pick_list = models.ForeignKey(PickList, on_delete=models.CASCADE, related_name="items")

    order_item_id = models.CharField(max_length=64, blank=True)
    lwin18 = models.CharField(max_length=18)
    product_name = models.CharField(max_length=255, blank=True)
    quantity_cases = models.PositiveIntegerField()

    suggested_location = models.ForeignKey(
        "wms.Location",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    picked_quantity = models.PositiveIntegerField(default=0)
    picked_from_location = models.ForeignKey(
        "wms.Location",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    is_picked = models.BooleanField(default=False)
    picked_at = models.DateTimeField(null=True, blank=True)
    picked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        ordering = ["product_name"]
        constraints = [
            models.CheckConstraint(condition=Q(quantity_cases__gt=0), name="chk_pick_item_qty_gt_zero"),
        ]

    def __str__(self):
        return f"{self.product_name} x{self.quantity_cases}"
