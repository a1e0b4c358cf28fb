# wms/models/cycle_count.py

import uuid

from django.conf import settings
from django.db import models

from backend.numbering import next_sequential_number


class CycleCount(models.Model):
    STATUS_PENDING = "pending"
    STATUS_IN_PROGRESS = "in_progress"
    STATUS_COMPLETED = "completed"
    STATUS_RECONCILED = "reconciled"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_IN_PROGRESS, "In progress"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_RECONCILED, "Reconciled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    count_number = models.CharField(max_length=32, unique=True)
    location = models.ForeignKey(
        "wms.Location",
        on_delete=models.PROTECT,
        related_name="cycle_counts",
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    reconciled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    reconciled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def save(self, *args, **kwargs):
        if not self.count_number:
            self.count_number = next_sequential_number(CycleCount, "count_number", "CC")
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.count_number} ({self.status})"


class CycleCountItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    cycle_count = models.ForeignKey(CycleCount, on_delete=models.CASCADE, related_name="items")
    stock = models.ForeignKey(
        "wms.Stock",
        on_delete=models.SET_NULL,
        null=True,
        related_name="+",
    )

    lwin18 = models.CharField(max_length=18)
    product_name = models.CharField(max_length=255, blank=True)
    expected_quantity = models.IntegerField(default=0)
    counted_quantity = models.IntegerField(null=True, blank=True)
    discrepancy = models.IntegerField(default=0)

    counted_at = models.DateTimeField(null=True, blank=True)
    counted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        ordering = ["product_name"]

    def save(self, *args, **kwargs):
        if self.counted_quantity is not None:
            self.discrepancy = int(self.counted_quantity) - int(self.expected_quantity or 0)
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.lwin18}: {self.expected_quantity} → {self.counted_quantity}"
