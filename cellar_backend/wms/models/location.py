# wms/models/location.py

import uuid

from django.db import models


class Location(models.Model):
    TYPE_RACK = "rack"
    TYPE_FLOOR = "floor"
    TYPE_RECEIVING = "receiving"
    TYPE_SHIPPING = "shipping"
    TYPE_BONDED = "bonded"

    TYPE_CHOICES = [
        (TYPE_RACK, "Rack"),
        (TYPE_FLOOR, "Floor"),
        (TYPE_RECEIVING, "Receiving"),
        (TYPE_SHIPPING, "Shipping"),
        (TYPE_BONDED, "Bonded"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    location_code = models.CharField(max_length=32, unique=True)
    location_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_RACK)

    aisle = models.CharField(max_length=10, blank=True)
    bay = models.CharField(max_length=10, blank=True)
    level = models.CharField(max_length=10, blank=True)

    capacity_cases = models.PositiveIntegerField(null=True, blank=True)
    requires_forklift = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["location_code"]

    def save(self, *args, **kwargs):
        self.location_code = (self.location_code or "").strip().upper()
        return super().save(*args, **kwargs)

    def __str__(self):
        return self.location_code
