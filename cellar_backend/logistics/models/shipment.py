# logistics/models/shipment.py

"""
INBOUND / OUTBOUND SHIPMENT

- status moves forward only (see logistics.services.shipments); cancelled is
  reachable from any non-final status
- shipment-level costs are USD and are allocated to items by
  cost_allocation_method when the landed cost is calculated
"""

import uuid

from django.conf import settings
from django.db import models

from backend.numbering import next_sequential_number


class Shipment(models.Model):
    MODE_AIR = "air"
    MODE_SEA_FCL = "sea_fcl"
    MODE_SEA_LCL = "sea_lcl"
    MODE_ROAD = "road"

    MODE_CHOICES = [
        (MODE_AIR, "Air"),
        (MODE_SEA_FCL, "Sea (FCL)"),
        (MODE_SEA_LCL, "Sea (LCL)"),
        (MODE_ROAD, "Road"),
    ]

    STATUS_DRAFT = "draft"
    STATUS_BOOKED = "booked"
    STATUS_PICKED_UP = "picked_up"
    STATUS_IN_TRANSIT = "in_transit"
    STATUS_ARRIVED_PORT = "arrived_port"
    STATUS_CUSTOMS_CLEARANCE = "customs_clearance"
    STATUS_CLEARED = "cleared"
    STATUS_AT_WAREHOUSE = "at_warehouse"
    STATUS_DELIVERED = "delivered"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_BOOKED, "Booked"),
        (STATUS_PICKED_UP, "Picked Up"),
        (STATUS_IN_TRANSIT, "In Transit"),
        (STATUS_ARRIVED_PORT, "Arrived at Port"),
        (STATUS_CUSTOMS_CLEARANCE, "Customs Clearance"),
        (STATUS_CLEARED, "Cleared"),
        (STATUS_AT_WAREHOUSE, "At Warehouse"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    # forward order; cancelled sits outside it
    STATUS_ORDER = [
        STATUS_DRAFT,
        STATUS_BOOKED,
        STATUS_PICKED_UP,
        STATUS_IN_TRANSIT,
        STATUS_ARRIVED_PORT,
        STATUS_CUSTOMS_CLEARANCE,
        STATUS_CLEARED,
        STATUS_AT_WAREHOUSE,
        STATUS_DELIVERED,
    ]
    FINAL_STATUSES = {STATUS_DELIVERED, STATUS_CANCELLED}

    ALLOCATE_BY_BOTTLE = "by_bottle"
    ALLOCATE_BY_WEIGHT = "by_weight"
    ALLOCATE_BY_VALUE = "by_value"

    ALLOCATION_CHOICES = [
        (ALLOCATE_BY_BOTTLE, "By bottle"),
        (ALLOCATE_BY_WEIGHT, "By weight"),
        (ALLOCATE_BY_VALUE, "By declared value"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    shipment_number = models.CharField(max_length=32, unique=True, db_index=True)
    partner = models.ForeignKey(
        "partners.Partner",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="shipments",
    )
    transport_mode = models.CharField(max_length=10, choices=MODE_CHOICES, default=MODE_SEA_FCL)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT, db_index=True)

    # -------------------------
    # route & carrier
    # -------------------------
    origin_country = models.CharField(max_length=100, blank=True)
    origin_city = models.CharField(max_length=100, blank=True)
    destination_country = models.CharField(max_length=100, blank=True)
    destination_city = models.CharField(max_length=100, blank=True)
    carrier_name = models.CharField(max_length=255, blank=True)
    tracking_number = models.CharField(max_length=100, blank=True)

    # -------------------------
    # dates (estimated / actual)
    # -------------------------
    etd = models.DateField(null=True, blank=True)
    eta = models.DateField(null=True, blank=True)
    atd = models.DateField(null=True, blank=True)
    ata = models.DateField(null=True, blank=True)

    # -------------------------
    # costs (USD)
    # -------------------------
    freight_cost_usd = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    insurance_cost_usd = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    origin_handling_usd = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    destination_handling_usd = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    customs_clearance_usd = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    gov_fees_usd = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    delivery_cost_usd = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    other_costs_usd = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    cost_allocation_method = models.CharField(
        max_length=20,
        choices=ALLOCATION_CHOICES,
        default=ALLOCATE_BY_BOTTLE,
    )

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

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["partner", "status"]),
        ]

    def __str__(self):
        return f"{self.shipment_number} ({self.status})"

    def save(self, *args, **kwargs):
        if not self.shipment_number:
            self.shipment_number = next_sequential_number(Shipment, "shipment_number", "SHP")
        return super().save(*args, **kwargs)
