# sourcing/models/rfq.py

"""
REQUEST FOR QUOTE (RFQ)

draft → sent → collecting → (comparing) → selecting → finalized → quote_generated
cancelled from any non-final status.

Status is mutated ONLY via sourcing.services.rfq_service.
"""

import uuid

from django.conf import settings
from django.db import models

from backend.numbering import next_sequential_number


class Rfq(models.Model):
    STATUS_DRAFT = "draft"
    STATUS_SENT = "sent"
    STATUS_COLLECTING = "collecting"
    STATUS_COMPARING = "comparing"
    STATUS_SELECTING = "selecting"
    STATUS_FINALIZED = "finalized"
    STATUS_QUOTE_GENERATED = "quote_generated"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_SENT, "Sent"),
        (STATUS_COLLECTING, "Collecting"),
        (STATUS_COMPARING, "Comparing"),
        (STATUS_SELECTING, "Selecting"),
        (STATUS_FINALIZED, "Finalized"),
        (STATUS_QUOTE_GENERATED, "Quote Generated"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    QUOTABLE_STATUSES = {STATUS_SENT, STATUS_COLLECTING}
    SELECTABLE_STATUSES = {STATUS_SENT, STATUS_COLLECTING, STATUS_COMPARING, STATUS_SELECTING}
    FINALIZABLE_STATUSES = {STATUS_SELECTING, STATUS_COMPARING, STATUS_COLLECTING}

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    rfq_number = models.CharField(max_length=32, unique=True, db_index=True)
    name = models.CharField(max_length=255)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT, db_index=True)

    response_deadline = models.DateTimeField(null=True, blank=True)
    distributor_name = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)

    sent_at = models.DateTimeField(null=True, blank=True)
    finalized_at = models.DateTimeField(null=True, blank=True)

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

    def __str__(self):
        return f"{self.rfq_number} {self.name}"

    def save(self, *args, **kwargs):
        if not self.rfq_number:
            self.rfq_number = next_sequential_number(Rfq, "rfq_number", "RFQ")
        return super().save(*args, **kwargs)
