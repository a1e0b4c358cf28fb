# sourcing/models/rfq_partner.py

import uuid

from django.db import models

from .rfq import Rfq


class RfqPartner(models.Model):
    """
    A wine partner invited to quote on an RFQ.
    """

    STATUS_PENDING = "pending"
    STATUS_VIEWED = "viewed"
    STATUS_SUBMITTED = "submitted"
    STATUS_DECLINED = "declined"
    STATUS_EXPIRED = "expired"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_VIEWED, "Viewed"),
        (STATUS_SUBMITTED, "Submitted"),
        (STATUS_DECLINED, "Declined"),
        (STATUS_EXPIRED, "Expired"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    rfq = models.ForeignKey(Rfq, on_delete=models.CASCADE, related_name="partners")
    partner = models.ForeignKey(
        "partners.Partner",
        on_delete=models.CASCADE,
        related_name="rfq_assignments",
    )

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    viewed_at = models.DateTimeField(null=True, blank=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    quote_count = models.PositiveIntegerField(default=0)
    partner_notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(fields=["rfq", "partner"], name="uniq_rfq_partner"),
        ]

    def __str__(self):
        return f"{self.rfq_id} → {self.partner_id} ({self.status})"
