# quotes/models/quote.py

"""
CUSTOMER QUOTE

A quote is built by a partner or customer from catalogue lines, submitted as a
buy request and confirmed by the admin team (who may cut quantities or offer
alternatives). After confirmation it follows one of two tracks:

- b2c: awaiting_payment → paid → delivered
- b2b: po_submitted → po_confirmed → delivered

The transfer/import/margin fields are the B2B calculator inputs used to price
the quote for the end customer (see quotes.services.b2b_calculator).
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q

from backend.numbering import next_sequential_number


class Quote(models.Model):
    CUSTOMER_B2B = "b2b"
    CUSTOMER_B2C = "b2c"

    CUSTOMER_TYPE_CHOICES = [
        (CUSTOMER_B2B, "B2B"),
        (CUSTOMER_B2C, "B2C"),
    ]

    STATUS_DRAFT = "draft"
    STATUS_SENT = "sent"
    STATUS_BUY_REQUEST_SUBMITTED = "buy_request_submitted"
    STATUS_UNDER_CC_REVIEW = "under_cc_review"
    STATUS_REVISION_REQUESTED = "revision_requested"
    STATUS_CC_CONFIRMED = "cc_confirmed"
    STATUS_AWAITING_PAYMENT = "awaiting_payment"
    STATUS_PAID = "paid"
    STATUS_PO_SUBMITTED = "po_submitted"
    STATUS_PO_CONFIRMED = "po_confirmed"
    STATUS_DELIVERED = "delivered"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_SENT, "Sent"),
        (STATUS_BUY_REQUEST_SUBMITTED, "Buy Request Submitted"),
        (STATUS_UNDER_CC_REVIEW, "Under Review"),
        (STATUS_REVISION_REQUESTED, "Revision Requested"),
        (STATUS_CC_CONFIRMED, "Confirmed"),
        (STATUS_AWAITING_PAYMENT, "Awaiting Payment"),
        (STATUS_PAID, "Paid"),
        (STATUS_PO_SUBMITTED, "PO Submitted"),
        (STATUS_PO_CONFIRMED, "PO Confirmed"),
        (STATUS_DELIVERED, "Delivered"),
    ]

    MARGIN_PERCENTAGE = "percentage"
    MARGIN_FIXED = "fixed"

    MARGIN_TYPE_CHOICES = [
        (MARGIN_PERCENTAGE, "Percentage of in-bond price"),
        (MARGIN_FIXED, "Fixed amount (USD)"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    quote_number = models.CharField(max_length=32, unique=True, editable=False)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="quotes",
    )
    partner = models.ForeignKey(
        "partners.Partner",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="quotes",
    )

    name = models.CharField(max_length=255, blank=True)
    client_name = models.CharField(max_length=255, blank=True)
    customer_type = models.CharField(max_length=10, choices=CUSTOMER_TYPE_CHOICES, default=CUSTOMER_B2C)
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default=STATUS_DRAFT, db_index=True)
    notes = models.TextField(blank=True)

    # B2B calculator inputs
    transfer_cost_usd = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("200.00"))
    import_tax_percent = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("20.00"))
    margin_type = models.CharField(max_length=12, choices=MARGIN_TYPE_CHOICES, default=MARGIN_PERCENTAGE)
    margin_value = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("15.00"))

    total_usd = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    total_aed = models.DecimalField(max_digits=14, decimal_places=2, default=0)

    # admin review
    revision_reason = models.TextField(blank=True)
    delivery_lead_time = models.CharField(max_length=100, blank=True)
    cc_confirmation_notes = models.TextField(blank=True)
    confirmed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    # settlement
    payment_reference = models.CharField(max_length=100, blank=True)
    po_number = models.CharField(max_length=100, blank=True)

    submitted_at = models.DateTimeField(null=True, blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    po_submitted_at = models.DateTimeField(null=True, blank=True)
    po_confirmed_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["created_by", "status"]),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(total_usd__gte=0), name="chk_quote_total_usd_gte_zero"),
            models.CheckConstraint(condition=Q(transfer_cost_usd__gte=0), name="chk_quote_transfer_cost_gte_zero"),
            models.CheckConstraint(condition=Q(import_tax_percent__gte=0), name="chk_quote_import_tax_gte_zero"),
            models.CheckConstraint(condition=Q(margin_value__gte=0), name="chk_quote_margin_value_gte_zero"),
        ]

    def save(self, *args, **kwargs):
        if not self.quote_number:
            self.quote_number = next_sequential_number(Quote, "quote_number", "QTE")
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.quote_number} ({self.status})"
