# orders/models/order.py

"""
PRIVATE CLIENT ORDER (PCO)

An order placed by a wine partner on behalf of an end client, fulfilled through
a distributor.

CANONICAL RULES:
- status is mutated ONLY via orders.services.order_service
  (transition rules live in orders.services.order_lifecycle)
- money columns are USD with 2dp; totals are recalculated by the service layer
- order_number is human-facing: PCO-YYYY-NNNNN
"""

import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q

from backend.numbering import next_sequential_number


class PrivateClientOrder(models.Model):
    # =====================================================
    # STATUS
    # =====================================================
    STATUS_DRAFT = "draft"
    STATUS_SUBMITTED = "submitted"
    STATUS_UNDER_CC_REVIEW = "under_cc_review"
    STATUS_REVISION_REQUESTED = "revision_requested"
    STATUS_CC_APPROVED = "cc_approved"
    STATUS_AWAITING_PARTNER_VERIFICATION = "awaiting_partner_verification"
    STATUS_AWAITING_DISTRIBUTOR_VERIFICATION = "awaiting_distributor_verification"
    STATUS_VERIFICATION_SUSPENDED = "verification_suspended"
    STATUS_AWAITING_CLIENT_VERIFICATION = "awaiting_client_verification"
    STATUS_AWAITING_CLIENT_PAYMENT = "awaiting_client_payment"
    STATUS_AWAITING_PAYMENT_VERIFICATION = "awaiting_payment_verification"
    STATUS_CLIENT_PAID = "client_paid"
    STATUS_AWAITING_DISTRIBUTOR_PAYMENT = "awaiting_distributor_payment"
    STATUS_DISTRIBUTOR_PAID = "distributor_paid"
    STATUS_AWAITING_PARTNER_PAYMENT = "awaiting_partner_payment"
    STATUS_PARTNER_PAID = "partner_paid"
    STATUS_STOCK_IN_TRANSIT = "stock_in_transit"
    STATUS_WITH_DISTRIBUTOR = "with_distributor"
    STATUS_OUT_FOR_DELIVERY = "out_for_delivery"
    STATUS_DELIVERED = "delivered"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_SUBMITTED, "Submitted"),
        (STATUS_UNDER_CC_REVIEW, "Under C&C Review"),
        (STATUS_REVISION_REQUESTED, "Revision Requested"),
        (STATUS_CC_APPROVED, "C&C Approved"),
        (STATUS_AWAITING_PARTNER_VERIFICATION, "Awaiting Partner Verification"),
        (STATUS_AWAITING_DISTRIBUTOR_VERIFICATION, "Awaiting Distributor Verification"),
        (STATUS_VERIFICATION_SUSPENDED, "Verification Suspended"),
        (STATUS_AWAITING_CLIENT_VERIFICATION, "Awaiting Client Verification"),
        (STATUS_AWAITING_CLIENT_PAYMENT, "Awaiting Client Payment"),
        (STATUS_AWAITING_PAYMENT_VERIFICATION, "Awaiting Payment Verification"),
        (STATUS_CLIENT_PAID, "Client Paid"),
        (STATUS_AWAITING_DISTRIBUTOR_PAYMENT, "Awaiting Distributor Payment"),
        (STATUS_DISTRIBUTOR_PAID, "Distributor Paid"),
        (STATUS_AWAITING_PARTNER_PAYMENT, "Awaiting Partner Payment"),
        (STATUS_PARTNER_PAID, "Partner Paid"),
        (STATUS_STOCK_IN_TRANSIT, "Stock In Transit"),
        (STATUS_WITH_DISTRIBUTOR, "With Distributor"),
        (STATUS_OUT_FOR_DELIVERY, "Out For Delivery"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    # Partner verification answers ("is this client known to you?")
    PARTNER_VERIFICATION_YES = "yes"
    PARTNER_VERIFICATION_NO = "no"
    PARTNER_VERIFICATION_DONT_KNOW = "dont_know"

    PARTNER_VERIFICATION_CHOICES = [
        (PARTNER_VERIFICATION_YES, "Yes"),
        (PARTNER_VERIFICATION_NO, "No"),
        (PARTNER_VERIFICATION_DONT_KNOW, "Don't know"),
    ]

    DISTRIBUTOR_VERIFICATION_VERIFIED = "verified"
    DISTRIBUTOR_VERIFICATION_NOT_VERIFIED = "not_verified"

    DISTRIBUTOR_VERIFICATION_CHOICES = [
        (DISTRIBUTOR_VERIFICATION_VERIFIED, "Verified"),
        (DISTRIBUTOR_VERIFICATION_NOT_VERIFIED, "Not verified"),
    ]

    # =====================================================
    # IDENTITY
    # =====================================================
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_number = models.CharField(max_length=32, unique=True, db_index=True)

    partner = models.ForeignKey(
        "partners.Partner",
        on_delete=models.PROTECT,
        related_name="private_client_orders",
    )
    distributor = models.ForeignKey(
        "partners.Partner",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="distributed_orders",
    )
    client = models.ForeignKey(
        "orders.PrivateClientContact",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    client_name = models.CharField(max_length=255, blank=True)
    client_email = models.EmailField(blank=True)
    client_phone = models.CharField(max_length=50, blank=True)
    client_address = models.TextField(blank=True)

    status = models.CharField(
        max_length=40,
        choices=STATUS_CHOICES,
        default=STATUS_DRAFT,
        db_index=True,
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_private_client_orders",
    )

    # =====================================================
    # MONEY (USD unless stated)
    # =====================================================
    subtotal_usd = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    duty_usd = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    logistics_usd = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    vat_usd = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    total_usd = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    total_aed = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    usd_to_aed_rate = models.DecimalField(max_digits=10, decimal_places=4, null=True, blank=True)

    item_count = models.PositiveIntegerField(default=0)
    case_count = models.PositiveIntegerField(default=0)

    # =====================================================
    # PAYMENT
    # =====================================================
    payment_reference = models.CharField(max_length=64, blank=True)
    client_payment_reference = models.CharField(max_length=128, blank=True)
    distributor_payment_reference = models.CharField(max_length=128, blank=True)
    partner_payment_reference = models.CharField(max_length=128, blank=True)

    # =====================================================
    # VERIFICATION
    # =====================================================
    partner_verification_response = models.CharField(
        max_length=20,
        choices=PARTNER_VERIFICATION_CHOICES,
        blank=True,
    )
    partner_verification_at = models.DateTimeField(null=True, blank=True)
    partner_verification_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    distributor_verification_response = models.CharField(
        max_length=20,
        choices=DISTRIBUTOR_VERIFICATION_CHOICES,
        blank=True,
    )
    distributor_verification_at = models.DateTimeField(null=True, blank=True)
    distributor_verification_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    distributor_verification_notes = models.TextField(blank=True)

    client_verified_at = models.DateTimeField(null=True, blank=True)
    client_verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    # =====================================================
    # LIFECYCLE TIMESTAMPS
    # =====================================================
    submitted_at = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    distributor_assigned_at = models.DateTimeField(null=True, blank=True)
    client_paid_at = models.DateTimeField(null=True, blank=True)
    client_payment_confirmed_at = models.DateTimeField(null=True, blank=True)
    distributor_paid_at = models.DateTimeField(null=True, blank=True)
    partner_paid_at = models.DateTimeField(null=True, blank=True)
    stock_in_transit_at = models.DateTimeField(null=True, blank=True)
    stock_received_at = models.DateTimeField(null=True, blank=True)
    out_for_delivery_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)

    # =====================================================
    # NOTES
    # =====================================================
    partner_notes = models.TextField(blank=True)
    admin_notes = models.TextField(blank=True)
    distributor_notes = models.TextField(blank=True)
    revision_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["partner", "status"]),
            models.Index(fields=["distributor", "status"]),
            models.Index(fields=["status", "created_at"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(total_usd__gte=0),
                name="chk_pco_total_usd_gte_zero",
            ),
        ]

    def __str__(self):
        return f"{self.order_number} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in (self.STATUS_DELIVERED, self.STATUS_CANCELLED)

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = next_sequential_number(
                PrivateClientOrder, "order_number", "PCO", width=5
            )
        return super().save(*args, **kwargs)
