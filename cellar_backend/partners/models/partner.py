# partners/models/partner.py

import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q


class Partner(models.Model):
    """
    A business entity the platform trades with.

    - wine_partner: places private client orders, answers RFQs, owns stock
    - distributor: verifies clients, collects payment, delivers orders

    distributor_code is optional, but if provided it must be unique; it prefixes
    client payment references (e.g. "CD-PCO-2026-00012").
    """

    TYPE_WINE_PARTNER = "wine_partner"
    TYPE_DISTRIBUTOR = "distributor"

    TYPE_CHOICES = [
        (TYPE_WINE_PARTNER, "Wine Partner"),
        (TYPE_DISTRIBUTOR, "Distributor"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, db_index=True)

    business_email = models.EmailField(blank=True)
    business_phone = models.CharField(max_length=50, blank=True)

    distributor_code = models.CharField(
        max_length=20,
        null=True,
        blank=True,
        db_index=True,
        help_text="Short code used as payment reference prefix (distributors only).",
    )

    # Distributors like City Drinks require the partner to confirm the end client
    # before the distributor verifies them on their own platform.
    requires_client_verification = models.BooleanField(default=False)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["distributor_code"],
                condition=Q(distributor_code__isnull=False) & ~Q(distributor_code=""),
                name="uniq_partner_distributor_code_when_present",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.type})"

    @property
    def is_distributor(self) -> bool:
        return self.type == self.TYPE_DISTRIBUTOR


class PartnerMember(models.Model):
    ROLE_OWNER = "owner"
    ROLE_MEMBER = "member"

    ROLE_CHOICES = [
        (ROLE_OWNER, "Owner"),
        (ROLE_MEMBER, "Member"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    partner = models.ForeignKey(Partner, on_delete=models.CASCADE, related_name="members")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="partner_memberships",
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_MEMBER)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(fields=["partner", "user"], name="uniq_partner_member"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.partner.name}"
