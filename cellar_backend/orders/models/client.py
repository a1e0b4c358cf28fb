# orders/models/client.py

import uuid

from django.conf import settings
from django.db import models


class PrivateClientContact(models.Model):
    """
    An end client known to a wine partner.

    The city_drinks_* fields are stamped by the distributor the first time it
    verifies the client, so later orders for the same contact can skip the
    client verification stage.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    partner = models.ForeignKey(
        "partners.Partner",
        on_delete=models.CASCADE,
        related_name="private_clients",
    )

    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    address = models.TextField(blank=True)
    notes = models.TextField(blank=True)

    city_drinks_verified_at = models.DateTimeField(null=True, blank=True)
    city_drinks_verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    city_drinks_account_name = models.CharField(max_length=255, blank=True)
    city_drinks_phone = models.CharField(max_length=50, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["partner", "name"]),
        ]

    def __str__(self):
        return self.name

    @property
    def is_verified(self) -> bool:
        return self.city_drinks_verified_at is not None
