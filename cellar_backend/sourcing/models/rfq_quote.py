# sourcing/models/rfq_quote.py

import uuid

from django.db import models
from django.db.models import Q

from .rfq import Rfq
from .rfq_item import RfqItem
from .rfq_partner import RfqPartner


class RfqQuote(models.Model):
    """
    A partner's answer for one RFQ item.

    not_available quotes carry no price and can never be selected.
    """

    TYPE_EXACT = "exact"
    TYPE_ALTERNATIVE = "alternative"
    TYPE_NOT_AVAILABLE = "not_available"

    TYPE_CHOICES = [
        (TYPE_EXACT, "Exact match"),
        (TYPE_ALTERNATIVE, "Alternative"),
        (TYPE_NOT_AVAILABLE, "Not available"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    rfq = models.ForeignKey(Rfq, on_delete=models.CASCADE, related_name="quotes")
    item = models.ForeignKey(RfqItem, on_delete=models.CASCADE, related_name="quotes")
    rfq_partner = models.ForeignKey(RfqPartner, on_delete=models.CASCADE, related_name="quotes")
    partner = models.ForeignKey(
        "partners.Partner",
        on_delete=models.CASCADE,
        related_name="rfq_quotes",
    )

    quote_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_EXACT)
    quoted_vintage = models.CharField(max_length=10, blank=True)
    cost_price_per_case_usd = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, default="USD")
    case_config = models.PositiveIntegerField(null=True, blank=True)
    bottle_size = models.CharField(max_length=20, blank=True)
    available_quantity = models.PositiveIntegerField(null=True, blank=True)
    lead_time_days = models.PositiveIntegerField(null=True, blank=True)
    stock_location = models.CharField(max_length=255, blank=True)
    alternative_product_name = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)

    is_selected = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(cost_price_per_case_usd__isnull=True) | Q(cost_price_per_case_usd__gte=0),
                name="chk_rfq_quote_price_gte_zero",
            ),
        ]

    def __str__(self):
        return f"{self.item_id} | {self.partner_id} | {self.quote_type}"

    @property
    def is_valid_offer(self) -> bool:
        return self.quote_type != self.TYPE_NOT_AVAILABLE and self.cost_price_per_case_usd is not None
