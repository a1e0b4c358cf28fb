# quotes/models/line_item.py

import uuid

from django.db import models
from django.db.models import Q

from .quote import Quote


class QuoteLineItem(models.Model):
    """
    One catalogue product on a quote.

    base_price_usd is the per-case price currently applied; original_price_usd
    is the catalogue price captured when the line was added, so an accepted
    alternative can be reverted.

    admin_alternatives is a list of
    {"product_name", "price_per_case", "bottles_per_case", "bottle_size",
    "quantity_available"} suggested during review.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    quote = models.ForeignKey(Quote, on_delete=models.CASCADE, related_name="line_items")

    product_key = models.CharField(max_length=64)
    product_name = models.CharField(max_length=255)
    producer = models.CharField(max_length=255, blank=True)
    vintage = models.CharField(max_length=10, blank=True)
    lwin = models.CharField(max_length=18, blank=True, db_index=True)
    bottle_size = models.CharField(max_length=20, default="750ml")
    bottles_per_case = models.PositiveIntegerField(default=12)

    quantity = models.PositiveIntegerField(default=1)
    confirmed_quantity = models.PositiveIntegerField(null=True, blank=True)

    original_price_usd = models.DecimalField(max_digits=14, decimal_places=2)
    base_price_usd = models.DecimalField(max_digits=14, decimal_places=2)
    line_total_usd = models.DecimalField(max_digits=14, decimal_places=2, default=0)

    admin_notes = models.TextField(blank=True)
    admin_alternatives = models.JSONField(default=list, blank=True)
    accepted_alternative = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(fields=["quote", "product_key"], name="uniq_quote_line_product"),
            models.CheckConstraint(condition=Q(quantity__gt=0), name="chk_quote_line_quantity_gt_zero"),
            models.CheckConstraint(condition=Q(base_price_usd__gte=0), name="chk_quote_line_price_gte_zero"),
        ]

    def __str__(self):
        return f"{self.product_name} x{self.effective_quantity}"

    @property
    def effective_quantity(self) -> int:
        if self.confirmed_quantity is not None:
            return int(self.confirmed_quantity)
        return int(self.quantity)
