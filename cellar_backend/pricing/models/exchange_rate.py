# pricing/models/exchange_rate.py

import uuid

from django.db import models
from django.db.models import Q


class ExchangeRate(models.Model):
    """
    Daily FX snapshot. The most recent effective_date per pair wins.

    Stored pairs used by the calculators: GBP→USD, EUR→USD, USD→AED.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    from_currency = models.CharField(max_length=3)
    to_currency = models.CharField(max_length=3)
    rate = models.DecimalField(max_digits=14, decimal_places=6)
    effective_date = models.DateField()
    source = models.CharField(max_length=32, default="manual")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-effective_date", "from_currency", "to_currency"]
        constraints = [
            models.UniqueConstraint(
                fields=["from_currency", "to_currency", "effective_date"],
                name="uniq_exchange_rate_per_day",
            ),
            models.CheckConstraint(condition=Q(rate__gt=0), name="chk_exchange_rate_gt_zero"),
        ]

    def __str__(self):
        return f"{self.from_currency}/{self.to_currency} {self.rate} @ {self.effective_date}"
