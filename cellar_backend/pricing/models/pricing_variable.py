# pricing/models/pricing_variable.py

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from pricing.services.pricing_engine import DEFAULT_VARIABLES


class PricingVariable(models.Model):
    """
    Admin override of one calculator variable (e.g. pco.cc_margin_percent).

    Missing rows fall back to the engine defaults.
    """

    MODULE_CHOICES = [(m, m) for m in DEFAULT_VARIABLES]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    module = models.CharField(max_length=32, choices=MODULE_CHOICES)
    key = models.CharField(max_length=64)
    value = models.DecimalField(max_digits=12, decimal_places=4)

    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["module", "key"]
        constraints = [
            models.UniqueConstraint(fields=["module", "key"], name="uniq_pricing_variable"),
        ]

    def __str__(self):
        return f"{self.module}.{self.key}={self.value}"

    def clean(self):
        allowed = DEFAULT_VARIABLES.get(self.module, {})
        if self.key not in allowed:
            raise ValidationError({"key": f"Unknown variable '{self.key}' for module '{self.module}'"})
        if self.value is not None and self.value < 0:
            raise ValidationError({"value": "value cannot be negative"})
        if self.key.endswith("_percent") and self.value is not None and self.value >= 100:
            raise ValidationError({"value": "percent must be below 100"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
