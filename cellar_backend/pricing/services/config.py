# pricing/services/config.py

"""
PRICING CONFIGURATION RESOLUTION

Stored overrides win over engine defaults; settings win over engine defaults for
exchange rates when no ExchangeRate row exists yet.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction

from pricing.models import ExchangeRate, PricingVariable
from pricing.services.pricing_engine import (
    DEFAULT_EXCHANGE_RATES,
    DEFAULT_VARIABLES,
    PricingError,
    to_decimal,
)

logger = logging.getLogger(__name__)

RATE_PAIRS = {
    "gbp_to_usd": ("GBP", "USD"),
    "eur_to_usd": ("EUR", "USD"),
    "usd_to_aed": ("USD", "AED"),
}


def get_module_variables(module: str) -> dict:
    defaults = DEFAULT_VARIABLES.get(module)
    if defaults is None:
        raise PricingError(f"Unknown pricing module: {module}")

    resolved = dict(defaults)
    for row in PricingVariable.objects.filter(module=module):
        if row.key in resolved:
            resolved[row.key] = row.value
    return resolved


def get_exchange_rates() -> dict:
    configured = getattr(settings, "PRICING_DEFAULT_EXCHANGE_RATES", {}) or {}
    rates = {
        key: to_decimal(configured.get(key, DEFAULT_EXCHANGE_RATES[key]))
        for key in DEFAULT_EXCHANGE_RATES
    }

    for key, (from_cur, to_cur) in RATE_PAIRS.items():
        latest = (
            ExchangeRate.objects.filter(from_currency=from_cur, to_currency=to_cur)
            .order_by("-effective_date", "-created_at")
            .first()
        )
        if latest is not None:
            rates[key] = latest.rate

    return rates


@transaction.atomic
def set_module_variable(*, module: str, key: str, value, user=None) -> PricingVariable:
    value = to_decimal(value, field=key)
    row, created = PricingVariable.objects.select_for_update().get_or_create(
        module=module,
        key=key,
        defaults={"value": value, "updated_by": user},
    )
    if not created:
        previous = row.value
        row.value = value
        row.updated_by = user
        row.save()
        logger.info(
            "Pricing variable updated",
            extra={"pricing_module": module, "key": key, "previous": str(previous), "value": str(value)},
        )
    return row


def record_exchange_rate(*, from_currency: str, to_currency: str, rate, effective_date, source="manual"):
    rate = to_decimal(rate, field="rate")
    if rate <= Decimal("0"):
        raise PricingError("rate must be greater than zero")

    row, _ = ExchangeRate.objects.update_or_create(
        from_currency=from_currency.upper(),
        to_currency=to_currency.upper(),
        effective_date=effective_date,
        defaults={"rate": rate, "source": source},
    )
    return row
