"""
======================================================
PATH: quotes/services/b2b_calculator.py
======================================================
B2B QUOTE CALCULATOR (PURE)

customer price = in-bond price + import tax + distributor margin + transfer cost

- import tax is a percentage of the in-bond price only
- the distributor margin is either a percentage of the in-bond price or a
  fixed USD amount
- the transfer cost is a flat USD amount per quote

Outputs are rounded to 2dp; the total is rounded from the unrounded parts.
======================================================
"""

from __future__ import annotations

from decimal import Decimal

from pricing.services.pricing_engine import HUNDRED, PricingError, round2, to_decimal

MARGIN_PERCENTAGE = "percentage"
MARGIN_FIXED = "fixed"

MARGIN_TYPES = {MARGIN_PERCENTAGE, MARGIN_FIXED}


def _non_negative(value, field: str) -> Decimal:
    amount = to_decimal(value, field=field)
    if amount < 0:
        raise PricingError(f"{field} cannot be negative")
    return amount


def calculate_b2b_quote(
    *,
    in_bond_price_usd,
    transfer_cost_usd,
    import_tax_percent,
    margin_type: str = MARGIN_PERCENTAGE,
    margin_value=0,
) -> dict:
    if margin_type not in MARGIN_TYPES:
        raise PricingError(f"Unknown margin type: {margin_type}")

    in_bond = _non_negative(in_bond_price_usd, "in_bond_price_usd")
    transfer = _non_negative(transfer_cost_usd, "transfer_cost_usd")
    tax_pct = _non_negative(import_tax_percent, "import_tax_percent")
    margin_in = _non_negative(margin_value, "margin_value")

    import_tax = in_bond * tax_pct / HUNDRED
    if margin_type == MARGIN_PERCENTAGE:
        margin = in_bond * margin_in / HUNDRED
    else:
        margin = margin_in

    total = in_bond + import_tax + margin + transfer

    return {
        "in_bond_price": round2(in_bond),
        "import_tax": round2(import_tax),
        "distributor_margin": round2(margin),
        "transfer_cost": round2(transfer),
        "customer_quote_price": round2(total),
        "margin_type": margin_type,
    }
