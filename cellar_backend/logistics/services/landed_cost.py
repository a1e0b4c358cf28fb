"""
======================================================
PATH: logistics/services/landed_cost.py
======================================================
LANDED COST (PURE)

landed = product cost + freight + insurance + handling + government fees

handling = origin + destination + customs clearance + delivery + other

Shipment-level costs are split across items by the shipment's allocation
method:
- by_bottle → bottle count (default)
- by_weight → gross weight (kg)
- by_value  → declared value (USD)

A zero denominator is treated as 1 so an incomplete shipment still yields a
product-cost-only figure instead of failing.

Works on model instances or any object with the same attribute names; no
database access. Outputs are rounded to 2dp, intermediates are not.
======================================================
"""

from __future__ import annotations

from decimal import Decimal

from pricing.services.pricing_engine import HUNDRED, PricingError, round2, to_decimal

BY_BOTTLE = "by_bottle"
BY_WEIGHT = "by_weight"
BY_VALUE = "by_value"

ALLOCATION_METHODS = {BY_BOTTLE, BY_WEIGHT, BY_VALUE}

ZERO = Decimal("0")


def _num(obj, name) -> Decimal:
    return to_decimal(getattr(obj, name, None), field=name)


def item_bottles(item) -> int:
    total = getattr(item, "total_bottles", None)
    if total is not None:
        return int(total)
    per_case = getattr(item, "bottles_per_case", None) or 12
    return int(getattr(item, "cases", 0) or 0) * int(per_case)


def _basis(item, method: str) -> Decimal:
    if method == BY_BOTTLE:
        return Decimal(item_bottles(item))
    if method == BY_WEIGHT:
        return _num(item, "gross_weight_kg")
    return _num(item, "declared_value_usd")


def calculate_landed_cost(shipment, items) -> dict:
    method = getattr(shipment, "cost_allocation_method", None) or BY_BOTTLE
    if method not in ALLOCATION_METHODS:
        raise PricingError(f"Unknown cost allocation method: {method}")

    freight = _num(shipment, "freight_cost_usd")
    insurance = _num(shipment, "insurance_cost_usd")
    government = _num(shipment, "gov_fees_usd")
    handling = (
        _num(shipment, "origin_handling_usd")
        + _num(shipment, "destination_handling_usd")
        + _num(shipment, "customs_clearance_usd")
        + _num(shipment, "delivery_cost_usd")
        + _num(shipment, "other_costs_usd")
    )
    shipment_costs = freight + insurance + handling + government

    items = list(items)
    denominator = sum((_basis(item, method) for item in items), ZERO)
    if denominator == 0:
        denominator = Decimal("1")

    rows = []
    total_bottles = 0
    total_product_cost = ZERO

    for item in items:
        bottles = item_bottles(item)
        ratio = _basis(item, method) / denominator

        alloc_freight = freight * ratio
        alloc_insurance = insurance * ratio
        alloc_handling = handling * ratio
        alloc_government = government * ratio

        product_cost = _num(item, "product_cost_per_bottle") * bottles
        landed_total = product_cost + alloc_freight + alloc_insurance + alloc_handling + alloc_government
        per_bottle = landed_total / bottles if bottles > 0 else ZERO

        margin_per_bottle = None
        margin_percent = None
        target = getattr(item, "target_selling_price", None)
        if target is not None and to_decimal(target) > 0:
            margin_per_bottle = to_decimal(target) - per_bottle
            if per_bottle > 0:
                margin_percent = margin_per_bottle / per_bottle * HUNDRED

        total_bottles += bottles
        total_product_cost += product_cost

        rows.append(
            {
                "item_id": str(getattr(item, "id", "") or ""),
                "total_bottles": bottles,
                "allocation_ratio": ratio.quantize(Decimal("0.000001")),
                "allocated_freight": round2(alloc_freight),
                "allocated_insurance": round2(alloc_insurance),
                "allocated_handling": round2(alloc_handling),
                "allocated_government": round2(alloc_government),
                "landed_cost_total": round2(landed_total),
                "landed_cost_per_bottle": round2(per_bottle),
                "margin_per_bottle": None if margin_per_bottle is None else round2(margin_per_bottle),
                "margin_percent": None if margin_percent is None else round2(margin_percent),
            }
        )

    total_landed = total_product_cost + shipment_costs

    return {
        "allocation_method": method,
        "items": rows,
        "summary": {
            "total_bottles": total_bottles,
            "total_product_cost_usd": round2(total_product_cost),
            "total_shipment_costs_usd": round2(shipment_costs),
            "total_landed_cost_usd": round2(total_landed),
            "landed_cost_per_bottle_usd": round2(total_landed / total_bottles) if total_bottles else round2(0),
        },
    }
