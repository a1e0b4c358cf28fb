# pricing/services/profit.py

"""
PROFIT ANALYSIS (PURE)

Per-case sell vs buy comparison used by sourcing (customer PO vs supplier quotes).

Rules:
- Without BOTH prices an item has no profit figure, but line totals are still
  reported for whichever price exists.
- Missing quantity counts as 1 case for profit lines.
- margin % is profit / sell price; a zero sell price yields 0%.
- A "losing" item is one bought for more than it sells for.
"""

from __future__ import annotations

from decimal import Decimal

from pricing.services.pricing_engine import HUNDRED, round2, to_decimal


def _opt(value):
    return None if value is None else to_decimal(value)


def calculate_item_profit(*, sell_price_per_case_usd, buy_price_per_case_usd, quantity_cases) -> dict:
    sell = _opt(sell_price_per_case_usd)
    buy = _opt(buy_price_per_case_usd)
    qty = None if quantity_cases is None else int(quantity_cases)

    if sell is None or buy is None:
        return {
            "profit_usd": None,
            "profit_margin_percent": None,
            "is_losing_item": False,
            "line_total_sell_usd": round2(sell * qty) if sell is not None and qty is not None else None,
            "line_total_buy_usd": round2(buy * qty) if buy is not None and qty is not None else None,
            "line_profit_usd": None,
        }

    qty = 1 if qty is None else qty
    profit = sell - buy
    margin = (profit / sell) * HUNDRED if sell > 0 else Decimal("0")

    return {
        "profit_usd": round2(profit),
        "profit_margin_percent": round2(margin),
        "is_losing_item": buy > sell,
        "line_total_sell_usd": round2(sell * qty),
        "line_total_buy_usd": round2(buy * qty),
        "line_profit_usd": round2(profit * qty),
    }


def calculate_profit_summary(items: list[dict]) -> dict:
    total_sell = Decimal("0")
    total_buy = Decimal("0")
    losing = 0

    for item in items:
        result = calculate_item_profit(**item)
        if result["line_total_sell_usd"] is not None:
            total_sell += result["line_total_sell_usd"]
        if result["line_total_buy_usd"] is not None:
            total_buy += result["line_total_buy_usd"]
        if result["is_losing_item"]:
            losing += 1

    total_profit = total_sell - total_buy
    margin = (total_profit / total_sell) * HUNDRED if total_sell > 0 else Decimal("0")

    return {
        "total_sell_price_usd": round2(total_sell),
        "total_buy_price_usd": round2(total_buy),
        "total_profit_usd": round2(total_profit),
        "profit_margin_percent": round2(margin),
        "item_count": len(items),
        "losing_item_count": losing,
    }


def calculate_profit_analysis(items: list[dict]) -> dict:
    """
    items: [{"sell_price_per_case_usd", "buy_price_per_case_usd", "quantity_cases", ...extra}]
    Extra keys (ids, names) are passed through on each result row.
    """
    core_keys = ("sell_price_per_case_usd", "buy_price_per_case_usd", "quantity_cases")
    core = [{k: item.get(k) for k in core_keys} for item in items]

    rows = [
        {**item, **calculate_item_profit(**core_item)}
        for item, core_item in zip(items, core)
    ]

    return {
        "items": rows,
        "summary": calculate_profit_summary(core),
    }
